"""
Unit tests for cell analysis functions in `voronoi_analysis.py`.

This module tests:
- `compute_cell_area`: shoelace area of open and closed rings.
- `compute_cell_perimeter_2d`: Perimeter of 2D cells.
- `compute_cell_centroid`: Area-weighted centroid, with a vertex-mean fallback.
- `compute_circularity_2d`: Circularity shape factor for 2D cells.
- `summarize_cells`: Per-cell measures of a whole diagram.
"""
import math
import torch
import unittest

from ..cell_clipper import CellResult
from ..exceptions import DegenerateCell
from ..pipeline import build
from ..voronoi_analysis import (
    compute_cell_area, compute_cell_centroid, compute_cell_perimeter_2d, compute_circularity_2d, summarize_cells
)

UNIT_SQUARE = [[0., 0.], [1., 0.], [1., 1.], [0., 1.]]


class TestCellMeasures(unittest.TestCase):
    def test_area(self):
        self.assertAlmostEqual(compute_cell_area(UNIT_SQUARE), 1.0, places=12)

    def test_area_closed_and_clockwise(self):
        closed_cw = list(reversed(UNIT_SQUARE + UNIT_SQUARE[:1]))
        self.assertAlmostEqual(compute_cell_area(closed_cw), 1.0, places=12)

    def test_area_degenerate(self):
        self.assertEqual(compute_cell_area([[0., 0.], [1., 1.]]), 0.0)
        self.assertEqual(compute_cell_area([]), 0.0)

    def test_perimeter(self):
        self.assertAlmostEqual(compute_cell_perimeter_2d(UNIT_SQUARE), 4.0, places=12)
        self.assertAlmostEqual(compute_cell_perimeter_2d(UNIT_SQUARE + UNIT_SQUARE[:1]), 4.0, places=12)
        self.assertEqual(compute_cell_perimeter_2d([[1., 1.]]), 0.0)

    def test_centroid(self):
        centroid = compute_cell_centroid(UNIT_SQUARE)
        self.assertTrue(torch.allclose(centroid, torch.tensor([0.5, 0.5], dtype=torch.float64)))

    def test_centroid_is_area_weighted(self):
        """Extra collinear vertices on one side must not pull the centroid."""
        square = [[0., 0.], [0.25, 0.], [0.5, 0.], [0.75, 0.], [1., 0.], [1., 1.], [0., 1.]]
        centroid = compute_cell_centroid(square)
        self.assertTrue(torch.allclose(centroid, torch.tensor([0.5, 0.5], dtype=torch.float64)))

    def test_centroid_degenerate(self):
        self.assertIsNone(compute_cell_centroid([]))
        centroid = compute_cell_centroid([[0., 0.], [2., 2.]])
        self.assertTrue(torch.allclose(centroid, torch.tensor([1., 1.], dtype=torch.float64)))

    def test_circularity(self):
        self.assertAlmostEqual(compute_circularity_2d(1.0, 4.0), math.pi / 4, places=12)
        self.assertEqual(compute_circularity_2d(1.0, 0.0), 0.0)


class TestSummarizeCells(unittest.TestCase):
    def test_summary_of_diagram(self):
        results = build([[0., 0.], [1., 0.]], [[-1., -1.], [1., -1.], [1., 1.], [-1., 1.]])
        summary = summarize_cells(results)
        self.assertEqual(len(summary), 2)
        self.assertAlmostEqual(summary[0]["area"], 3.0, places=9)
        self.assertAlmostEqual(summary[0]["perimeter"], 7.0, places=9)
        self.assertAlmostEqual(summary[0]["centroid"][0], -0.25, places=9)
        self.assertEqual(summary[1]["site"], (1., 0.))

    def test_degenerate_cells_skipped(self):
        results = [
            CellResult(site=(0., 0.), cell=(), error=DegenerateCell(0, (0., 0.))),
            CellResult(site=(5., 5.), cell=((4., 4.), (6., 4.), (6., 6.), (4., 6.), (4., 4.))),
        ]
        summary = summarize_cells(results)
        self.assertEqual(len(summary), 1)
        self.assertAlmostEqual(summary[0]["area"], 4.0, places=12)
        self.assertEqual(summary[0]["centroid"], (5.0, 5.0))


if __name__ == '__main__':
    unittest.main()
