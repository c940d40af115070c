import unittest
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..config import Settings
from ..pipeline import build
from ..polygon_normalizer import normalize_bound_polygon
from ..voronoi_plotting import plot_bounded_voronoi_2d


class TestVoronoiPlotting(unittest.TestCase):
    """
    Smoke tests for the bounded Voronoi plotting function.
    These tests primarily check that plotting executes without raising errors
    for basic inputs. They do not verify the correctness of the visual output.
    """

    @classmethod
    def tearDownClass(cls):
        """Close all Matplotlib figures after all tests in the class have run."""
        plt.close('all')

    def test_plot_smoke(self):
        bound_vertices = [[-1., -1.], [1., -1.], [1., 1.], [-1., 1.]]
        results = build([[0., 0.], [1., 0.], [0.5, 0.866]], bound_vertices)
        try:
            ax = plot_bounded_voronoi_2d(results, title="Smoke Test")
            self.assertEqual(len(ax.patches), 3)
            plot_bounded_voronoi_2d(results, bound=normalize_bound_polygon(bound_vertices), show_template=True)
        finally:
            plt.close('all')

    def test_plot_degenerate_cells(self):
        far_bound = [[10., 10.], [11., 10.], [11., 11.], [10., 11.]]
        results = build([[0., 0.], [1., 0.]], far_bound)
        try:
            ax = plot_bounded_voronoi_2d(results)
            self.assertEqual(len(ax.patches), 1)
        finally:
            plt.close('all')

    def test_template_outline_follows_centering(self):
        far_bound = [[10., 10.], [11., 10.], [11., 11.], [10., 11.]]
        sites = [[0., 0.], [3., 0.]]
        results = build(sites, far_bound, Settings(centering="bbox"))
        try:
            ax = plot_bounded_voronoi_2d(results, bound=normalize_bound_polygon(far_bound),
                                         show_template=True, centering="bbox")
            outlines = ax.lines[-len(sites):]
            for site, line in zip(sites, outlines):
                xs, ys = line.get_xdata(), line.get_ydata()
                self.assertAlmostEqual(min(xs), site[0] - 0.5, places=12)
                self.assertAlmostEqual(max(ys), site[1] + 0.5, places=12)
        finally:
            plt.close('all')

    def test_unknown_centering_raises(self):
        bound_vertices = [[-1., -1.], [1., -1.], [1., 1.], [-1., 1.]]
        results = build([[0., 0.]], bound_vertices)
        try:
            with self.assertRaises(ValueError):
                plot_bounded_voronoi_2d(results, bound=normalize_bound_polygon(bound_vertices),
                                        show_template=True, centering="centroid")
        finally:
            plt.close('all')

    def test_plot_no_cells(self):
        self.assertIsNone(plot_bounded_voronoi_2d([]))


if __name__ == '__main__':
    unittest.main()
