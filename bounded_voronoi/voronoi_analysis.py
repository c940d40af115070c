"""
Provides functions for analyzing bounded Voronoi cells.

This module includes functionalities to:
- Calculate geometric properties of individual cells, such as area
  (`compute_cell_area`), perimeter (`compute_cell_perimeter_2d`) and
  centroid (`compute_cell_centroid`).
- Compute the circularity shape factor (`compute_circularity_2d`).
- Summarize a whole diagram (`summarize_cells`).

Cells are taken as rings of shape (N, 2); a closing duplicate vertex, as found
in `CellResult.cell`, is tolerated.
"""
import math

import torch

from .cell_clipper import CellResult
from .geometry_core import EPSILON, as_points_tensor, compute_signed_area


def _open_ring(cell_vertices) -> torch.Tensor:
    vertices = as_points_tensor(cell_vertices)
    if vertices.shape[0] > 1 and torch.equal(vertices[0], vertices[-1]):
        return vertices[:-1]
    return vertices


def compute_cell_area(cell_vertices) -> float:
    """
    Area of a cell polygon (shoelace formula, orientation-independent).

    Args:
        cell_vertices: Ordered vertices of shape (N, 2), open or closed ring.

    Returns:
        float: The area. 0.0 for fewer than 3 vertices.
    """
    return abs(compute_signed_area(_open_ring(cell_vertices)))


def compute_cell_perimeter_2d(cell_vertices) -> float:
    """
    Computes the perimeter of a 2D polygon defined by ordered vertices.

    Args:
        cell_vertices: Ordered vertices of shape (N, 2), open or closed ring.

    Returns:
        float: The perimeter. Returns 0.0 if N < 2.
    """
    vertices = _open_ring(cell_vertices)
    if vertices.shape[0] < 2:
        return 0.0
    # Lengths of segments between consecutive vertices, including closing segment
    segments = vertices - torch.roll(vertices, shifts=-1, dims=0)
    return torch.sum(torch.linalg.norm(segments, dim=1)).item()


def compute_cell_centroid(cell_vertices) -> torch.Tensor | None:
    """
    Computes the area-weighted centroid of a cell polygon.

    Falls back to the mean of the vertices when the polygon has no area.

    Args:
        cell_vertices: Ordered vertices of shape (N, 2), open or closed ring.

    Returns:
        torch.Tensor | None: Centroid of shape (2,), or None for an empty cell.
    """
    vertices = _open_ring(cell_vertices)
    if vertices.shape[0] == 0:
        return None
    signed_area = compute_signed_area(vertices)
    if abs(signed_area) < EPSILON:
        return torch.mean(vertices, dim=0)

    x, y = vertices[:, 0], vertices[:, 1]
    x_next, y_next = torch.roll(x, shifts=-1), torch.roll(y, shifts=-1)
    cross = x * y_next - x_next * y
    cx = torch.sum((x + x_next) * cross) / (6.0 * signed_area)
    cy = torch.sum((y + y_next) * cross) / (6.0 * signed_area)
    return torch.stack([cx, cy])


def compute_circularity_2d(area: float, perimeter: float) -> float:
    """
    Computes the circularity (Polsby-Popper number) of a 2D shape.
    Circularity = (4 * pi * Area) / (Perimeter^2).
    A perfect circle has circularity 1. Values are <= 1.

    Returns:
        float: The circularity. Returns 0.0 if perimeter is (close to) zero.
    """
    if abs(perimeter) < EPSILON:
        return 0.0
    return (4 * math.pi * area) / (perimeter ** 2)


def summarize_cells(results: list[CellResult]) -> list[dict]:
    """
    Per-cell measures of a bounded Voronoi diagram.

    Degenerate cells are skipped.

    Returns:
        list[dict]: One dict per non-degenerate cell with keys `site`, `area`,
                    `perimeter`, `circularity` and `centroid`.
    """
    summary = []
    for result in results:
        if result.is_degenerate:
            continue
        vertices = result.vertices()
        area = compute_cell_area(vertices)
        perimeter = compute_cell_perimeter_2d(vertices)
        summary.append({
            "site": result.site,
            "area": area,
            "perimeter": perimeter,
            "circularity": compute_circularity_2d(area, perimeter),
            "centroid": tuple(compute_cell_centroid(vertices).tolist()),
        })
    return summary
