"""
Validates and normalizes the bound polygon (template) used to finitize Voronoi cells.

`normalize_bound_polygon` closes the ring, checks that at least 3 unique
vertices remain, rejects self-intersecting rings and orients the result
counter-clockwise, which the half-plane clipping relies on.
"""
from dataclasses import dataclass

import torch
import structlog

from .exceptions import InvalidBoundPolygon, SelfIntersectingPolygon
from .geometry_core import (
    EPSILON, as_points_tensor, compute_diameter, compute_extent, compute_signed_area, segments_intersect
)

logger = structlog.get_logger()


@dataclass(frozen=True, eq=False)
class BoundPolygon:
    """
    A closed, simple, counter-clockwise ring with at least 3 unique vertices.

    `closed` holds the ring with its closing duplicate (first row == last row).
    Instances are built by `normalize_bound_polygon` and never mutated; the
    accessors return copies.
    """
    closed: torch.Tensor

    @property
    def ring(self) -> torch.Tensor:
        """Unique vertices in CCW order, without the closing duplicate."""
        return self.closed[:-1].clone()

    @property
    def vertex_count(self) -> int:
        return self.closed.shape[0] - 1

    @property
    def area(self) -> float:
        return compute_signed_area(self.closed[:-1])

    @property
    def extent(self) -> torch.Tensor:
        """[[min_x, min_y], [max_x, max_y]] of the ring."""
        return compute_extent(self.closed)

    @property
    def center(self) -> torch.Tensor:
        """Centre of the ring's bounding box."""
        extent = self.extent
        return (extent[0] + extent[1]) / 2.0

    @property
    def diameter(self) -> float:
        return compute_diameter(self.closed[:-1])

    @property
    def radius(self) -> float:
        """Largest distance of a vertex from the origin."""
        return torch.linalg.norm(self.closed, dim=1).max().item()

    def tolist(self) -> list[list[float]]:
        return self.closed.tolist()


def close_ring(vertices: torch.Tensor) -> torch.Tensor:
    """Appends the first vertex if the ring is not already closed."""
    if vertices.shape[0] == 0 or torch.equal(vertices[0], vertices[-1]):
        return vertices
    return torch.cat([vertices, vertices[:1]], dim=0)


def count_unique_vertices(closed_ring: torch.Tensor) -> int:
    """Number of distinct vertices of a closed ring, ignoring the closing duplicate."""
    if closed_ring.shape[0] == 0:
        return 0
    return torch.unique(closed_ring[:-1], dim=0).shape[0]


def find_self_intersection(closed_ring: torch.Tensor) -> tuple[int, int] | None:
    """
    Finds a pair of non-adjacent edges of a closed ring that intersect.

    Edge `i` runs from vertex `i` to vertex `i + 1`. All edge pairs are tested
    at once by broadcasting; edges sharing an endpoint (consecutive edges and
    the first/last pair) are excluded.

    Args:
        closed_ring (torch.Tensor): Closed ring of shape (M + 1, 2).

    Returns:
        tuple[int, int] | None: Indices of the first intersecting edge pair
                                (lowest `i`, then lowest `j`), or None if the
                                ring is simple.
    """
    starts = closed_ring[:-1]
    ends = closed_ring[1:]
    n_edges = starts.shape[0]
    if n_edges < 4: # A triangle has no non-adjacent edge pair
        return None

    hits = segments_intersect(
        starts.unsqueeze(1), ends.unsqueeze(1),
        starts.unsqueeze(0), ends.unsqueeze(0)
    )

    idx = torch.arange(n_edges)
    i_idx = idx.unsqueeze(1)
    j_idx = idx.unsqueeze(0)
    gap = torch.abs(i_idx - j_idx)
    non_adjacent = (gap > 1) & (gap < n_edges - 1) & (i_idx < j_idx)
    pairs = torch.nonzero(hits & non_adjacent)
    if pairs.shape[0] == 0:
        return None
    i, j = pairs[0].tolist()
    return i, j


def normalize_bound_polygon(vertices, epsilon: float = EPSILON) -> BoundPolygon:
    """
    Builds a `BoundPolygon` from a sanitized vertex list.

    Steps: (1) close the ring if the first vertex differs from the last;
    (2) require at least 3 unique vertices; (3) reject any intersection between
    non-adjacent edges; (4) reverse the vertex order if the signed area is
    negative so that the ring is counter-clockwise.

    Args:
        vertices: Sanitized vertices, shape (N, 2) (tensor or sequence of pairs).
        epsilon (float, optional): Relative tolerance below which the ring's
                                   area counts as zero. Defaults to `EPSILON`.

    Returns:
        BoundPolygon: The normalized ring.

    Raises:
        InvalidBoundPolygon: Fewer than 3 unique vertices, or zero area.
        SelfIntersectingPolygon: Two non-adjacent edges intersect.
    """
    closed = close_ring(as_points_tensor(vertices))
    unique_count = count_unique_vertices(closed)
    if unique_count < 3:
        raise InvalidBoundPolygon(
            f"At least 3 unique vertices are needed to specify a bounding polygon, got {unique_count}.")

    intersection = find_self_intersection(closed)
    if intersection is not None:
        raise SelfIntersectingPolygon(*intersection)

    signed_area = compute_signed_area(closed[:-1])
    span = torch.max(closed.max(dim=0).values - closed.min(dim=0).values).item()
    if abs(signed_area) <= epsilon * max(1.0, span) ** 2:
        raise InvalidBoundPolygon("The bounding polygon encloses no area (its vertices are collinear).")

    if signed_area < 0:
        closed = torch.flip(closed, dims=[0])
        logger.debug("Bound polygon reoriented counter-clockwise", vertices=unique_count)

    return BoundPolygon(closed=closed.contiguous())
