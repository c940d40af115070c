"""
Constructs per-site Voronoi cell constraints from perpendicular bisectors.

For sites p and q, the bisector of segment pq splits the plane into the points
at least as close to p as to q, `(x - m) . (q - p) <= 0` with `m = (p + q) / 2`,
and the rest. Each site's Voronoi cell is the intersection of its n - 1 such
half-planes. Rather than a sweep, every site's half-planes are intersected
directly with a large seeding box (O(n^2) overall) and only the half-planes
that contribute an edge to the result are kept. The surviving half-planes
also give the cell adjacency: their `neighbor` indices are exactly the sites
whose cells share an edge with this one.

Pairwise bisector normals and offsets are computed in one batched tensor
operation, in the same broadcasting style as a nearest-seed query.
"""
from dataclasses import dataclass
from typing import Iterator, NamedTuple

import torch
import structlog

from .geometry_core import (
    DTYPE, EPSILON, as_points_tensor, box_polygon, clip_polygon_halfplanes, compute_extent, rounding_tolerance
)
from .polygon_normalizer import BoundPolygon

logger = structlog.get_logger()


class HalfPlane(NamedTuple):
    """The constraint `normal . x <= offset`, bisector of the owning site and `neighbor`."""
    normal: tuple[float, float]
    offset: float
    neighbor: int


@dataclass(frozen=True, eq=False)
class VoronoiCellSpec:
    """
    The half-planes bounding one site's (possibly unbounded) Voronoi cell.

    Attributes:
        site_index (int): Index of the site in the sanitized site set.
        normals (torch.Tensor): Shape (K, 2), half-plane normals `q - p`.
        offsets (torch.Tensor): Shape (K,), offsets so that `normals[k] . x <= offsets[k]`.
        neighbors (torch.Tensor): Shape (K,), long indices of the neighbouring sites.
        region (torch.Tensor): Open CCW ring of the cell intersected with the
                               seeding box, shape (M, 2).
    """
    site_index: int
    normals: torch.Tensor
    offsets: torch.Tensor
    neighbors: torch.Tensor
    region: torch.Tensor

    def __len__(self) -> int:
        return self.normals.shape[0]

    def __iter__(self) -> Iterator[HalfPlane]:
        for normal, offset, neighbor in zip(self.normals.tolist(), self.offsets.tolist(), self.neighbors.tolist()):
            yield HalfPlane(tuple(normal), offset, neighbor)

    @property
    def half_planes(self) -> list[HalfPlane]:
        return list(self)


def compute_all_bisectors(sites: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
    """
    Bisector half-planes for every ordered pair of sites.

    Args:
        sites (torch.Tensor): Tensor of shape (N, 2) of unique sites.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]:
            - normals (torch.Tensor): Shape (N, N, 2); `normals[i, j] = sites[j] - sites[i]`.
            - offsets (torch.Tensor): Shape (N, N); `normals[i, j] . (sites[i] + sites[j]) / 2`.
              The diagonal (i == j) is all zeros and must be ignored.
    """
    p_expanded = sites.unsqueeze(1) # (N, 1, 2)
    q_expanded = sites.unsqueeze(0) # (1, N, 2)
    normals = q_expanded - p_expanded
    midpoints = (q_expanded + p_expanded) / 2.0
    offsets = torch.sum(normals * midpoints, dim=2)
    return normals, offsets


def compute_bisector_half_planes(sites, index: int) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """
    The raw (unpruned) bisector half-planes of site `index` against every other site.

    Args:
        sites: Tensor of shape (N, 2) (or a sequence of pairs) of unique sites.
        index (int): Site whose half-planes are returned.

    Returns:
        Tuple[torch.Tensor, torch.Tensor, torch.Tensor]: `normals` (N-1, 2),
        `offsets` (N-1,) and `neighbors` (N-1,) in site order.
    """
    sites = as_points_tensor(sites)
    if not (0 <= index < sites.shape[0]):
        raise IndexError(f"Site index {index} out of range for {sites.shape[0]} sites.")
    others = torch.cat([torch.arange(index), torch.arange(index + 1, sites.shape[0])]).long()
    normals = sites[others] - sites[index]
    offsets = torch.sum(normals * (sites[others] + sites[index]) / 2.0, dim=1)
    return normals, offsets, others


def compute_seeding_box(sites: torch.Tensor, bound: BoundPolygon | None = None) -> torch.Tensor:
    """
    A box large enough to stand in for the unbounded plane.

    The site extent is expanded on every side by a reach that covers any copy
    of the bound polygon translated onto a site, whether it is placed by
    direct offset or re-centred on its bounding-box centre, plus one unit.

    Args:
        sites (torch.Tensor): Tensor of shape (N, 2), N >= 1.
        bound (BoundPolygon | None, optional): Template later used to clip the cells.

    Returns:
        torch.Tensor: [[min_x, min_y], [max_x, max_y]] of shape (2, 2).
    """
    extent = compute_extent(sites)
    reach = 1.0
    if bound is not None:
        reach += 2.0 * bound.radius + bound.diameter
    reach += torch.max(extent[1] - extent[0]).item()
    return torch.stack([extent[0] - reach, extent[1] + reach])


def _active_constraints(region: torch.Tensor, normals: torch.Tensor, offsets: torch.Tensor, tol: float) -> torch.Tensor:
    """
    Marks the half-planes whose boundary line carries an edge of `region`.

    A constraint is active when both endpoints of at least one region edge lie
    on its boundary line (within `tol`); constraints that only touch the region
    at a vertex, or miss it, are dominated by the others.
    """
    if region.shape[0] < 2 or normals.shape[0] == 0:
        return torch.zeros(normals.shape[0], dtype=torch.bool)
    norms = torch.linalg.norm(normals, dim=1) # (K,)
    # distances[v, k]: signed distance of region vertex v to boundary line k
    distances = (region @ normals.T - offsets.unsqueeze(0)) / norms.unsqueeze(0)
    on_line = torch.abs(distances) <= tol
    edge_on_line = on_line & torch.roll(on_line, shifts=-1, dims=0)
    return torch.any(edge_on_line, dim=0)


def build_voronoi_cell_spec(
    sites: torch.Tensor,
    index: int,
    seeding_box: torch.Tensor,
    bisectors: tuple[torch.Tensor, torch.Tensor] | None = None,
    epsilon: float = EPSILON
) -> VoronoiCellSpec:
    """
    Builds the `VoronoiCellSpec` of one site.

    Args:
        sites (torch.Tensor): All sites, shape (N, 2).
        index (int): Site to build the spec for.
        seeding_box (torch.Tensor): Box from `compute_seeding_box`.
        bisectors (tuple, optional): Precomputed output of `compute_all_bisectors`.
        epsilon (float, optional): Absolute tolerance for clipping and for
                                   deciding which half-planes are active. Raised
                                   to the round-off allowance of the seeding box
                                   when that is larger.

    Returns:
        VoronoiCellSpec: Non-dominated half-planes of the site and its region.
    """
    n_sites = sites.shape[0]
    if bisectors is None:
        normals, offsets, neighbors = compute_bisector_half_planes(sites, index)
    else:
        all_normals, all_offsets = bisectors
        neighbors = torch.tensor([j for j in range(n_sites) if j != index], dtype=torch.long)
        normals = all_normals[index, neighbors]
        offsets = all_offsets[index, neighbors]

    box = box_polygon(seeding_box)
    # Absolute, not scaled by the box: the box grows with the site span, but
    # the edges between close sites do not.
    tol = max(epsilon, rounding_tolerance(box))
    # Nearest bisectors first, so the huge box edges are cut away early.
    order = torch.argsort(torch.linalg.norm(normals, dim=1))
    region = clip_polygon_halfplanes(box, normals[order], offsets[order], tol=tol)
    active = _active_constraints(region, normals, offsets, tol)

    return VoronoiCellSpec(
        site_index=index,
        normals=normals[active],
        offsets=offsets[active],
        neighbors=neighbors[active],
        region=region,
    )


def build_voronoi_cell_specs(sites, bound: BoundPolygon | None = None, epsilon: float = EPSILON) -> list[VoronoiCellSpec]:
    """
    Builds a `VoronoiCellSpec` for every site.

    Args:
        sites: Sanitized sites, tensor of shape (N, 2) or a sequence of pairs.
               Sites are assumed unique (see `sanitize_points`).
        bound (BoundPolygon | None, optional): Template used to size the seeding box.
        epsilon (float, optional): Absolute region tolerance (see `build_voronoi_cell_spec`). Defaults to `EPSILON`.

    Returns:
        list[VoronoiCellSpec]: One spec per site, in site order. Empty for no sites.
    """
    sites = as_points_tensor(sites).to(DTYPE)
    n_sites = sites.shape[0]
    if n_sites == 0:
        return []

    seeding_box = compute_seeding_box(sites, bound)
    bisectors = compute_all_bisectors(sites)
    specs = [build_voronoi_cell_spec(sites, i, seeding_box, bisectors, epsilon) for i in range(n_sites)]
    logger.info("Voronoi cell specs built", sites=n_sites,
                half_planes=sum(len(spec) for spec in specs))
    return specs


def get_cell_neighbors(specs: list[VoronoiCellSpec]) -> list[list[int]]:
    """
    Cell adjacency derived from the active half-planes.

    Returns:
        list[list[int]]: For each site, the sorted indices of the sites whose
                         cells share an edge with it (within the seeding box).
    """
    return [sorted(spec.neighbors.tolist()) for spec in specs]
