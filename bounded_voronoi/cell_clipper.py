"""
Clips a copy of the bound polygon, placed on a site, against the site's Voronoi half-planes.

The result for each site is a `CellResult`: the site plus the closed ring of
its finite cell. When nothing of the template survives the clipping (fewer
than 3 vertices, or zero area) the cell is empty and the `DegenerateCell` is
recorded on the result instead of being raised.
"""
from dataclasses import dataclass, field
from typing import Literal

import torch

from .exceptions import DegenerateCell
from .geometry_core import EPSILON, clip_polygon_halfplanes, compute_signed_area, tolerance_for
from .polygon_normalizer import BoundPolygon
from .voronoi_builder import VoronoiCellSpec

Centering = Literal["offset", "bbox"]


@dataclass(frozen=True)
class CellResult:
    """
    The finite cell of one site.

    Attributes:
        site (tuple[float, float]): The site coordinates.
        cell (tuple[tuple[float, float], ...]): Closed ring (first == last), or
            empty when the cell is degenerate.
        error (DegenerateCell | None): Set when the cell is degenerate.
    """
    site: tuple[float, float]
    cell: tuple[tuple[float, float], ...]
    error: DegenerateCell | None = field(default=None, compare=False)

    @property
    def is_degenerate(self) -> bool:
        return self.error is not None

    def vertices(self) -> torch.Tensor:
        """Open ring of the cell as a float64 tensor of shape (M, 2)."""
        if not self.cell:
            return torch.empty((0, 2), dtype=torch.float64)
        return torch.tensor(self.cell[:-1], dtype=torch.float64)

    def to_dict(self) -> dict:
        """The output record: `{"site": [x, y], "cell": [[x, y], ...]}`."""
        return {"site": list(self.site), "cell": [list(v) for v in self.cell]}


def place_template(bound: BoundPolygon, site: torch.Tensor, centering: Centering = "offset") -> torch.Tensor:
    """
    Translates the bound polygon onto a site.

    Args:
        bound (BoundPolygon): The normalized template.
        site (torch.Tensor): Site coordinates, shape (2,).
        centering (str, optional): "offset" adds the site coordinates to every
            template vertex (the template's coordinates are offsets from the
            site). "bbox" moves the centre of the template's bounding box onto
            the site. Defaults to "offset".

    Returns:
        torch.Tensor: Open CCW ring of shape (M, 2).
    """
    ring = bound.ring
    if centering == "offset":
        return ring + site
    if centering == "bbox":
        return ring - bound.center + site
    raise ValueError(f"Unknown centering mode: {centering!r}. Expected 'offset' or 'bbox'.")


def _close(vertices: torch.Tensor) -> tuple[tuple[float, float], ...]:
    ring = [tuple(v) for v in vertices.tolist()]
    return tuple(ring + ring[:1])


def clip_cell(
    bound: BoundPolygon,
    site,
    spec: VoronoiCellSpec,
    centering: Centering = "offset",
    epsilon: float = EPSILON
) -> CellResult:
    """
    Computes the finite cell of one site.

    The template is placed on the site (see `place_template`) and clipped,
    Sutherland-Hodgman style, against each half-plane of `spec` in turn. A
    vertex within `epsilon` times the template's extent of a half-plane
    boundary counts as inside, so round-off does not create slivers.

    Args:
        bound (BoundPolygon): The normalized template.
        site: Site coordinates as a tensor of shape (2,) or an (x, y) pair.
        spec (VoronoiCellSpec): The site's Voronoi half-planes.
        centering (str, optional): Template placement mode. Defaults to "offset".
        epsilon (float, optional): Relative boundary tolerance. Defaults to `EPSILON`.

    Returns:
        CellResult: Closed cell ring, or an empty cell with `error` set if the
                    clipped polygon has fewer than 3 vertices or no area.
    """
    site = torch.as_tensor(site, dtype=torch.float64)
    site_tuple = tuple(site.tolist())
    template = place_template(bound, site, centering)
    tol = tolerance_for(template, epsilon)

    clipped = clip_polygon_halfplanes(template, spec.normals, spec.offsets, tol=tol)

    n_vertices = clipped.shape[0]
    if n_vertices < 3 or abs(compute_signed_area(clipped)) <= tol * tol:
        return CellResult(site=site_tuple, cell=(),
                          error=DegenerateCell(spec.site_index, site_tuple, n_vertices))
    return CellResult(site=site_tuple, cell=_close(clipped))
