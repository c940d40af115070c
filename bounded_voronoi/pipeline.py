"""
End-to-end computation of a bounded Voronoi diagram.

`build` is the single entry point of the core:

    sanitize sites -> sanitize + normalize bound -> per-site half-planes -> clip per site

Errors in the bound polygon abort the run; degenerate cells are recorded per
site and never abort it.
"""
from concurrent.futures import ThreadPoolExecutor

import torch
import structlog

from .cell_clipper import CellResult, clip_cell
from .config import Settings
from .input_output import load_bounded_point_set
from .point_sanitizer import sanitize_points
from .polygon_normalizer import BoundPolygon, normalize_bound_polygon
from .voronoi_builder import build_voronoi_cell_spec, compute_all_bisectors, compute_seeding_box

logger = structlog.get_logger()


def _compute_cells(sites: torch.Tensor, bound: BoundPolygon, settings: Settings) -> list[CellResult]:
    seeding_box = compute_seeding_box(sites, bound)
    bisectors = compute_all_bisectors(sites)

    def process_site(index: int) -> CellResult:
        spec = build_voronoi_cell_spec(sites, index, seeding_box, bisectors, settings.epsilon)
        return clip_cell(bound, sites[index], spec, centering=settings.centering, epsilon=settings.epsilon)

    indices = range(sites.shape[0])
    if settings.max_workers > 1 and sites.shape[0] > 1:
        # map() yields in submission order, so output order is site order
        with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
            return list(executor.map(process_site, indices))
    return [process_site(i) for i in indices]


def build(sites, bound, settings: Settings | None = None) -> list[CellResult]:
    """
    Computes the bounded Voronoi cell of every site.

    Args:
        sites: Raw site coordinates, a sequence of (x, y) pairs. Invalid pairs
               (NaN, infinite, subnormal) are dropped and duplicates collapsed.
        bound: Raw bound polygon vertices, a sequence of (x, y) pairs. The ring
               may be open or closed and in either orientation.
        settings (Settings | None, optional): Pipeline settings. Defaults to
               `Settings()` (environment-driven).

    Returns:
        list[CellResult]: One result per unique valid site in first-seen order.
            Degenerate cells are included with an empty `cell` and their
            `error` set, or omitted when `settings.degenerate_cells == "drop"`.

    Raises:
        InvalidBoundPolygon: The bound has fewer than 3 unique valid vertices.
        SelfIntersectingPolygon: The bound is not simple.
        ValueError: An input entry is not a coordinate pair.
    """
    settings = settings or Settings()

    site_set = sanitize_points(sites)
    bound_polygon = normalize_bound_polygon(sanitize_points(bound), epsilon=settings.epsilon)

    if site_set.shape[0] == 0:
        logger.info("No valid sites, nothing to compute")
        return []

    results = _compute_cells(site_set, bound_polygon, settings)

    degenerate = [r for r in results if r.is_degenerate]
    for result in degenerate:
        logger.warning("Degenerate cell", site_index=result.error.site_index, site=result.site,
                       vertices=result.error.vertex_count)
    if settings.degenerate_cells == "drop":
        results = [r for r in results if not r.is_degenerate]

    logger.info("Bounded Voronoi diagram built", sites=site_set.shape[0], cells=len(results),
                degenerate=len(degenerate), centering=settings.centering)
    return results


def build_from_file(path, settings: Settings | None = None) -> list[CellResult]:
    """Reads a point-set file (see `input_output.load_bounded_point_set`) and runs `build` on it."""
    point_set = load_bounded_point_set(path)
    return build(point_set.points, point_set.bound, settings)
