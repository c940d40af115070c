"""Errors raised (or recorded) by the bounded Voronoi pipeline."""


class CoreError(Exception):
    """Base class for every error the pipeline reports."""


class InvalidBoundPolygon(CoreError):
    """The bound polygon has fewer than 3 unique vertices or encloses no area."""


class SelfIntersectingPolygon(CoreError):
    """The bound polygon is not simple: two non-adjacent edges intersect."""

    def __init__(self, edge_a: int, edge_b: int):
        self.edge_a = edge_a
        self.edge_b = edge_b
        super().__init__(f"Bound polygon edges {edge_a} and {edge_b} intersect.")


class DegenerateCell(CoreError):
    """
    Clipping left fewer than 3 vertices for a site.

    Never raised out of `build`; recorded on the site's `CellResult` instead.
    """

    def __init__(self, site_index: int, site: tuple[float, float], vertex_count: int = 0):
        self.site_index = site_index
        self.site = site
        self.vertex_count = vertex_count
        super().__init__(
            f"Cell of site {site_index} at {site} degenerated to {vertex_count} vertices.")


class InputFormatError(CoreError):
    """The input file could not be read or does not match the expected structure."""
