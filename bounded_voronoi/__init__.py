"""
Bounded Voronoi diagrams: the Voronoi cell of every site, intersected with a
polygon template placed on that site.
"""
from .cell_clipper import CellResult, clip_cell
from .config import Settings
from .exceptions import (
    CoreError, DegenerateCell, InputFormatError, InvalidBoundPolygon, SelfIntersectingPolygon
)
from .pipeline import build, build_from_file
from .point_sanitizer import sanitize_points
from .polygon_normalizer import BoundPolygon, normalize_bound_polygon
from .voronoi_builder import HalfPlane, VoronoiCellSpec, build_voronoi_cell_specs

__version__ = "0.1.0"
