"""
Reading point-set files and writing bounded Voronoi results as JSON.

Input structure::

    {
        "points": [[0.0, 1.0], [1.0, 1.0], ...],
        "bound": [[-0.5, -0.5], [0.0, 0.0], [1.0, 0.5], [-0.5, -0.5]]
    }

`point_set` is accepted in place of `points`. Output is a list of
`{"site": [x, y], "cell": [[x, y], ...]}` records.
"""
import json
from pathlib import Path

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .cell_clipper import CellResult
from .exceptions import InputFormatError

logger = structlog.get_logger()

OUTPUT_FILE_NAME = "geo_bound_voronoi.json"


class BoundedPointSet(BaseModel):
    """A set of 2D points bound by a polygon, as read from a point-set file."""

    model_config = ConfigDict(populate_by_name=True)

    points: list[tuple[float, float]] = Field(
        ..., validation_alias=AliasChoices("points", "point_set"), description="Voronoi sites"
    )
    bound: list[tuple[float, float]] = Field(..., description="Bound polygon vertices")


def load_bounded_point_set(path) -> BoundedPointSet:
    """
    Reads and validates a point-set file.

    Coordinates are not sanitized here; NaN and Infinity literals pass through
    and are dropped later by the pipeline.

    Raises:
        InputFormatError: The file cannot be read, is not JSON, or lacks the
                          expected fields.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InputFormatError(f"Could not read point set file {path}: {e}") from e

    try:
        point_set = BoundedPointSet.model_validate(data)
    except ValidationError as e:
        raise InputFormatError(f"Invalid point set file {path}: {e}") from e

    logger.debug("Point set loaded", path=str(path), points=len(point_set.points),
                 bound_vertices=len(point_set.bound))
    return point_set


def cells_to_records(cells: list[CellResult]) -> list[dict]:
    return [cell.to_dict() for cell in cells]


def write_cells(cells: list[CellResult], output_directory) -> Path:
    """
    Writes the results to `OUTPUT_FILE_NAME` inside `output_directory`.

    The directory is created if needed.

    Returns:
        Path: The written file.
    """
    output_directory = Path(output_directory)
    output_directory.mkdir(parents=True, exist_ok=True)
    output_path = output_directory / OUTPUT_FILE_NAME
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(cells_to_records(cells), f)
    logger.info("Cells written", path=str(output_path), cells=len(cells))
    return output_path
