"""Configuration management."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .geometry_core import EPSILON


class Settings(BaseSettings):
    """Pipeline settings, read from `BOUNDED_VORONOI_*` environment variables or a `.env` file."""

    model_config = SettingsConfigDict(env_prefix="BOUNDED_VORONOI_", env_file=".env", extra="ignore")

    # Geometry
    centering: Literal["offset", "bbox"] = Field(
        default="offset", description="How the bound polygon is placed on each site"
    )
    epsilon: float = Field(
        default=EPSILON, gt=0.0, description="Base tolerance for on-boundary tests"
    )

    # Output
    degenerate_cells: Literal["empty", "drop"] = Field(
        default="empty", description="Emit degenerate cells with an empty ring, or drop them"
    )

    # Execution
    max_workers: int = Field(default=1, ge=1, description="Threads used for per-site work")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Render log events as JSON")
