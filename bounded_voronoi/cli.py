"""Command-line tool generating the Voronoi diagram of a point set bound by an arbitrary geometry."""

import argparse
import logging
import sys
from pathlib import Path

import structlog

from .config import Settings
from .exceptions import CoreError
from .input_output import write_cells
from .pipeline import build_from_file

logger = structlog.get_logger()


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Routes structlog through the stdlib logging module at the given level."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper())
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bounded-voronoi",
        description="Generate the Voronoi diagram of a point set bound by an arbitrary geometry.",
    )
    parser.add_argument(
        "point_set_file", type=Path,
        help='JSON file of the form {"points": [[x, y], ...], "bound": [[x, y], ...]}',
    )
    parser.add_argument(
        "-o", "--output-directory", type=Path, default=None,
        help="Output directory [default: the parent directory of the point set file]",
    )
    parser.add_argument(
        "--centering", choices=["offset", "bbox"], default=None,
        help="Place the bound by adding site coordinates (offset) or by centring its bounding box (bbox)",
    )
    parser.add_argument(
        "--degenerate-cells", choices=["empty", "drop"], default=None,
        help="Emit sites whose cell vanishes with an empty cell, or drop them",
    )
    parser.add_argument("--workers", type=int, default=None, help="Threads used for per-site work")
    parser.add_argument("--plot", type=Path, default=None, help="Also render the diagram to this image file")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Environment-driven settings, overridden by any flags given on the command line."""
    overrides = {
        "centering": args.centering,
        "degenerate_cells": args.degenerate_cells,
        "max_workers": args.workers,
        "log_level": args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def output_directory(args: argparse.Namespace) -> Path:
    """The output directory, defaulting to the directory containing the point set file."""
    if args.output_directory is not None:
        return args.output_directory
    return args.point_set_file.resolve().parent


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings.log_level, settings.log_json)

    try:
        cells = build_from_file(args.point_set_file, settings)
    except CoreError as e:
        logger.error("Bounded Voronoi diagram failed", error=str(e), error_type=type(e).__name__)
        return 1

    try:
        write_cells(cells, output_directory(args))
    except OSError as e:
        logger.error("Writing the Voronoi cells failed", error=str(e), error_type=type(e).__name__)
        return 1

    if args.plot is not None:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from .voronoi_plotting import plot_bounded_voronoi_2d

        ax = plot_bounded_voronoi_2d(cells, title=args.point_set_file.name)
        if ax is not None:
            try:
                ax.get_figure().savefig(args.plot)
            except OSError as e:
                logger.error("Writing the plot failed", error=str(e), error_type=type(e).__name__)
                return 1
            finally:
                plt.close(ax.get_figure())
            logger.info("Plot written", path=str(args.plot))
    return 0


if __name__ == "__main__":
    sys.exit(main())
