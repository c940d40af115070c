import numpy as np
import torch
import matplotlib.pyplot as plt
from matplotlib.patches import Polygon as MplPolygon # Alias to avoid confusion with BoundPolygon
import structlog

from .cell_clipper import CellResult, Centering, place_template
from .polygon_normalizer import BoundPolygon

logger = structlog.get_logger()


def plot_bounded_voronoi_2d(
    results: list[CellResult],
    bound: BoundPolygon | None = None,
    show_template: bool = False,
    centering: Centering = "offset",
    ax=None,
    title: str = "Bounded Voronoi Diagram"
):
    """
    Plots the cells of a bounded Voronoi diagram.

    Args:
        results (list[CellResult]): Output of `pipeline.build`.
        bound (BoundPolygon | None, optional): The normalized template. Only
            used when `show_template` is True.
        show_template (bool): Draw the template placed on every site as a
            dashed outline. Defaults to False.
        centering (str, optional): Placement used when building `results`,
            "offset" or "bbox". Defaults to "offset".
        ax (matplotlib.axes.Axes | None, optional): Existing axes to plot on.
            If None, a new figure and axes are created.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on, or None when there is nothing to plot.
    """
    if not results:
        logger.warning("No cells provided for bounded Voronoi plot")
        return None

    if ax is None:
        fig, ax = plt.subplots()

    sites = np.array([r.site for r in results], dtype=float)
    ax.plot(sites[:, 0], sites[:, 1], 'o', label='Sites', color='blue')

    color_map = plt.get_cmap('viridis', len(results))
    labelled = False
    for i, result in enumerate(results):
        if result.is_degenerate:
            ax.plot(result.site[0], result.site[1], 'x', color='red',
                    label='Degenerate cells' if not labelled else None)
            labelled = True
            continue
        cell_np = np.array(result.cell[:-1], dtype=float)
        polygon = MplPolygon(cell_np, edgecolor='black', facecolor=color_map(i)[:3] + (0.25,),
                             label='Cells' if i == 0 else None)
        ax.add_patch(polygon)

    if show_template and bound is not None:
        for site in sites:
            placed = place_template(bound, torch.as_tensor(site, dtype=torch.float64), centering)
            outline = torch.cat([placed, placed[:1]]).numpy()
            ax.plot(outline[:, 0], outline[:, 1], '--', color='gray', linewidth=0.75)

    ax.autoscale_view()
    ax.set_xlabel("X-axis")
    ax.set_ylabel("Y-axis")
    ax.set_title(title)
    ax.legend()
    ax.set_aspect('equal', adjustable='box')
    return ax
