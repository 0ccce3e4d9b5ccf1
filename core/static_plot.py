"""
Static map rendering module for GeoJoin Report.

Draws layered PNG figures with matplotlib via GeoDataFrame.plot. Layers are
drawn in list order, each one above the previous, and all are reprojected to
one shared CRS first.

Layer dictionaries use these keys:
    name (str): Legend label
    gdf (GeoDataFrame): Data to draw
    color (str): Outline / marker colour
    fill_color (str): Polygon fill, 'none' for outline only
    fill_opacity (float): Polygon fill alpha
    weight (float): Outline width
    marker_size (float): Point marker size
    column (str): Numeric column for a choropleth (optional)
    cmap (str): Colormap for choropleth layers

Functions:
    draw_layers: Draw layers onto an existing Axes
    plot_layers: Render layers to a PNG file
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from matplotlib.patches import Patch
from pyproj import CRS

from geometry_input.projection import transform_crs
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_COLOR = '#3366cc'
DEFAULT_CMAP = 'YlOrRd'


def _is_point_layer(gdf) -> bool:
    return gdf.geometry.geom_type.isin(['Point', 'MultiPoint']).all()


def draw_layers(ax: plt.Axes,
                layers: Sequence[Dict],
                crs=None) -> List[str]:
    """
    Draw layers onto ``ax`` in order, later layers on top.

    Parameters:
    -----------
    ax : plt.Axes
        Target axes
    layers : Sequence[Dict]
        Layer dictionaries (see module docstring)
    crs : optional
        Shared CRS; defaults to the first layer's CRS

    Returns:
    --------
    List[str]
        Names of the layers actually drawn (empty layers are skipped)

    Raises:
    -------
    ValueError
        If no layers are given or no shared CRS can be determined
    """
    if not layers:
        raise ValueError("At least one layer is required to draw a map")

    target_crs = CRS.from_user_input(crs) if crs is not None else layers[0]['gdf'].crs
    if target_crs is None:
        raise ValueError("Layers need a CRS to be drawn in a shared projection")

    drawn = []
    legend_handles = []

    for zorder, layer in enumerate(layers, start=1):
        name = layer.get('name', f'Layer {zorder}')
        gdf = transform_crs(layer['gdf'], target_crs)

        if gdf.empty:
            logger.info(f"  - Skipping {name} (0 features)")
            continue

        color = layer.get('color', DEFAULT_COLOR)
        kwargs = {'ax': ax, 'zorder': zorder}

        if layer.get('column'):
            kwargs.update(
                column=layer['column'],
                cmap=layer.get('cmap', DEFAULT_CMAP),
                legend=True,
                legend_kwds={'label': layer.get('legend_label', layer['column']), 'shrink': 0.6},
                edgecolor=layer.get('color', '#666666'),
                linewidth=layer.get('weight', 0.3),
            )
        elif _is_point_layer(gdf):
            kwargs.update(color=color, markersize=layer.get('marker_size', 12))
            legend_handles.append(Line2D([], [], marker='o', linestyle='', color=color, label=name))
        else:
            fill = layer.get('fill_color', 'none')
            kwargs.update(facecolor=fill, edgecolor=color, linewidth=layer.get('weight', 1.0))
            if fill != 'none':
                kwargs['alpha'] = layer.get('fill_opacity', 1.0)
            legend_handles.append(Patch(facecolor=fill, edgecolor=color, label=name))

        gdf.plot(**kwargs)
        drawn.append(name)
        logger.debug(f"  - Drew {name} ({len(gdf)} features, zorder={zorder})")

    if legend_handles:
        ax.legend(handles=legend_handles, loc='lower left', fontsize='small')

    return drawn


def plot_layers(layers: Sequence[Dict],
                output_path: Union[str, Path],
                title: Optional[str] = None,
                crs=None,
                figsize=(10, 10),
                dpi: int = 150) -> Path:
    """
    Render layers to a PNG file.

    Example:
        >>> plot_layers(
        ...     [{'name': 'Tracts', 'gdf': tracts, 'color': '#999999'},
        ...      {'name': 'Banks', 'gdf': banks, 'color': 'red'}],
        ...     'figures/banks.png', title='Banks by tract'
        ... )
        PosixPath('figures/banks.png')
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Rendering figure: {output_path.name}")

    fig, ax = plt.subplots(figsize=tuple(figsize))
    try:
        draw_layers(ax, layers, crs=crs)
        if title:
            ax.set_title(title)
        ax.set_axis_off()
        fig.savefig(output_path, dpi=dpi, bbox_inches='tight')
    finally:
        plt.close(fig)

    logger.info(f"  ✓ Saved {output_path}")
    return output_path
