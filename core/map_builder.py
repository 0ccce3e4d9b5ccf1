"""
Map building module for GeoJoin Report.

This module creates the interactive Leaflet map with Folium. Every layer becomes
a toggleable FeatureGroup, added in list order so later layers sit on top, and
a LayerControl lets the reader switch them on and off.

Layer dictionaries use the same keys as core.static_plot, plus:
    show (bool): Whether the layer starts visible (default True)
    title_field (str): Attribute used as the popup heading

Functions:
    create_interactive_map: Generate the interactive Leaflet map
"""

from typing import Dict, Optional, Sequence

import folium
import geopandas as gpd
from branca import colormap as cm
from folium import plugins

from geometry_input.projection import transform_crs
from utils.popup_formatters import build_popup_html
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)

DISPLAY_CRS = 'EPSG:4326'
DEFAULT_COLOR = '#3366cc'
DEFAULT_CMAP = 'YlOrRd'
DEFAULT_TILES = 'OpenStreetMap'
FALLBACK_COLORS = ['#ffffb2', '#fd8d3c', '#bd0026']


def _build_colormap(gdf: gpd.GeoDataFrame, column: str, cmap: str, caption: str) -> cm.LinearColormap:
    vmin = float(gdf[column].min())
    vmax = float(gdf[column].max())
    if vmax <= vmin:
        vmax = vmin + 1

    base = getattr(cm.linear, f'{cmap}_09', None)
    if base is None:
        logger.debug(f"Colormap '{cmap}' not available in branca, using fallback ramp")
        colormap = cm.LinearColormap(FALLBACK_COLORS, vmin=vmin, vmax=vmax)
    else:
        colormap = base.scale(vmin, vmax)
    colormap.caption = caption
    return colormap


def _add_point_layer(group: folium.FeatureGroup, gdf: gpd.GeoDataFrame, layer: Dict) -> None:
    name = layer['name']
    color = layer.get('color', DEFAULT_COLOR)
    attribute_columns = [c for c in gdf.columns if c != gdf.geometry.name]

    for _, row in gdf.iterrows():
        point = row.geometry.representative_point()
        popup_html = build_popup_html(
            name, {c: row[c] for c in attribute_columns}, layer.get('title_field')
        )
        folium.CircleMarker(
            location=[point.y, point.x],
            radius=layer.get('marker_size', 5),
            color=color,
            weight=1,
            fill=True,
            fill_color=layer.get('fill_color', color),
            fill_opacity=layer.get('fill_opacity', 0.9),
            popup=folium.Popup(popup_html, max_width=400)
        ).add_to(group)


def _add_shape_layer(group: folium.FeatureGroup,
                     gdf: gpd.GeoDataFrame,
                     layer: Dict,
                     colormap: Optional[cm.LinearColormap]) -> None:
    name = layer['name']
    column = layer.get('column')

    # Default arguments capture this layer's values (one closure per layer)
    def style_function(feature, config=layer, scale=colormap, col=column):
        style = {
            'color': config.get('color', DEFAULT_COLOR),
            'weight': config.get('weight', 2),
            'opacity': 0.8,
            'fillColor': config.get('fill_color', config.get('color', DEFAULT_COLOR)),
            'fillOpacity': config.get('fill_opacity', 0.3),
        }
        if scale is not None:
            value = feature['properties'].get(col)
            style['fillColor'] = scale(value) if value is not None else '#cccccc'
            style['fillOpacity'] = config.get('fill_opacity', 0.7)
        return style

    def highlight_function(feature, config=layer):
        return {'weight': config.get('weight', 2) + 2, 'opacity': 1.0}

    geojson_layer = folium.GeoJson(
        gdf,
        style_function=style_function,
        highlight_function=highlight_function
    )

    for feature in geojson_layer.data['features']:
        props = feature['properties']
        props['popup_html'] = build_popup_html(name, props, layer.get('title_field'))

    geojson_layer.add_child(
        folium.GeoJsonPopup(fields=['popup_html'], labels=False, style="max-width: 400px;")
    )
    geojson_layer.add_to(group)


def create_interactive_map(layers: Sequence[Dict],
                           settings: Optional[Dict] = None) -> folium.Map:
    """
    Create an interactive Leaflet map with one toggleable group per layer.

    Parameters:
    -----------
    layers : Sequence[Dict]
        Layer dictionaries, drawn in order (later on top)
    settings : Optional[Dict]
        Report settings; uses 'default_zoom' and 'tiles'

    Returns:
    --------
    folium.Map
        Folium map object ready to be saved

    Raises:
    -------
    ValueError
        If no layers are given or every layer is empty

    Example:
        >>> m = create_interactive_map([
        ...     {'name': 'Tracts', 'gdf': tract_counts, 'column': 'count'},
        ...     {'name': 'Banks', 'gdf': banks, 'color': 'red'},
        ... ])
        >>> m.save('map.html')
    """
    if not layers:
        raise ValueError("At least one layer is required to build a map")

    settings = settings or {}

    log_banner(logger, "Creating Interactive Web Map")

    display_layers = [(layer, transform_crs(layer['gdf'], DISPLAY_CRS)) for layer in layers]
    non_empty = [gdf for _, gdf in display_layers if not gdf.empty]
    if not non_empty:
        raise ValueError("All map layers are empty")

    minx = min(gdf.total_bounds[0] for gdf in non_empty)
    miny = min(gdf.total_bounds[1] for gdf in non_empty)
    maxx = max(gdf.total_bounds[2] for gdf in non_empty)
    maxy = max(gdf.total_bounds[3] for gdf in non_empty)

    m = folium.Map(
        location=[(miny + maxy) / 2, (minx + maxx) / 2],
        zoom_start=settings.get('default_zoom', 10),
        tiles=settings.get('tiles', DEFAULT_TILES)
    )

    for layer, gdf in display_layers:
        name = layer['name']

        if gdf.empty:
            logger.info(f"  - Skipping {name} (0 features)")
            continue

        logger.info(f"  - Adding {name} ({len(gdf)} features)...")
        group = folium.FeatureGroup(name=name, show=layer.get('show', True))

        is_points = gdf.geometry.geom_type.isin(['Point', 'MultiPoint']).all()
        if is_points:
            _add_point_layer(group, gdf, layer)
        else:
            colormap = None
            if layer.get('column'):
                colormap = _build_colormap(
                    gdf, layer['column'], layer.get('cmap', DEFAULT_CMAP),
                    layer.get('legend_label', layer['column'])
                )
            _add_shape_layer(group, gdf, layer, colormap)
            if colormap is not None:
                colormap.add_to(m)

        group.add_to(m)

    folium.LayerControl(collapsed=False).add_to(m)
    plugins.Fullscreen(position='topleft').add_to(m)
    plugins.MeasureControl(position='bottomleft', primary_length_unit='miles').add_to(m)

    m.fit_bounds([[miny, minx], [maxy, maxx]])

    logger.info("  ✓ Map created")
    return m
