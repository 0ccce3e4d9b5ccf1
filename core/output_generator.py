"""
Output generation module for GeoJoin Report.

Renders the report's figures, saves the interactive map, and writes the
narrative HTML page tying them together.

Output directory layout:
    index.html   - the report (rendered from templates/report.html)
    map.html     - the interactive map
    figures/     - static PNG figures

Functions:
    build_figures: Render the report's static figures
    generate_report: Write the report directory
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import folium
import geopandas as gpd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config.config_loader import OUTPUT_DIR
from core.static_plot import plot_layers
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / 'templates'
REPORT_TEMPLATE = 'report.html'
TOP_TRACT_ROWS = 10


def build_figures(results: Dict[str, gpd.GeoDataFrame],
                  metadata: Dict,
                  settings: Dict,
                  figures_dir: Path) -> List[Dict]:
    """
    Render the static figures for the report.

    Returns:
        List of dicts with 'section', 'caption' and 'path' (relative to the
        report directory)
    """
    figsize = settings.get('figure_size', (10, 10))
    dpi = settings.get('figure_dpi', 150)
    cmap = settings.get('choropleth_cmap', 'YlOrRd')

    metro_outline = {'name': 'Metro boundary', 'gdf': results['metro'],
                     'color': '#333333', 'fill_color': 'none', 'weight': 1.5}

    plans = [
        ('clip', 'cropped_points.png',
         'Bank locations cropped to the metro bounding rectangle.',
         [metro_outline,
          {'name': 'Cropped banks', 'gdf': results['cropped_points'], 'color': '#999999', 'marker_size': 10},
          {'name': 'Banks in metro', 'gdf': results['metro_points'], 'color': '#d62728', 'marker_size': 10}]),
        ('count', 'tract_counts.png',
         f"Banks per census tract ({metadata['group_key']}), zero-filled.",
         [{'name': 'Tracts', 'gdf': results['tract_counts'], 'column': 'count', 'cmap': cmap,
           'legend_label': 'Banks per tract', 'color': '#ffffff', 'weight': 0.2},
          metro_outline]),
        ('buffer', 'bank_buffers.png',
         f"{metadata['buffer_distance']} {metadata['buffer_units']} buffers around banks.",
         [{'name': 'Tracts', 'gdf': results['tracts'], 'color': '#cccccc', 'fill_color': 'none', 'weight': 0.3},
          {'name': 'Buffers', 'gdf': results['buffers'], 'color': '#1f77b4',
           'fill_color': '#1f77b4', 'fill_opacity': 0.25, 'weight': 0.5},
          {'name': 'Banks', 'gdf': results['metro_points'], 'color': '#d62728', 'marker_size': 6}]),
    ]

    figures = []
    for section, filename, caption, layers in plans:
        path = plot_layers(layers, figures_dir / filename, title=caption, figsize=figsize, dpi=dpi)
        figures.append({
            'section': section,
            'caption': caption,
            'path': f"{figures_dir.name}/{path.name}"
        })

    return figures


def generate_report(results: Dict[str, gpd.GeoDataFrame],
                    metadata: Dict,
                    map_obj: Optional[folium.Map],
                    settings: Dict,
                    output_name: Optional[str] = None,
                    output_dir: Optional[Path] = None) -> Path:
    """
    Write the report directory: figures, interactive map and index.html.

    Parameters:
    -----------
    results : Dict[str, gpd.GeoDataFrame]
        Named stage outputs from run_analysis
    metadata : Dict
        Stage counts and parameters from run_analysis
    map_obj : Optional[folium.Map]
        Interactive map to embed (skipped if None)
    settings : Dict
        Report settings ('title', 'figure_size', 'figure_dpi', 'choropleth_cmap')
    output_name : Optional[str]
        Output directory name (defaults to a timestamped name)
    output_dir : Optional[Path]
        Parent directory (defaults to OUTPUT_DIR)

    Returns:
    --------
    Path
        Path to the report directory

    Example:
        >>> output_path = generate_report(results, metadata, m, config['settings'])
        >>> (output_path / 'index.html').exists()
        True
    """
    log_banner(logger, "Generating Report")

    if output_name is None:
        output_name = f"geojoin_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    output_path = Path(output_dir or OUTPUT_DIR) / output_name
    output_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Output directory: {output_path}")

    figures = build_figures(results, metadata, settings, output_path / 'figures')

    map_path = None
    if map_obj is not None:
        logger.info("  - Saving interactive map...")
        map_obj.save(str(output_path / 'map.html'))
        map_path = 'map.html'

    key = metadata['group_key']
    top = (
        results['tract_counts'][[key, 'count']]
        .sort_values(['count', key], ascending=[False, True])
        .head(TOP_TRACT_ROWS)
    )
    top_tracts = [{'key': row[key], 'count': int(row['count'])}
                  for _, row in top.iterrows() if row['count'] > 0]

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(['html'])
    )
    html = env.get_template(REPORT_TEMPLATE).render(
        title=settings.get('title', 'GeoJoin Report'),
        generated_at=datetime.now().strftime('%Y-%m-%d %H:%M'),
        metadata=metadata,
        figures=figures,
        top_tracts=top_tracts,
        map_path=map_path
    )

    report_file = output_path / 'index.html'
    report_file.write_text(html, encoding='utf-8')

    logger.info("")
    logger.info("✓ Report Generation Complete")
    logger.info(f"  - index.html (report)")
    logger.info(f"  - figures/ ({len(figures)} PNG files)")
    if map_path:
        logger.info(f"  - {map_path} (interactive map)")
    logger.info(f"To view the report, open: {report_file}")

    return output_path
