#!/usr/bin/env python
"""
GeoJoin Report
==============
An executable report on reading, reprojecting, clipping, spatially joining and
buffering vector data: bank locations are counted per census tract inside a
metro area and given half-mile service buffers, with static figures and an
interactive map collected into one HTML page.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple
import logging
import time

import geopandas as gpd

# Import logging first
from utils.logger import setup_logging, get_logger, log_banner

from config.config_loader import PROJECT_ROOT, LOG_DIR, load_config, load_analysis_settings
from core.boundary_source import fetch_census_tracts, fetch_metro_area
from core.map_builder import create_interactive_map
from core.output_generator import generate_report
from geometry_input.load_input import load_point_csv, load_vector_file
from geometry_input.pipeline import run_analysis


def _resolve(path) -> Optional[Path]:
    if not path:
        return None
    path = Path(path)
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_inputs(inputs: Dict, analysis: Dict, settings: Dict) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """
    Load points, tracts and metro boundary.

    Local files are used when a path is configured; otherwise tracts and the
    metro boundary come from the Census boundary source by state and year.
    """
    points_csv = _resolve(inputs.get('points_csv'))
    if points_csv is None:
        raise ValueError("No point CSV configured (inputs.points_csv)")

    points = load_point_csv(
        points_csv,
        analysis['lon_column'],
        analysis['lat_column'],
        analysis['points_crs']
    )

    timeout = settings.get('request_timeout', 60)

    tracts_path = _resolve(inputs.get('tracts_path'))
    if tracts_path is not None:
        tracts = load_vector_file(tracts_path)
    else:
        tracts = fetch_census_tracts(analysis['boundary_state'], analysis['boundary_year'], timeout=timeout)

    metro_path = _resolve(inputs.get('metro_path'))
    if metro_path is not None:
        metro = load_vector_file(metro_path)
    else:
        metro = fetch_metro_area(analysis['metro_name'], analysis['boundary_year'], timeout=timeout)

    return points, tracts, metro


def build_map_layers(results: Dict[str, gpd.GeoDataFrame], analysis: Dict) -> list:
    """Layers for the interactive map, bottom to top."""
    return [
        {'name': 'Banks per tract', 'gdf': results['tract_counts'], 'column': 'count',
         'legend_label': 'Banks per tract', 'color': '#666666', 'weight': 0.5,
         'title_field': analysis['group_key']},
        {'name': 'Metro boundary', 'gdf': results['metro'], 'color': '#333333',
         'weight': 2, 'fill_opacity': 0.0},
        {'name': f"{analysis['buffer_distance']} {analysis['buffer_units']} buffers",
         'gdf': results['buffers'], 'color': '#1f77b4', 'fill_color': '#1f77b4',
         'fill_opacity': 0.2, 'weight': 1, 'show': False},
        {'name': 'Banks', 'gdf': results['metro_points'], 'color': '#d62728', 'marker_size': 4},
    ]


def main(points_csv: Optional[str] = None,
         tracts_path: Optional[str] = None,
         metro_path: Optional[str] = None,
         output_name: Optional[str] = None,
         config_path: Optional[str] = None) -> Path:
    """
    Main execution workflow for GeoJoin Report.

    Workflow Steps:
    1. Setup logging to console and file
    2. Load configuration
    3. Load points, tracts and metro boundary
    4. Run the spatial analysis
    5. Build the interactive map
    6. Render figures and write the report

    Parameters:
    -----------
    points_csv, tracts_path, metro_path : Optional[str]
        Override the configured input paths
    output_name : Optional[str]
        Custom name for output directory (defaults to timestamped name)
    config_path : Optional[str]
        Alternate configuration file

    Returns:
    --------
    Path
        Path to the report directory

    Raises:
    -------
    Exception
        Any failure is logged and re-raised unchanged
    """
    workflow_start_time = time.time()

    log_file = setup_logging(LOG_DIR)
    logger = get_logger(__name__)

    log_banner(logger, "GEOJOIN REPORT - Banks, Census Tracts and Service Buffers")
    logger.info(f"Log file: {log_file}")
    logger.info("")

    try:
        config = load_config(config_path)
        analysis = load_analysis_settings(config)
        settings = config['settings']

        inputs = dict(config['inputs'])
        if points_csv:
            inputs['points_csv'] = points_csv
        if tracts_path:
            inputs['tracts_path'] = tracts_path
        if metro_path:
            inputs['metro_path'] = metro_path

        points, tracts, metro = load_inputs(inputs, analysis, settings)

        results, metadata = run_analysis(points, tracts, metro, analysis)

        if results['metro_points'].empty:
            logger.warning("⚠ WARNING: No points fall inside the metro boundary.")

        map_obj = create_interactive_map(build_map_layers(results, analysis), settings)

        output_path = generate_report(results, metadata, map_obj, settings, output_name)

        total_execution_time = time.time() - workflow_start_time
        logger.info("")
        logger.info("✓ WORKFLOW COMPLETE")
        logger.info(f"✓ Total execution time: {total_execution_time:.2f} seconds")
        logger.info(f"✓ Output directory: {output_path}")
        logger.info(f"✓ Log file: {log_file}")

        return output_path

    except Exception as e:
        elapsed_time = time.time() - workflow_start_time

        logger.error("")
        log_banner(logger, "✗ WORKFLOW FAILED", logging.ERROR)
        logger.error(f"Error: {str(e)}", exc_info=True)
        logger.error(f"Workflow failed after {elapsed_time:.2f} seconds")
        logger.error(f"See log file for details: {log_file}")
        logger.error("=" * 80)
        raise


if __name__ == "__main__":
    output_dir = main()
    print(f"\n✓ Success! Open {output_dir / 'index.html'} in your browser.")
