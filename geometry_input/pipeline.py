"""
Analysis Pipeline

Runs the report's analysis as explicit stages, each one producing a named
GeoDataFrame consumed by the next:

1. Reproject points, tracts and metro boundary to the geographic CRS
2. Crop points to the metro area's bounding rectangle
3. Intersect points with the metro area polygon(s)
4. Join metro points to tracts, count per tract key, re-merge with zero fill
5. Buffer metro points in the projected CRS, then reproject for display

Every stage raises on failure; nothing is caught or retried here.
"""

from typing import Dict, Tuple

import geopandas as gpd

from geometry_input.projection import transform_crs
from geometry_input.clipping import crop_to_extent, intersect_with
from geometry_input.aggregation import count_points_in_polygons
from geometry_input.buffering import buffer_geodataframe
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)

COUNT_COLUMN = 'count'


def run_analysis(points: gpd.GeoDataFrame,
                 tracts: gpd.GeoDataFrame,
                 metro: gpd.GeoDataFrame,
                 settings: Dict) -> Tuple[Dict[str, gpd.GeoDataFrame], Dict]:
    """
    Run the crop / intersect / join-count / buffer sequence.

    Args:
        points: Point layer with a CRS (e.g. bank locations)
        tracts: Polygon layer carrying settings['group_key']
        metro: Metro area boundary polygon(s)
        settings: Analysis settings (see config_loader.load_analysis_settings)

    Returns:
        Tuple of (results, metadata)
        - results: dict with keys points, cropped_points, metro_points, tracts,
          metro, joined, tract_counts, buffers
        - metadata: per-stage counts and the parameters used

    Example:
        >>> results, metadata = run_analysis(banks, tracts, metro, load_analysis_settings())
        >>> int(results['tract_counts']['count'].sum()) == results['joined'].index.nunique()
        True
    """
    geographic_crs = settings['geographic_crs']
    projected_crs = settings['projected_crs']
    key = settings['group_key']

    log_banner(logger, "SPATIAL ANALYSIS")

    # Stage 1: common geographic CRS
    points_geo = transform_crs(points, geographic_crs)
    tracts_geo = transform_crs(tracts, geographic_crs)
    metro_geo = transform_crs(metro, geographic_crs)

    # Stage 2: crop to the metro bounding rectangle
    cropped_points, crop_meta = crop_to_extent(points_geo, metro_geo)

    # Stage 3: exact intersection with the metro polygon
    metro_points, intersect_meta = intersect_with(points_geo, metro_geo)

    # Stage 4: join, count, re-merge with zero fill
    joined, tract_counts = count_points_in_polygons(
        metro_points, tracts_geo, key,
        count_column=COUNT_COLUMN,
        predicate=settings.get('join_predicate', 'intersects')
    )

    # Stage 5: buffer in projected CRS, back to geographic for display
    buffers_projected = buffer_geodataframe(
        transform_crs(metro_points, projected_crs),
        settings['buffer_distance'],
        settings['buffer_units']
    )
    buffers = transform_crs(buffers_projected, geographic_crs)

    results = {
        'points': points_geo,
        'cropped_points': cropped_points,
        'metro_points': metro_points,
        'tracts': tracts_geo,
        'metro': metro_geo,
        'joined': joined,
        'tract_counts': tract_counts,
        'buffers': buffers,
    }

    metadata = {
        'geographic_crs': str(geographic_crs),
        'projected_crs': str(projected_crs),
        'group_key': key,
        'buffer_distance': settings['buffer_distance'],
        'buffer_units': settings['buffer_units'],
        'point_count': len(points_geo),
        'tract_count': len(tracts_geo),
        'cropped_count': crop_meta['output_count'],
        'metro_point_count': intersect_meta['output_count'],
        'joined_count': len(joined),
        'tracts_with_points': int((tract_counts[COUNT_COLUMN] > 0).sum()),
        'tracts_without_points': int((tract_counts[COUNT_COLUMN] == 0).sum()),
        'crop_bounds': crop_meta['bounds'],
    }

    log_banner(logger, "ANALYSIS COMPLETE")
    logger.info(f"  ✓ Points: {metadata['point_count']} loaded, "
                f"{metadata['cropped_count']} in metro extent, "
                f"{metadata['metro_point_count']} inside metro boundary")
    logger.info(f"  ✓ Tracts: {metadata['tracts_with_points']} with points, "
                f"{metadata['tracts_without_points']} without")
    logger.info(f"  ✓ Buffers: {len(buffers)} at {settings['buffer_distance']} {settings['buffer_units']}")
    logger.info("=" * 80)

    return results, metadata
