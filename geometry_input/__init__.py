"""
Geometry Processing Package

Reading, reprojecting, clipping, joining, counting and buffering vector data.

Modules:
    load_input: Read vector files and coordinate CSVs
    projection: Assign and transform coordinate reference systems
    clipping: Crop to a bounding extent, exact intersection with polygons
    spatial_join: Predicate-based joins between layers
    aggregation: Count joined records per key with zero-fill re-merge
    buffering: Buffer geometries by a distance in explicit units
    pipeline: Run the full analysis as named stages

Usage:
    from geometry_input.pipeline import run_analysis

    results, metadata = run_analysis(points, tracts, metro, settings)
"""

from geometry_input.pipeline import run_analysis
from geometry_input.clipping import crop_to_extent, intersect_with
from geometry_input.spatial_join import spatial_join
from geometry_input.aggregation import count_points_in_polygons

__all__ = [
    'run_analysis',
    'crop_to_extent',
    'intersect_with',
    'spatial_join',
    'count_points_in_polygons'
]
