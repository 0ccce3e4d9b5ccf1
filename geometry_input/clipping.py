"""
Geometry Clipping Module

Two ways of limiting a subject layer to a reference area:

- crop_to_extent: keep what intersects the reference's bounding rectangle,
  truncating lines/polygons to the rectangle (points are only filtered)
- intersect_with: keep only the parts of subject geometries that fall inside
  the reference geometries themselves

Anything that survives intersect_with also survives crop_to_extent against the
same reference, since a geometry can't meet a polygon without meeting its
bounding box.
"""

from typing import Tuple, Dict, Optional, Sequence, Union
import geopandas as gpd
from shapely.geometry import (
    Point, MultiPoint, LineString, MultiLineString,
    Polygon, MultiPolygon, GeometryCollection, box
)
from shapely.geometry.base import BaseGeometry
from utils.logger import get_logger
from geometry_input.projection import ensure_same_crs

logger = get_logger(__name__)

Reference = Union[gpd.GeoDataFrame, gpd.GeoSeries, Sequence[float]]

_FAMILY_TYPES = {
    'point': (Point, MultiPoint),
    'line': (LineString, MultiLineString),
    'polygon': (Polygon, MultiPolygon),
}


def count_vertices(geometry: BaseGeometry) -> int:
    """
    Count total vertices in a geometry.

    Handles Point, MultiPoint, LineString, MultiLineString,
    Polygon, MultiPolygon, and GeometryCollection types.
    """
    if geometry is None or geometry.is_empty:
        return 0

    if isinstance(geometry, Point):
        return 1
    elif isinstance(geometry, MultiPoint):
        return len(geometry.geoms)
    elif isinstance(geometry, LineString):
        return len(geometry.coords)
    elif isinstance(geometry, MultiLineString):
        return sum(len(line.coords) for line in geometry.geoms)
    elif isinstance(geometry, Polygon):
        # Exterior ring + interior rings (holes)
        count = len(geometry.exterior.coords)
        for interior in geometry.interiors:
            count += len(interior.coords)
        return count
    elif isinstance(geometry, (MultiPolygon, GeometryCollection)):
        return sum(count_vertices(part) for part in geometry.geoms)
    return 0


def geometry_family(geometry: BaseGeometry) -> Optional[str]:
    """Return 'point', 'line' or 'polygon' for a geometry, None otherwise."""
    for family, types in _FAMILY_TYPES.items():
        if isinstance(geometry, types):
            return family
    return None


def extract_geometry_type(
    geometry: BaseGeometry,
    target_type: str
) -> Optional[BaseGeometry]:
    """
    Extract geometries of a specific family from a potentially mixed result.

    When an intersection returns a GeometryCollection (e.g. a polygon that
    shares an edge with the mask), this keeps only the parts matching
    ``target_type``.

    Args:
        geometry: Result geometry (may be GeometryCollection)
        target_type: 'point', 'line' or 'polygon'

    Returns:
        Extracted geometry of the target type, or None if nothing matches
    """
    if geometry is None or geometry.is_empty:
        return None

    single_type, multi_type = _FAMILY_TYPES[target_type]

    if isinstance(geometry, (single_type, multi_type)):
        return geometry

    if isinstance(geometry, GeometryCollection):
        extracted = []
        for part in geometry.geoms:
            if isinstance(part, multi_type):
                extracted.extend(part.geoms)
            elif isinstance(part, single_type):
                extracted.append(part)

        if not extracted:
            return None
        if len(extracted) == 1:
            return extracted[0]
        return multi_type(extracted)

    return None


def _reference_bounds(subject: gpd.GeoDataFrame, reference: Reference) -> Tuple[float, float, float, float]:
    if isinstance(reference, (gpd.GeoDataFrame, gpd.GeoSeries)):
        ensure_same_crs(subject, reference)
        if reference.empty:
            raise ValueError("Reference layer contains no geometries")
        bounds = reference.total_bounds
    else:
        bounds = list(reference)
        if len(bounds) != 4:
            raise ValueError(f"Bounding extent must be (minx, miny, maxx, maxy), got {reference!r}")

    minx, miny, maxx, maxy = (float(v) for v in bounds)
    if minx > maxx or miny > maxy:
        raise ValueError(f"Invalid bounding extent: {(minx, miny, maxx, maxy)}")
    return minx, miny, maxx, maxy


def _drop_empty(gdf: gpd.GeoDataFrame) -> Tuple[gpd.GeoDataFrame, int]:
    empty_mask = gdf.geometry.isna() | gdf.geometry.is_empty
    return gdf[~empty_mask], int(empty_mask.sum())


def crop_to_extent(
    subject: gpd.GeoDataFrame,
    reference: Reference
) -> Tuple[gpd.GeoDataFrame, Dict]:
    """
    Crop a layer to the bounding rectangle of a reference layer.

    Points are kept when they fall inside (or on the edge of) the rectangle.
    Lines and polygons that cross the rectangle are truncated to it.

    Args:
        subject: Layer to crop
        reference: GeoDataFrame/GeoSeries in the same CRS, or an explicit
                   (minx, miny, maxx, maxy) extent in the subject's CRS

    Returns:
        Tuple of (cropped GeoDataFrame, metadata dictionary)

    Raises:
        ValueError: On CRS mismatch or a malformed extent
    """
    bounds = _reference_bounds(subject, reference)
    rect = box(*bounds)

    logger.info(f"Cropping {len(subject)} feature(s) to extent "
                f"({bounds[0]:.6f}, {bounds[1]:.6f}) - ({bounds[2]:.6f}, {bounds[3]:.6f})")

    cropped = subject[subject.intersects(rect)].copy()

    to_truncate = ~cropped.geometry.geom_type.isin(['Point', 'MultiPoint'])
    if to_truncate.any():
        geom_col = cropped.geometry.name
        cropped.loc[to_truncate, geom_col] = cropped.loc[to_truncate, geom_col].clip_by_rect(*bounds)

    cropped, empty_removed = _drop_empty(cropped)

    metadata = {
        'input_count': len(subject),
        'output_count': len(cropped),
        'bounds': list(bounds),
        'empty_geometries_removed': empty_removed
    }

    logger.info(f"  ✓ Kept {len(cropped)} of {len(subject)} feature(s)")

    return cropped, metadata


def intersect_with(
    subject: gpd.GeoDataFrame,
    reference: Union[gpd.GeoDataFrame, gpd.GeoSeries]
) -> Tuple[gpd.GeoDataFrame, Dict]:
    """
    Keep only the parts of subject geometries inside the reference geometries.

    Polygon subjects come back as true clipped polygons; point subjects are
    filtered by containment. Results of a different geometry family (an edge
    shared between two polygons, say) are discarded.

    Args:
        subject: Layer to intersect
        reference: Polygon layer in the same CRS

    Returns:
        Tuple of (intersected GeoDataFrame, metadata dictionary)

    Metadata dictionary contains:
        - input_count / output_count: Rows before and after
        - original_vertex_count / clipped_vertex_count: Vertex totals
        - vertex_reduction_percent: Percentage reduction in vertices
        - empty_geometries_removed: Rows dropped for empty results

    Raises:
        ValueError: On CRS mismatch or an empty reference
    """
    ensure_same_crs(subject, reference)
    if reference.empty:
        raise ValueError("Reference layer contains no geometries")

    if subject.geometry.isna().any():
        raise ValueError(f"Subject layer contains {int(subject.geometry.isna().sum())} null geometries")

    logger.info(f"Intersecting {len(subject)} feature(s) with {len(reference)} reference geometries...")

    mask_geom = reference.geometry.union_all()

    original_vertex_count = sum(count_vertices(g) for g in subject.geometry)

    hits = subject[subject.intersects(mask_geom)].copy()
    geom_col = hits.geometry.name

    needs_cut = hits.geometry.geom_type != 'Point'
    if needs_cut.any():
        families = hits.loc[needs_cut, geom_col].apply(geometry_family)
        cut = hits.loc[needs_cut, geom_col].intersection(mask_geom)
        hits.loc[needs_cut, geom_col] = gpd.GeoSeries(
            [extract_geometry_type(geom, family) if family else geom
             for geom, family in zip(cut, families)],
            index=cut.index,
            crs=hits.crs
        )

    hits, empty_removed = _drop_empty(hits)

    clipped_vertex_count = sum(count_vertices(g) for g in hits.geometry)

    metadata = {
        'input_count': len(subject),
        'output_count': len(hits),
        'original_vertex_count': original_vertex_count,
        'clipped_vertex_count': clipped_vertex_count,
        'vertex_reduction_percent': 0.0,
        'empty_geometries_removed': empty_removed
    }

    if original_vertex_count > 0:
        reduction = ((original_vertex_count - clipped_vertex_count) / original_vertex_count) * 100
        metadata['vertex_reduction_percent'] = round(reduction, 1)

    if empty_removed:
        logger.info(f"    Removed {empty_removed} features with empty geometries after intersection")
    logger.info(f"  ✓ Kept {len(hits)} of {len(subject)} feature(s)")

    return hits, metadata
