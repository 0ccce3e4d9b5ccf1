"""
Aggregation Module

Counts joined records per boundary key and puts the counts back onto the
boundary layer. The spatial join drops polygons that matched nothing, so the
counts are re-merged with a left join and missing counts filled with zero:
every polygon ends up present exactly once.
"""

import geopandas as gpd
import pandas as pd
from utils.logger import get_logger
from geometry_input.spatial_join import spatial_join

logger = get_logger(__name__)


def count_by_key(joined: pd.DataFrame,
                 key: str,
                 count_column: str = 'count') -> pd.DataFrame:
    """
    Count joined records per distinct key.

    Returns:
        Plain DataFrame with columns [key, count_column], one row per key

    Raises:
        ValueError: If the key column is missing
    """
    if key not in joined.columns:
        raise ValueError(f"Group key '{key}' not found in joined data; columns: {list(joined.columns)}")

    counts = (
        pd.DataFrame(joined)
        .groupby(key)
        .size()
        .reset_index(name=count_column)
    )

    logger.debug(f"Counted records for {len(counts)} distinct '{key}' value(s)")
    return counts


def merge_counts(polygons: gpd.GeoDataFrame,
                 counts: pd.DataFrame,
                 key: str,
                 count_column: str = 'count') -> gpd.GeoDataFrame:
    """
    Left-merge per-key counts onto the polygon layer, filling zero for no match.

    Polygon order, geometry and CRS are preserved.

    Raises:
        ValueError: If the key is missing from either side, or the counts hold
                    a key more than once
    """
    if key not in polygons.columns:
        raise ValueError(f"Group key '{key}' not found in polygon layer")
    if key not in counts.columns or count_column not in counts.columns:
        raise ValueError(f"Counts must have '{key}' and '{count_column}' columns")
    if counts[key].duplicated().any():
        raise ValueError(f"Counts contain duplicate '{key}' values")

    base = polygons.drop(columns=[count_column], errors='ignore')
    merged = base.merge(counts[[key, count_column]], on=key, how='left')
    merged[count_column] = merged[count_column].fillna(0).astype(int)

    result = gpd.GeoDataFrame(merged, geometry=polygons.geometry.name, crs=polygons.crs)

    zero = int((result[count_column] == 0).sum())
    logger.info(f"  ✓ Counts merged onto {len(result)} polygon(s) ({zero} with zero matches)")

    return result


def first_match_per_point(joined: gpd.GeoDataFrame, key: str) -> gpd.GeoDataFrame:
    """
    Keep one joined row per point record.

    A point on a shared polygon edge intersects both polygons and comes out of
    the join once per polygon. The row with the smallest key is kept, so the
    assignment does not depend on polygon order.
    """
    ordered = joined.sort_values(key, kind='stable')
    matched = ordered[~ordered.index.duplicated(keep='first')].sort_index()

    extra = len(joined) - len(matched)
    if extra:
        logger.warning(f"  - {extra} extra match(es) from points on shared edges; "
                       f"each point assigned to its lowest '{key}'")

    return matched


def count_points_in_polygons(points: gpd.GeoDataFrame,
                             polygons: gpd.GeoDataFrame,
                             key: str,
                             count_column: str = 'count',
                             predicate: str = 'intersects'):
    """
    Join points to polygons, count per polygon key, re-merge with zero fill.

    Each point is counted once, so the counts add up to the number of points
    that matched at least one polygon.

    Args:
        points: Point layer (left side of the join)
        polygons: Polygon layer carrying ``key``
        key: Unique polygon identifier (e.g. GEOID)
        count_column: Name of the output count column
        predicate: Spatial predicate for the join

    Returns:
        Tuple of (joined GeoDataFrame with every match, polygon GeoDataFrame
        with counts)
    """
    logger.info(f"Counting {len(points)} point(s) per '{key}' across {len(polygons)} polygon(s)...")

    if key not in polygons.columns:
        raise ValueError(f"Group key '{key}' not found in polygon layer")
    if polygons[key].duplicated().any():
        raise ValueError(f"Polygon key '{key}' is not unique")
    if key in points.columns:
        # sjoin would suffix both copies and the key would be lost
        raise ValueError(f"Point layer already has a '{key}' column")

    joined = spatial_join(points, polygons, predicate=predicate, how='inner')
    counts = count_by_key(first_match_per_point(joined, key), key, count_column)
    result = merge_counts(polygons, counts, key, count_column)

    return joined, result
