"""
Spatial Join Module

Joins two layers on a geometric predicate rather than a key column. The left
layer's geometry is kept; the right layer contributes attributes only.
"""

import geopandas as gpd
from utils.logger import get_logger
from geometry_input.projection import ensure_same_crs

logger = get_logger(__name__)

SUPPORTED_PREDICATES = {
    'intersects', 'contains', 'within', 'touches',
    'crosses', 'overlaps', 'covers', 'covered_by'
}
SUPPORTED_HOW = {'inner', 'left'}


def spatial_join(left: gpd.GeoDataFrame,
                 right: gpd.GeoDataFrame,
                 predicate: str = 'intersects',
                 how: str = 'inner') -> gpd.GeoDataFrame:
    """
    Join ``right`` attributes onto ``left`` rows whose geometries match.

    One row is produced per matching left/right pair. With ``how='inner'``
    left rows with no match are dropped; with ``how='left'`` they are kept
    with null right-hand attributes.

    Args:
        left: Layer whose geometry is kept (e.g. bank points)
        right: Layer providing attributes (e.g. census tracts)
        predicate: Spatial predicate, 'intersects' by default
        how: 'inner' or 'left'

    Returns:
        GeoDataFrame with left geometry and both sides' attributes
        (the ``index_right`` helper column removed)

    Raises:
        ValueError: On CRS mismatch, unsupported predicate/how, or null
                    geometries in either input
    """
    if predicate not in SUPPORTED_PREDICATES:
        raise ValueError(f"Unsupported spatial predicate '{predicate}'")
    if how not in SUPPORTED_HOW:
        raise ValueError(f"Unsupported join type '{how}'; expected one of {sorted(SUPPORTED_HOW)}")

    ensure_same_crs(left, right)

    for side, gdf in (('left', left), ('right', right)):
        null_count = int(gdf.geometry.isna().sum())
        if null_count:
            raise ValueError(f"The {side} layer contains {null_count} null geometries")

    logger.info(f"Spatial join ({how}, {predicate}): {len(left)} left × {len(right)} right feature(s)")

    joined = gpd.sjoin(left, right, how=how, predicate=predicate)
    joined = joined.drop(columns=['index_right'], errors='ignore')

    logger.info(f"  ✓ {len(joined)} matching pair(s)")
    logger.debug(f"  - Joined columns: {list(joined.columns)}")

    return joined
