"""
CRS Assignment and Reprojection Module

"Set" attaches a CRS to data whose coordinates are already in that system.
"Transform" recomputes coordinates into a new system. Geographic CRSs (degrees)
are used for display and for joins against degree-based boundaries; projected
CRSs (linear units) are required before any distance work.
"""

import geopandas as gpd
from pyproj import CRS
from utils.logger import get_logger

logger = get_logger(__name__)


def set_crs(gdf: gpd.GeoDataFrame, crs) -> gpd.GeoDataFrame:
    """
    Attach a CRS to a GeoDataFrame without changing any coordinate values.

    Args:
        gdf: GeoDataFrame with no CRS, or already tagged with ``crs``
        crs: Any CRS input pyproj accepts ('EPSG:4326', 4326, WKT, ...)

    Returns:
        Copy of the GeoDataFrame tagged with ``crs``

    Raises:
        ValueError: If the data already carries a different CRS
    """
    target = CRS.from_user_input(crs)

    if gdf.crs is not None:
        if gdf.crs == target:
            return gdf.copy()
        raise ValueError(
            f"Data already has CRS {gdf.crs}; use transform_crs to reproject to {target}"
        )

    logger.debug(f"Assigning CRS {target.to_string()} to {len(gdf)} feature(s)")
    return gdf.set_crs(target)


def transform_crs(gdf: gpd.GeoDataFrame, crs) -> gpd.GeoDataFrame:
    """
    Reproject every geometry into ``crs`` and update the CRS tag.

    Reprojecting to the current CRS returns an unchanged copy.

    Raises:
        ValueError: If the GeoDataFrame has no CRS (source CRS unknown)
    """
    if gdf.crs is None:
        raise ValueError(
            "Cannot transform data with no CRS defined (source CRS unknown); "
            "assign one with set_crs first"
        )

    target = CRS.from_user_input(crs)

    if gdf.crs == target:
        logger.debug(f"Data already in {target.to_string()}, no reprojection needed")
        return gdf.copy()

    logger.info(f"  - Reprojecting {len(gdf)} feature(s): {gdf.crs.to_string()} → {target.to_string()}")
    return gdf.to_crs(target)


def ensure_same_crs(left: gpd.GeoDataFrame, right: gpd.GeoDataFrame) -> CRS:
    """
    Check that two GeoDataFrames can be combined.

    Returns:
        The shared CRS

    Raises:
        ValueError: If either side has no CRS or the CRSs differ
    """
    if left.crs is None or right.crs is None:
        raise ValueError("Both inputs must have a CRS defined before they can be combined")

    if left.crs != right.crs:
        raise ValueError(
            f"CRS mismatch: {left.crs.to_string()} vs {right.crs.to_string()}; "
            f"reproject one side with transform_crs first"
        )

    return left.crs


def is_geographic(gdf: gpd.GeoDataFrame) -> bool:
    return gdf.crs is not None and gdf.crs.is_geographic


def require_projected(gdf: gpd.GeoDataFrame) -> CRS:
    """
    Check that a GeoDataFrame is in a projected (linear unit) CRS.

    Raises:
        ValueError: If the CRS is missing or not projected
    """
    if gdf.crs is None:
        raise ValueError("Data has no CRS defined; a projected CRS is required")

    if not gdf.crs.is_projected:
        raise ValueError(
            f"Distance operations need a projected CRS, got {gdf.crs.to_string()} "
            f"(geographic, degrees)"
        )

    return gdf.crs
