"""
Geometry Buffering Module

Buffers geometries by a distance given in explicit units. The distance is
normalised to the native linear unit of the data's projected CRS before the
geometric expansion, so a 0.5 mile buffer in EPSG:2248 (US survey feet)
becomes a ~2640 ft buffer.
"""

import geopandas as gpd
from pyproj import CRS
from utils.logger import get_logger
from geometry_input.projection import require_projected

logger = get_logger(__name__)

# Constants
FEET_TO_METERS = 0.3048
US_SURVEY_FOOT_TO_METERS = 1200 / 3937
FEET_PER_MILE = 5280

# Metres per unit for the distance units callers may use
UNIT_TO_METERS = {
    'meters': 1.0,
    'kilometers': 1000.0,
    'feet': FEET_TO_METERS,
    'us_survey_feet': US_SURVEY_FOOT_TO_METERS,
    'miles': FEET_PER_MILE * FEET_TO_METERS,
}

UNIT_ALIASES = {
    'm': 'meters', 'meter': 'meters', 'metre': 'meters', 'metres': 'meters',
    'km': 'kilometers', 'kilometer': 'kilometers', 'kilometre': 'kilometers',
    'ft': 'feet', 'foot': 'feet',
    'us-ft': 'us_survey_feet', 'ftus': 'us_survey_feet', 'us_survey_foot': 'us_survey_feet',
    'mi': 'miles', 'mile': 'miles',
}

# Buffer polygon resolution (segments per quarter circle)
DEFAULT_RESOLUTION = 16


def normalize_unit(units: str) -> str:
    """
    Map a unit name or abbreviation to one of the UNIT_TO_METERS keys.

    Raises:
        ValueError: If the unit is not recognised
    """
    key = str(units).strip().lower()
    key = UNIT_ALIASES.get(key, key)
    if key not in UNIT_TO_METERS:
        raise ValueError(
            f"Unsupported distance unit '{units}'; expected one of {sorted(UNIT_TO_METERS)}"
        )
    return key


def native_unit_to_meters(crs: CRS) -> float:
    """
    Return how many metres one native linear unit of ``crs`` spans.

    Raises:
        ValueError: If the CRS is not projected or its axis unit is not linear
    """
    crs = CRS.from_user_input(crs)
    if not crs.is_projected:
        raise ValueError(f"CRS {crs.to_string()} is not projected; it has no linear unit")

    axis = crs.axis_info[0]
    factor = axis.unit_conversion_factor
    if not factor or factor <= 0:
        raise ValueError(f"Cannot determine linear unit of CRS {crs.to_string()} ({axis.unit_name})")

    return factor


def convert_distance(distance: float, units: str, crs) -> float:
    """
    Convert a distance into the native linear unit of a projected CRS.

    Args:
        distance: Distance value expressed in ``units``
        units: Unit name (meters, kilometers, feet, us_survey_feet, miles)
        crs: Target projected CRS

    Returns:
        Distance in the CRS's own unit

    Example:
        >>> round(convert_distance(0.5, 'miles', 'EPSG:2248'), 2)
        2639.99
    """
    meters = distance * UNIT_TO_METERS[normalize_unit(units)]
    return meters / native_unit_to_meters(crs)


def buffer_geodataframe(gdf: gpd.GeoDataFrame,
                        distance: float,
                        units: str = 'miles',
                        resolution: int = DEFAULT_RESOLUTION) -> gpd.GeoDataFrame:
    """
    Replace every geometry with its buffer at ``distance`` ``units``.

    Process:
    1. Check the data is in a projected CRS
    2. Convert the distance to the CRS's native unit
    3. Buffer each geometry, keeping attributes and CRS

    Args:
        gdf: GeoDataFrame in a projected CRS
        distance: Positive buffer distance
        units: Unit of ``distance``
        resolution: Segments per quarter circle of the buffer outline

    Returns:
        Copy of the GeoDataFrame with polygon geometries

    Raises:
        ValueError: If the CRS is not projected, the distance is not positive,
                    or the unit is unknown
    """
    if distance <= 0:
        raise ValueError(f"Buffer distance must be positive, got {distance} {units}")

    crs = require_projected(gdf)
    native_distance = convert_distance(distance, units, crs)
    unit_name = crs.axis_info[0].unit_name

    logger.info(f"Buffering {len(gdf)} feature(s) by {distance} {units}...")
    logger.info(f"  - Buffer distance: {distance} {units} = {native_distance:.2f} {unit_name}")

    buffered = gdf.copy()
    buffered[gdf.geometry.name] = gdf.geometry.buffer(native_distance, resolution=resolution)

    logger.info(f"  ✓ Created {len(buffered)} buffer polygon(s)")

    return buffered
