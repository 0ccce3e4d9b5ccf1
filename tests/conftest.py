"""Shared fixtures: a small Baltimore-area scene in EPSG:4326."""

import logging

import geopandas as gpd
import pytest
from shapely.geometry import Point, Polygon, box


@pytest.fixture(autouse=True)
def quiet_geojoin_logger():
    """Keep handlers from an earlier setup_logging call out of other tests."""
    logger = logging.getLogger('geojoin')
    saved = list(logger.handlers)
    yield
    for handler in logger.handlers:
        if handler not in saved:
            handler.close()
    logger.handlers[:] = saved


@pytest.fixture
def tracts():
    """Two adjacent tracts; only the western one holds banks."""
    return gpd.GeoDataFrame(
        {'GEOID': ['24510000100', '24510000200'], 'NAME': ['Tract 1', 'Tract 2']},
        geometry=[
            box(-76.70, 39.25, -76.55, 39.35),
            box(-76.55, 39.25, -76.40, 39.35),
        ],
        crs='EPSG:4326'
    )


@pytest.fixture
def metro():
    """Triangular metro boundary, so its bounding box covers extra ground."""
    return gpd.GeoDataFrame(
        {'NAME': ['Baltimore-Columbia-Towson, MD']},
        geometry=[Polygon([(-76.75, 39.20), (-76.35, 39.20), (-76.75, 39.45)])],
        crs='EPSG:4326'
    )


@pytest.fixture
def banks():
    """
    Four banks:
      - two inside tract 1 and the metro triangle
      - one inside the metro bounding box but outside the triangle
      - one far outside (Frederick)
    """
    return gpd.GeoDataFrame(
        {'name': ['Downtown', 'Harbor', 'Northeast', 'Frederick']},
        geometry=[
            Point(-76.61, 39.29),
            Point(-76.60, 39.27),
            Point(-76.40, 39.40),
            Point(-77.41, 39.41),
        ],
        crs='EPSG:4326'
    )


@pytest.fixture
def banks_csv(tmp_path):
    """Three bank rows, one with a null longitude."""
    path = tmp_path / 'banks.csv'
    path.write_text(
        "name,longitude,latitude\n"
        "Downtown,-76.61,39.29\n"
        "Harbor,-76.60,39.27\n"
        "Mobile Unit,,39.29\n",
        encoding='utf-8'
    )
    return path


@pytest.fixture
def analysis_settings():
    return {
        'geographic_crs': 'EPSG:4326',
        'projected_crs': 'EPSG:2248',
        'buffer_distance': 0.5,
        'buffer_units': 'miles',
        'group_key': 'GEOID',
        'lon_column': 'longitude',
        'lat_column': 'latitude',
        'points_crs': 'EPSG:4326',
        'join_predicate': 'intersects',
    }
