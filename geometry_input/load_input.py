"""
Geometry Input Loading Module

Reads vector files (Shapefile, GeoJSON, GeoPackage, zipped Shapefile) and
delimited text with longitude/latitude columns into GeoDataFrames.
"""

import zipfile
import tempfile
from pathlib import Path
from typing import Iterable, Union

import geopandas as gpd
import pandas as pd
from pyproj import CRS
from utils.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def load_vector_file(file_path: PathLike) -> gpd.GeoDataFrame:
    """
    Load a vector file and return a GeoDataFrame with the CRS it was stored in.

    Supports: Shapefile, GeoPackage, GeoJSON, and ZIP archives holding a Shapefile

    Args:
        file_path: Path to geospatial file

    Returns:
        GeoDataFrame with geometries in original CRS (may be None if the
        file carries no CRS)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file cannot be read or has no features
    """
    file_path_obj = Path(file_path)

    if not file_path_obj.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    logger.info(f"Loading vector data from: {file_path}")

    try:
        if file_path_obj.suffix.lower() == '.zip':
            logger.debug("  - Detected ZIP file, extracting to read shapefile...")
            with tempfile.TemporaryDirectory() as tmpdir:
                with zipfile.ZipFile(file_path_obj, 'r') as zip_ref:
                    zip_ref.extractall(tmpdir)
                shp_files = sorted(Path(tmpdir).rglob('*.shp'))
                if not shp_files:
                    raise ValueError("No shapefile (.shp) found in ZIP archive")
                if len(shp_files) > 1:
                    logger.warning(f"  - Multiple shapefiles found in ZIP, using first: {shp_files[0].name}")
                gdf = gpd.read_file(shp_files[0])
        else:
            gdf = gpd.read_file(file_path_obj)
    except zipfile.BadZipFile:
        raise ValueError(f"Invalid ZIP file: {file_path}")
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Failed to read geospatial file {file_path}: {e}") from e

    if gdf.empty:
        raise ValueError(f"Input file contains no features: {file_path}")

    logger.info(f"  - Loaded {len(gdf)} feature(s)")
    logger.info(f"  - CRS: {gdf.crs}")
    logger.debug(f"  - Geometry types: {gdf.geometry.geom_type.unique().tolist()}")

    return gdf


def load_vector_files(file_paths: Iterable[PathLike]) -> gpd.GeoDataFrame:
    """
    Load several vector files and stack their rows in the order given.

    Args:
        file_paths: Paths to geospatial files sharing one CRS

    Returns:
        Single GeoDataFrame with the rows of every file

    Raises:
        ValueError: If no paths are given or the files disagree on CRS
    """
    file_paths = list(file_paths)
    if not file_paths:
        raise ValueError("No input files given")

    frames = [load_vector_file(path) for path in file_paths]

    crs = frames[0].crs
    for path, frame in zip(file_paths[1:], frames[1:]):
        if frame.crs != crs:
            raise ValueError(
                f"CRS mismatch between input files: {file_paths[0]} has {crs}, "
                f"{path} has {frame.crs}"
            )

    if len(frames) == 1:
        return frames[0]

    combined = gpd.GeoDataFrame(pd.concat(frames, ignore_index=True), crs=crs)
    logger.info(f"Combined {len(frames)} files into {len(combined)} feature(s)")
    return combined


def load_point_csv(file_path: PathLike,
                   lon_column: str,
                   lat_column: str,
                   crs) -> gpd.GeoDataFrame:
    """
    Load delimited text with coordinate columns as a point GeoDataFrame.

    Rows with a missing (or non-numeric) value in either coordinate column are
    dropped before the points are built. The CRS is never inferred.

    Args:
        file_path: Path to the CSV file
        lon_column: Column holding longitude (x)
        lat_column: Column holding latitude (y)
        crs: CRS the coordinates are expressed in (e.g. 'EPSG:4326')

    Returns:
        GeoDataFrame of Point geometries with all CSV columns kept

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If crs is None, the file cannot be parsed, or a
                    coordinate column is missing
    """
    if crs is None:
        raise ValueError("A source CRS is required to build points from coordinate columns")

    file_path_obj = Path(file_path)
    if not file_path_obj.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    logger.info(f"Loading point table from: {file_path}")

    try:
        df = pd.read_csv(file_path_obj)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to parse delimited file {file_path}: {e}") from e

    missing = [col for col in (lon_column, lat_column) if col not in df.columns]
    if missing:
        raise ValueError(
            f"Coordinate column(s) {missing} not found in {file_path_obj.name}; "
            f"available columns: {list(df.columns)}"
        )

    df = df.copy()
    df[lon_column] = pd.to_numeric(df[lon_column], errors='coerce')
    df[lat_column] = pd.to_numeric(df[lat_column], errors='coerce')

    before = len(df)
    df = df.dropna(subset=[lon_column, lat_column]).reset_index(drop=True)
    dropped = before - len(df)
    if dropped:
        logger.warning(f"  - Dropped {dropped} row(s) with missing coordinates")

    gdf = gpd.GeoDataFrame(
        df,
        geometry=gpd.points_from_xy(df[lon_column], df[lat_column]),
        crs=CRS.from_user_input(crs)
    )

    logger.info(f"  - Loaded {len(gdf)} point(s) in {gdf.crs}")
    return gdf
