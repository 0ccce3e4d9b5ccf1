"""
Census boundary source for GeoJoin Report.

Downloads US Census Bureau cartographic boundary files (census tracts by state
and year, core-based statistical areas by year) and keeps them in a local
cache so later runs read from disk instead of the network.

Functions:
    state_fips: Resolve a state code/name to its two-digit FIPS code
    census_tracts_url: Cartographic boundary URL for a state's tracts
    metro_areas_url: Cartographic boundary URL for all CBSAs
    download_boundary_file: Download a boundary ZIP into the cache
    fetch_census_tracts: Tracts for one state and year as a GeoDataFrame
    fetch_metro_area: One metro area (CBSA) boundary as a GeoDataFrame
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import geopandas as gpd
import requests
from config.config_loader import CACHE_DIR
from geometry_input.load_input import load_vector_file
from utils.logger import get_logger

logger = get_logger(__name__)

CARTOGRAPHIC_BASE_URL = 'https://www2.census.gov/geo/tiger/GENZ{year}/shp'

# USPS code -> (FIPS, name)
STATES = {
    'AL': ('01', 'Alabama'), 'AK': ('02', 'Alaska'), 'AZ': ('04', 'Arizona'),
    'AR': ('05', 'Arkansas'), 'CA': ('06', 'California'), 'CO': ('08', 'Colorado'),
    'CT': ('09', 'Connecticut'), 'DE': ('10', 'Delaware'),
    'DC': ('11', 'District of Columbia'), 'FL': ('12', 'Florida'),
    'GA': ('13', 'Georgia'), 'HI': ('15', 'Hawaii'), 'ID': ('16', 'Idaho'),
    'IL': ('17', 'Illinois'), 'IN': ('18', 'Indiana'), 'IA': ('19', 'Iowa'),
    'KS': ('20', 'Kansas'), 'KY': ('21', 'Kentucky'), 'LA': ('22', 'Louisiana'),
    'ME': ('23', 'Maine'), 'MD': ('24', 'Maryland'), 'MA': ('25', 'Massachusetts'),
    'MI': ('26', 'Michigan'), 'MN': ('27', 'Minnesota'), 'MS': ('28', 'Mississippi'),
    'MO': ('29', 'Missouri'), 'MT': ('30', 'Montana'), 'NE': ('31', 'Nebraska'),
    'NV': ('32', 'Nevada'), 'NH': ('33', 'New Hampshire'), 'NJ': ('34', 'New Jersey'),
    'NM': ('35', 'New Mexico'), 'NY': ('36', 'New York'),
    'NC': ('37', 'North Carolina'), 'ND': ('38', 'North Dakota'), 'OH': ('39', 'Ohio'),
    'OK': ('40', 'Oklahoma'), 'OR': ('41', 'Oregon'), 'PA': ('42', 'Pennsylvania'),
    'RI': ('44', 'Rhode Island'), 'SC': ('45', 'South Carolina'),
    'SD': ('46', 'South Dakota'), 'TN': ('47', 'Tennessee'), 'TX': ('48', 'Texas'),
    'UT': ('49', 'Utah'), 'VT': ('50', 'Vermont'), 'VA': ('51', 'Virginia'),
    'WA': ('53', 'Washington'), 'WV': ('54', 'West Virginia'),
    'WI': ('55', 'Wisconsin'), 'WY': ('56', 'Wyoming'), 'PR': ('72', 'Puerto Rico'),
}

_NAME_TO_CODE = {name.lower(): code for code, (_, name) in STATES.items()}
_FIPS_TO_CODE = {fips: code for code, (fips, _) in STATES.items()}


def state_fips(state: Union[str, int]) -> str:
    """
    Resolve a state to its two-digit FIPS code.

    Accepts a USPS code ('MD'), a full name ('Maryland') or a FIPS code
    ('24' or 24).

    Raises:
        ValueError: If the state is not recognised
    """
    value = str(state).strip()

    if value.isdigit():
        fips = value.zfill(2)
        if fips in _FIPS_TO_CODE:
            return fips
    elif value.upper() in STATES:
        return STATES[value.upper()][0]
    elif value.lower() in _NAME_TO_CODE:
        return STATES[_NAME_TO_CODE[value.lower()]][0]

    raise ValueError(f"Unknown state: {state!r}")


def census_tracts_url(state: Union[str, int], year: int) -> str:
    fips = state_fips(state)
    return f"{CARTOGRAPHIC_BASE_URL.format(year=year)}/cb_{year}_{fips}_tract_500k.zip"


def metro_areas_url(year: int) -> str:
    return f"{CARTOGRAPHIC_BASE_URL.format(year=year)}/cb_{year}_us_cbsa_500k.zip"


def download_boundary_file(url: str,
                           cache_dir: Optional[Path] = None,
                           timeout: int = 60) -> Path:
    """
    Download a boundary ZIP into the cache directory, reusing a cached copy.

    The file is written to a temporary name first and renamed once complete,
    so an interrupted download never leaves a truncated file in the cache.

    Parameters:
    -----------
    url : str
        Boundary file URL
    cache_dir : Optional[Path]
        Cache directory (defaults to CACHE_DIR)
    timeout : int
        Request timeout in seconds

    Returns:
    --------
    Path
        Path of the cached ZIP file

    Raises:
    -------
    requests.HTTPError
        If the server answers with an error status
    requests.RequestException
        On connection failures and timeouts
    """
    cache_dir = Path(cache_dir) if cache_dir else CACHE_DIR
    cache_dir.mkdir(parents=True, exist_ok=True)

    target = cache_dir / url.rsplit('/', 1)[-1]
    if target.exists():
        logger.info(f"  - Using cached boundary file: {target.name}")
        return target

    logger.info(f"  - Downloading {url}")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()

    fd, tmp_name = tempfile.mkstemp(dir=cache_dir, suffix='.part')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(response.content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"  - Saved {len(response.content):,} bytes to {target}")
    return target


def fetch_census_tracts(state: Union[str, int],
                        year: int,
                        cache_dir: Optional[Path] = None,
                        timeout: int = 60) -> gpd.GeoDataFrame:
    """
    Census tract boundaries for one state and vintage year.

    Example:
        >>> tracts = fetch_census_tracts('MD', 2020)
        >>> 'GEOID' in tracts.columns
        True
    """
    logger.info(f"Fetching census tracts for {state} ({year})...")
    zip_path = download_boundary_file(census_tracts_url(state, year), cache_dir, timeout)
    return load_vector_file(zip_path)


def fetch_metro_area(name: str,
                     year: int,
                     cache_dir: Optional[Path] = None,
                     timeout: int = 60) -> gpd.GeoDataFrame:
    """
    Boundary of the metro area(s) whose CBSA name contains ``name``.

    Raises:
        ValueError: If no CBSA name matches
    """
    logger.info(f"Fetching metro area boundary matching '{name}' ({year})...")
    zip_path = download_boundary_file(metro_areas_url(year), cache_dir, timeout)
    cbsa = load_vector_file(zip_path)

    matches = cbsa[cbsa['NAME'].str.contains(name, case=False, regex=False, na=False)]
    if matches.empty:
        raise ValueError(f"No metro area name contains '{name}'")

    logger.info(f"  - Matched: {', '.join(matches['NAME'].tolist())}")
    return matches.reset_index(drop=True)
