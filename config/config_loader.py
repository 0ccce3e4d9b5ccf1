"""
Configuration loading for GeoJoin Report.

This module handles loading and validation of the report configuration JSON file
and merges the analysis parameters over their defaults.

Constants:
    PROJECT_ROOT: Root directory of the project
    CONFIG_DIR: Configuration files directory
    OUTPUT_DIR: Generated reports directory
    CACHE_DIR: Downloaded boundary files directory
    LOG_DIR: Log files directory

Functions:
    load_config: Load and validate report configuration from JSON
    load_analysis_settings: Analysis parameters with defaults applied
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / 'config'
OUTPUT_DIR = PROJECT_ROOT / 'outputs'
CACHE_DIR = PROJECT_ROOT / 'cache'
LOG_DIR = PROJECT_ROOT / 'logs'

DEFAULT_CONFIG_FILE = CONFIG_DIR / 'report_config.json'

ANALYSIS_DEFAULTS = {
    'geographic_crs': 'EPSG:4326',
    'projected_crs': 'EPSG:2248',
    'buffer_distance': 0.5,
    'buffer_units': 'miles',
    'group_key': 'GEOID',
    'lon_column': 'longitude',
    'lat_column': 'latitude',
    'points_crs': 'EPSG:4326',
    'join_predicate': 'intersects',
    'boundary_state': 'MD',
    'boundary_year': 2020,
    'metro_name': 'Baltimore'
}


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict:
    """
    Load report configuration from JSON file.

    Reads report_config.json (or the given path) and validates basic structure.

    Parameters:
    -----------
    config_path : Optional[Union[str, Path]]
        Alternate configuration file. Defaults to config/report_config.json

    Returns:
    --------
    Dict
        Configuration dictionary with 'inputs' and 'settings' keys

    Raises:
    -------
    FileNotFoundError
        If configuration file doesn't exist
    json.JSONDecodeError
        If configuration file contains invalid JSON
    KeyError
        If required configuration keys are missing
    """
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = json.load(f)

    # Validate required keys
    if 'inputs' not in config:
        raise KeyError("Configuration missing required 'inputs' key")
    if 'settings' not in config:
        raise KeyError("Configuration missing required 'settings' key")

    OUTPUT_DIR.mkdir(exist_ok=True)
    CACHE_DIR.mkdir(exist_ok=True)

    return config


def load_analysis_settings(config: Dict = None) -> Dict:
    """
    Load analysis parameters from configuration.

    Args:
        config: Configuration dictionary (optional, will load if not provided)

    Returns:
        Dictionary with analysis settings

    Defaults:
        - geographic_crs: 'EPSG:4326' (display and joins)
        - projected_crs: 'EPSG:2248' (NAD83 / Maryland, US survey feet)
        - buffer_distance: 0.5
        - buffer_units: 'miles'
        - group_key: 'GEOID'
        - lon_column / lat_column: 'longitude' / 'latitude'
        - points_crs: 'EPSG:4326'
        - join_predicate: 'intersects'
        - boundary_state / boundary_year: 'MD' / 2020
        - metro_name: 'Baltimore'

    Note:
        Returns defaults if the 'analysis' section is missing.
    """
    if config is None:
        config = load_config()

    analysis = config.get('analysis', {})

    return {**ANALYSIS_DEFAULTS, **analysis}
