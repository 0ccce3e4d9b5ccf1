"""
Configuration package for GeoJoin Report.

This package contains configuration loading and default analysis parameters.

Modules:
    config_loader: Load report configuration from JSON and merge defaults
"""

__version__ = '1.0.0'
