"""
Utility modules for GeoJoin Report.

Modules:
    logger: Logging configuration and setup
    popup_formatters: Popup value formatting for the interactive map
"""

__version__ = '1.0.0'
