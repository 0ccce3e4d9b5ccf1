"""
Core modules for GeoJoin Report.

This package contains the data-source, rendering and output modules of the
report.

Modules:
    boundary_source: Download and cache Census boundary files
    static_plot: Layered static figures with matplotlib
    map_builder: Interactive Leaflet map with Folium
    output_generator: Write figures, map and HTML report
"""

__version__ = '1.0.0'
