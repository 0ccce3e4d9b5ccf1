"""
HTML templates for GeoJoin Report.

Templates:
    report.html: Narrative report page with figures and embedded map
"""

__version__ = '1.0.0'
