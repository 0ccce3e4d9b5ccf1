"""
Popup formatting utilities for GeoJoin Report.

Turns feature attributes into the small HTML snippets shown when a feature on
the interactive map is clicked.

Functions:
    format_popup_value: Format a single attribute value for display
    build_popup_html: Build the popup body for one feature
"""

import html
import math
from numbers import Integral, Real
from typing import Any, Mapping, Optional

# Columns that never belong in a popup
HIDDEN_COLUMNS = {'geometry', 'popup_html'}


def format_popup_value(col: str, value: Any) -> str:
    """
    Format an attribute value for popup display.

    Missing values (None/NaN) render as 'n/a', floats are
    rounded to six decimal places (enough for coordinates), integers get
    thousands separators except for identifier-like columns, and URLs become
    links.

    Examples:
        >>> format_popup_value('count', 1200)
        '1,200'
        >>> format_popup_value('GEOID', 24510040100)
        '24510040100'
        >>> format_popup_value('latitude', 39.2903848)
        '39.290385'
        >>> format_popup_value('name', None)
        'n/a'
    """
    if value is None or (isinstance(value, Real) and not isinstance(value, Integral) and math.isnan(value)):
        return 'n/a'

    if isinstance(value, bool):
        return 'Yes' if value else 'No'

    if isinstance(value, Integral):
        lowered = col.lower()
        if 'id' in lowered or 'fp' in lowered or 'code' in lowered:
            return str(value)
        return f"{value:,}"

    if isinstance(value, Real):
        return f"{value:.6f}".rstrip('0').rstrip('.')

    value_str = str(value)

    if value_str.startswith(('http://', 'https://')):
        safe = html.escape(value_str, quote=True)
        return f'<a href="{safe}" target="_blank">{safe}</a>'

    return html.escape(value_str)


def build_popup_html(layer_name: str,
                     properties: Mapping[str, Any],
                     title_field: Optional[str] = None) -> str:
    """
    Build popup HTML for one feature: layer name, optional title, attributes.

    Args:
        layer_name: Layer the feature belongs to
        properties: Feature attributes
        title_field: Attribute shown as the bold heading; falls back to the
                     first column with 'name' in it

    Returns:
        HTML string
    """
    title = None
    if title_field and title_field in properties:
        title = properties[title_field]
    else:
        for key in properties:
            if 'name' in key.lower():
                title = properties[key]
                break

    parts = [f"<div style='font-size: 10px;'><i>{html.escape(layer_name)}</i></div>"]
    if title is not None:
        parts.append(
            f"<div style='font-size: 14px; font-weight: bold; margin: 5px 0;'>"
            f"{format_popup_value('title', title)}</div>"
        )
    parts.append("<hr style='margin: 5px 0;'>")

    for key, value in properties.items():
        if key in HIDDEN_COLUMNS:
            continue
        parts.append(f"<b>{html.escape(str(key))}:</b> {format_popup_value(key, value)}<br>")

    return ''.join(parts)
