"""
app/parsers package marker.
"""

from app.parsers.source_parser import COUPON_COLUMNS, parse_source

__all__ = [
    "COUPON_COLUMNS",
    "parse_source",
]
