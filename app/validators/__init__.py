"""
app/validators package marker.
"""

from app.validators.coupon_validator import (
    HEADER_ROW_OFFSET,
    CouponRowValidator,
    compute_points,
    parse_number,
    round_half_away_from_zero,
)

__all__ = [
    "HEADER_ROW_OFFSET",
    "CouponRowValidator",
    "compute_points",
    "parse_number",
    "round_half_away_from_zero",
]
