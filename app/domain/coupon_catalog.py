"""
app/domain/coupon_catalog.py

Stored coupon records as read back from the backend, used by the coupon
management endpoints (listing, search, edit, delete).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CouponRecord:
    id: str
    code: str
    points: int | float
    mrp: int | float
    company_id: str
    company_name: str | None = None
    redeemed: bool = False
    created: str | None = None


@dataclass(frozen=True)
class CouponPage:
    """
    One page of coupons, newest first.
    """

    page: int
    per_page: int
    total_pages: int
    total_items: int
    items: list[CouponRecord] = field(default_factory=list)
