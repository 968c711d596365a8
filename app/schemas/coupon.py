"""
app/schemas/coupon.py

Request and response schemas for managing stored coupons.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CouponResponse(BaseModel):
    id: str
    code: str
    points: int | float
    mrp: int | float
    company_id: str
    company_name: str | None = None
    redeemed: bool = False
    created: str | None = None


class CouponPageResponse(BaseModel):
    """
    One page of stored coupons, newest first.
    """

    page: int
    per_page: int
    total_pages: int
    total_items: int
    items: list[CouponResponse] = Field(default_factory=list)


class CouponUpsertRequest(BaseModel):
    """
    Create a coupon, or update one when ``id`` is given.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str | None = None
    code: str = Field(min_length=1)
    points: float = Field(ge=1)
    mrp: float = Field(ge=1)
    company_id: str = Field(min_length=1)
