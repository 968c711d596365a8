"""
app/api/routers/coupon_router.py

Stored coupon management: list and search, create or edit, delete.

Used after a bulk upload to reconcile what was actually created.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.errors import backend_http_error
from app.connectors.pocketbase import PocketBaseClient, PocketBaseError
from app.domain.coupon_catalog import CouponRecord
from app.schemas.coupon import CouponPageResponse, CouponResponse, CouponUpsertRequest
from app.services.coupon_ingestion_service import get_pocketbase_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coupons", tags=["coupons"])

COUPONS_UNAVAILABLE = "Coupon store is unavailable."


def _to_response(coupon: CouponRecord) -> CouponResponse:
    return CouponResponse(
        id=coupon.id,
        code=coupon.code,
        points=coupon.points,
        mrp=coupon.mrp,
        company_id=coupon.company_id,
        company_name=coupon.company_name,
        redeemed=coupon.redeemed,
        created=coupon.created,
    )


@router.get("", response_model=CouponPageResponse)
def list_coupons(
    page: int = Query(default=1, ge=1),
    search: str | None = Query(default=None, max_length=100),
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> CouponPageResponse:
    """
    Return one page of coupons, newest first, optionally filtered by code substring.
    """

    try:
        result = client.list_coupons(page=page, search=search)
    except PocketBaseError as exc:
        raise backend_http_error(exc, unavailable_detail=COUPONS_UNAVAILABLE) from exc

    return CouponPageResponse(
        page=result.page,
        per_page=result.per_page,
        total_pages=result.total_pages,
        total_items=result.total_items,
        items=[_to_response(coupon) for coupon in result.items],
    )


@router.post("", response_model=CouponResponse)
def upsert_coupon(
    request: CouponUpsertRequest,
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> CouponResponse:
    """
    Create a coupon, or update it when ``id`` is supplied.
    """

    try:
        coupon = client.upsert_coupon(
            coupon_id=request.id,
            code=request.code,
            points=request.points,
            mrp=request.mrp,
            company_id=request.company_id,
        )
    except PocketBaseError as exc:
        raise backend_http_error(exc, unavailable_detail=COUPONS_UNAVAILABLE) from exc

    logger.info("Coupon saved id=%s code=%s", coupon.id, coupon.code)
    return _to_response(coupon)


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: str,
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> Response:
    try:
        client.delete_coupon(coupon_id)
    except PocketBaseError as exc:
        raise backend_http_error(exc, unavailable_detail=COUPONS_UNAVAILABLE) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
