"""
app/api/routers/company_router.py

Company catalog endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.errors import backend_http_error
from app.connectors.pocketbase import PocketBaseClient, PocketBaseError
from app.domain.coupon_ingestion import CompanyRecord
from app.schemas.company import CompanyResponse, CompanyUpsertRequest
from app.services.coupon_ingestion_service import get_pocketbase_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])

CATALOG_UNAVAILABLE = "Company catalog is unavailable."


def _to_response(company: CompanyRecord) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        name=company.name,
        conversion_factor=company.conversion_factor,
    )


@router.get("", response_model=list[CompanyResponse])
def list_companies(
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> list[CompanyResponse]:
    """
    Return the full company catalog.
    """

    try:
        companies = client.list_companies()
    except PocketBaseError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=CATALOG_UNAVAILABLE,
        ) from exc
    return [_to_response(company) for company in companies]


@router.post("", response_model=CompanyResponse)
def upsert_company(
    request: CompanyUpsertRequest,
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> CompanyResponse:
    """
    Create a company, or update it when ``id`` is supplied. Names are stored lowercased.
    """

    try:
        company = client.upsert_company(
            company_id=request.id,
            name=request.name,
            conversion_factor=request.conversion_factor,
        )
    except PocketBaseError as exc:
        raise backend_http_error(exc, unavailable_detail=CATALOG_UNAVAILABLE) from exc

    logger.info("Company saved id=%s name=%s conversion_factor=%s", company.id, company.name, company.conversion_factor)
    return _to_response(company)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(
    company_id: str,
    client: PocketBaseClient = Depends(get_pocketbase_client),
) -> Response:
    try:
        client.delete_company(company_id)
    except PocketBaseError as exc:
        raise backend_http_error(exc, unavailable_detail=CATALOG_UNAVAILABLE) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
