"""
app/api/errors.py

Translation of PocketBase failures into HTTP errors for the management endpoints.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from app.connectors.pocketbase import PocketBaseError, PocketBaseUnavailableError


def backend_http_error(exc: PocketBaseError, *, unavailable_detail: str) -> HTTPException:
    """
    Map an unreachable backend to 502 and a rejected request to the backend's own status.
    """

    if isinstance(exc, PocketBaseUnavailableError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=unavailable_detail)
    structured = exc.to_structured()
    return HTTPException(
        status_code=exc.status_code or status.HTTP_400_BAD_REQUEST,
        detail={"message": structured.describe(), "data": structured.data},
    )
