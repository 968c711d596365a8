"""
app/schemas/coupon_ingestion.py

Request and response schemas for bulk coupon upload endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidatedCouponResponse(BaseModel):
    """
    One normalized coupon ready for submission.
    """

    row_number: int = Field(..., ge=2)
    code: str
    mrp: float = Field(..., ge=1)
    company_id: str
    points: float = Field(..., ge=1)


class CouponValidationResponse(BaseModel):
    """
    API response model for a validation-only upload.
    """

    total: int = Field(..., ge=0)
    coupons: list[ValidatedCouponResponse] = Field(default_factory=list)


class BatchFailedEntryResponse(BaseModel):
    """
    API response model for one coupon rejected in batch mode.
    """

    row_number: int = Field(..., ge=2)
    code: str
    reason_code: str
    message: str


class BatchUploadResponse(BaseModel):
    """
    API response model for batch mode.

    ``completed_with_errors`` is set when some coupons were rejected; coupons
    that were created stay created.
    """

    total: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    completed_with_errors: bool
    reasons: dict[str, int] = Field(default_factory=dict)
    message: str
    failed_entries: list[BatchFailedEntryResponse] = Field(default_factory=list)


class RecordStatusResponse(BaseModel):
    """
    API response model for one coupon in individual mode.
    """

    row_number: int = Field(..., ge=2)
    code: str
    status: Literal["pending", "processing", "success", "failed"]
    message: str
    attempts: int = Field(..., ge=0)


class IndividualUploadResponse(BaseModel):
    """
    API response model for individual mode.
    """

    total: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    message: str
    records: list[RecordStatusResponse] = Field(default_factory=list)


class ReportRecordRequest(BaseModel):
    """
    One record to include in a downloadable upload report.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    code: str
    status: Literal["pending", "processing", "success", "failed"]
    message: str = ""


class ReportExportRequest(BaseModel):
    """
    Ordered records of a finished individual-mode run.
    """

    records: list[ReportRecordRequest] = Field(default_factory=list)
