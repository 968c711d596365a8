"""
app/schemas package marker.
"""

from app.schemas.company import CompanyResponse, CompanyUpsertRequest
from app.schemas.coupon import CouponPageResponse, CouponResponse, CouponUpsertRequest
from app.schemas.coupon_ingestion import (
    BatchFailedEntryResponse,
    BatchUploadResponse,
    CouponValidationResponse,
    IndividualUploadResponse,
    RecordStatusResponse,
    ReportExportRequest,
    ReportRecordRequest,
    ValidatedCouponResponse,
)

__all__ = [
    "BatchFailedEntryResponse",
    "BatchUploadResponse",
    "CompanyResponse",
    "CompanyUpsertRequest",
    "CouponPageResponse",
    "CouponResponse",
    "CouponUpsertRequest",
    "CouponValidationResponse",
    "IndividualUploadResponse",
    "RecordStatusResponse",
    "ReportExportRequest",
    "ReportRecordRequest",
    "ValidatedCouponResponse",
]
