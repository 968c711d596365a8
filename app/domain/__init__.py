"""
app/domain package marker.
"""

from app.domain.coupon_catalog import CouponPage, CouponRecord
from app.domain.coupon_ingestion import (
    BatchFailedEntry,
    BatchOutcome,
    BatchResult,
    CompanyRecord,
    IndividualRunResult,
    IngestionRecordStatus,
    InvalidStatusTransition,
    ProgressEvent,
    RawRow,
    RecordStatus,
    RowValidationError,
    StructuredError,
    ValidatedCoupon,
)
from app.domain.errors import (
    CatalogUnavailableError,
    CouponIngestionError,
    CouponValidationError,
    EmptySourceError,
    SourceParseError,
    SubmissionFailedError,
)

__all__ = [
    "BatchFailedEntry",
    "BatchOutcome",
    "BatchResult",
    "CatalogUnavailableError",
    "CompanyRecord",
    "CouponIngestionError",
    "CouponPage",
    "CouponRecord",
    "CouponValidationError",
    "EmptySourceError",
    "IndividualRunResult",
    "IngestionRecordStatus",
    "InvalidStatusTransition",
    "ProgressEvent",
    "RawRow",
    "RecordStatus",
    "RowValidationError",
    "SourceParseError",
    "StructuredError",
    "SubmissionFailedError",
    "ValidatedCoupon",
]
