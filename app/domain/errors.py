"""
Exceptions raised by the bulk coupon ingestion flow.
"""

from __future__ import annotations

from app.domain.coupon_ingestion import RowValidationError


class CouponIngestionError(Exception):
    """Base exception for bulk coupon ingestion failures."""


class SourceParseError(CouponIngestionError, ValueError):
    """Raised when the uploaded file cannot be decoded as a spreadsheet or CSV."""


class EmptySourceError(CouponIngestionError, ValueError):
    """Raised when the uploaded file yields zero data rows."""


class CouponValidationError(CouponIngestionError, ValueError):
    """
    Raised when one or more rows fail validation.

    Carries every collected error, never just the first.
    """

    def __init__(self, errors: list[RowValidationError]) -> None:
        self.errors = tuple(errors)
        super().__init__("\n".join(str(error) for error in self.errors))

    @property
    def messages(self) -> list[str]:
        return [str(error) for error in self.errors]

    def to_dict(self) -> dict[str, object]:
        return {
            "message": f"{len(self.errors)} validation error(s) found. No coupons were uploaded.",
            "errors": [
                {
                    "row_number": error.row_number,
                    "column": error.column,
                    "message": str(error),
                    "value": error.value,
                }
                for error in self.errors
            ],
        }


class CatalogUnavailableError(CouponIngestionError, RuntimeError):
    """Raised when the company catalog cannot be loaded."""


class SubmissionFailedError(CouponIngestionError, RuntimeError):
    """Raised when a grouped create call could not be completed at all."""
