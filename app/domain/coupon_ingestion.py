"""
app/domain/coupon_ingestion.py

Domain models used by the bulk coupon ingestion flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class RawRow:
    """
    One parsed spreadsheet row, projected onto the known coupon columns.
    """

    code: Any = None
    mrp: Any = None
    company: Any = None
    points: Any = None


@dataclass(frozen=True)
class CompanyRecord:
    """
    Company snapshot taken from the catalog for one ingestion run.
    """

    id: str
    name: str
    conversion_factor: float


@dataclass(frozen=True)
class ValidatedCoupon:
    """
    Normalized coupon ready for submission.
    """

    code: str
    mrp: int | float
    company_id: str
    points: int | float
    row_number: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "mrp": self.mrp,
            "company": self.company_id,
            "points": self.points,
        }


@dataclass(frozen=True)
class RowValidationError:
    """
    One spreadsheet row validation error detail.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class StructuredError:
    """
    Error payload returned by the storage backend.

    ``data`` is backend-shaped: usually a mapping of field name to
    ``{"code": ..., "message": ...}``, but it may be absent or arbitrary.
    """

    message: str
    data: Any = None
    code: str | None = None

    def describe(self) -> str:
        """
        Return the most specific human-readable message available.
        """

        if isinstance(self.data, dict) and self.data:
            parts: list[str] = []
            for key, detail in self.data.items():
                if isinstance(detail, dict) and detail.get("message"):
                    parts.append(f"{key}: {detail['message']}")
                elif isinstance(detail, str) and detail.strip():
                    parts.append(f"{key}: {detail.strip()}")
            if parts:
                return "; ".join(parts)
        return self.message

    def reason_code(self) -> str:
        """
        Return a short machine-readable reason for reporting.
        """

        if self.code:
            return self.code
        if isinstance(self.data, dict):
            for detail in self.data.values():
                if isinstance(detail, dict) and detail.get("code"):
                    return str(detail["code"])
        return "request_failed"


class RecordStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({RecordStatus.SUCCESS, RecordStatus.FAILED})


class InvalidStatusTransition(ValueError):
    """
    Raised when a record status change breaks the pending → processing → terminal order.
    """


@dataclass
class IngestionRecordStatus:
    """
    Live status of one coupon in individual upload mode.

    Moves pending → processing → success|failed exactly once.
    """

    code: str
    row_number: int
    status: RecordStatus = RecordStatus.PENDING
    message: str = "Pending"
    attempts: int = 0
    history: list[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def start(self) -> None:
        self._require(RecordStatus.PENDING, RecordStatus.PROCESSING)
        self.status = RecordStatus.PROCESSING
        self._set_message("Creating…")

    def begin_attempt(self) -> int:
        self._require(RecordStatus.PROCESSING, RecordStatus.PROCESSING)
        self.attempts += 1
        return self.attempts

    def note_retry(self, message: str) -> None:
        self._require(RecordStatus.PROCESSING, RecordStatus.PROCESSING)
        self._set_message(message)

    def succeed(self) -> None:
        self._require(RecordStatus.PROCESSING, RecordStatus.SUCCESS)
        self.status = RecordStatus.SUCCESS
        self._set_message("Created")

    def fail(self, message: str) -> None:
        self._require(RecordStatus.PROCESSING, RecordStatus.FAILED)
        self.status = RecordStatus.FAILED
        self._set_message(message)

    def _require(self, expected: RecordStatus, target: RecordStatus) -> None:
        if self.status is not expected:
            raise InvalidStatusTransition(
                f"Coupon '{self.code}' cannot move from {self.status.value} to {target.value}."
            )

    def _set_message(self, message: str) -> None:
        self.message = message
        self.history.append(message)


@dataclass(frozen=True)
class ProgressEvent:
    """
    One observable change of an individual-mode record.
    """

    index: int
    code: str
    status: RecordStatus
    message: str
    attempts: int


@dataclass(frozen=True)
class BatchOutcome:
    """
    Result of one record inside a grouped create call, paired by position.
    """

    index: int
    success: bool
    error: StructuredError | None = None


@dataclass(frozen=True)
class BatchFailedEntry:
    """
    One coupon rejected during a batch upload.
    """

    row_number: int
    code: str
    reason_code: str
    message: str


@dataclass(frozen=True)
class BatchResult:
    """
    Aggregate outcome of one batch submission.
    """

    total_count: int
    success_count: int
    failed_entries: list[BatchFailedEntry] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed_entries)

    @property
    def completed_with_errors(self) -> bool:
        return bool(self.failed_entries)


@dataclass(frozen=True)
class IndividualRunResult:
    """
    End-of-run summary for individual upload mode.
    """

    records: list[IngestionRecordStatus]
    success_count: int
    total_count: int

    @property
    def failure_count(self) -> int:
        return self.total_count - self.success_count
