from __future__ import annotations

import pytest

from app.domain.coupon_ingestion import (
    BatchFailedEntry,
    BatchResult,
    IngestionRecordStatus,
    InvalidStatusTransition,
    RecordStatus,
    RowValidationError,
    StructuredError,
    ValidatedCoupon,
)
from app.domain.errors import CouponValidationError


class TestIngestionRecordStatus:
    def test_starts_pending(self) -> None:
        record = IngestionRecordStatus(code="A1", row_number=2)
        assert record.status is RecordStatus.PENDING
        assert record.attempts == 0
        assert not record.is_terminal

    def test_success_path(self) -> None:
        record = IngestionRecordStatus(code="A1", row_number=2)
        record.start()
        assert record.begin_attempt() == 1
        record.succeed()

        assert record.status is RecordStatus.SUCCESS
        assert record.message == "Created"
        assert record.is_terminal

    def test_cannot_skip_processing(self) -> None:
        record = IngestionRecordStatus(code="A1", row_number=2)
        with pytest.raises(InvalidStatusTransition):
            record.succeed()

    def test_terminal_status_never_reverts(self) -> None:
        record = IngestionRecordStatus(code="A1", row_number=2)
        record.start()
        record.fail("nope")

        with pytest.raises(InvalidStatusTransition):
            record.start()
        with pytest.raises(InvalidStatusTransition):
            record.succeed()
        with pytest.raises(InvalidStatusTransition):
            record.begin_attempt()
        assert record.status is RecordStatus.FAILED


class TestStructuredError:
    def test_describe_prefers_field_messages(self) -> None:
        error = StructuredError(
            message="Failed to create record.",
            data={
                "code": {"code": "validation_not_unique", "message": "Value must be unique."},
                "company": {"code": "validation_missing_rel_records", "message": "Missing record."},
            },
        )
        assert error.describe() == "code: Value must be unique.; company: Missing record."
        assert error.reason_code() == "validation_not_unique"

    def test_describe_degrades_to_message(self) -> None:
        assert StructuredError(message="Boom.").describe() == "Boom."
        assert StructuredError(message="Boom.", data={}).describe() == "Boom."
        assert StructuredError(message="Boom.", data=["odd"]).describe() == "Boom."

    def test_explicit_code_wins(self) -> None:
        assert StructuredError(message="x", code="batch_aborted").reason_code() == "batch_aborted"


def test_batch_result_flags_incomplete_runs() -> None:
    complete = BatchResult(total_count=2, success_count=2)
    partial = BatchResult(
        total_count=2,
        success_count=1,
        failed_entries=[BatchFailedEntry(row_number=3, code="A2", reason_code="x", message="y")],
    )
    assert not complete.completed_with_errors
    assert partial.completed_with_errors
    assert partial.failure_count == 1


def test_coupon_payload_uses_backend_field_names() -> None:
    coupon = ValidatedCoupon(code="A1", mrp=100, company_id="c1", points=10, row_number=2)
    assert coupon.to_payload() == {"code": "A1", "mrp": 100, "company": "c1", "points": 10}


def test_validation_error_serializes_every_row() -> None:
    exc = CouponValidationError(
        [
            RowValidationError(row_number=2, column="code", message="code is required"),
            RowValidationError(row_number=3, column="company", message="company 'x' does not exist", value="x"),
        ]
    )

    detail = exc.to_dict()

    assert [error["message"] for error in detail["errors"]] == [
        "Row 2: code is required",
        "Row 3: company 'x' does not exist",
    ]
    assert str(exc) == "Row 2: code is required\nRow 3: company 'x' does not exist"
