from __future__ import annotations

import io

from openpyxl import load_workbook

from app.domain.coupon_ingestion import (
    BatchFailedEntry,
    BatchResult,
    IndividualRunResult,
    IngestionRecordStatus,
    RecordStatus,
)
from app.services.ingestion_report import (
    REPORT_COLUMNS,
    build_report_rows,
    export_report_workbook,
    summarize_batch,
    summarize_individual,
)


def _record(code: str, status: RecordStatus, message: str) -> IngestionRecordStatus:
    return IngestionRecordStatus(code=code, row_number=2, status=status, message=message, attempts=1)


def test_report_rows_keep_order_and_uppercase_result() -> None:
    rows = build_report_rows(
        [
            _record("A1", RecordStatus.SUCCESS, "Created"),
            _record("A2", RecordStatus.FAILED, "code: Value must be unique."),
        ]
    )

    assert rows == [
        {"Code": "A1", "Result": "SUCCESS", "Message": "Created"},
        {"Code": "A2", "Result": "FAILED", "Message": "code: Value must be unique."},
    ]


def test_export_writes_exactly_three_columns() -> None:
    rows = build_report_rows([_record("A1", RecordStatus.SUCCESS, "Created")])

    content = export_report_workbook(rows)

    ws = load_workbook(io.BytesIO(content)).active
    values = list(ws.iter_rows(values_only=True))
    assert values[0] == REPORT_COLUMNS
    assert values[1] == ("A1", "SUCCESS", "Created")
    assert ws.max_column == 3


def test_export_with_no_rows_has_header_only() -> None:
    ws = load_workbook(io.BytesIO(export_report_workbook([]))).active
    assert list(ws.iter_rows(values_only=True)) == [REPORT_COLUMNS]


def test_batch_summary_counts_reasons() -> None:
    result = BatchResult(
        total_count=5,
        success_count=2,
        failed_entries=[
            BatchFailedEntry(row_number=3, code="A2", reason_code="validation_not_unique", message="m"),
            BatchFailedEntry(row_number=4, code="A3", reason_code="validation_not_unique", message="m"),
            BatchFailedEntry(row_number=6, code="A5", reason_code="batch_aborted", message="m"),
        ],
    )

    summary = summarize_batch(result)

    assert summary.succeeded == 2
    assert summary.failed == 3
    assert summary.reasons == {"validation_not_unique": 2, "batch_aborted": 1}
    assert "2 of 5" in summary.message


def test_batch_summary_without_failures() -> None:
    summary = summarize_batch(BatchResult(total_count=4, success_count=4))
    assert summary.failed == 0
    assert summary.message == "Created 4 coupon(s)."


def test_individual_summary() -> None:
    records = [_record("A1", RecordStatus.SUCCESS, "Created"), _record("A2", RecordStatus.FAILED, "x")]
    assert summarize_individual(IndividualRunResult(records=records, success_count=1, total_count=2)) == (
        "1/2 coupons created"
    )


def test_batch_summary_with_reconciliation_when_some_were_created() -> None:
    result = BatchResult(
        total_count=2,
        success_count=1,
        failed_entries=[BatchFailedEntry(row_number=3, code="A2", reason_code="validation_not_unique", message="m")],
    )

    assert summarize_batch(result).message.endswith("need manual reconciliation.")


def test_rejected_batch_does_not_ask_for_reconciliation() -> None:
    result = BatchResult(
        total_count=2,
        success_count=0,
        failed_entries=[
            BatchFailedEntry(row_number=2, code="A1", reason_code="validation_not_unique", message="m"),
            BatchFailedEntry(row_number=3, code="A2", reason_code="batch_aborted", message="m"),
        ],
    )

    summary = summarize_batch(result)

    assert summary.message == "Created 0 of 2 coupon(s); 2 failed (batch_aborted: 1, validation_not_unique: 1)."
    assert "reconciliation" not in summary.message
