"""
app/services/ingestion_report.py

Operator-facing summaries of a bulk coupon upload.

    batch mode       counts (created / failed) plus a reason per failed row
    individual mode  ordered Code / Result / Message rows, exportable as .xlsx

Nothing here mutates ingestion state.
"""

from __future__ import annotations

import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from openpyxl import Workbook

from app.domain.coupon_ingestion import BatchResult, IndividualRunResult, IngestionRecordStatus, RecordStatus

logger = logging.getLogger(__name__)

REPORT_COLUMNS: tuple[str, str, str] = ("Code", "Result", "Message")
REPORT_SHEET_TITLE = "Upload Report"
REPORT_FILENAME = "coupon_upload_report.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class BatchSummary:
    """
    Count-based summary of a batch upload.
    """

    succeeded: int
    failed: int
    reasons: dict[str, int] = field(default_factory=dict)
    message: str = ""


def summarize_batch(result: BatchResult) -> BatchSummary:
    reasons = dict(Counter(entry.reason_code for entry in result.failed_entries))
    if not result.completed_with_errors:
        message = f"Created {result.success_count} coupon(s)."
    else:
        breakdown = ", ".join(f"{code}: {count}" for code, count in sorted(reasons.items()))
        message = (
            f"Created {result.success_count} of {result.total_count} coupon(s); "
            f"{result.failure_count} failed ({breakdown})."
        )
        if result.success_count > 0:
            message += " Created coupons were kept and need manual reconciliation."
    return BatchSummary(
        succeeded=result.success_count,
        failed=result.failure_count,
        reasons=reasons,
        message=message,
    )


def summarize_individual(result: IndividualRunResult) -> str:
    return f"{result.success_count}/{result.total_count} coupons created"


def build_report_rows(records: Iterable[IngestionRecordStatus]) -> list[dict[str, str]]:
    """
    Return one report row per record, preserving upload order.
    """

    return [
        report_row(code=record.code, status=record.status, message=record.message)
        for record in records
    ]


def report_row(*, code: str, status: RecordStatus | str, message: str) -> dict[str, str]:
    value = status.value if isinstance(status, RecordStatus) else str(status)
    return {"Code": code, "Result": value.upper(), "Message": message}


def export_report_workbook(rows: Iterable[dict[str, str]]) -> bytes:
    """
    Write report rows to an in-memory .xlsx with exactly the report columns.
    """

    wb = Workbook()
    ws = wb.active
    ws.title = REPORT_SHEET_TITLE
    ws.append(list(REPORT_COLUMNS))

    count = 0
    for row in rows:
        ws.append([row.get(column, "") for column in REPORT_COLUMNS])
        count += 1

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.info("Coupon upload report exported rows=%d", count)
    return buffer.getvalue()
