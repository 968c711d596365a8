"""
Upload a coupon spreadsheet from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path

from app.domain.coupon_ingestion import ProgressEvent
from app.domain.errors import CouponIngestionError, CouponValidationError
from app.services.coupon_ingestion_service import get_coupon_ingestion_service
from app.services.ingestion_report import build_report_rows, export_report_workbook, summarize_batch

logger = logging.getLogger("bulk_upload_coupons")


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.index + 1}] {event.code}: {event.status.value} - {event.message}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate and upload a coupon spreadsheet (.csv or .xlsx).")
    parser.add_argument("path", type=Path, help="Spreadsheet with code, mrp, company and optional points columns.")
    parser.add_argument(
        "--mode",
        choices=("batch", "individual"),
        default="individual",
        help="batch: one grouped request. individual: one request per coupon with retry.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Stop after validation; nothing is created.",
    )
    parser.add_argument(
        "--report",
        dest="report",
        type=Path,
        default=None,
        help="Where to write the .xlsx report in individual mode.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").strip().upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = get_coupon_ingestion_service()
    try:
        coupons = service.prepare(args.path.read_bytes(), args.path.name)
    except CouponValidationError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return 1
    except CouponIngestionError as exc:
        print(json.dumps({"message": str(exc)}, indent=2))
        return 1

    if args.validate_only:
        print(json.dumps({"valid": len(coupons)}, indent=2))
        return 0

    if args.mode == "batch":
        try:
            result = service.run_batch(coupons)
        except CouponIngestionError as exc:
            print(json.dumps({"message": str(exc)}, indent=2))
            return 1
        summary = summarize_batch(result)
        payload = {
            "succeeded": summary.succeeded,
            "failed": summary.failed,
            "reasons": summary.reasons,
            "message": summary.message,
            "failed_entries": [
                {
                    "row_number": entry.row_number,
                    "code": entry.code,
                    "reason_code": entry.reason_code,
                    "message": entry.message,
                }
                for entry in result.failed_entries
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0 if not result.completed_with_errors else 2

    result = service.run_individual(coupons, on_progress=_print_progress)
    if args.report is not None:
        args.report.write_bytes(export_report_workbook(build_report_rows(result.records)))
        logger.info("Report written to %s", args.report)
    print(json.dumps({"succeeded": result.success_count, "total": result.total_count}, indent=2))
    return 0 if result.failure_count == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
