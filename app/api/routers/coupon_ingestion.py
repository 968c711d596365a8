"""
app/api/routers/coupon_ingestion.py

Bulk coupon upload HTTP endpoints.

POST /coupons/bulk-upload/validate            parse + validate only
POST /coupons/bulk-upload/batch               one grouped create call
POST /coupons/bulk-upload/individual          sequential creates with retry
POST /coupons/bulk-upload/individual/stream   same, as NDJSON progress events
POST /coupons/bulk-upload/report              .xlsx report for finished records

Validation always completes before anything is created. All workflow logic
lives in CouponIngestionService; the router only handles HTTP plumbing.
"""

from __future__ import annotations

import json
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from fastapi.responses import Response, StreamingResponse

from app.api.dependencies import get_spreadsheet_upload
from app.domain.coupon_ingestion import (
    IndividualRunResult,
    IngestionRecordStatus,
    ProgressEvent,
    ValidatedCoupon,
)
from app.domain.errors import (
    CatalogUnavailableError,
    CouponValidationError,
    EmptySourceError,
    SourceParseError,
    SubmissionFailedError,
)
from app.schemas.coupon_ingestion import (
    BatchFailedEntryResponse,
    BatchUploadResponse,
    CouponValidationResponse,
    IndividualUploadResponse,
    RecordStatusResponse,
    ReportExportRequest,
    ValidatedCouponResponse,
)
from app.services.coupon_ingestion_service import CouponIngestionService, get_coupon_ingestion_service
from app.services.ingestion_report import (
    REPORT_FILENAME,
    XLSX_MEDIA_TYPE,
    export_report_workbook,
    report_row,
    summarize_batch,
    summarize_individual,
)

router = APIRouter(prefix="/coupons/bulk-upload", tags=["coupons"])


# ---------------------------------------------------------------------------
# Helpers (no business logic)
# ---------------------------------------------------------------------------


def _prepare_upload(service: CouponIngestionService, file: UploadFile) -> list[ValidatedCoupon]:
    """
    Run parsing and validation, mapping workflow errors to HTTP errors.
    """

    try:
        payload = file.file.read()
        return service.prepare(payload, file.filename)
    except CouponValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_dict(),
        ) from exc
    except (EmptySourceError, SourceParseError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CatalogUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Company catalog is unavailable.",
        ) from exc
    finally:
        file.file.close()


def _record_response(record: IngestionRecordStatus) -> RecordStatusResponse:
    return RecordStatusResponse(
        row_number=record.row_number,
        code=record.code,
        status=record.status.value,
        message=record.message,
        attempts=record.attempts,
    )


def _individual_response(result: IndividualRunResult) -> IndividualUploadResponse:
    return IndividualUploadResponse(
        total=result.total_count,
        succeeded=result.success_count,
        failed=result.failure_count,
        message=summarize_individual(result),
        records=[_record_response(record) for record in result.records],
    )


def _ndjson(payload: dict[str, object]) -> str:
    return json.dumps(payload, default=str) + "\n"


def _event_payload(event: ProgressEvent) -> dict[str, object]:
    return {
        "event": "progress",
        "index": event.index,
        "code": event.code,
        "status": event.status.value,
        "message": event.message,
        "attempts": event.attempts,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/validate", response_model=CouponValidationResponse)
def validate_upload(
    file: UploadFile = Depends(get_spreadsheet_upload),
    ingestion_service: CouponIngestionService = Depends(get_coupon_ingestion_service),
) -> CouponValidationResponse:
    """
    Parse and validate an upload without creating any coupons.
    """

    coupons = _prepare_upload(ingestion_service, file)
    return CouponValidationResponse(
        total=len(coupons),
        coupons=[
            ValidatedCouponResponse(
                row_number=coupon.row_number,
                code=coupon.code,
                mrp=coupon.mrp,
                company_id=coupon.company_id,
                points=coupon.points,
            )
            for coupon in coupons
        ],
    )


@router.post("/batch", response_model=BatchUploadResponse)
def upload_batch(
    file: UploadFile = Depends(get_spreadsheet_upload),
    ingestion_service: CouponIngestionService = Depends(get_coupon_ingestion_service),
) -> BatchUploadResponse:
    """
    Validate an upload, then create every coupon in one grouped request.
    """

    coupons = _prepare_upload(ingestion_service, file)
    try:
        result = ingestion_service.run_batch(coupons)
    except SubmissionFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    summary = summarize_batch(result)
    return BatchUploadResponse(
        total=result.total_count,
        succeeded=summary.succeeded,
        failed=summary.failed,
        completed_with_errors=result.completed_with_errors,
        reasons=summary.reasons,
        message=summary.message,
        failed_entries=[
            BatchFailedEntryResponse(
                row_number=entry.row_number,
                code=entry.code,
                reason_code=entry.reason_code,
                message=entry.message,
            )
            for entry in result.failed_entries
        ],
    )


@router.post("/individual", response_model=IndividualUploadResponse)
def upload_individual(
    file: UploadFile = Depends(get_spreadsheet_upload),
    ingestion_service: CouponIngestionService = Depends(get_coupon_ingestion_service),
) -> IndividualUploadResponse:
    """
    Validate an upload, then create coupons one at a time with retry.
    """

    coupons = _prepare_upload(ingestion_service, file)
    result = ingestion_service.run_individual(coupons)
    return _individual_response(result)


@router.post("/individual/stream")
def upload_individual_stream(
    file: UploadFile = Depends(get_spreadsheet_upload),
    ingestion_service: CouponIngestionService = Depends(get_coupon_ingestion_service),
) -> StreamingResponse:
    """
    Same as the individual endpoint, streaming one NDJSON line per status change.

    Lines: one ``started`` event, ``progress`` events in upload order, and a
    final ``completed`` event with the counts.
    """

    coupons = _prepare_upload(ingestion_service, file)
    records, events = ingestion_service.start_individual(coupons)

    def _generate() -> Iterator[str]:
        yield _ndjson(
            {
                "event": "started",
                "total": len(records),
                "records": [_record_response(record).model_dump() for record in records],
            }
        )
        for event in events:
            yield _ndjson(_event_payload(event))

        result = ingestion_service.summarize_individual(records)
        yield _ndjson(
            {
                "event": "completed",
                "total": result.total_count,
                "succeeded": result.success_count,
                "failed": result.failure_count,
                "message": summarize_individual(result),
            }
        )

    return StreamingResponse(_generate(), media_type="application/x-ndjson")


@router.post("/report")
def export_report(request: ReportExportRequest) -> Response:
    """
    Return the Code / Result / Message report of an individual-mode run as .xlsx.
    """

    rows = [
        report_row(code=record.code, status=record.status, message=record.message)
        for record in request.records
    ]
    content = export_report_workbook(rows)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"'},
    )
