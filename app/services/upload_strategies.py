"""
app/services/upload_strategies.py

The two ways validated coupons are submitted to storage.

    BatchUploadStrategy       one grouped request, no retry, outcome per record
    IndividualUploadStrategy  one request per record, strictly in order,
                              bounded retry with backoff, live progress events

Neither strategy rolls back records that were already created.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Protocol, Sequence

from app.connectors.pocketbase import PocketBaseError, PocketBaseUnavailableError
from app.domain.coupon_ingestion import (
    BatchFailedEntry,
    BatchOutcome,
    BatchResult,
    IndividualRunResult,
    IngestionRecordStatus,
    ProgressEvent,
    RecordStatus,
    ValidatedCoupon,
)
from app.domain.errors import SubmissionFailedError
from app.services.retry import BackoffPolicy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class BatchCouponCreator(Protocol):
    def create_coupons_batch(self, coupons: Sequence[ValidatedCoupon]) -> list[BatchOutcome]: ...


class CouponCreator(Protocol):
    def create_coupon(self, coupon: ValidatedCoupon) -> object: ...


# ---------------------------------------------------------------------------
# Batch mode
# ---------------------------------------------------------------------------


class BatchUploadStrategy:
    """
    Submit every coupon in one grouped call and tally the outcomes.
    """

    def __init__(self, creator: BatchCouponCreator) -> None:
        self._creator = creator

    def run(self, coupons: Sequence[ValidatedCoupon]) -> BatchResult:
        """
        Raises:
            SubmissionFailedError: The grouped call could not be completed.
        """

        if not coupons:
            return BatchResult(total_count=0, success_count=0)

        try:
            outcomes = self._creator.create_coupons_batch(coupons)
        except PocketBaseUnavailableError as exc:
            logger.error("Batch coupon upload failed coupons=%d error=%s", len(coupons), exc)
            raise SubmissionFailedError(f"Batch upload could not be completed: {exc}") from exc

        if len(outcomes) != len(coupons):
            raise SubmissionFailedError(
                f"Batch upload returned {len(outcomes)} result(s) for {len(coupons)} coupon(s)."
            )

        success_count = 0
        failed_entries: list[BatchFailedEntry] = []
        for coupon, outcome in zip(coupons, sorted(outcomes, key=lambda item: item.index)):
            if outcome.success:
                success_count += 1
                continue
            error = outcome.error
            failed_entries.append(
                BatchFailedEntry(
                    row_number=coupon.row_number,
                    code=coupon.code,
                    reason_code=error.reason_code() if error else "request_failed",
                    message=error.describe() if error else "Request failed.",
                )
            )

        result = BatchResult(
            total_count=len(coupons),
            success_count=success_count,
            failed_entries=failed_entries,
        )
        if result.completed_with_errors:
            logger.warning(
                "Batch coupon upload completed with errors created=%d failed=%d",
                result.success_count,
                result.failure_count,
            )
        else:
            logger.info("Batch coupon upload completed created=%d", result.success_count)
        return result


# ---------------------------------------------------------------------------
# Individual mode
# ---------------------------------------------------------------------------


class IndividualUploadStrategy:
    """
    Submit coupons one at a time, in input order, retrying each on failure.

    ``iter_run`` is a generator that yields a ``ProgressEvent`` for every
    status change (and for every scheduled retry), so callers can stream
    progress while the run is still going.
    """

    def __init__(
        self,
        creator: CouponCreator,
        *,
        policy: BackoffPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._creator = creator
        self._policy = policy or BackoffPolicy()
        self._sleep = sleep

    @staticmethod
    def initial_records(coupons: Sequence[ValidatedCoupon]) -> list[IngestionRecordStatus]:
        return [IngestionRecordStatus(code=coupon.code, row_number=coupon.row_number) for coupon in coupons]

    def run(
        self,
        coupons: Sequence[ValidatedCoupon],
        on_progress: ProgressCallback | None = None,
    ) -> IndividualRunResult:
        records = self.initial_records(coupons)
        for event in self.iter_run(coupons, records=records):
            if on_progress is not None:
                on_progress(event)
        return self.summarize(records)

    def iter_run(
        self,
        coupons: Sequence[ValidatedCoupon],
        *,
        records: list[IngestionRecordStatus] | None = None,
    ) -> Iterator[ProgressEvent]:
        if records is None:
            records = self.initial_records(coupons)
        if len(records) != len(coupons):
            raise ValueError("records must hold exactly one status per coupon.")

        total = len(coupons)
        for index, (coupon, record) in enumerate(zip(coupons, records)):
            record.start()
            yield self._event(index, record)

            yield from self._attempt(index, coupon, record, total=total)
            yield self._event(index, record)

        result = self.summarize(records)
        logger.info(
            "Individual coupon upload completed created=%d/%d",
            result.success_count,
            result.total_count,
        )

    @staticmethod
    def summarize(records: Sequence[IngestionRecordStatus]) -> IndividualRunResult:
        return IndividualRunResult(
            records=list(records),
            success_count=sum(1 for record in records if record.status is RecordStatus.SUCCESS),
            total_count=len(records),
        )

    def _attempt(
        self,
        index: int,
        coupon: ValidatedCoupon,
        record: IngestionRecordStatus,
        *,
        total: int,
    ) -> Iterator[ProgressEvent]:
        """
        Drive one record to a terminal status, yielding an event per retry.
        """

        max_attempts = self._policy.max_attempts
        while True:
            attempt = record.begin_attempt()
            try:
                self._creator.create_coupon(coupon)
            except PocketBaseError as exc:
                if not self._policy.should_retry(attempt):
                    message = exc.to_structured().describe() or str(exc)
                    logger.error(
                        "Coupon create failed code=%s row=%s attempts=%d/%d error=%s",
                        coupon.code,
                        coupon.row_number,
                        attempt,
                        max_attempts,
                        message,
                    )
                    record.fail(message)
                    return

                delay = self._policy.delay_after(attempt)
                logger.warning(
                    "Coupon create attempt %d/%d failed code=%s position=%d/%d wait_seconds=%.2f error=%s",
                    attempt,
                    max_attempts,
                    coupon.code,
                    index + 1,
                    total,
                    delay,
                    exc,
                )
                record.note_retry(f"Retrying (attempt {attempt + 1}/{max_attempts})…")
                yield self._event(index, record)
                self._sleep(delay)
                continue

            record.succeed()
            if attempt > 1:
                logger.info("Coupon created on attempt %d/%d code=%s", attempt, max_attempts, coupon.code)
            return

    @staticmethod
    def _event(index: int, record: IngestionRecordStatus) -> ProgressEvent:
        return ProgressEvent(
            index=index,
            code=record.code,
            status=record.status,
            message=record.message,
            attempts=record.attempts,
        )
