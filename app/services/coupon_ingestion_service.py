"""
app/services/coupon_ingestion_service.py

Service layer for bulk coupon ingestion.

The workflow runs in four stages:

    1. parse_source()                 — spreadsheet/CSV → raw rows
    2. CouponRowValidator.validate()  — raw rows + catalog → validated coupons
    3. batch or individual strategy   — submit to PocketBase
    4. ingestion_report               — summaries and the downloadable report

Stages 1–2 finish completely before anything is written; a single invalid row
stops the run with the full error list and no records created.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Callable, Iterator, Sequence

from app.config import get_bulk_upload_settings, get_pocketbase_settings
from app.connectors.pocketbase import PocketBaseClient, PocketBaseError
from app.domain.coupon_ingestion import (
    BatchResult,
    CompanyRecord,
    IndividualRunResult,
    IngestionRecordStatus,
    ProgressEvent,
    ValidatedCoupon,
)
from app.domain.errors import CatalogUnavailableError
from app.parsers.source_parser import parse_source
from app.services.retry import BackoffPolicy
from app.services.upload_strategies import BatchUploadStrategy, IndividualUploadStrategy, ProgressCallback
from app.validators.coupon_validator import CouponRowValidator

logger = logging.getLogger(__name__)


class CouponIngestionService:
    """
    Coordinates parsing, validation and submission of coupon uploads.
    """

    def __init__(
        self,
        *,
        client: PocketBaseClient,
        validator: CouponRowValidator | None = None,
        policy: BackoffPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._validator = validator or CouponRowValidator()
        self._batch_strategy = BatchUploadStrategy(client)
        self._individual_strategy = IndividualUploadStrategy(client, policy=policy, sleep=sleep)

    def load_catalog(self) -> list[CompanyRecord]:
        """
        Fetch a fresh company catalog snapshot for one run.
        """

        try:
            return self._client.list_companies()
        except PocketBaseError as exc:
            logger.error("Company catalog could not be loaded error=%s", exc)
            raise CatalogUnavailableError(f"Company catalog could not be loaded: {exc}") from exc

    def prepare(self, payload: bytes, filename: str | None = None) -> list[ValidatedCoupon]:
        """
        Parse and validate an upload without creating anything.

        Raises:
            EmptySourceError, SourceParseError: The file has no usable rows.
            CatalogUnavailableError: Companies could not be fetched.
            CouponValidationError: One or more rows are invalid.
        """

        rows = parse_source(payload, filename)
        catalog = self.load_catalog()
        coupons = self._validator.validate(rows, catalog)
        logger.info("Coupon upload validated filename=%r coupons=%d", filename, len(coupons))
        return coupons

    def run_batch(self, coupons: Sequence[ValidatedCoupon]) -> BatchResult:
        return self._batch_strategy.run(coupons)

    def run_individual(
        self,
        coupons: Sequence[ValidatedCoupon],
        on_progress: ProgressCallback | None = None,
    ) -> IndividualRunResult:
        return self._individual_strategy.run(coupons, on_progress=on_progress)

    def start_individual(
        self,
        coupons: Sequence[ValidatedCoupon],
    ) -> tuple[list[IngestionRecordStatus], Iterator[ProgressEvent]]:
        """
        Return the pending records and a lazy event iterator that drives them.

        Nothing is submitted until the iterator is consumed.
        """

        records = IndividualUploadStrategy.initial_records(coupons)
        return records, self._individual_strategy.iter_run(coupons, records=records)

    def summarize_individual(self, records: Sequence[IngestionRecordStatus]) -> IndividualRunResult:
        return IndividualUploadStrategy.summarize(records)


@lru_cache(maxsize=1)
def get_pocketbase_client() -> PocketBaseClient:
    """
    Build and cache the PocketBase client.
    """

    return PocketBaseClient(settings=get_pocketbase_settings())


@lru_cache(maxsize=1)
def get_coupon_ingestion_service() -> CouponIngestionService:
    """
    Build and cache the coupon ingestion service.
    """

    settings = get_bulk_upload_settings()
    return CouponIngestionService(
        client=get_pocketbase_client(),
        validator=CouponRowValidator(log_validation_errors=settings.log_validation_errors),
        policy=BackoffPolicy.from_settings(settings),
    )
