"""
app/validators/coupon_validator.py

Row-level validation and normalization for bulk coupon uploads.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from app.domain.coupon_ingestion import CompanyRecord, RawRow, RowValidationError, ValidatedCoupon
from app.domain.errors import CouponValidationError

logger = logging.getLogger(__name__)

# Row 0 of the parsed data sits on line 2 of the sheet, under the header.
HEADER_ROW_OFFSET = 2

MIN_MRP = 1
MIN_POINTS = 1


def round_half_away_from_zero(value: float) -> int:
    """
    Round once to the nearest integer, with .5 going away from zero.
    """

    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_points(mrp: float, conversion_factor: float) -> int:
    """
    Derive coupon points from MRP and a company's percentage conversion factor.
    """

    return round_half_away_from_zero(mrp * conversion_factor / 100)


class CouponRowValidator:
    """
    Validates raw coupon rows against a company catalog snapshot.

    Every row is checked and every failing check is reported before anything
    is returned; a single invalid row rejects the whole upload.
    """

    def __init__(self, *, log_validation_errors: bool = True) -> None:
        self._log_validation_errors = log_validation_errors

    def validate(
        self,
        rows: Sequence[RawRow],
        catalog: Iterable[CompanyRecord],
    ) -> list[ValidatedCoupon]:
        """
        Return one validated coupon per row, or raise with the full error list.

        Raises:
            CouponValidationError: At least one row failed a check.
        """

        companies = {company.name.strip().lower(): company for company in catalog}
        errors: list[RowValidationError] = []
        coupons: list[ValidatedCoupon] = []

        for index, row in enumerate(rows):
            row_number = index + HEADER_ROW_OFFSET
            row_errors: list[RowValidationError] = []

            code = self._parse_code(row.code, row_number=row_number, errors=row_errors)
            mrp = self._parse_mrp(row.mrp, row_number=row_number, errors=row_errors)
            company = self._resolve_company(
                row.company,
                companies=companies,
                row_number=row_number,
                errors=row_errors,
            )

            if not row_errors and mrp is not None and company is not None:
                points = self._resolve_points(
                    row.points,
                    mrp=mrp,
                    company=company,
                    row_number=row_number,
                    errors=row_errors,
                )
                if not row_errors:
                    coupons.append(
                        ValidatedCoupon(
                            code=code,
                            mrp=mrp,
                            company_id=company.id,
                            points=points,
                            row_number=row_number,
                        )
                    )

            for error in row_errors:
                self._record_error(errors, error)

        if errors:
            raise CouponValidationError(errors)

        self._warn_duplicate_codes(coupons)
        return coupons

    def _parse_code(
        self,
        value: Any,
        *,
        row_number: int,
        errors: list[RowValidationError],
    ) -> str:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="code",
                    message="code is required",
                    value=self._stringify_value(value),
                )
            )
            return ""
        return str(value).strip()

    def _parse_mrp(
        self,
        value: Any,
        *,
        row_number: int,
        errors: list[RowValidationError],
    ) -> int | float | None:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="mrp",
                    message="mrp is required",
                    value=self._stringify_value(value),
                )
            )
            return None

        mrp = parse_number(value)
        if mrp is None or mrp < MIN_MRP:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="mrp",
                    message=f"mrp must be a number greater than or equal to {MIN_MRP} (got '{value}')",
                    value=self._stringify_value(value),
                )
            )
            return None
        return mrp

    def _resolve_company(
        self,
        value: Any,
        *,
        companies: dict[str, CompanyRecord],
        row_number: int,
        errors: list[RowValidationError],
    ) -> CompanyRecord | None:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="company",
                    message="company is required",
                    value=self._stringify_value(value),
                )
            )
            return None

        name = str(value).strip().lower()
        company = companies.get(name)
        if company is None:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="company",
                    message=f"company '{name}' does not exist",
                    value=self._stringify_value(value),
                )
            )
        return company

    def _resolve_points(
        self,
        value: Any,
        *,
        mrp: int | float,
        company: CompanyRecord,
        row_number: int,
        errors: list[RowValidationError],
    ) -> int | float:
        override = None if self._is_blank(value) else parse_number(value)
        if override is not None and override > 0:
            if override < MIN_POINTS:
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column="points",
                        message=f"points must be at least {MIN_POINTS} (got '{value}')",
                        value=self._stringify_value(value),
                    )
                )
            return override

        points = compute_points(mrp, company.conversion_factor)
        if points < MIN_POINTS:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="points",
                    message=(
                        f"points computed from mrp {mrp} at {company.conversion_factor}% "
                        f"is {points}; provide a points value of at least {MIN_POINTS}"
                    ),
                    value=self._stringify_value(value),
                )
            )
        return points

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "Coupon validation error row=%s column=%s message=%s value=%r",
                error.row_number,
                error.column,
                error.message,
                error.value,
            )
        captured_errors.append(error)

    @staticmethod
    def _warn_duplicate_codes(coupons: Sequence[ValidatedCoupon]) -> None:
        # Uniqueness is enforced by the backend at create time.
        counts = Counter(coupon.code for coupon in coupons)
        duplicates = sorted(code for code, count in counts.items() if count > 1)
        if duplicates:
            logger.warning(
                "Upload contains duplicate coupon codes count=%d codes=%s",
                len(duplicates),
                ", ".join(duplicates),
            )

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


def parse_number(value: Any) -> int | float | None:
    """
    Parse a spreadsheet cell into a finite number, or None when it is not one.

    Integral values come back as ``int`` so payloads keep whole numbers whole.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, numbers.Real):
        number = float(value)
    else:
        try:
            number = float(Decimal(str(value).strip()))
        except (InvalidOperation, ValueError):
            return None

    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number
