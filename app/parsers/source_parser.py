"""
app/parsers/source_parser.py

Decode an uploaded coupon spreadsheet or CSV into raw rows.

Decoding is left to pandas (openpyxl for .xlsx). This module only picks the
reader, projects the known header columns and normalizes empty cells.
"""

from __future__ import annotations

import io
import logging
import numbers
import zipfile
from typing import Any

import pandas as pd

from app.domain.coupon_ingestion import RawRow
from app.domain.errors import EmptySourceError, SourceParseError

logger = logging.getLogger(__name__)

COUPON_COLUMNS: tuple[str, ...] = ("code", "mrp", "company", "points")

_XLSX_MAGIC = b"PK\x03\x04"
_WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")


def parse_source(payload: bytes, filename: str | None = None) -> list[RawRow]:
    """
    Parse the first worksheet (or the CSV body) into ordered raw rows.

    Raises:
        EmptySourceError: The file has no data rows.
        SourceParseError: The payload is not a readable spreadsheet or CSV.
    """

    if not payload or not payload.strip():
        raise EmptySourceError("The uploaded file is empty.")

    frame = _read_frame(payload, filename)
    frame = frame.dropna(how="all")

    present = [column for column in frame.columns if str(column) in COUPON_COLUMNS]
    rows = [
        RawRow(
            code=_clean_code(record.get("code")),
            mrp=_clean_cell(record.get("mrp")),
            company=_clean_cell(record.get("company")),
            points=_clean_cell(record.get("points")),
        )
        for record in (
            {str(column): raw[column] for column in present}
            for _, raw in frame.iterrows()
        )
    ]

    if not rows:
        raise EmptySourceError("No rows found in the uploaded file.")

    missing = [column for column in COUPON_COLUMNS if column not in {str(c) for c in present}]
    if missing:
        logger.info("Source file has no column(s) %s; values treated as empty", ", ".join(missing))
    logger.info("Parsed source file filename=%r rows=%d", filename, len(rows))
    return rows


def _read_frame(payload: bytes, filename: str | None) -> pd.DataFrame:
    buffer = io.BytesIO(payload)
    try:
        if _is_workbook(payload, filename):
            return pd.read_excel(buffer, sheet_name=0, dtype=object, engine="openpyxl")
        return pd.read_csv(buffer, dtype=object, encoding="utf-8-sig", skip_blank_lines=True)
    except pd.errors.EmptyDataError as exc:
        raise EmptySourceError("No rows found in the uploaded file.") from exc
    except (ValueError, KeyError, OSError, zipfile.BadZipFile) as exc:
        raise SourceParseError(f"Unable to read the uploaded file: {exc}") from exc


def _is_workbook(payload: bytes, filename: str | None) -> bool:
    name = (filename or "").strip().lower()
    if name.endswith(_WORKBOOK_EXTENSIONS):
        return True
    if name.endswith(".csv"):
        return False
    return payload.startswith(_XLSX_MAGIC)


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _clean_code(value: Any) -> Any:
    # Spreadsheets hand numeric codes back as floats (12345 -> 12345.0).
    cleaned = _clean_cell(value)
    if isinstance(cleaned, bool):
        return str(cleaned)
    if isinstance(cleaned, numbers.Integral):
        return str(int(cleaned))
    if isinstance(cleaned, numbers.Real):
        as_float = float(cleaned)
        return str(int(as_float)) if as_float.is_integer() else str(as_float)
    return cleaned
