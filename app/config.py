"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class PocketBaseSettings:
    """
    Connection settings for the PocketBase backend.
    """

    base_url: str = "http://127.0.0.1:8090"
    token: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None
    timeout_seconds: float = 15.0
    companies_page_size: int = 200
    coupons_page_size: int = 10
    companies_collection: str = "companies"
    coupons_collection: str = "coupons"


@dataclass(frozen=True)
class BulkUploadSettings:
    """
    Runtime settings for bulk coupon ingestion.
    """

    max_attempts: int = 2
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    backoff_max_seconds: float = 10.0
    log_validation_errors: bool = True


@lru_cache(maxsize=1)
def get_pocketbase_settings() -> PocketBaseSettings:
    """
    Return cached PocketBase settings from environment variables.
    """

    return PocketBaseSettings(
        base_url=_get_str_env("POCKETBASE_URL", "http://127.0.0.1:8090").rstrip("/"),
        token=_get_optional_str_env("POCKETBASE_TOKEN"),
        admin_email=_get_optional_str_env("POCKETBASE_ADMIN_EMAIL"),
        admin_password=_get_optional_str_env("POCKETBASE_ADMIN_PASSWORD"),
        timeout_seconds=max(1.0, _get_float_env("POCKETBASE_TIMEOUT_SECONDS", 15.0)),
        companies_page_size=min(500, max(1, _get_int_env("POCKETBASE_COMPANIES_PAGE_SIZE", 200))),
        coupons_page_size=min(500, max(1, _get_int_env("POCKETBASE_COUPONS_PAGE_SIZE", 10))),
        companies_collection=_get_str_env("POCKETBASE_COMPANIES_COLLECTION", "companies"),
        coupons_collection=_get_str_env("POCKETBASE_COUPONS_COLLECTION", "coupons"),
    )


@lru_cache(maxsize=1)
def get_bulk_upload_settings() -> BulkUploadSettings:
    """
    Return cached bulk upload settings from environment variables.
    """

    return BulkUploadSettings(
        max_attempts=max(1, _get_int_env("BULK_UPLOAD_MAX_ATTEMPTS", 2)),
        backoff_initial_seconds=max(0.0, _get_float_env("BULK_UPLOAD_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("BULK_UPLOAD_BACKOFF_MULTIPLIER", 2.0)),
        backoff_max_seconds=max(0.0, _get_float_env("BULK_UPLOAD_BACKOFF_MAX_SECONDS", 10.0)),
        log_validation_errors=_get_bool_env("BULK_UPLOAD_LOG_VALIDATION_ERRORS", True),
    )
