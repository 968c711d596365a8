from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or backend connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - POCKETBASE_URL must be set and use http(s).
    - Admin credentials, when used, must be given as a pair.
    - Numeric bulk upload settings must parse when present.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- PocketBase URL -------------------------------------------------
    base_url = os.getenv("POCKETBASE_URL", "").strip()
    if not base_url:
        errors.append("POCKETBASE_URL is not set. Point it at the PocketBase server.")
    elif not base_url.startswith(("http://", "https://")):
        errors.append(f"POCKETBASE_URL='{base_url}' must start with http:// or https://.")

    # --- Credentials ----------------------------------------------------
    admin_email = os.getenv("POCKETBASE_ADMIN_EMAIL", "").strip()
    admin_password = os.getenv("POCKETBASE_ADMIN_PASSWORD", "").strip()
    if bool(admin_email) != bool(admin_password):
        errors.append(
            "POCKETBASE_ADMIN_EMAIL and POCKETBASE_ADMIN_PASSWORD must be set together."
        )

    # --- Bulk upload tuning ---------------------------------------------
    numeric_vars = {
        "BULK_UPLOAD_MAX_ATTEMPTS": int,
        "BULK_UPLOAD_BACKOFF_INITIAL_SECONDS": float,
        "BULK_UPLOAD_BACKOFF_MULTIPLIER": float,
        "BULK_UPLOAD_BACKOFF_MAX_SECONDS": float,
        "POCKETBASE_TIMEOUT_SECONDS": float,
    }
    for name, cast in numeric_vars.items():
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            continue
        try:
            cast(raw.strip())
        except ValueError:
            errors.append(f"{name}='{raw.strip()}' is not a valid {cast.__name__}.")

    if errors:
        raise RuntimeError(
            "Startup validation failed — missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_backend() -> None:
    """Ping PocketBase. Raises RuntimeError if it is unreachable."""
    from app.services.coupon_ingestion_service import get_pocketbase_client

    if not get_pocketbase_client().health():
        raise RuntimeError("PocketBase unavailable.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Confirm the PocketBase backend answers before serving traffic."""
    _check_backend()
    logging.getLogger(__name__).info("PocketBase connectivity confirmed")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Loyalty Rewards API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import company_router, coupon_ingestion_router, coupon_router

    application.include_router(company_router)
    application.include_router(coupon_ingestion_router)
    application.include_router(coupon_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
