from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from urllib.parse import urlparse

from fastapi import FastAPI

from app.schemas.dashboard import HealthResponse


def _validate_env() -> None:
    """
    Validate environment variables at startup.

    Every setting is optional, but a value that is present must be usable.
    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle.
    """

    from app.config import load_env_files
    from trends.accumulation import parse_month

    load_env_files()

    errors: list[str] = []

    # --- Sheet URL ------------------------------------------------------
    sheet_url = os.getenv("SHEET_URL", "").strip()
    if sheet_url and urlparse(sheet_url).scheme not in {"http", "https"}:
        errors.append(f"SHEET_URL='{sheet_url}' must be an http(s) URL.")

    # --- Trend defaults -------------------------------------------------
    start_month = os.getenv("TRENDS_DEFAULT_START", "").strip()
    if start_month and parse_month(start_month) is None:
        errors.append(f"TRENDS_DEFAULT_START='{start_month}' must be YYYY or YYYY-MM.")

    # --- Numeric settings -----------------------------------------------
    for name in (
        "SHEET_CACHE_TTL_SECONDS",
        "EXTERNAL_HTTP_TIMEOUT_SECONDS",
        "LOW_FUEL_THRESHOLD_PCT",
        "CRITICAL_FUEL_THRESHOLD_PCT",
        "ANOMALY_Z_THRESHOLD",
    ):
        raw = os.getenv(name, "").strip()
        if not raw:
            continue
        try:
            float(raw)
        except ValueError:
            errors.append(f"{name}='{raw}' is not a number.")

    for name in (
        "SHEET_CACHE_MAX_ENTRIES",
        "EXTERNAL_HTTP_MAX_RETRIES",
        "TRENDS_DEFAULT_CITY_COUNT",
        "SCHEDULER_REFRESH_MINUTES",
    ):
        raw = os.getenv(name, "").strip()
        if raw and not raw.lstrip("-").isdigit():
            errors.append(f"{name}='{raw}' is not an integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, invalid environment variables:\n"
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


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Start the background scheduler on boot when enabled; shut it down on exit."""
    from app.config import get_scheduler_settings

    if not get_scheduler_settings().enabled:
        logging.getLogger(__name__).info("Scheduler disabled")
        yield
        return

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    logging.getLogger(__name__).info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logging.getLogger(__name__).info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="COW Energy Dashboard API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import (
        dashboard_router,
        export_router,
        hierarchy_router,
        sheet_router,
        trends_router,
    )

    application.include_router(hierarchy_router)
    application.include_router(sheet_router)
    application.include_router(dashboard_router)
    application.include_router(trends_router)
    application.include_router(export_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        from app.config import get_scheduler_settings, get_sheet_settings

        return HealthResponse(
            sheet_configured=get_sheet_settings().sheet_url is not None,
            scheduler_enabled=get_scheduler_settings().enabled,
        )

    return application


app = create_app()
