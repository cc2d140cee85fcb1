"""
app/scheduler/jobs.py

APScheduler-based background jobs for the dashboard.

Schedule
--------
  refresh_sheet_rows - every SCHEDULER_REFRESH_MINUTES; re-fetches the
                       configured sheet so request handlers hit a warm cache.
  scan_low_fuel      - every SCHEDULER_REFRESH_MINUTES, offset by one minute;
                       logs sites at or below LOW_FUEL_THRESHOLD_PCT.

Both jobs are no-ops when SHEET_URL is not configured. Low-fuel detection
only logs; notification delivery is out of scope.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
The FastAPI lifespan in main.py starts it when SCHEDULER_ENABLED is true and
shuts it down on exit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_scheduler_settings
from app.logging_utils import log_event, timed_event
from app.services.dashboard_service import get_dashboard_service, get_row_source

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def refresh_sheet_rows() -> int:
    """
    Force a refresh of the configured sheet. Returns the number of rows served.
    """

    source = get_row_source()
    if not source.sheet_url:
        logger.debug("Scheduler: refresh_sheet_rows skipped, no SHEET_URL")
        return 0

    try:
        with timed_event(logger, "scheduler_refresh_sheet_rows") as extra:
            rows = source.refresh()
            extra["rows"] = len(rows)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: refresh_sheet_rows failed: %s", exc)
        return 0
    return len(rows)


def scan_low_fuel() -> list[dict]:
    """
    Log every site whose mean fuel tank level is at or below the threshold.
    """

    if not get_row_source().sheet_url:
        logger.debug("Scheduler: scan_low_fuel skipped, no SHEET_URL")
        return []

    try:
        sites = get_dashboard_service().low_fuel_sites()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: scan_low_fuel failed: %s", exc)
        return []

    for site in sites:
        log_event(
            logger,
            logging.WARNING,
            "low_fuel_site",
            site_id=site["siteId"],
            site_name=site["siteName"],
            fuel_tank_level_pct=site["fuelTankLevelPct"],
        )
    logger.info("Scheduler: scan_low_fuel complete sites=%d", len(sites))
    return sites


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """
    settings = get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")
    now = datetime.now(tz=timezone.utc)

    scheduler.add_job(
        refresh_sheet_rows,
        trigger="interval",
        minutes=settings.refresh_minutes,
        next_run_time=now,
        id="refresh_sheet_rows",
        name="Sheet row cache refresh",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=60,
    )
    scheduler.add_job(
        scan_low_fuel,
        trigger="interval",
        minutes=settings.refresh_minutes,
        next_run_time=now + timedelta(minutes=1),
        id="scan_low_fuel",
        name="Low fuel scan",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=60,
    )

    return scheduler
