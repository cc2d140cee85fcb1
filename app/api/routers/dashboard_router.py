"""
app/api/routers/dashboard_router.py

Scoped dashboard views.

Every endpoint accepts the scope query parameters ``level``, ``regionId``,
``cityId``, ``siteId`` and ``district``. Responses fall back to synthetic
data when no sheet rows are available, so these endpoints never fail on
upstream problems.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from aggregation.scope import Scope
from aggregation.timeseries import GRANULARITIES
from app.api.dependencies import get_scope
from app.services.dashboard_service import DashboardService, get_dashboard_service

router = APIRouter(tags=["dashboard"])


@router.get("/kpis")
def get_kpis(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    return service.kpis(scope)


@router.get("/aggregates/current")
def get_current_aggregates(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> list[dict[str, Any]]:
    """
    Single "Today" row of fuel averages per group plus ``gen_``-prefixed
    generator-load averages. Empty when no active row matches the scope.
    """

    return service.current_aggregates(scope)


@router.get("/timeseries")
def get_time_series(
    granularity: str = Query(default="daily", description='"daily", "monthly" or "yearly".'),
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    if granularity not in GRANULARITIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid granularity {granularity!r}. Must be one of: {list(GRANULARITIES)}.",
        )
    if date_from and date_to and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from must not be later than to.",
        )
    return service.time_series(
        scope,
        granularity,
        date_from=_start_of_day(date_from),
        date_to=_start_of_day(date_to),
    )


@router.get("/breakdown/region")
def get_region_breakdown(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    return service.breakdown(scope, "region")


@router.get("/breakdown/site")
def get_site_breakdown(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    return service.breakdown(scope, "site")


@router.get("/benchmark")
def get_benchmark(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    return service.benchmark(scope)


@router.get("/alerts")
def get_alerts(
    scope: Scope = Depends(get_scope),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    return service.alerts(scope)


def _start_of_day(value: date | None) -> datetime | None:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=timezone.utc)
