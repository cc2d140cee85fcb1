"""
app/api/dependencies.py

Shared FastAPI dependencies for query parsing and service wiring.
"""

from __future__ import annotations

from fastapi import Depends, Query

from aggregation.scope import Scope
from app.services.dashboard_service import DashboardService, get_dashboard_service
from app.services.export_service import ExportService


def get_scope(
    level: str | None = Query(default=None, description='"national", "region", "city" or "site".'),
    region_id: str | None = Query(default=None, alias="regionId"),
    city_id: str | None = Query(default=None, alias="cityId"),
    site_id: str | None = Query(default=None, alias="siteId"),
    district: str | None = Query(default=None),
) -> Scope:
    """
    Build a :class:`Scope` from query parameters; unknown levels become national.
    """

    return Scope.from_query(
        level=level,
        region_id=region_id,
        city_id=city_id,
        site_id=site_id,
        district=district,
    )


def split_csv_param(raw: str | None) -> list[str]:
    """``"a, b,,c"`` -> ``["a", "b", "c"]``."""

    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def get_export_service(dashboard: DashboardService = Depends(get_dashboard_service)) -> ExportService:
    return ExportService(dashboard)
