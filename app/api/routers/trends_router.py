"""
app/api/routers/trends_router.py

Accumulative trend series and ad-hoc anomaly scoring.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import split_csv_param
from app.schemas.dashboard import AccumulativePointResponse, AnomalyReportResponse
from app.services.dashboard_service import DashboardService, get_dashboard_service
from trends.accumulation import parse_month

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trends", tags=["trends"])


@router.get("/accumulative", response_model=list[AccumulativePointResponse])
def get_accumulative(
    start: str | None = Query(default=None, description="First month, YYYY or YYYY-MM."),
    end: str | None = Query(default=None, description="Last month, YYYY or YYYY-MM. Defaults to the current month."),
    cities: str | None = Query(default=None, description="Comma-separated city names."),
    service: DashboardService = Depends(get_dashboard_service),
) -> list[dict]:
    """
    Month-by-month fuel, CO2 and power accumulation per city.

    Without ``cities`` the first cities of the hierarchy are used.
    """

    for name, value in (("start", start), ("end", end)):
        if value and parse_month(value) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {name} month {value!r}. Expected YYYY or YYYY-MM.",
            )

    points = service.accumulative(start, end, split_csv_param(cities))
    logger.debug("Accumulative series months=%d cities=%r", len(points), cities)
    return [point.to_dict() for point in points]


@router.get("/anomalies", response_model=AnomalyReportResponse)
def get_anomalies(
    values: str = Query(..., description="Comma-separated numeric series."),
    threshold: float | None = Query(default=None, ge=0, description="Absolute z-score limit."),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    return service.anomalies(split_csv_param(values), threshold).to_dict()
