"""
app/api/routers/export_router.py

CSV export endpoint.

GET /export/csv

Query parameters
----------------
dataset : "aggregates" | "accumulative" | "breakdown"   (default: "aggregates")
by      : "region" | "site"  breakdown grouping           (default: "region")
start   : first month for accumulative, YYYY or YYYY-MM
end     : last month for accumulative, YYYY or YYYY-MM
cities  : comma-separated city names for accumulative
+ scope parameters (level, regionId, cityId, siteId, district)

Response
--------
StreamingResponse, Content-Type: text/csv
Content-Disposition: attachment; filename=<dataset>_export.csv
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from aggregation.scope import Scope
from app.api.dependencies import get_export_service, get_scope, split_csv_param
from app.services.export_service import VALID_DATASETS, ExportResult, ExportService, iter_csv_lines
from trends.accumulation import parse_month

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def _to_csv_streaming(result: ExportResult, filename: str) -> StreamingResponse:
    return StreamingResponse(
        content=iter_csv_lines(result),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(len(result.rows)),
        },
    )


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.get("/export/csv", summary="Export dashboard data as CSV")
def export_csv(
    dataset: str = Query(default="aggregates", description='"aggregates", "accumulative" or "breakdown".'),
    by: str = Query(default="region", description='Breakdown grouping: "region" or "site".'),
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    cities: str | None = Query(default=None),
    scope: Scope = Depends(get_scope),
    service: ExportService = Depends(get_export_service),
) -> StreamingResponse:
    # --- Validate query params ---
    if dataset not in VALID_DATASETS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid dataset {dataset!r}. Must be one of: {sorted(VALID_DATASETS)}.",
        )
    if by not in {"region", "site"}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid by {by!r}. Must be 'region' or 'site'.",
        )
    for name, value in (("start", start), ("end", end)):
        if value and parse_month(value) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {name} month {value!r}. Expected YYYY or YYYY-MM.",
            )

    # --- Delegate data work to the service ---
    try:
        result = service.export(
            dataset,
            scope=scope,
            start=start,
            end=end,
            cities=split_csv_param(cities),
            by=by,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("CSV export failed dataset=%r scope=%r", dataset, scope.to_dict())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed; see server logs for details.",
        ) from exc

    logger.info("CSV export dataset=%r rows=%d", dataset, len(result.rows))
    return _to_csv_streaming(result, f"{dataset}_export.csv")
