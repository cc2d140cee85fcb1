"""
app/api/routers/sheet_router.py

Spreadsheet proxy.

GET /sheet?sheet=<url>

Returns the parsed rows of a Google Sheet (gviz JSON or published CSV) as
a JSON list of objects. An unreachable or unparseable sheet yields ``[]``
with HTTP 200; only a request with neither a ``sheet`` parameter nor a
configured ``SHEET_URL`` is rejected.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.services.dashboard_service import SheetRowSource, get_row_source

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sheet"])


@router.get("/sheet", response_model=list[dict[str, Any]])
def get_sheet(
    sheet: str | None = Query(default=None, description="Google Sheets URL (edit, gviz or published CSV)."),
    source: SheetRowSource = Depends(get_row_source),
) -> list[dict[str, Any]]:
    url = (sheet or "").strip() or source.sheet_url
    if not url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing sheet parameter and no SHEET_URL is configured.",
        )
    if urlparse(url).scheme not in {"http", "https"}:
        logger.info("Rejected non-http sheet url=%r", url)
        return []

    return source.get_rows_for(url)
