"""
app/connectors/sheet_connector.py

Spreadsheet connector: resolves a sheet link, downloads the export and
normalises gviz JSON or CSV into row dicts.

Upstream failures never propagate: they are logged and reported as an empty,
``ok=False`` result so callers can fall back to cached or synthetic data.
"""

from __future__ import annotations

import logging

import requests

from app.config import ExternalHTTPSettings
from app.connectors.base import BaseConnector, ConnectorFetchResult, ConnectorRequestError
from app.logging_utils import log_event
from app.parsers.sheet_parser import SHEET_KIND_GVIZ, parse_sheet_payload, resolve_sheet_endpoint

logger = logging.getLogger(__name__)


class SheetConnector(BaseConnector):
    """
    Fetch rows from a Google Sheets (or compatible) export URL.
    """

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="sheet", http_settings=http_settings, session=session)

    def fetch(self, url: str) -> ConnectorFetchResult:
        url = (url or "").strip()
        if not url:
            return ConnectorFetchResult(source=self.source, ok=False, error="empty sheet url")

        endpoint = resolve_sheet_endpoint(url)
        kind, fetch_url = endpoint if endpoint is not None else (SHEET_KIND_GVIZ, url)

        try:
            response = self._get(fetch_url)
        except ConnectorRequestError as exc:
            log_event(logger, logging.WARNING, "sheet_fetch_failed", url=fetch_url, error=str(exc))
            return ConnectorFetchResult(source=self.source, ok=False, error=str(exc))

        rows = parse_sheet_payload(
            response.text,
            kind=kind,
            content_type=response.headers.get("content-type", ""),
        )
        log_event(logger, logging.INFO, "sheet_fetched", url=fetch_url, kind=kind, rows=len(rows))
        return ConnectorFetchResult(source=self.source, rows=rows, ok=True)

    def fetch_rows(self, url: str) -> list[dict]:
        return self.fetch(url).rows
