"""
app/parsers/sheet_parser.py

Normalise spreadsheet exports into a list of row dicts.

Two export formats are recognised:

gviz
    Google Visualization JSON wrapped in a JS callback, e.g.
    ``/*O_o*/ google.visualization.Query.setResponse({...});``. Column labels
    come from ``table.cols[*].label`` and cell values from ``c[*].v``.
csv
    Plain CSV with a header row, read with the ``csv`` module. Quoted fields
    may contain commas, doubled quotes and newlines.

Both parsers are total: malformed input yields ``[]``.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from typing import Any, Iterator
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

SHEET_KIND_GVIZ = "gviz"
SHEET_KIND_CSV = "csv"

_BLANK_RECORD_CHARS = " \t\r\n,"

_SHEET_ID = re.compile(r"https://docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)")
_PUBLISHED_ID = re.compile(r"https://docs\.google\.com/spreadsheets/d/e/([a-zA-Z0-9_-]+)")


def resolve_sheet_endpoint(url: str) -> tuple[str, str] | None:
    """
    Map a user-facing sheet link to ``(kind, fetch_url)``.

    Returns ``None`` when the link is not recognised; callers then fetch the
    raw URL and sniff the payload.
    """

    match = _SHEET_ID.search(url)
    if match and "/e/" not in url:
        sheet_id = match.group(1)
        return SHEET_KIND_GVIZ, f"https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:json"

    match = _PUBLISHED_ID.search(url)
    if match:
        published_id = match.group(1)
        gid = parse_qs(urlparse(url).query).get("gid", [None])[0]
        suffix = f"&gid={gid}" if gid else ""
        return SHEET_KIND_CSV, f"https://docs.google.com/spreadsheets/d/e/{published_id}/pub?output=csv{suffix}"

    if "output=csv" in url:
        return SHEET_KIND_CSV, url
    return None


def parse_gviz_json(text: str) -> list[dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return []
    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        logger.debug("gviz payload is not valid JSON")
        return []

    table = payload.get("table") if isinstance(payload, dict) else None
    if not isinstance(table, dict):
        return []

    headers = [
        str(col.get("label") or "") if isinstance(col, dict) else ""
        for col in table.get("cols") or []
    ]
    rows: list[dict[str, Any]] = []
    for raw_row in table.get("rows") or []:
        cells = raw_row.get("c") if isinstance(raw_row, dict) else None
        row: dict[str, Any] = {}
        for index, cell in enumerate(cells or []):
            key = headers[index] if index < len(headers) and headers[index] else f"col{index}"
            row[key] = cell.get("v") if isinstance(cell, dict) else None
        rows.append(row)
    return rows


def parse_csv(text: str) -> list[dict[str, str]]:
    """
    Parse CSV *text* into dicts keyed by the (stripped) header row.

    Cell values are returned exactly as the ``csv`` module reads them. Records
    made only of unquoted empty cells (``,,`` or a blank line) are skipped; a
    row of quoted empties (``"",""``) is kept. Short rows are padded with
    ``""`` and cells beyond the header are dropped.
    """

    consumed: list[str] = []

    def physical_lines() -> Iterator[str]:
        for line in io.StringIO(text, newline=""):
            consumed.append(line)
            yield line

    header: list[str] | None = None
    rows: list[dict[str, str]] = []
    try:
        for cells in csv.reader(physical_lines()):
            raw = "".join(consumed)
            consumed.clear()
            if not raw.strip(_BLANK_RECORD_CHARS):
                continue
            if header is None:
                header = [name.strip() or f"col{index}" for index, name in enumerate(cells)]
                continue
            rows.append({name: cells[index] if index < len(cells) else "" for index, name in enumerate(header)})
    except csv.Error as exc:
        logger.warning("CSV parse stopped after %d rows: %s", len(rows), exc)
    return rows


def parse_sheet_payload(text: str, *, kind: str | None = None, content_type: str = "") -> list[dict[str, Any]]:
    """
    Parse *text* as gviz JSON when it looks like JSON, otherwise as CSV.
    """

    looks_like_json = (
        kind == SHEET_KIND_GVIZ
        or "json" in content_type.lower()
        or text.strip().startswith("{")
        or "google.visualization" in text[:200]
    )
    if looks_like_json:
        rows = parse_gviz_json(text)
        return rows or parse_csv(text)
    return parse_csv(text)
