"""
app/services/row_cache.py

Pull-through cache for spreadsheet rows.

Behaviour
---------
* Entries are keyed by sheet URL and fresh for ``ttl_seconds``.
* At most ``max_entries`` URLs are kept. Storing a new one evicts the least
  recently read entry.
* At most one refresh per key is in flight. Callers arriving during a
  refresh block on the pending result instead of issuing another fetch.
* Only non-empty, successful fetches replace an entry. When a refresh fails
  or returns nothing, the previous (stale) rows are served if any exist.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from app.connectors.base import ConnectorFetchResult
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], ConnectorFetchResult]


@dataclass
class _Entry:
    rows: list[dict[str, Any]]
    fetched_at: float


@dataclass
class _PendingRefresh:
    done: threading.Event = field(default_factory=threading.Event)
    rows: list[dict[str, Any]] = field(default_factory=list)


class RowCache:
    """
    Thread-safe, time-boxed cache in front of a row fetcher.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        ttl_seconds: float = 60.0,
        max_entries: int = 32,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._ttl_seconds = max(0.0, ttl_seconds)
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._pending: dict[str, _PendingRefresh] = {}
        self._lock = threading.Lock()

    def get_rows(self, key: str) -> list[dict[str, Any]]:
        """
        Return rows for *key*, refreshing when the entry is missing or stale.
        """

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self._entries.move_to_end(key)
                return entry.rows
            pending = self._pending.get(key)
            owner = pending is None
            if owner:
                pending = _PendingRefresh()
                self._pending[key] = pending

        if not owner:
            pending.done.wait()
            return pending.rows

        try:
            pending.rows = self._refresh(key)
        finally:
            with self._lock:
                self._pending.pop(key, None)
            pending.done.set()
        return pending.rows

    def refresh(self, key: str) -> list[dict[str, Any]]:
        """
        Force a refresh of *key* on the next read and return the result.
        """

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry.fetched_at = float("-inf")
        return self.get_rows(key)

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def _refresh(self, key: str) -> list[dict[str, Any]]:
        try:
            result = self._fetcher(key)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Row fetch raised for key=%r", key)
            result = ConnectorFetchResult(source="cache", ok=False, error=str(exc))

        with self._lock:
            if result.ok and result.rows:
                entry = _Entry(rows=list(result.rows), fetched_at=self._clock())
                self._store(key, entry)
                log_event(logger, logging.DEBUG, "row_cache_refreshed", key=key, rows=len(entry.rows))
                return entry.rows

            stale = self._entries.get(key)

        if stale is not None:
            log_event(
                logger,
                logging.WARNING,
                "row_cache_serving_stale",
                key=key,
                age_seconds=round(self._clock() - stale.fetched_at, 1),
                error=result.error,
            )
            return stale.rows
        return []

    def _store(self, key: str, entry: _Entry) -> None:
        # caller holds self._lock
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log_event(logger, logging.DEBUG, "row_cache_evicted", key=evicted)

    def _is_fresh(self, entry: _Entry) -> bool:
        return self._clock() - entry.fetched_at < self._ttl_seconds
