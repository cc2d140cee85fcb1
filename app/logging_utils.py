"""
app/logging_utils.py

One-line JSON log events for sheet fetches, cache refreshes and fallbacks.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def timed_event(logger: logging.Logger, event: str, **fields: Any) -> Iterator[dict[str, Any]]:
    """
    Log *event* with ``elapsed_ms`` once the block exits.

    The yielded dict can be filled with extra fields (row counts, outcome)
    inside the block. Exceptions are logged at WARNING and re-raised.
    """

    extra: dict[str, Any] = {}
    started = time.monotonic()
    try:
        yield extra
    except Exception as exc:
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        log_event(logger, logging.WARNING, event, **{**fields, **extra, "elapsed_ms": elapsed_ms, "error": str(exc)})
        raise
    elapsed_ms = round((time.monotonic() - started) * 1000, 1)
    log_event(logger, logging.INFO, event, **{**fields, **extra, "elapsed_ms": elapsed_ms})
