"""
app/connectors/base.py

Base connector abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator

import requests

from app.config import ExternalHTTPSettings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """


@dataclass(frozen=True)
class ConnectorFetchResult:
    """
    Connector fetch outcome with normalized rows.

    ``ok`` is False when the upstream could not be reached or returned an
    unusable payload; ``rows`` is then empty.
    """

    source: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    ok: bool = True
    error: str | None = None


class BaseConnector(ABC):
    """
    Connector interface for fetching raw rows from an upstream source.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier

    @abstractmethod
    def fetch(self, url: str) -> ConnectorFetchResult:
        """
        Fetch *url* and return normalized rows. Must not raise.
        """

    def _get(self, url: str) -> requests.Response:
        """
        GET *url*, retrying timeouts, connection errors and retryable statuses.

        Any other HTTP error status fails immediately.
        """

        delays = self._retry_delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._session.request(method="GET", url=url, timeout=self._timeout_seconds)
            except (requests.Timeout, requests.ConnectionError) as exc:
                failure: Exception = exc
            except requests.RequestException as exc:
                raise ConnectorRequestError(f"{self.source}: invalid request for {url}") from exc
            else:
                if response.ok:
                    return response
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    log_event(
                        logger,
                        logging.ERROR,
                        "connector_request_rejected",
                        source=self.source,
                        status=response.status_code,
                        url=url,
                    )
                    raise ConnectorRequestError(f"{self.source}: upstream answered HTTP {response.status_code}")
                failure = requests.HTTPError(f"HTTP {response.status_code}", response=response)

            delay = next(delays, None)
            if delay is None:
                log_event(
                    logger,
                    logging.ERROR,
                    "connector_retries_exhausted",
                    source=self.source,
                    attempts=attempt,
                    url=url,
                    error=str(failure),
                )
                raise ConnectorRequestError(f"{self.source}: gave up after {attempt} attempts") from failure

            log_event(
                logger,
                logging.WARNING,
                "connector_retry",
                source=self.source,
                attempt=attempt,
                wait_seconds=round(delay, 2),
                error=str(failure),
            )
            time.sleep(delay)

    def _retry_delays(self) -> Iterator[float]:
        delay = self._backoff_initial_seconds
        for _ in range(self._max_retries):
            yield delay
            delay *= self._backoff_multiplier
