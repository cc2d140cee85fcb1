"""
tests/test_row_cache.py

RowCache freshness, stale fallback and single-flight refresh.
"""

from __future__ import annotations

import threading

from app.connectors.base import ConnectorFetchResult
from app.services.row_cache import RowCache

URL = "https://example.com/sheet"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedFetcher:
    def __init__(self, *results: ConnectorFetchResult) -> None:
        self.results = list(results)
        self.calls = 0

    def __call__(self, key: str) -> ConnectorFetchResult:
        self.calls += 1
        return self.results.pop(0) if len(self.results) > 1 else self.results[0]


def _ok(*names: str) -> ConnectorFetchResult:
    return ConnectorFetchResult(source="sheet", rows=[{"siteName": n} for n in names])


FAILED = ConnectorFetchResult(source="sheet", ok=False, error="boom")


def test_fresh_entry_is_reused() -> None:
    clock = FakeClock()
    fetcher = ScriptedFetcher(_ok("A"))
    cache = RowCache(fetcher, ttl_seconds=60, clock=clock)

    assert cache.get_rows(URL) == [{"siteName": "A"}]
    clock.now = 59
    assert cache.get_rows(URL) == [{"siteName": "A"}]
    assert fetcher.calls == 1


def test_expired_entry_is_refetched() -> None:
    clock = FakeClock()
    fetcher = ScriptedFetcher(_ok("A"), _ok("B"))
    cache = RowCache(fetcher, ttl_seconds=60, clock=clock)

    cache.get_rows(URL)
    clock.now = 61
    assert cache.get_rows(URL) == [{"siteName": "B"}]
    assert fetcher.calls == 2


def test_stale_rows_served_when_refresh_fails() -> None:
    clock = FakeClock()
    fetcher = ScriptedFetcher(_ok("A"), FAILED)
    cache = RowCache(fetcher, ttl_seconds=10, clock=clock)

    cache.get_rows(URL)
    clock.now = 100
    assert cache.get_rows(URL) == [{"siteName": "A"}]


def test_empty_result_is_not_cached_as_success() -> None:
    fetcher = ScriptedFetcher(_ok(), _ok("A"))
    cache = RowCache(fetcher, ttl_seconds=60, clock=FakeClock())

    assert cache.get_rows(URL) == []
    assert cache.get_rows(URL) == [{"siteName": "A"}]
    assert fetcher.calls == 2


def test_failure_without_stale_entry_yields_empty() -> None:
    cache = RowCache(ScriptedFetcher(FAILED), clock=FakeClock())
    assert cache.get_rows(URL) == []


def test_raising_fetcher_is_contained() -> None:
    def fetcher(key: str) -> ConnectorFetchResult:
        raise RuntimeError("unexpected")

    assert RowCache(fetcher, clock=FakeClock()).get_rows(URL) == []


class CountingFetcher:
    def __init__(self) -> None:
        self.calls: dict[str, int] = {}

    def __call__(self, key: str) -> ConnectorFetchResult:
        self.calls[key] = self.calls.get(key, 0) + 1
        return _ok(key)


def test_distinct_urls_are_bounded() -> None:
    fetcher = CountingFetcher()
    cache = RowCache(fetcher, ttl_seconds=60, max_entries=8, clock=FakeClock())

    for index in range(1000):
        cache.get_rows(f"{URL}?gid={index}")

    assert len(cache._entries) == 8
    cache.get_rows(f"{URL}?gid=999")
    cache.get_rows(f"{URL}?gid=0")
    assert fetcher.calls[f"{URL}?gid=999"] == 1
    assert fetcher.calls[f"{URL}?gid=0"] == 2


def test_least_recently_read_entry_is_evicted_first() -> None:
    fetcher = CountingFetcher()
    cache = RowCache(fetcher, ttl_seconds=60, max_entries=2, clock=FakeClock())

    cache.get_rows("a")
    cache.get_rows("b")
    cache.get_rows("a")
    cache.get_rows("c")

    cache.get_rows("a")
    cache.get_rows("b")
    assert fetcher.calls == {"a": 1, "b": 2, "c": 1}


def test_refresh_and_invalidate() -> None:
    fetcher = ScriptedFetcher(_ok("A"), _ok("B"), _ok("C"))
    cache = RowCache(fetcher, ttl_seconds=60, clock=FakeClock())

    cache.get_rows(URL)
    assert cache.refresh(URL) == [{"siteName": "B"}]
    cache.invalidate()
    assert cache.get_rows(URL) == [{"siteName": "C"}]
    assert fetcher.calls == 3


def test_concurrent_callers_share_one_refresh() -> None:
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow_fetcher(key: str) -> ConnectorFetchResult:
        calls.append(key)
        started.set()
        release.wait(timeout=5)
        return _ok("A")

    cache = RowCache(slow_fetcher, ttl_seconds=60)
    results: list[list[dict]] = []

    def reader() -> None:
        results.append(cache.get_rows(URL))

    owner = threading.Thread(target=reader)
    owner.start()
    assert started.wait(timeout=5)

    waiters = [threading.Thread(target=reader) for _ in range(4)]
    for thread in waiters:
        thread.start()
    release.set()
    for thread in [owner, *waiters]:
        thread.join(timeout=5)

    assert calls == [URL]
    assert results == [[{"siteName": "A"}]] * 5
