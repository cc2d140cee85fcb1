"""
aggregation/timeseries.py

Date-column detection and daily/monthly/yearly bucketing of sheet rows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Mapping, Sequence

from aggregation.fields import FieldKind, extract_number

GRANULARITIES: tuple[str, ...] = ("daily", "monthly", "yearly")

TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)

# gviz encodes dates as "Date(2025,0,15)" with a zero-based month.
_GVIZ_DATE = re.compile(r"^Date\((\d{4}),(\d{1,2}),(\d{1,2})(?:,(\d{1,2}),(\d{1,2}),(\d{1,2}))?\)$")

_DATE_SCAN_LIMIT = 200


@dataclass(frozen=True)
class TimePoint:
    t: str
    diesel_liters: float
    co2_tons: float
    efficiency_kwh_per_liter: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "t": self.t,
            "dieselLiters": self.diesel_liters,
            "co2Tons": self.co2_tons,
            "efficiencyKwhPerLiter": self.efficiency_kwh_per_liter,
        }


def parse_date_value(value: Any) -> datetime | None:
    """
    Parse ISO strings, common sheet formats and gviz ``Date(...)`` literals.

    Bare numbers are never treated as dates. Naive results are UTC.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw or not any(sep in raw for sep in "-/("):
        return None

    match = _GVIZ_DATE.match(raw)
    if match:
        year, month, day = int(match.group(1)), int(match.group(2)) + 1, int(match.group(3))
        hour, minute, second = (int(part) if part else 0 for part in match.group(4, 5, 6))
        try:
            return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
        except ValueError:
            return None

    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(normalized)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def detect_date_key(rows: Sequence[Mapping[str, Any]]) -> str | None:
    """
    Column whose values most often parse as dates within the first rows.
    """

    if not rows:
        return None
    best_key: str | None = None
    best_count = 0
    sample = rows[:_DATE_SCAN_LIMIT]
    for key in rows[0].keys():
        count = sum(1 for row in sample if parse_date_value(row.get(key)) is not None)
        if count > best_count:
            best_key, best_count = key, count
    return best_key


def bucket_start(moment: datetime, granularity: str) -> datetime:
    if granularity == "yearly":
        return datetime(moment.year, 1, 1, tzinfo=timezone.utc)
    if granularity == "monthly":
        return datetime(moment.year, moment.month, 1, tzinfo=timezone.utc)
    return datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)


def bucket_time_series(
    rows: Sequence[Mapping[str, Any]],
    granularity: str,
    *,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    now: datetime | None = None,
) -> list[TimePoint]:
    """
    Sum diesel, CO2 and power per bucket and derive efficiency.

    Rows without a parseable date land in the bucket of *now*. Buckets
    outside ``[date_from, date_to]`` are dropped; output is chronological.
    """

    reference = now or datetime.now(tz=timezone.utc)
    date_key = detect_date_key(rows)
    buckets: dict[datetime, list[float]] = {}

    for row in rows:
        moment = parse_date_value(row.get(date_key)) if date_key else None
        key = bucket_start((moment or reference).astimezone(timezone.utc), granularity)
        totals = buckets.setdefault(key, [0.0, 0.0, 0.0])
        totals[0] += extract_number(row, FieldKind.DIESEL_LITERS_PER_DAY) or 0.0
        totals[1] += extract_number(row, FieldKind.CO2_TONS) or 0.0
        totals[2] += extract_number(row, FieldKind.POWER_DEMAND_KW) or 0.0

    lower = _as_utc(date_from)
    upper = _as_utc(date_to)
    points: list[TimePoint] = []
    for key in sorted(buckets):
        if lower is not None and key < lower:
            continue
        if upper is not None and key > upper:
            continue
        diesel, co2, power = buckets[key]
        points.append(
            TimePoint(
                t=key.isoformat(),
                diesel_liters=diesel,
                co2_tons=co2,
                efficiency_kwh_per_liter=power * 24 / diesel if diesel > 0 else 0.0,
            )
        )
    return points


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
