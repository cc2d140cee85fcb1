"""
trends/accumulation.py

Deterministic month-by-month accumulation series per city.

For city index ``c`` and month index ``i`` of ``n`` months::

    baseline = round(seeded_random(c + 17) * 200000) + 50000
    noise    = round(seeded_random(c * 31 + i) * baseline * 0.05)
    fuel_L   = round(baseline * (i + 1) / n + noise)
    co2_t    = round(fuel_L * 2.68 / 1000, 2)
    power_kWh = round(fuel_L * 0.9)

The ramp runs from roughly ``baseline / n`` up to ``baseline`` across the
window. The only wall-clock input is the default end month.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from synthetic.seeded import round_half_up, seeded_random

DEFAULT_START_MONTH = "2025-01"
CO2_KG_PER_LITER = 2.68
KWH_PER_LITER = 0.9

_MONTH_PATTERN = re.compile(r"^\s*(\d{4})(?:-(\d{1,2}))?\s*$")


@dataclass(frozen=True)
class CityAccumulation:
    fuel_liters: int
    co2_tons: float
    power_kwh: int

    def to_dict(self) -> dict[str, float]:
        return {"fuelLiters": self.fuel_liters, "co2Tons": self.co2_tons, "powerKwh": self.power_kwh}


@dataclass(frozen=True)
class AccumulativeSeriesPoint:
    month: str
    per_city: dict[str, CityAccumulation] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "perCity": {city: values.to_dict() for city, values in self.per_city.items()},
        }


def parse_month(value: str | None) -> date | None:
    """
    Parse ``"YYYY"`` or ``"YYYY-MM"`` into the first day of that month.
    """

    if value is None:
        return None
    match = _MONTH_PATTERN.match(str(value))
    if match is None:
        return None
    year = int(match.group(1))
    month = int(match.group(2) or 1)
    if not 1 <= month <= 12 or year < 1:
        return None
    return date(year, month, 1)


def month_range(start: str | None = None, end: str | None = None, *, today: date | None = None) -> list[str]:
    """
    Every month from *start* through *end* inclusive as ``"YYYY-MM"``.

    Unparseable bounds fall back to the defaults (``2025-01`` and the current
    month). A start after the end yields ``[]``.
    """

    start_date = parse_month(start) or parse_month(DEFAULT_START_MONTH)
    reference = today or date.today()
    end_date = parse_month(end) or date(reference.year, reference.month, 1)

    months: list[str] = []
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        months.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            month = 1
            year += 1
    return months


def city_baseline(city_index: int) -> int:
    return int(round_half_up(seeded_random(city_index + 17) * 200000)) + 50000


def build_accumulative_for_months(months: Sequence[str], city_names: Sequence[str]) -> list[AccumulativeSeriesPoint]:
    total = len(months)
    baselines = [city_baseline(index) for index in range(len(city_names))]

    points: list[AccumulativeSeriesPoint] = []
    for month_index, month in enumerate(months):
        per_city: dict[str, CityAccumulation] = {}
        for city_index, city in enumerate(city_names):
            baseline = baselines[city_index]
            noise = round_half_up(seeded_random(city_index * 31 + month_index) * baseline * 0.05)
            fuel = int(round_half_up(baseline * ((month_index + 1) / total) + noise))
            per_city[city] = CityAccumulation(
                fuel_liters=fuel,
                co2_tons=round_half_up(fuel * CO2_KG_PER_LITER / 1000, 2),
                power_kwh=int(round_half_up(fuel * KWH_PER_LITER)),
            )
        points.append(AccumulativeSeriesPoint(month=month, per_city=per_city))
    return points


def build_accumulative(
    start_month: str | None = DEFAULT_START_MONTH,
    end_month: str | None = None,
    city_names: Iterable[str] = (),
    *,
    today: date | None = None,
) -> list[AccumulativeSeriesPoint]:
    """
    Build the accumulative series for *city_names* over the month window.
    """

    names = [name for name in city_names if name]
    return build_accumulative_for_months(month_range(start_month, end_month, today=today), names)


def to_wide_rows(points: Sequence[AccumulativeSeriesPoint]) -> list[dict[str, Any]]:
    """
    Flatten points into the chart-friendly wide shape.
    """

    rows: list[dict[str, Any]] = []
    for point in points:
        row: dict[str, Any] = {"date": point.month}
        for city, values in point.per_city.items():
            row[f"fuel_consumption_L_{city}"] = values.fuel_liters
            row[f"co2_emissions_tons_{city}"] = values.co2_tons
            row[f"power_consumption_kWh_{city}"] = values.power_kwh
        rows.append(row)
    return rows


def make_cumulative(rows: Sequence[Mapping[str, Any]], keys: Sequence[str]) -> list[dict[str, Any]]:
    """
    Running total of *keys* down *rows*; missing values count as zero.
    """

    result: list[dict[str, Any]] = []
    running = {key: 0.0 for key in keys}
    for row in rows:
        out = dict(row)
        for key in keys:
            value = row.get(key)
            running[key] += value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
            out[key] = running[key]
        result.append(out)
    return result
