"""
synthetic/generator.py

Deterministic synthetic dashboard data.

Served whenever the spreadsheet source is unreachable or empty, and used as
demo data. Every value is derived from :func:`~synthetic.seeded.seeded_random`
with seeds built from the scope size and ordinal positions, never from a
clock-seeded random source. Timestamps (``asOf``, ``createdAt`` and series
dates) are the only wall-clock inputs.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from aggregation.catalog import Catalog
from aggregation.scope import Scope
from synthetic.seeded import round_half_up, seeded_random

CO2_KG_PER_LITER = 2.68

_SERIES_LENGTH = {"daily": 30, "monthly": 12, "yearly": 5}
_STATUSES = ("ON-AIR", "ON-AIR", "In Progress", "OFF-AIR")
_CAPACITIES = ("25 KVA", "35KVA", "50 kVA", "100 KVA")


def _delta(seed: int) -> float:
    return (seeded_random(seed) - 0.5) * 10


def mock_kpis(scope: Scope, catalog: Catalog, *, now: datetime | None = None) -> dict[str, Any]:
    sites = catalog.sites_in_scope(scope)
    seed = len(sites) * 13
    diesel = sum(800 + int(seeded_random(seed + i) * 1200) for i in range(len(sites)))
    power = sum(300 + int(seeded_random(seed + i + 20) * 500) for i in range(len(sites)))
    co2 = round_half_up(diesel * CO2_KG_PER_LITER) / 1000
    fuel = round_half_up(50 + seeded_random(seed + 33) * 50, 1)
    efficiency = round_half_up(power * 24 / max(1, diesel), 2)
    load = round_half_up(50 + seeded_random(seed + 66) * 50, 1)
    running_hours = int(round_half_up(12 + seeded_random(seed + 77) * 12))

    top_sites = []
    for i, site in enumerate(sites[:10]):
        site_diesel = 500 + int(seeded_random(seed + i + 100) * 2000)
        top_sites.append(
            {
                "siteId": site.id,
                "siteName": site.name,
                "dieselLitersPerDay": site_diesel,
                "co2TonsPerDay": round_half_up(site_diesel * CO2_KG_PER_LITER) / 1000,
            }
        )
    top_sites.sort(key=lambda item: item["dieselLitersPerDay"], reverse=True)

    low_fuel_sites = [site for i, site in enumerate(sites) if seeded_random(seed + i + 200) < 0.25]
    low_fuel = [
        {
            "siteId": site.id,
            "siteName": site.name,
            "fuelTankLevelPct": round_half_up(seeded_random(seed + i + 300) * 20, 1),
        }
        for i, site in enumerate(low_fuel_sites)
    ]

    return {
        "asOf": (now or datetime.now(tz=timezone.utc)).isoformat(),
        "scope": scope.to_dict(),
        "kpis": {
            "dieselLitersPerDay": {"label": "Diesel", "value": diesel, "unit": "L/day", "delta": _delta(seed + 1)},
            "powerDemandKw": {"label": "Power Demand", "value": power, "unit": "kW", "delta": _delta(seed + 2)},
            "co2TonsPerDay": {
                "label": "CO₂ Emissions",
                "value": round_half_up(co2, 2),
                "unit": "t/day",
                "delta": _delta(seed + 3),
            },
            "fuelTankLevelPct": {"label": "Fuel Tank", "value": fuel, "unit": "%", "delta": _delta(seed + 4)},
            "co2ReductionYoYPct": {
                "label": "CO₂ YoY",
                "value": round_half_up(seeded_random(seed + 5) * 10, 1),
                "unit": "%",
                "delta": _delta(seed + 6),
            },
            "energyEfficiencyKwhPerLiter": {
                "label": "Efficiency",
                "value": efficiency,
                "unit": "kWh/L",
                "delta": _delta(seed + 7),
            },
            "generatorLoadFactorPct": {"label": "Load Factor", "value": load, "unit": "%", "delta": _delta(seed + 8)},
            "runningVsStandbyHours": {
                "runningHours": {"label": "Running", "value": running_hours, "unit": "h/day"},
                "standbyHours": {"label": "Standby", "value": 24 - running_hours, "unit": "h/day"},
            },
        },
        "topSites": top_sites,
        "lowFuelWarnings": low_fuel,
    }


def mock_time_series(scope: Scope, granularity: str, *, now: datetime | None = None) -> dict[str, Any]:
    reference = now or datetime.now(tz=timezone.utc)
    length = _SERIES_LENGTH.get(granularity, _SERIES_LENGTH["daily"])
    points = []
    for idx in range(length):
        offset = length - 1 - idx
        if granularity == "monthly":
            month_index = reference.year * 12 + reference.month - 1 - offset
            t = reference.replace(year=month_index // 12, month=month_index % 12 + 1, day=1)
        elif granularity == "yearly":
            t = reference.replace(year=reference.year - offset, month=1, day=1)
        else:
            t = reference - timedelta(days=offset)
        diesel = 1000 + int(round_half_up(math.sin(idx / 3) * 200 + seeded_random(idx + 10) * 150))
        points.append(
            {
                "t": t.isoformat(),
                "dieselLiters": diesel,
                "co2Tons": round_half_up(diesel * CO2_KG_PER_LITER) / 1000,
                "efficiencyKwhPerLiter": round_half_up(400 * 24 / max(1, diesel), 2),
            }
        )
    return {"scope": scope.to_dict(), "granularity": granularity, "series": points}


def mock_breakdown(scope: Scope, catalog: Catalog, by: str) -> dict[str, Any]:
    if by == "region":
        data = []
        for i, region in enumerate(catalog.regions):
            region_sites = catalog.sites_in_scope(Scope(level="region", region_id=region.id))
            diesel = sum(700 + int(seeded_random(i * 31 + j) * 1600) for j in range(len(region_sites)))
            data.append(
                {
                    "key": region.id,
                    "name": region.name,
                    "dieselLiters": diesel,
                    "energyKwh": int(round_half_up(diesel * 0.9)),
                }
            )
        return {"scope": scope.to_dict(), "by": by, "data": data}

    data = [
        {
            "key": site.id,
            "name": site.name,
            "dieselLiters": 700 + int(seeded_random(i * 13) * 1800),
            "energyKwh": 500 + int(seeded_random(i * 17) * 2000),
        }
        for i, site in enumerate(catalog.sites_in_scope(scope))
    ]
    return {"scope": scope.to_dict(), "by": by, "data": data}


def mock_benchmark(scope: Scope, catalog: Catalog) -> dict[str, Any]:
    points = []
    for i, site in enumerate(catalog.sites_in_scope(scope)):
        diesel = 800 + int(seeded_random(i + 50) * 1800)
        points.append(
            {
                "siteId": site.id,
                "siteName": site.name,
                "dieselLiters": diesel,
                "powerKw": 200 + int(seeded_random(i + 60) * 800),
                "co2Tons": round_half_up(diesel * CO2_KG_PER_LITER) / 1000,
            }
        )
    return {"scope": scope.to_dict(), "points": points}


def mock_alerts(scope: Scope, catalog: Catalog, *, now: datetime | None = None) -> dict[str, Any]:
    reference = now or datetime.now(tz=timezone.utc)
    items = []
    for i, site in enumerate(catalog.sites_in_scope(scope)):
        if seeded_random(i + 1000) < 0.12:
            items.append(
                {
                    "id": f"{site.id}-fuel",
                    "severity": "high",
                    "kind": "fuel_low",
                    "message": f"{site.name} fuel tank below 20%",
                    "siteId": site.id,
                    "createdAt": (reference - timedelta(hours=2)).isoformat(),
                }
            )
        if seeded_random(i + 2000) < 0.08:
            items.append(
                {
                    "id": f"{site.id}-co2",
                    "severity": "medium",
                    "kind": "co2_spike",
                    "message": f"{site.name} CO₂ emissions spiked vs last period",
                    "siteId": site.id,
                    "createdAt": (reference - timedelta(hours=5)).isoformat(),
                }
            )
    return {"scope": scope.to_dict(), "items": items}


def mock_rows(catalog: Catalog) -> list[dict[str, Any]]:
    """
    Sheet-shaped rows for every catalog site, usable by the aggregation
    pipeline exactly like a real export.
    """

    regions = {region.id: region.name for region in catalog.regions}
    cities = {city.id: city for city in catalog.cities}
    rows: list[dict[str, Any]] = []
    for i, site in enumerate(catalog.sites):
        city = cities[site.city_id]
        diesel = 800 + int(seeded_random(i * 7 + 1) * 1200)
        rows.append(
            {
                "regionName": regions.get(city.region_id, ""),
                "cityName": city.name,
                "district": site.district or "",
                "siteName": site.name,
                "COWStatus": _STATUSES[int(seeded_random(i * 7 + 2) * len(_STATUSES))],
                "GeneratorCapacity": _CAPACITIES[int(seeded_random(i * 7 + 3) * len(_CAPACITIES))],
                "fuelTankLevelPct": f"{round_half_up(10 + seeded_random(i * 7 + 4) * 85, 2):.2f}%",
                "generatorLoadFactorPct": round_half_up(45 + seeded_random(i * 7 + 5) * 55, 1),
                "dieselLitersPerDay": diesel,
                "powerDemandKw": 300 + int(seeded_random(i * 7 + 6) * 500),
                "co2Tons": round_half_up(diesel * CO2_KG_PER_LITER / 1000, 2),
                "lat": site.lat,
                "lng": site.lng,
            }
        )
    return rows
