"""
app/services/dashboard_service.py

Dashboard views over sheet rows with synthetic fallback.

Every view follows the same shape:

    rows = row source (cached sheet fetch)
    if no rows      -> synthetic generator (deterministic demo data)
    else            -> catalog from rows -> scope filter -> pipeline

Row-source failures never reach the pipeline: the source already returns
``[]`` for unreachable or malformed upstreams.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable, Protocol, Sequence

from aggregation.aggregator import aggregate
from aggregation.catalog import Catalog, default_catalog, slugify
from aggregation.fields import FieldKind, extract_number, extract_text, region_or_unknown
from aggregation.scope import Scope
from aggregation.scope_filter import filter_rows
from aggregation.timeseries import GRANULARITIES, bucket_time_series
from anomaly.detector import AnomalyReport, detect_anomalies
from app.config import (
    AlertSettings,
    TrendSettings,
    get_alert_settings,
    get_external_http_settings,
    get_sheet_settings,
    get_trend_settings,
)
from app.connectors.sheet_connector import SheetConnector
from app.services.row_cache import RowCache
from synthetic import generator
from synthetic.seeded import round_half_up
from trends.accumulation import AccumulativeSeriesPoint, build_accumulative

logger = logging.getLogger(__name__)

TOP_SITES_LIMIT = 10
LOW_FUEL_LIMIT = 20


class RowSource(Protocol):
    def get_rows(self) -> list[dict[str, Any]]:
        ...


class SheetRowSource:
    """
    Rows of the configured sheet, served through a :class:`RowCache`.
    """

    def __init__(self, *, cache: RowCache, sheet_url: str | None) -> None:
        self._cache = cache
        self._sheet_url = sheet_url

    @property
    def sheet_url(self) -> str | None:
        return self._sheet_url

    def get_rows(self) -> list[dict[str, Any]]:
        if not self._sheet_url:
            return []
        return self._cache.get_rows(self._sheet_url)

    def get_rows_for(self, url: str) -> list[dict[str, Any]]:
        return self._cache.get_rows(url)

    def refresh(self) -> list[dict[str, Any]]:
        if not self._sheet_url:
            return []
        return self._cache.refresh(self._sheet_url)


@dataclass
class _SiteTotals:
    site_id: str
    site_name: str
    diesel: float = 0.0
    power: float = 0.0
    co2: float = 0.0
    fuel: list[float] = field(default_factory=list)


class DashboardService:
    """
    Read-only dashboard views for one row source.
    """

    def __init__(
        self,
        row_source: RowSource,
        *,
        alert_settings: AlertSettings | None = None,
        trend_settings: TrendSettings | None = None,
    ) -> None:
        self._row_source = row_source
        self._alerts = alert_settings or AlertSettings()
        self._trends = trend_settings or TrendSettings()

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def _rows(self) -> list[dict[str, Any]]:
        rows = self._row_source.get_rows()
        if not rows:
            logger.info("No sheet rows available; serving synthetic data")
        return rows

    @staticmethod
    def _catalog_for(rows: Sequence[dict[str, Any]]) -> Catalog:
        if rows:
            catalog = Catalog.from_rows(rows)
            if catalog.regions:
                return catalog
        return default_catalog()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def hierarchy(self) -> Catalog:
        return self._catalog_for(self._rows())

    def current_aggregates(self, scope: Scope) -> list[dict[str, Any]]:
        """
        "Today" fuel / generator-load averages grouped per scope policy.
        """

        rows = self._rows()
        if not rows:
            catalog = default_catalog()
            rows = generator.mock_rows(catalog)
        else:
            catalog = self._catalog_for(rows)
        return aggregate(filter_rows(rows, scope, catalog), scope, catalog)

    def kpis(self, scope: Scope, *, now: datetime | None = None) -> dict[str, Any]:
        rows = self._rows()
        if not rows:
            return generator.mock_kpis(scope, default_catalog(), now=now)

        catalog = self._catalog_for(rows)
        scoped = filter_rows(rows, scope, catalog, require_active=False)

        diesel = sum(extract_number(r, FieldKind.DIESEL_LITERS_PER_DAY) or 0.0 for r in scoped)
        power = sum(extract_number(r, FieldKind.POWER_DEMAND_KW) or 0.0 for r in scoped)
        co2 = sum(extract_number(r, FieldKind.CO2_TONS) or 0.0 for r in scoped)
        fuel_levels = _present(extract_number(r, FieldKind.FUEL_PCT) for r in scoped)
        loads = _present(extract_number(r, FieldKind.GEN_LOAD_PCT) for r in scoped)
        efficiency = power * 24 / diesel if diesel > 0 else 0.0

        site_totals = self._site_totals(scoped)
        top_sites = sorted(
            (
                {
                    "siteId": s.site_id,
                    "siteName": s.site_name,
                    "dieselLitersPerDay": int(round_half_up(s.diesel)),
                    "co2TonsPerDay": round_half_up(s.co2, 2),
                }
                for s in site_totals
            ),
            key=lambda item: item["dieselLitersPerDay"],
            reverse=True,
        )[:TOP_SITES_LIMIT]

        return {
            "asOf": (now or datetime.now(tz=timezone.utc)).isoformat(),
            "scope": scope.to_dict(),
            "kpis": {
                "dieselLitersPerDay": {"label": "Diesel", "value": int(round_half_up(diesel)), "unit": "L/day"},
                "powerDemandKw": {"label": "Power Demand", "value": int(round_half_up(power)), "unit": "kW"},
                "co2TonsPerDay": {"label": "CO₂ Emissions", "value": round_half_up(co2, 2), "unit": "t/day"},
                "fuelTankLevelPct": {"label": "Fuel Tank", "value": _mean_1dp(fuel_levels), "unit": "%"},
                "co2ReductionYoYPct": {"label": "CO₂ YoY", "value": 0, "unit": "%"},
                "energyEfficiencyKwhPerLiter": {
                    "label": "Efficiency",
                    "value": round_half_up(efficiency, 2),
                    "unit": "kWh/L",
                },
                "generatorLoadFactorPct": {"label": "Load Factor", "value": _mean_1dp(loads), "unit": "%"},
                "runningVsStandbyHours": {
                    "runningHours": {"label": "Running", "value": 0, "unit": "h/day"},
                    "standbyHours": {"label": "Standby", "value": 0, "unit": "h/day"},
                },
            },
            "topSites": top_sites,
            "lowFuelWarnings": self._low_fuel(site_totals, self._alerts.low_fuel_threshold_pct),
        }

    def time_series(
        self,
        scope: Scope,
        granularity: str,
        *,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        if granularity not in GRANULARITIES:
            granularity = "daily"
        rows = self._rows()
        if not rows:
            return generator.mock_time_series(scope, granularity, now=now)

        catalog = self._catalog_for(rows)
        scoped = filter_rows(rows, scope, catalog, require_active=False)
        points = bucket_time_series(scoped, granularity, date_from=date_from, date_to=date_to, now=now)
        return {
            "scope": scope.to_dict(),
            "granularity": granularity,
            "series": [point.to_dict() for point in points],
        }

    def breakdown(self, scope: Scope, by: str) -> dict[str, Any]:
        by = "site" if by == "site" else "region"
        rows = self._rows()
        if not rows:
            return generator.mock_breakdown(scope, default_catalog(), by)

        catalog = self._catalog_for(rows)
        scoped = filter_rows(rows, scope, catalog, require_active=False)
        groups: dict[str, dict[str, Any]] = {}
        for row in scoped:
            if by == "region":
                name = region_or_unknown(row)
            else:
                name = extract_text(row, FieldKind.SITE_NAME) or "Unknown"
            key = slugify(name)
            group = groups.setdefault(key, {"key": key, "name": name, "diesel": 0.0, "energy": 0.0})
            group["diesel"] += extract_number(row, FieldKind.DIESEL_LITERS_PER_DAY) or 0.0
            group["energy"] += (extract_number(row, FieldKind.POWER_DEMAND_KW) or 0.0) * 24

        data = [
            {
                "key": g["key"],
                "name": g["name"],
                "dieselLiters": int(round_half_up(g["diesel"])),
                "energyKwh": int(round_half_up(g["energy"])),
            }
            for g in groups.values()
        ]
        return {"scope": scope.to_dict(), "by": by, "data": data}

    def benchmark(self, scope: Scope) -> dict[str, Any]:
        rows = self._rows()
        if not rows:
            return generator.mock_benchmark(scope, default_catalog())

        catalog = self._catalog_for(rows)
        site_totals = self._site_totals(filter_rows(rows, scope, catalog, require_active=False))
        points = [
            {
                "siteId": s.site_id,
                "siteName": s.site_name,
                "dieselLiters": int(round_half_up(s.diesel)),
                "powerKw": int(round_half_up(s.power)),
                "co2Tons": round_half_up(s.co2, 2),
            }
            for s in site_totals
        ]
        return {"scope": scope.to_dict(), "points": points}

    def alerts(self, scope: Scope, *, now: datetime | None = None) -> dict[str, Any]:
        """
        Low-fuel alerts per row plus diesel-spike alerts per site.
        """

        reference = now or datetime.now(tz=timezone.utc)
        rows = self._rows()
        if not rows:
            return generator.mock_alerts(scope, default_catalog(), now=reference)

        catalog = self._catalog_for(rows)
        scoped = filter_rows(rows, scope, catalog, require_active=False)
        created_at = reference.isoformat()
        items: list[dict[str, Any]] = []

        for index, row in enumerate(scoped):
            fuel = extract_number(row, FieldKind.FUEL_PCT)
            if fuel is None or fuel > self._alerts.low_fuel_threshold_pct:
                continue
            site_name = extract_text(row, FieldKind.SITE_NAME)
            site_id = slugify(site_name)
            items.append(
                {
                    "id": f"{site_id}-fuel-low-{index}",
                    "severity": "high" if fuel <= self._alerts.critical_fuel_threshold_pct else "medium",
                    "kind": "fuel_low",
                    "message": f"{site_name} fuel tank at {int(round_half_up(fuel))}%",
                    "siteId": site_id,
                    "createdAt": created_at,
                }
            )

        site_totals = self._site_totals(scoped)
        report = detect_anomalies([s.diesel for s in site_totals], self._alerts.anomaly_z_threshold)
        for anomaly in report.anomalies:
            if anomaly.z <= 0:
                continue
            site = site_totals[anomaly.index]
            items.append(
                {
                    "id": f"{site.site_id}-diesel-spike",
                    "severity": "medium",
                    "kind": "diesel_spike",
                    "message": f"{site.site_name} diesel use {anomaly.z:.1f}σ above fleet mean",
                    "siteId": site.site_id,
                    "createdAt": created_at,
                }
            )
        return {"scope": scope.to_dict(), "items": items}

    def low_fuel_sites(self, threshold_pct: float | None = None) -> list[dict[str, Any]]:
        """
        Sites whose mean fuel level is at or below *threshold_pct*.

        Only live sheet rows are considered; synthetic data never raises
        low-fuel notices.
        """

        rows = self._rows()
        if not rows:
            return []
        threshold = self._alerts.low_fuel_threshold_pct if threshold_pct is None else threshold_pct
        return self._low_fuel(self._site_totals(rows), threshold)

    def accumulative(
        self,
        start: str | None = None,
        end: str | None = None,
        cities: Iterable[str] | None = None,
    ) -> list[AccumulativeSeriesPoint]:
        names = [c.strip() for c in cities or () if c and c.strip()]
        if not names:
            names = self.hierarchy().city_names()[: self._trends.default_city_count]
        return build_accumulative(start or self._trends.default_start_month, end, names)

    def anomalies(self, series: Sequence[Any], threshold: float | None = None) -> AnomalyReport:
        limit = self._alerts.anomaly_z_threshold if threshold is None else threshold
        return detect_anomalies(series, limit)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _site_totals(rows: Iterable[dict[str, Any]]) -> list[_SiteTotals]:
        totals: dict[str, _SiteTotals] = {}
        for row in rows:
            site_name = extract_text(row, FieldKind.SITE_NAME)
            if not site_name:
                continue
            site_id = slugify(site_name)
            site = totals.setdefault(site_id, _SiteTotals(site_id=site_id, site_name=site_name))
            site.diesel += extract_number(row, FieldKind.DIESEL_LITERS_PER_DAY) or 0.0
            site.power += extract_number(row, FieldKind.POWER_DEMAND_KW) or 0.0
            site.co2 += extract_number(row, FieldKind.CO2_TONS) or 0.0
            fuel = extract_number(row, FieldKind.FUEL_PCT)
            if fuel is not None:
                site.fuel.append(fuel)
        return list(totals.values())

    @staticmethod
    def _low_fuel(site_totals: Sequence[_SiteTotals], threshold_pct: float) -> list[dict[str, Any]]:
        warnings = []
        for site in site_totals:
            if not site.fuel:
                continue
            level = _mean_1dp(site.fuel)
            if level <= threshold_pct:
                warnings.append({"siteId": site.site_id, "siteName": site.site_name, "fuelTankLevelPct": level})
        return warnings[:LOW_FUEL_LIMIT]


def _present(values: Iterable[float | None]) -> list[float]:
    return [value for value in values if value is not None]


def _mean_1dp(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return round_half_up(sum(values) / len(values), 1)


@lru_cache(maxsize=1)
def get_row_cache() -> RowCache:
    connector = SheetConnector(http_settings=get_external_http_settings())
    settings = get_sheet_settings()
    return RowCache(
        connector.fetch,
        ttl_seconds=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries,
    )


def get_row_source() -> SheetRowSource:
    return SheetRowSource(cache=get_row_cache(), sheet_url=get_sheet_settings().sheet_url)


def get_dashboard_service() -> DashboardService:
    return DashboardService(
        get_row_source(),
        alert_settings=get_alert_settings(),
        trend_settings=get_trend_settings(),
    )
