"""
tests/test_accumulation.py

Pytest unit tests for the deterministic accumulation series.

All tests are pure Python; the only wall-clock input (the default end
month) is pinned with ``today``.
"""

from __future__ import annotations

from datetime import date

import pytest

from synthetic.seeded import round_half_up, seeded_random
from trends.accumulation import (
    build_accumulative,
    city_baseline,
    make_cumulative,
    month_range,
    parse_month,
    to_wide_rows,
)

CITIES = ["Riyadh", "Jeddah", "Makkah City"]


# ---------------------------------------------------------------------------
# Month handling
# ---------------------------------------------------------------------------


class TestMonths:
    def test_parse_month(self) -> None:
        assert parse_month("2025-03") == date(2025, 3, 1)
        assert parse_month("2024") == date(2024, 1, 1)
        assert parse_month("2025-13") is None
        assert parse_month("March") is None
        assert parse_month(None) is None

    def test_inclusive_range(self) -> None:
        assert month_range("2025-01", "2025-03") == ["2025-01", "2025-02", "2025-03"]

    def test_range_crosses_year_boundary(self) -> None:
        assert month_range("2024-11", "2025-02") == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_start_after_end_is_empty(self) -> None:
        assert month_range("2025-05", "2025-01") == []

    def test_defaults(self) -> None:
        assert month_range(None, None, today=date(2025, 3, 18)) == ["2025-01", "2025-02", "2025-03"]
        assert month_range("garbage", "2025-02") == ["2025-01", "2025-02"]


# ---------------------------------------------------------------------------
# Series construction
# ---------------------------------------------------------------------------


class TestBuildAccumulative:
    def test_is_deterministic(self) -> None:
        first = build_accumulative("2025-01", "2025-12", CITIES)
        second = build_accumulative("2025-01", "2025-12", CITIES)
        assert first == second

    def test_one_point_per_month_with_every_city(self) -> None:
        points = build_accumulative("2025-01", "2025-06", CITIES)
        assert [p.month for p in points] == month_range("2025-01", "2025-06")
        assert all(list(p.per_city) == CITIES for p in points)

    def test_derived_metrics(self) -> None:
        for point in build_accumulative("2025-01", "2025-04", CITIES):
            for values in point.per_city.values():
                assert values.co2_tons == round_half_up(values.fuel_liters * 2.68 / 1000, 2)
                assert values.power_kwh == round_half_up(values.fuel_liters * 0.9)

    def test_first_value_matches_formula(self) -> None:
        points = build_accumulative("2025-01", "2025-12", ["Riyadh"])
        baseline = int(round_half_up(seeded_random(17) * 200000)) + 50000
        noise = round_half_up(seeded_random(0) * baseline * 0.05)
        assert points[0].per_city["Riyadh"].fuel_liters == int(round_half_up(baseline * (1 / 12) + noise))

    def test_ramp_is_increasing(self) -> None:
        points = build_accumulative("2025-01", "2025-12", CITIES)
        for city in CITIES:
            series = [p.per_city[city].fuel_liters for p in points]
            assert series == sorted(series)
            baseline = city_baseline(CITIES.index(city))
            assert baseline <= series[-1] <= baseline * 1.05 + 1

    @pytest.mark.parametrize("index", range(8))
    def test_baseline_bounds(self, index: int) -> None:
        assert 50000 <= city_baseline(index) <= 250000

    def test_no_cities_gives_empty_per_city(self) -> None:
        points = build_accumulative("2025-01", "2025-02", [])
        assert [p.per_city for p in points] == [{}, {}]

    def test_to_dict_shape(self) -> None:
        payload = build_accumulative("2025-01", "2025-01", ["Abha"])[0].to_dict()
        assert payload["month"] == "2025-01"
        assert set(payload["perCity"]["Abha"]) == {"fuelLiters", "co2Tons", "powerKwh"}


# ---------------------------------------------------------------------------
# Wide rows and running totals
# ---------------------------------------------------------------------------


class TestWideRows:
    def test_to_wide_rows(self) -> None:
        points = build_accumulative("2025-01", "2025-02", ["Abha"])
        rows = to_wide_rows(points)
        assert [r["date"] for r in rows] == ["2025-01", "2025-02"]
        assert rows[0]["fuel_consumption_L_Abha"] == points[0].per_city["Abha"].fuel_liters
        assert set(rows[0]) == {
            "date",
            "fuel_consumption_L_Abha",
            "co2_emissions_tons_Abha",
            "power_consumption_kWh_Abha",
        }

    def test_make_cumulative(self) -> None:
        rows = [{"date": "a", "x": 1}, {"date": "b", "x": 2}, {"date": "c"}, {"date": "d", "x": "bad"}]
        result = make_cumulative(rows, ["x"])
        assert [r["x"] for r in result] == [1, 3, 3, 3]
        assert rows[2] == {"date": "c"}
