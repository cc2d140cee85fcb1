"""
tests/test_scope_filter.py

Row inclusion by region, city, site, district and COW status.
"""

from __future__ import annotations

import pytest

from aggregation.catalog import Catalog, default_catalog
from aggregation.scope import Scope
from aggregation.scope_filter import filter_rows, include_row

JEDDAH = {"cityName": "Jeddah", "siteName": "Jeddah COW-001", "district": "Jeddah", "COWStatus": "ON-AIR"}
RIYADH = {"cityName": "Riyadh", "siteName": "Riyadh COW-001", "district": "Olaya", "COWStatus": "ON-AIR"}
RIYADH_OFF = {"cityName": "Riyadh", "siteName": "Riyadh COW-002", "district": "Malaz", "COWStatus": "OFF-AIR"}
UNTAGGED = {"cityName": "Riyadh", "siteName": "Riyadh COW-009", "COWStatus": "In Progress"}
UNKNOWN_CITY = {"cityName": "Tabuk", "siteName": "Tabuk COW-001", "COWStatus": "ON-AIR"}


@pytest.fixture()
def catalog() -> Catalog:
    return default_catalog()


def test_region_scope_keeps_only_cities_of_that_region(catalog: Catalog) -> None:
    scope = Scope(level="region", region_id="makkah")
    assert filter_rows([JEDDAH, RIYADH], scope, catalog) == [JEDDAH]


def test_national_scope_keeps_active_rows_only(catalog: Catalog) -> None:
    kept = filter_rows([JEDDAH, RIYADH, RIYADH_OFF, UNKNOWN_CITY], Scope(), catalog)
    assert kept == [JEDDAH, RIYADH, UNKNOWN_CITY]


def test_status_agnostic_mode(catalog: Catalog) -> None:
    scope = Scope(level="city", city_id="riyadh")
    assert filter_rows([RIYADH, RIYADH_OFF], scope, catalog, require_active=False) == [RIYADH, RIYADH_OFF]


def test_unknown_city_fails_region_and_city_checks(catalog: Catalog) -> None:
    assert not include_row(UNKNOWN_CITY, Scope(level="region", region_id="riy"), catalog)
    assert not include_row(UNKNOWN_CITY, Scope(level="city", city_id="riyadh"), catalog)


def test_district_scope(catalog: Catalog) -> None:
    scope = Scope(level="region", region_id="riy", district="Olaya")
    assert include_row(RIYADH, scope, catalog)
    assert not include_row({**RIYADH, "district": "Malaz"}, scope, catalog)


def test_district_only_scope(catalog: Catalog) -> None:
    row = {"cityName": "Jeddah", "siteName": "Jeddah COW-002", "district": "Jeddah", "status": "On Air"}
    assert include_row(row, Scope(district="Jeddah"), catalog)
    assert not include_row(row, Scope(district="Riyadh"), catalog)


def test_rows_without_district_pass_district_check(catalog: Catalog) -> None:
    scope = Scope(level="region", region_id="riy", district="Olaya")
    assert include_row(UNTAGGED, scope, catalog)


def test_site_scope_matches_slug_or_catalog_name(catalog: Catalog) -> None:
    assert include_row(RIYADH, Scope(level="site", site_id="riyadh-cow-001"), catalog)
    assert include_row(RIYADH, Scope(level="site", site_id="riy-001"), catalog)
    assert not include_row(JEDDAH, Scope(level="site", site_id="riy-001"), catalog)


def test_scope_from_query_normalises_input() -> None:
    scope = Scope.from_query(level="REGION", region_id=" riy ", city_id="", district=None)
    assert scope == Scope(level="region", region_id="riy")
    assert Scope.from_query(level="galaxy").level == "national"
    assert scope.to_dict() == {"level": "region", "regionId": "riy"}
