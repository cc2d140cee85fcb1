"""
aggregation/resolver.py

Map a raw row onto catalog nodes by exact city name.

Rows whose city is not in the catalog are not dropped: they keep their raw
region/district text so a slightly stale catalog never makes data vanish from
the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aggregation.catalog import Catalog, City
from aggregation.fields import UNKNOWN_LABEL, FieldKind, extract_text


@dataclass(frozen=True)
class ResolvedRow:
    city: City | None
    region_id: str | None
    region_name: str
    district: str


def resolve_city(row: Any, catalog: Catalog) -> City | None:
    city_name = extract_text(row, FieldKind.CITY_NAME)
    if not city_name:
        return None
    return catalog.city_by_name(city_name)


def resolve_region_id(row: Any, catalog: Catalog) -> str | None:
    city = resolve_city(row, catalog)
    return city.region_id if city is not None else None


def resolve_group_labels(row: Any, catalog: Catalog) -> ResolvedRow:
    """
    Resolve the labels the aggregator groups by.

    ``region_name`` prefers the catalog region of the resolved city, then the
    row's own region text, then ``"Unknown"``.
    """

    city = resolve_city(row, catalog)
    region_id = city.region_id if city is not None else None
    region_name = catalog.region_name_for_city(city) or extract_text(row, FieldKind.REGION_NAME)
    district = extract_text(row, FieldKind.DISTRICT_NAME)
    return ResolvedRow(
        city=city,
        region_id=region_id,
        region_name=region_name or UNKNOWN_LABEL,
        district=district or UNKNOWN_LABEL,
    )
