"""
aggregation/catalog.py

Immutable region -> city -> site hierarchy.

A :class:`Catalog` is built once (from the built-in demo tables or from sheet
rows) and passed explicitly into every pipeline function. Districts are not
nodes of their own; they are labels carried by sites and discovered by
scanning.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from aggregation.fields import FieldKind, extract_number, extract_text
from aggregation.scope import Scope, ScopeLevel


@dataclass(frozen=True)
class Region:
    id: str
    name: str


@dataclass(frozen=True)
class City:
    id: str
    name: str
    region_id: str


@dataclass(frozen=True)
class Site:
    id: str
    name: str
    city_id: str
    lat: float
    lng: float
    district: str | None = None


@dataclass(frozen=True)
class Catalog:
    """
    Frozen snapshot of the hierarchy with name/id lookups.

    Cities whose ``region_id`` is not a known region, and sites whose
    ``city_id`` is not a known city, are dropped on construction.
    """

    regions: tuple[Region, ...] = ()
    cities: tuple[City, ...] = ()
    sites: tuple[Site, ...] = ()
    _city_by_name: dict[str, City] = field(default_factory=dict, init=False, repr=False, compare=False)
    _city_by_id: dict[str, City] = field(default_factory=dict, init=False, repr=False, compare=False)
    _region_by_id: dict[str, Region] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        regions = tuple(self.regions)
        region_ids = {region.id for region in regions}
        cities = tuple(city for city in self.cities if city.region_id in region_ids)
        city_ids = {city.id for city in cities}
        sites = tuple(site for site in self.sites if site.city_id in city_ids)

        object.__setattr__(self, "regions", regions)
        object.__setattr__(self, "cities", cities)
        object.__setattr__(self, "sites", sites)

        by_name: dict[str, City] = {}
        for city in cities:
            by_name.setdefault(city.name, city)
        object.__setattr__(self, "_city_by_name", by_name)
        object.__setattr__(self, "_city_by_id", {city.id: city for city in cities})
        object.__setattr__(self, "_region_by_id", {region.id: region for region in regions})

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def city_by_name(self, name: str) -> City | None:
        return self._city_by_name.get(name)

    def city_by_id(self, city_id: str | None) -> City | None:
        if city_id is None:
            return None
        return self._city_by_id.get(city_id)

    def region_by_id(self, region_id: str | None) -> Region | None:
        if region_id is None:
            return None
        return self._region_by_id.get(region_id)

    def site_by_id(self, site_id: str | None) -> Site | None:
        return next((site for site in self.sites if site.id == site_id), None)

    def region_name_for_city(self, city: City | None) -> str | None:
        region = self.region_by_id(city.region_id) if city is not None else None
        return region.name if region is not None else None

    def city_names(self) -> list[str]:
        return [city.name for city in self.cities]

    def districts(self, region_id: str | None = None) -> list[str]:
        """
        Sorted distinct district labels, optionally limited to one region.
        """

        labels: set[str] = set()
        for site in self.sites:
            if not site.district:
                continue
            if region_id is not None:
                city = self._city_by_id.get(site.city_id)
                if city is None or city.region_id != region_id:
                    continue
            labels.add(site.district)
        return sorted(labels)

    def sites_in_scope(self, scope: Scope) -> list[Site]:
        """
        Sites contained in *scope*; unknown ids yield an empty list.
        """

        if scope.level == ScopeLevel.REGION and scope.region_id:
            city_ids = {c.id for c in self.cities if c.region_id == scope.region_id}
            selected = [s for s in self.sites if s.city_id in city_ids]
        elif scope.level == ScopeLevel.CITY and scope.city_id:
            selected = [s for s in self.sites if s.city_id == scope.city_id]
        elif scope.level == ScopeLevel.SITE and scope.site_id:
            selected = [s for s in self.sites if s.id == scope.site_id]
        else:
            selected = list(self.sites)

        if scope.district:
            selected = [s for s in selected if s.district == scope.district]
        return selected

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "regions": [{"id": r.id, "name": r.name} for r in self.regions],
            "cities": [{"id": c.id, "name": c.name, "regionId": c.region_id} for c in self.cities],
            "sites": [
                {
                    "id": s.id,
                    "name": s.name,
                    "cityId": s.city_id,
                    "lat": s.lat,
                    "lng": s.lng,
                    **({"district": s.district} if s.district else {}),
                }
                for s in self.sites
            ],
        }

    # ------------------------------------------------------------------
    # Construction from sheet rows
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "Catalog":
        """
        Derive a catalog from raw rows; the first occurrence of each id wins.
        """

        regions: dict[str, Region] = {}
        cities: dict[str, City] = {}
        sites: dict[str, Site] = {}

        for row in rows:
            region_name = extract_text(row, FieldKind.REGION_NAME)
            city_name = extract_text(row, FieldKind.CITY_NAME)
            site_name = extract_text(row, FieldKind.SITE_NAME)

            region_id = slugify(region_name or "unknown-region")
            city_id = slugify(city_name or f"city-{region_id}")
            site_id = slugify(site_name or f"site-{city_id}")

            if region_name and region_id not in regions:
                regions[region_id] = Region(id=region_id, name=region_name)
            if city_name and city_id not in cities:
                cities[city_id] = City(id=city_id, name=city_name, region_id=region_id)
            if site_name and site_id not in sites:
                sites[site_id] = Site(
                    id=site_id,
                    name=site_name,
                    city_id=city_id,
                    lat=extract_number(row, FieldKind.LATITUDE) or 0.0,
                    lng=extract_number(row, FieldKind.LONGITUDE) or 0.0,
                    district=extract_text(row, FieldKind.DISTRICT_NAME) or None,
                )

        return cls(
            regions=tuple(regions.values()),
            cities=tuple(cities.values()),
            sites=tuple(sites.values()),
        )


def slugify(value: str) -> str:
    """
    ``"Eastern Province" -> "eastern-province"``.
    """

    normalized = unicodedata.normalize("NFKD", (value or "").lower())
    stripped = re.sub(r"[^a-z0-9\s-]", "", normalized).strip()
    return re.sub(r"\s+", "-", stripped)


def default_catalog() -> Catalog:
    """
    Built-in KSA demo hierarchy served when no sheet is reachable.
    """

    return Catalog(
        regions=(
            Region(id="riy", name="Riyadh"),
            Region(id="makkah", name="Makkah"),
            Region(id="madinah", name="Madinah"),
            Region(id="eastern", name="Eastern Province"),
            Region(id="asir", name="Asir"),
        ),
        cities=(
            City(id="riyadh", name="Riyadh", region_id="riy"),
            City(id="jeddah", name="Jeddah", region_id="makkah"),
            City(id="mecca", name="Makkah City", region_id="makkah"),
            City(id="madinah", name="Madinah", region_id="madinah"),
            City(id="dammam", name="Dammam", region_id="eastern"),
            City(id="abha", name="Abha", region_id="asir"),
        ),
        sites=(
            Site(id="riy-001", name="Riyadh COW-001", city_id="riyadh", lat=24.7136, lng=46.6753, district="Olaya"),
            Site(id="riy-002", name="Riyadh COW-002", city_id="riyadh", lat=24.8, lng=46.7, district="Malaz"),
            Site(id="jed-001", name="Jeddah COW-001", city_id="jeddah", lat=21.4858, lng=39.1925, district="Jeddah"),
            Site(id="mek-001", name="Makkah COW-001", city_id="mecca", lat=21.3891, lng=39.8579, district="Aziziyah"),
            Site(id="mad-001", name="Madinah COW-001", city_id="madinah", lat=24.5247, lng=39.5692, district="Quba"),
            Site(id="dam-001", name="Dammam COW-001", city_id="dammam", lat=26.3927, lng=49.9777, district="Corniche"),
            Site(id="abh-001", name="Abha COW-001", city_id="abha", lat=18.2164, lng=42.5053, district="Al Manhal"),
        ),
    )
