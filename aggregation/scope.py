"""
aggregation/scope.py

User-selected hierarchy slice that drives both row filtering and grouping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ScopeLevel:
    NATIONAL = "national"
    REGION = "region"
    CITY = "city"
    SITE = "site"


VALID_LEVELS: frozenset[str] = frozenset(
    {ScopeLevel.NATIONAL, ScopeLevel.REGION, ScopeLevel.CITY, ScopeLevel.SITE}
)


@dataclass(frozen=True)
class Scope:
    """
    Hierarchy filter.

    ``district`` is only meaningful together with a region context, but the
    filter still honours it on its own.
    """

    level: str = ScopeLevel.NATIONAL
    region_id: str | None = None
    city_id: str | None = None
    site_id: str | None = None
    district: str | None = None

    @classmethod
    def from_query(
        cls,
        *,
        level: str | None = None,
        region_id: str | None = None,
        city_id: str | None = None,
        site_id: str | None = None,
        district: str | None = None,
    ) -> "Scope":
        """
        Build a scope from raw query values; unknown levels become national.
        """

        normalized_level = (level or "").strip().lower()
        if normalized_level not in VALID_LEVELS:
            normalized_level = ScopeLevel.NATIONAL
        return cls(
            level=normalized_level,
            region_id=_clean(region_id),
            city_id=_clean(city_id),
            site_id=_clean(site_id),
            district=_clean(district),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"level": self.level}
        if self.region_id:
            payload["regionId"] = self.region_id
        if self.city_id:
            payload["cityId"] = self.city_id
        if self.site_id:
            payload["siteId"] = self.site_id
        if self.district:
            payload["district"] = self.district
        return payload


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None
