"""
aggregation/scope_filter.py

Row inclusion rules for a :class:`~aggregation.scope.Scope`.

A row is kept only when every containment check passes and its COW status
is active (ON-AIR / In Progress). The checks are independent and AND-ed.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from aggregation.catalog import Catalog, slugify
from aggregation.fields import FieldKind, extract_text, is_active
from aggregation.resolver import resolve_city
from aggregation.scope import Scope

logger = logging.getLogger(__name__)


def include_row(row: Any, scope: Scope, catalog: Catalog, *, require_active: bool = True) -> bool:
    """
    Return True when *row* belongs to *scope* and is active.

    Rows without a district tag pass the district check; rows whose city is
    not in the catalog fail any region or city check. KPI totals pass
    ``require_active=False`` to count every site regardless of status.
    """

    district = extract_text(row, FieldKind.DISTRICT_NAME)
    if scope.district and district and district != scope.district:
        return False

    city = resolve_city(row, catalog)
    if scope.region_id and (city is None or city.region_id != scope.region_id):
        return False
    if scope.city_id and (city is None or city.id != scope.city_id):
        return False

    if scope.site_id and not _matches_site(row, scope.site_id, catalog):
        return False

    return is_active(row) if require_active else True


def _matches_site(row: Any, site_id: str, catalog: Catalog) -> bool:
    site_name = extract_text(row, FieldKind.SITE_NAME)
    if not site_name:
        return False
    if slugify(site_name) == site_id:
        return True
    site = catalog.site_by_id(site_id)
    return site is not None and site.name == site_name


def filter_rows(
    rows: Iterable[Any],
    scope: Scope,
    catalog: Catalog,
    *,
    require_active: bool = True,
) -> list[Any]:
    rows = list(rows)
    kept = [row for row in rows if include_row(row, scope, catalog, require_active=require_active)]
    logger.debug(
        "filter_rows scope=%s kept=%d dropped=%d",
        scope.to_dict(),
        len(kept),
        len(rows) - len(kept),
    )
    return kept
