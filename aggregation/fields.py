"""
aggregation/fields.py

Alias-driven field extraction for loosely-typed sheet rows.

Sheet exports name the same logical column in many ways ("Fuel Level %",
"fuelTankLevelPct", an unlabelled ``col24`` ...). Each logical field kind maps
to an ordered alias tuple in :data:`FIELD_ALIASES`; the first alias that is
present with a non-blank value wins.

Every function here is total: missing or unparseable input is reported with a
sentinel (``None`` for numbers, ``""`` for strings), never an exception.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

UNKNOWN_LABEL = "Unknown"


class FieldKind:
    REGION_NAME = "region_name"
    CITY_NAME = "city_name"
    DISTRICT_NAME = "district_name"
    SITE_NAME = "site_name"
    STATUS = "status"
    FUEL_PCT = "fuel_pct"
    GEN_LOAD_PCT = "gen_load_pct"
    GENERATOR_CAPACITY = "generator_capacity"
    DIESEL_LITERS_PER_DAY = "diesel_liters_per_day"
    POWER_DEMAND_KW = "power_demand_kw"
    CO2_TONS = "co2_tons"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"


FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    FieldKind.REGION_NAME: ("regionName", "Region", "region"),
    FieldKind.CITY_NAME: ("cityName", "City", "city"),
    FieldKind.DISTRICT_NAME: ("district", "District", "districtName"),
    FieldKind.SITE_NAME: ("siteName", "Site", "site"),
    FieldKind.STATUS: ("COWStatus", "Status", "cowStatus", "status"),
    FieldKind.FUEL_PCT: (
        "fuelTankLevelPct",
        "Fuel Tank Level %",
        "Fuel Level %",
        "fuel_level_pct",
        "fuel_tank_level_pct",
        "fuelTankLevel",
        "fuelTankLevelPercent",
        "col24",
    ),
    FieldKind.GEN_LOAD_PCT: (
        "generatorLoadFactorPct",
        "Load Factor %",
        "Generator Load Factor %",
        "load_factor_pct",
        "gen_load_factor_pct",
        "generatorLoad",
        "col25",
    ),
    FieldKind.GENERATOR_CAPACITY: (
        "GeneratorCapacity",
        "generatorCapacity",
        "genCapacity",
        "Capacity",
        "capacity",
    ),
    FieldKind.DIESEL_LITERS_PER_DAY: ("dieselLitersPerDay", "Diesel L/day", "diesel_liters_per_day"),
    FieldKind.POWER_DEMAND_KW: ("powerDemandKw", "Power Demand kW", "power_demand_kw"),
    FieldKind.CO2_TONS: ("co2Tons", "CO2 Tons", "co2_tons"),
    FieldKind.LATITUDE: ("lat", "latitude", "Lat"),
    FieldKind.LONGITUDE: ("lng", "longitude", "Lon", "long"),
}

STRING_FIELDS: frozenset[str] = frozenset(
    {
        FieldKind.REGION_NAME,
        FieldKind.CITY_NAME,
        FieldKind.DISTRICT_NAME,
        FieldKind.SITE_NAME,
        FieldKind.STATUS,
    }
)

ACTIVE_STATUSES: frozenset[str] = frozenset({"on-air", "onair", "on air", "in progress", "inprogress"})

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_FIRST_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def extract_field(row: Any, field_kind: str) -> float | str | None:
    """
    Return the typed value of *field_kind* from *row*.

    String kinds yield the stripped text or ``""``; numeric kinds yield a
    float or ``None``. Unknown kinds yield ``None``.
    """

    aliases = FIELD_ALIASES.get(field_kind)
    if aliases is None or not isinstance(row, Mapping):
        return "" if field_kind in STRING_FIELDS else None

    if field_kind in STRING_FIELDS:
        for alias in aliases:
            value = row.get(alias)
            if not _is_blank(value):
                return str(value).strip()
        return ""

    parser = parse_capacity if field_kind == FieldKind.GENERATOR_CAPACITY else parse_number
    for alias in aliases:
        value = row.get(alias)
        if _is_blank(value):
            continue
        parsed = parser(value)
        if parsed is not None:
            return parsed
    return None


def extract_number(row: Any, field_kind: str) -> float | None:
    value = extract_field(row, field_kind)
    return value if isinstance(value, float) else None


def extract_text(row: Any, field_kind: str) -> str:
    value = extract_field(row, field_kind)
    return value if isinstance(value, str) else ""


def region_or_unknown(row: Any) -> str:
    return extract_text(row, FieldKind.REGION_NAME) or UNKNOWN_LABEL


def parse_number(value: Any) -> float | None:
    """
    Parse a loosely formatted number: ``"1,234.5"``, ``"57.00%"``, ``42``.

    Returns ``None`` for blanks, booleans, non-finite and unparseable input.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    cleaned = str(value).replace(",", "").replace("%", "").strip()
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_capacity(value: Any) -> float | None:
    """
    Return the first decimal number anywhere in *value* (``"500 kVA" -> 500.0``).
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    match = _FIRST_NUMBER.search(str(value))
    if match is None:
        return None
    number = float(match.group(1))
    return number if math.isfinite(number) else None


def normalize_status(raw: Any) -> str:
    """
    Classify a free-text COW status as ``"active"`` or ``"inactive"``.
    """

    if _is_blank(raw):
        return "inactive"
    text = " ".join(str(raw).strip().lower().split())
    return "active" if text in ACTIVE_STATUSES else "inactive"


def is_active(row: Any) -> bool:
    return normalize_status(extract_field(row, FieldKind.STATUS)) == "active"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""
