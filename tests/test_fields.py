from __future__ import annotations

import unittest

from aggregation.fields import (
    FieldKind,
    extract_field,
    extract_number,
    extract_text,
    is_active,
    normalize_status,
    parse_capacity,
    parse_number,
    region_or_unknown,
)


class TestExtractField(unittest.TestCase):
    def test_missing_numeric_field_is_none(self) -> None:
        self.assertIsNone(extract_field({}, FieldKind.FUEL_PCT))
        self.assertIsNone(extract_field({"other": 1}, FieldKind.GEN_LOAD_PCT))

    def test_missing_string_field_is_empty(self) -> None:
        self.assertEqual(extract_field({}, FieldKind.REGION_NAME), "")
        self.assertEqual(region_or_unknown({}), "Unknown")

    def test_percent_string_is_parsed(self) -> None:
        self.assertEqual(extract_field({"fuelTankLevelPct": "57.00%"}, FieldKind.FUEL_PCT), 57.0)

    def test_alias_order_wins(self) -> None:
        row = {"col24": "30", "Fuel Level %": "45"}
        self.assertEqual(extract_number(row, FieldKind.FUEL_PCT), 45.0)

    def test_blank_alias_falls_through(self) -> None:
        row = {"fuelTankLevelPct": "  ", "col24": "12"}
        self.assertEqual(extract_number(row, FieldKind.FUEL_PCT), 12.0)

    def test_nan_cell_is_blank(self) -> None:
        row = {"fuelTankLevelPct": float("nan"), "col24": 5}
        self.assertEqual(extract_number(row, FieldKind.FUEL_PCT), 5.0)

    def test_unparseable_numeric_is_none(self) -> None:
        self.assertIsNone(extract_number({"generatorLoadFactorPct": "n/a"}, FieldKind.GEN_LOAD_PCT))

    def test_capacity_uses_first_number(self) -> None:
        self.assertEqual(extract_number({"GeneratorCapacity": "100 KVA"}, FieldKind.GENERATOR_CAPACITY), 100.0)
        self.assertEqual(extract_number({"capacity": "35KVA"}, FieldKind.GENERATOR_CAPACITY), 35.0)

    def test_text_is_stripped(self) -> None:
        self.assertEqual(extract_text({"City": "  Jeddah "}, FieldKind.CITY_NAME), "Jeddah")

    def test_unknown_kind_and_non_mapping_row(self) -> None:
        self.assertIsNone(extract_field({"x": 1}, "no_such_kind"))
        self.assertIsNone(extract_field(None, FieldKind.FUEL_PCT))
        self.assertEqual(extract_field(["Riyadh"], FieldKind.REGION_NAME), "")


class TestParsers(unittest.TestCase):
    def test_parse_number(self) -> None:
        self.assertEqual(parse_number("1,234"), 1234.0)
        self.assertEqual(parse_number("12.5 L"), 12.5)
        self.assertEqual(parse_number(-3), -3.0)
        self.assertIsNone(parse_number("abc"))
        self.assertIsNone(parse_number(True))
        self.assertIsNone(parse_number(float("inf")))
        self.assertIsNone(parse_number(None))

    def test_huge_integers_are_rejected(self) -> None:
        self.assertIsNone(parse_number(10**400))
        self.assertIsNone(parse_capacity(10**400))
        self.assertIsNone(parse_capacity("9" * 400 + " kVA"))
        self.assertIsNone(extract_field({"fuelTankLevelPct": 10**400}, FieldKind.FUEL_PCT))
        self.assertEqual(extract_number({"fuelTankLevelPct": 10**400, "col24": 7}, FieldKind.FUEL_PCT), 7.0)

    def test_parse_capacity(self) -> None:
        self.assertEqual(parse_capacity("500 kVA"), 500.0)
        self.assertEqual(parse_capacity("Gen 62.5KVA"), 62.5)
        self.assertIsNone(parse_capacity("unknown"))
        self.assertIsNone(parse_capacity(False))


class TestStatus(unittest.TestCase):
    def test_active_statuses(self) -> None:
        for raw in ("ON-AIR", "on air", "  On   Air ", "In Progress", "inprogress", "ONAIR"):
            with self.subTest(raw=raw):
                self.assertEqual(normalize_status(raw), "active")

    def test_inactive_statuses(self) -> None:
        for raw in ("OFF-AIR", "Decommissioned", "in-progress", "", None):
            with self.subTest(raw=raw):
                self.assertEqual(normalize_status(raw), "inactive")

    def test_is_active_reads_status_aliases(self) -> None:
        self.assertTrue(is_active({"COWStatus": "ON-AIR"}))
        self.assertTrue(is_active({"status": "in progress"}))
        self.assertFalse(is_active({"Status": "OFF-AIR"}))
        self.assertFalse(is_active({}))


if __name__ == "__main__":
    unittest.main()
