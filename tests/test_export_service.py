from __future__ import annotations

import unittest

from aggregation.scope import Scope
from app.parsers.sheet_parser import parse_csv
from app.services.export_service import ExportResult, ExportService, iter_csv_lines, to_csv
from tests.fakes import make_service, sample_rows


class TestToCSV(unittest.TestCase):
    def test_quotes_every_field_and_doubles_quotes(self) -> None:
        rows = [{"name": 'COW "A"', "fuel": 57.5, "note": None}]
        self.assertEqual(to_csv(rows), '"name","fuel","note"\n"COW ""A""","57.5",""')

    def test_header_comes_from_first_row(self) -> None:
        rows = [{"a": "1", "b": "2"}, {"b": "3", "c": "4"}]
        self.assertEqual(to_csv(rows), '"a","b"\n"1","2"\n"","3"')

    def test_empty(self) -> None:
        self.assertEqual(to_csv([]), "")

    def test_round_trips_through_parser(self) -> None:
        rows = [
            {"siteName": "Riyadh, COW-001", "status": 'say "on"', "district": ""},
            {"siteName": "Jeddah COW-001", "status": "OFF-AIR", "district": "Jeddah"},
        ]
        self.assertEqual(parse_csv(to_csv(rows)), rows)

    def test_round_trips_blank_and_padded_rows(self) -> None:
        rows = [{"a": "x", "b": "y"}, {"a": "", "b": ""}, {"a": " padded ", "b": "\tz"}]
        self.assertEqual(parse_csv(to_csv(rows)), rows)

    def test_streamed_lines_match_to_csv(self) -> None:
        rows = [{"a": "1", "b": None}]
        streamed = "".join(iter_csv_lines(ExportResult(rows=rows, fields=["a", "b"])))
        self.assertEqual(streamed.rstrip("\n"), to_csv(rows))
        self.assertEqual(list(iter_csv_lines(ExportResult())), [])


class TestExportService(unittest.TestCase):
    def setUp(self) -> None:
        self.service = ExportService(make_service(sample_rows()))

    def test_aggregates(self) -> None:
        result = self.service.export("aggregates", scope=Scope())
        self.assertEqual(result.fields, ["name", "Riyadh", "gen_Riyadh"])
        self.assertEqual(result.rows[0]["name"], "Today")

    def test_accumulative_wide_rows(self) -> None:
        result = self.service.export("accumulative", scope=Scope(), start="2025-01", end="2025-02", cities=["Abha"])
        self.assertEqual(
            result.fields,
            ["date", "fuel_consumption_L_Abha", "co2_emissions_tons_Abha", "power_consumption_kWh_Abha"],
        )
        self.assertEqual(len(result.rows), 2)

    def test_breakdown_by_site(self) -> None:
        result = self.service.export("breakdown", scope=Scope(), by="site")
        self.assertEqual([row["key"] for row in result.rows], ["ryd-cow-1", "jed-cow-1"])

    def test_unknown_dataset(self) -> None:
        with self.assertRaises(ValueError):
            self.service.export("records", scope=Scope())


if __name__ == "__main__":
    unittest.main()
