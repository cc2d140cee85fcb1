"""
tests/test_api.py

Router tests through FastAPI's TestClient.

The dashboard service and sheet row source are replaced through
``dependency_overrides``; no network, no scheduler.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.parsers.sheet_parser import parse_csv
from app.services.dashboard_service import get_dashboard_service, get_row_source
from tests.fakes import StaticRowSource, make_service, sample_rows


@pytest.fixture()
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    app.dependency_overrides[get_dashboard_service] = lambda: make_service(sample_rows())
    return TestClient(app)


@pytest.fixture()
def demo_client(app) -> TestClient:
    app.dependency_overrides[get_dashboard_service] = lambda: make_service([])
    return TestClient(app)


# ---------------------------------------------------------------------------
# Health and hierarchy
# ---------------------------------------------------------------------------


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_hierarchy_demo_catalog(demo_client: TestClient) -> None:
    body = demo_client.get("/hierarchy").json()
    assert len(body["regions"]) == 5
    assert body["cities"][0] == {"id": "riyadh", "name": "Riyadh", "regionId": "riy"}
    assert body["sites"][0]["cityId"] == "riyadh"
    assert body["sites"][0]["district"] == "Olaya"


def test_hierarchy_from_sheet_rows(client: TestClient) -> None:
    body = client.get("/hierarchy").json()
    assert [r["id"] for r in body["regions"]] == ["riyadh", "makkah"]
    assert "district" not in body["sites"][1]


# ---------------------------------------------------------------------------
# Sheet proxy
# ---------------------------------------------------------------------------


def test_sheet_requires_url(app) -> None:
    app.dependency_overrides[get_row_source] = lambda: StaticRowSource([], sheet_url=None)
    assert TestClient(app).get("/sheet").status_code == 400


def test_sheet_uses_configured_url(app) -> None:
    source = StaticRowSource([{"siteName": "A"}], sheet_url="https://example.com/s?output=csv")
    app.dependency_overrides[get_row_source] = lambda: source

    response = TestClient(app).get("/sheet")

    assert response.status_code == 200
    assert response.json() == [{"siteName": "A"}]
    assert source.requested == ["https://example.com/s?output=csv"]


def test_sheet_param_and_unreachable_sheet(app) -> None:
    source = StaticRowSource([], sheet_url=None)
    app.dependency_overrides[get_row_source] = lambda: source

    response = TestClient(app).get("/sheet", params={"sheet": "https://docs.google.com/spreadsheets/d/x/edit"})

    assert response.status_code == 200
    assert response.json() == []
    assert source.requested == ["https://docs.google.com/spreadsheets/d/x/edit"]


def test_sheet_rejects_non_http_scheme_with_empty_list(app) -> None:
    source = StaticRowSource([{"siteName": "A"}], sheet_url=None)
    app.dependency_overrides[get_row_source] = lambda: source

    response = TestClient(app).get("/sheet", params={"sheet": "file:///etc/passwd"})

    assert response.json() == []
    assert source.requested == []


# ---------------------------------------------------------------------------
# Dashboard views
# ---------------------------------------------------------------------------


def test_kpis_scope_params(client: TestClient) -> None:
    body = client.get("/kpis", params={"level": "region", "regionId": "makkah"}).json()
    assert body["scope"] == {"level": "region", "regionId": "makkah"}
    assert body["kpis"]["dieselLitersPerDay"]["value"] == 500


def test_current_aggregates(client: TestClient) -> None:
    assert client.get("/aggregates/current").json() == [{"name": "Today", "Riyadh": 8.0, "gen_Riyadh": 60.0}]
    assert client.get("/aggregates/current", params={"level": "city", "cityId": "jeddah"}).json() == []


def test_timeseries_validation(client: TestClient) -> None:
    assert client.get("/timeseries", params={"granularity": "hourly"}).status_code == 400
    assert client.get("/timeseries", params={"from": "2025-02-01", "to": "2025-01-01"}).status_code == 400
    assert client.get("/timeseries", params={"granularity": "yearly"}).json()["granularity"] == "yearly"


def test_breakdowns_benchmark_alerts(client: TestClient) -> None:
    assert client.get("/breakdown/region").json()["by"] == "region"
    assert client.get("/breakdown/site").json()["by"] == "site"
    assert len(client.get("/benchmark").json()["points"]) == 2
    items = client.get("/alerts").json()["items"]
    assert [i["kind"] for i in items] == ["fuel_low"]


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------


def test_accumulative(client: TestClient) -> None:
    response = client.get("/trends/accumulative", params={"start": "2025-01", "end": "2025-03", "cities": "Riyadh,Jeddah"})

    assert response.status_code == 200
    body = response.json()
    assert [p["month"] for p in body] == ["2025-01", "2025-02", "2025-03"]
    assert set(body[0]["perCity"]["Riyadh"]) == {"fuelLiters", "co2Tons", "powerKwh"}


@pytest.mark.parametrize("params", [{"start": "2025-13"}, {"end": "soon"}])
def test_accumulative_rejects_bad_month(client: TestClient, params: dict) -> None:
    assert client.get("/trends/accumulative", params=params).status_code == 400


def test_anomalies(client: TestClient) -> None:
    body = client.get("/trends/anomalies", params={"values": "1,1,1,1,10", "threshold": "1.5"}).json()
    assert [a["index"] for a in body["anomalies"]] == [4]
    assert body["mean"] == pytest.approx(2.8)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def test_export_breakdown_csv(client: TestClient) -> None:
    response = client.get("/export/csv", params={"dataset": "breakdown"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="breakdown_export.csv"' in response.headers["content-disposition"]
    assert parse_csv(response.text) == [
        {"key": "riyadh", "name": "Riyadh", "dieselLiters": "1000", "energyKwh": "9600"},
        {"key": "makkah", "name": "Makkah", "dieselLiters": "500", "energyKwh": "2400"},
    ]


def test_export_rejects_unknown_dataset(client: TestClient) -> None:
    assert client.get("/export/csv", params={"dataset": "records"}).status_code == 400
    assert client.get("/export/csv", params={"dataset": "breakdown", "by": "planet"}).status_code == 400
