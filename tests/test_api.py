from __future__ import annotations

from fastapi.testclient import TestClient

from solar_string_sizer.api import dependencies
from solar_string_sizer.api.app import create_app
from solar_string_sizer.application import SizingApplication
from solar_string_sizer.persistence import PersistenceService


def create_test_client(persistence: PersistenceService) -> TestClient:
    """Build a FastAPI test client with dependency overrides for persistence."""
    app = create_app()

    def get_app_service() -> SizingApplication:
        return SizingApplication(persistence=persistence, save_reports=False)

    app.dependency_overrides[dependencies.get_application_service] = get_app_service
    app.dependency_overrides[dependencies.get_persistence_service] = lambda: persistence
    return TestClient(app)


def test_api_sizing_and_history(persistence: PersistenceService, sizing_payload: dict):
    """Exercise /api/sizing and the history endpoints."""
    client = create_test_client(persistence)
    resp = client.post("/api/sizing", json=sizing_payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["result"]["min_modules"] == 6
    assert data["result"]["max_modules"] == 18
    assert data["result"]["is_compatible"] is True
    assert data["suggested_string_length"] == 18

    history = client.get("/api/history").json()
    assert len(history) == 1
    assert history[0]["id"] == data["history_id"]
    assert history[0]["label"] == "Test Module 550W"

    entry = client.get(f"/api/history/{data['history_id']}")
    assert entry.status_code == 200
    assert entry.json()["inputs"]["inverter"]["max_input_voltage"] == 1000

    assert client.delete(f"/api/history/{data['history_id']}").status_code == 204
    assert client.get(f"/api/history/{data['history_id']}").status_code == 404
    assert client.delete(f"/api/history/{data['history_id']}").status_code == 404


def test_api_sizing_reports_diagnostics(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    sizing_payload["module"]["voc"] = 0
    sizing_payload["record"] = False

    resp = client.post("/api/sizing", json=sizing_payload)
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["is_compatible"] is False
    assert result["error_fields"] == ["module.voc"]
    assert result["issues"][0]["code"] == "not_positive"
    assert client.get("/api/history").json() == []


def test_api_sizing_by_name(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    created = client.post("/api/inverters", json=sizing_payload["inverter"])
    assert created.status_code == 200
    assert created.json()["max_mppt_voltage"] == 850

    resp = client.post(
        "/api/sizing",
        json={
            "module_name": "Canadian Solar HiKu6 CS6W-550MS",
            "inverter_name": "Test Inverter",
            "site": sizing_payload["site"],
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["module"]["name"] == "Canadian Solar HiKu6 CS6W-550MS"
    assert data["result"]["max_modules"] == 18

    missing = client.post(
        "/api/sizing",
        json={"module_name": "Nope", "inverter_name": "Test Inverter", "site": sizing_payload["site"]},
    )
    assert missing.status_code == 404


def test_api_sizing_requires_equipment(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    resp = client.post("/api/sizing", json={"module": sizing_payload["module"], "site": sizing_payload["site"]})
    assert resp.status_code == 422


def test_api_catalog_modules(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    resp = client.post("/api/modules", json={**sizing_payload["module"], "manufacturer": "Acme"})
    assert resp.status_code == 200
    assert resp.json()["voc"] == 49.6

    invalid = client.post("/api/modules", json={**sizing_payload["module"], "vmp": 60})
    assert invalid.status_code == 422

    modules = client.get("/api/modules").json()
    assert [m["name"] for m in modules] == ["Test Module 550W"]
    assert modules[0]["manufacturer"] == "Acme"
    assert client.get("/api/inverters").json() == []


def test_api_presets(persistence: PersistenceService):
    client = create_test_client(persistence)
    presets = client.get("/api/presets/modules", params={"manufacturer": "Longi Solar"}).json()

    assert presets
    assert all(p["manufacturer"] == "Longi Solar" for p in presets)
    assert presets[0]["specs"]["voc"] > presets[0]["specs"]["vmp"]


def test_api_report_download(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    resp = client.post("/api/sizing/report", json={**sizing_payload, "display_name": "Roof A"})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert "Report_Roof_A.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")
    assert client.get("/api/history").json() == []


def test_api_extract_and_clear(persistence: PersistenceService, sizing_payload: dict):
    client = create_test_client(persistence)
    resp = client.post(
        "/api/extract/module",
        json={"text": "Open Circuit Voltage (Voc) 52.21 V", "base": sizing_payload["module"]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["extracted"] == {"voc": 52.21}
    assert "power" in data["missing_fields"]
    assert data["specs"]["voc"] == 52.21
    assert data["specs"]["vmp"] == 41.7

    assert client.post("/api/extract/battery", json={"text": ""}).status_code == 422

    client.post("/api/sizing", json=sizing_payload)
    client.post("/api/sizing", json=sizing_payload)
    cleared = client.delete("/api/history")
    assert cleared.json() == {"deleted": 2}
