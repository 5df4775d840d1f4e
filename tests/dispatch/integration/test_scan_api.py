"""Integration tests for the scan API endpoints via TestClient."""

import json

import pytest
from dispatch.api.routes import register_dispatch_exception_handlers, scan_router
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(scan_router)
    register_dispatch_exception_handlers(app)
    return TestClient(app)


def _generate(client, order_id="ord-api-001", order_number="ORD-2001"):
    response = client.post(f"/api/scan/generate/{order_id}", json={"order_number": order_number})
    assert response.status_code == 201
    return response.json()


class TestGenerateTrackingAPI:
    def test_generate_returns_tracking(self, client):
        body = _generate(client)
        assert body["tracking_id"].startswith("TRK-")
        assert body["tracking_url"].endswith(body["tracking_id"])
        qr = json.loads(body["qr_payload"])
        assert qr["trackingId"] == body["tracking_id"]
        assert qr["orderNumber"] == "ORD-2001"

    def test_generate_without_body(self, client):
        response = client.post("/api/scan/generate/ord-api-002")
        assert response.status_code == 201

    def test_generate_is_idempotent_per_order(self, client):
        assert _generate(client)["tracking_id"] == _generate(client)["tracking_id"]


class TestParseAPI:
    def test_parse_canonical(self, client):
        response = client.post("/api/scan/parse", json={"raw": "TRK-882-X91"})
        assert response.status_code == 200
        assert response.json()["format"] == "canonical"
        assert response.json()["tracking_id"] == "TRK-882-X91"

    def test_parse_structured(self, client):
        raw = json.dumps({"trackingId": "TRK-882-X91", "orderNumber": "ORD-1"})
        response = client.post("/api/scan/parse", json={"raw": raw})
        assert response.json()["format"] == "structured"
        assert response.json()["order_number"] == "ORD-1"

    def test_parse_structured_numeric_tracking_id(self, client):
        raw = json.dumps({"trackingId": 12345})
        response = client.post("/api/scan/parse", json={"raw": raw})
        assert response.status_code == 200
        assert response.json()["format"] == "structured"
        assert response.json()["tracking_id"] == "12345"

    def test_parse_lowercase_is_rejected(self, client):
        response = client.post("/api/scan/parse", json={"raw": "trk-882-x91"})
        assert response.status_code == 400


class TestRecordScanAPI:
    def test_record_with_camel_case_payload(self, client):
        tracking_id = _generate(client)["tracking_id"]
        response = client.post(
            "/api/scan",
            json={"trackingId": tracking_id, "status": "PICKED_UP", "lat": -1.2921, "lng": 36.8219},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PICKED_UP"
        assert body["sequence"] == 2
        assert body["latitude"] == -1.2921

    def test_record_from_raw_scan(self, client):
        tracking_id = _generate(client)["tracking_id"]
        raw = json.dumps({"trackingId": tracking_id})
        response = client.post("/api/scan", json={"raw": raw, "status": "PICKED_UP"})
        assert response.status_code == 201
        assert response.json()["tracking_id"] == tracking_id

    def test_record_from_raw_scan_with_numeric_tracking_id(self, client):
        raw = json.dumps({"trackingId": 12345})
        response = client.post("/api/scan", json={"raw": raw, "status": "PICKED_UP"})
        assert response.status_code == 201
        assert response.json()["tracking_id"] == "12345"
        assert response.json()["status"] == "PICKED_UP"

        info = client.get("/api/scan/12345")
        assert info.status_code == 200
        assert info.json()["current_status"] == "PICKED_UP"

    def test_illegal_transition_returns_400(self, client):
        client.post("/api/scan", json={"tracking_id": "TRK-882-X91", "status": "PICKED_UP"})
        response = client.post("/api/scan", json={"tracking_id": "TRK-882-X91", "status": "DELIVERED"})
        assert response.status_code == 400

    def test_unknown_status_returns_400(self, client):
        response = client.post("/api/scan", json={"tracking_id": "TRK-882-X91", "status": "LOST"})
        assert response.status_code == 400

    def test_missing_identifier_returns_400(self, client):
        response = client.post("/api/scan", json={"status": "PICKED_UP"})
        assert response.status_code == 400


class TestTrackingInfoAPI:
    def test_tracking_info(self, client):
        tracking_id = _generate(client)["tracking_id"]
        client.post("/api/scan", json={"tracking_id": tracking_id, "status": "PICKED_UP"})

        response = client.get(f"/api/scan/{tracking_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["current_status"] == "PICKED_UP"
        assert body["progress"] == 25
        assert body["allowed_next"] == ["IN_TRANSIT", "RETURNED"]
        assert body["is_terminal"] is False
        assert body["order_number"] == "ORD-2001"
        assert [h["status"] for h in body["history"]] == ["PENDING", "PICKED_UP"]

    def test_unknown_tracking_id_returns_404(self, client):
        response = client.get("/api/scan/TRK-ZZZ-999")
        assert response.status_code == 404
