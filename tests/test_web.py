#!/usr/bin/env python3
"""Tests for the Flask JSON API."""
from datetime import date

import pytest

from fleetmaint import FleetStore, MaintenanceRecord, MaintenanceRule, RecordStatus, Truck
from web.app import create_app

AS_OF = "asOf=2025-06-01"


@pytest.fixture
def store():
    trucks = [Truck("t1", "AB-101", "Volvo", "FH16", 2020, 51000, date(2025, 1, 1), status="maintenance")]
    rules = [
        MaintenanceRule("r-oil", "Engine oil", "oil_change", "mileage", 10000, priority="high"),
        MaintenanceRule("r-brakes", "Brake inspection", "brakes", "time", interval_days=170, priority="critical"),
    ]
    records = [
        MaintenanceRecord("m1", "t1", "oil_change", RecordStatus.COMPLETED, "r-oil",
                          completed_date=date(2025, 3, 1), mileage_at_service=40000),
        MaintenanceRecord("m2", "t1", "brakes", RecordStatus.PENDING, "r-brakes",
                          scheduled_date=date(2025, 6, 15)),
    ]
    return FleetStore(trucks, rules, records)


@pytest.fixture
def client(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app.test_client()


class TestAlerts:
    """Tests for the alert endpoints."""

    def test_overdue(self, client):
        response = client.get(f"/maintenance/alerts/overdue?{AS_OF}")
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["count"] == 1
        alert = body["data"][0]
        assert alert["ruleId"] == "r-oil"
        assert alert["status"] == "overdue"
        assert alert["kmRemaining"] == -1000
        assert alert["priority"] == "high"
        assert body["errors"] == []

    def test_pending_includes_open_record(self, client):
        body = client.get(f"/maintenance/alerts/pending?{AS_OF}").get_json()
        assert [a["ruleId"] for a in body["data"]] == ["r-brakes"]
        assert body["data"][0]["record"] == {"id": "m2", "status": "pending"}

    def test_open_creates_records_once(self, client):
        response = client.post(f"/maintenance/alerts/open?{AS_OF}")
        assert response.status_code == 201
        assert [r["ruleId"] for r in response.get_json()["data"]] == ["r-oil"]
        assert client.post(f"/maintenance/alerts/open?{AS_OF}").get_json()["count"] == 0


class TestRecords:
    """Tests for the maintenance record endpoints."""

    def test_list_with_filters(self, client):
        body = client.get("/maintenance?status=pending&vehicleId=t1").get_json()
        assert [r["id"] for r in body["data"]] == ["m2"]
        body = client.get("/maintenance?startDate=2025-06-01&endDate=2025-06-30").get_json()
        assert [r["id"] for r in body["data"]] == ["m2"]

    def test_list_invalid_status(self, client):
        assert client.get("/maintenance?status=lost").status_code == 400

    def test_schedule_and_conflict(self, client):
        payload = {"vehicleId": "t1", "ruleId": "r-oil", "scheduledDate": "2025-06-10"}
        response = client.post("/maintenance", json=payload)
        assert response.status_code == 201
        assert response.get_json()["data"]["status"] == "scheduled"
        assert client.post("/maintenance", json=payload).status_code == 409

    def test_schedule_missing_fields(self, client):
        assert client.post("/maintenance", json={"vehicleId": "t1"}).status_code == 400

    def test_get_record(self, client):
        assert client.get("/maintenance/m2").get_json()["data"]["ruleId"] == "r-brakes"
        assert client.get("/maintenance/nope").status_code == 404

    def test_complete_then_conflict(self, client, store):
        payload = {"mileageAtService": 51000, "completedDate": "2025-06-01", "cost": 120}
        response = client.patch("/maintenance/m2/complete", json=payload)
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["status"] == "completed"
        assert data["completedDate"] == "2025-06-01"
        assert store.get_truck("t1").status == "available"

        response = client.patch("/maintenance/m2/complete", json=payload)
        assert response.status_code == 409
        assert response.get_json()["success"] is False
        assert "already completed" in response.get_json()["error"]

    def test_complete_unknown(self, client):
        assert client.patch("/maintenance/nope/complete", json={}).status_code == 404

    def test_complete_invalid_mileage(self, client):
        response = client.patch("/maintenance/m2/complete", json={"mileageAtService": "lots"})
        assert response.status_code == 400


class TestRules:
    """Tests for the maintenance rule endpoints."""

    def test_list_sorted_by_priority(self, client):
        body = client.get("/maintenance-rules").get_json()
        assert [r["id"] for r in body["data"]] == ["r-brakes", "r-oil"]
        body = client.get("/maintenance-rules?category=brakes").get_json()
        assert body["count"] == 1

    def test_create_invalid(self, client):
        payload = {"name": "Service", "category": "service", "intervalType": "both", "intervalMileage": 30000}
        response = client.post("/maintenance-rules", json=payload)
        assert response.status_code == 400
        assert "intervalDays" in response.get_json()["error"]

    def test_create_update_delete(self, client):
        payload = {"name": "Coolant", "category": "coolant", "intervalType": "time", "intervalDays": 365}
        response = client.post("/maintenance-rules", json=payload)
        assert response.status_code == 201
        rule = response.get_json()["data"]
        assert rule["priority"] == "medium"
        assert rule["isActive"] is True

        response = client.put(f"/maintenance-rules/{rule['id']}", json={"priority": "low"})
        assert response.status_code == 200
        assert response.get_json()["data"]["priority"] == "low"
        assert response.get_json()["data"]["intervalDays"] == 365

        assert client.delete(f"/maintenance-rules/{rule['id']}").status_code == 200
        assert client.get(f"/maintenance-rules/{rule['id']}").status_code == 404

    def test_update_unknown(self, client):
        assert client.put("/maintenance-rules/nope", json={"priority": "low"}).status_code == 404

    def test_dashboard(self, client):
        body = client.get(f"/maintenance-rules/dashboard?{AS_OF}").get_json()
        assert body["summary"]["totalOverdue"] == 1
        assert body["summary"]["totalPending"] == 1
        assert body["data"] == [{"vehicleId": "t1", "overdue": 1, "upcoming": 1}]


class TestTrucks:
    def test_upcoming_maintenance(self, client):
        body = client.get(f"/trucks/t1/upcoming-maintenance?{AS_OF}").get_json()
        assert [a["ruleId"] for a in body["data"]] == ["r-oil", "r-brakes"]
        assert body["truck"]["plateNumber"] == "AB-101"

    def test_upcoming_unknown_truck(self, client):
        assert client.get("/trucks/nope/upcoming-maintenance").status_code == 404

    def test_update_mileage(self, client, store):
        response = client.patch("/trucks/t1/mileage", json={"mileage": 52000})
        assert response.status_code == 200
        assert store.get_truck("t1").mileage == 52000
        assert client.patch("/trucks/t1/mileage", json={"mileage": -1}).status_code == 400
