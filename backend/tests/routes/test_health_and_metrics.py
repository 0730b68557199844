# backend/tests/routes/test_health_and_metrics.py
from fastapi.testclient import TestClient

from classbook.core.constants import API_VERSION


def test_health(client: TestClient):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["service"] == "classbook-api"
    assert body["version"] == API_VERSION


def test_metrics_exposes_booking_counters(client: TestClient, auth_headers_student, future_schedule):
    client.post(
        "/api/v1/bookings", json={"class_schedule_id": future_schedule.id}, headers=auth_headers_student
    )

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "classbook_" in response.text
