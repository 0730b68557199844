# backend/tests/routes/test_catalog_and_profile_routes.py
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient


class TestCatalogRoutes:
    def test_upcoming_classes_are_public(self, client: TestClient, make_schedule):
        upcoming = make_schedule(start_time=datetime.now(timezone.utc) + timedelta(days=1), capacity=6)
        make_schedule(start_time=datetime.now(timezone.utc) - timedelta(days=1))

        response = client.get("/api/v1/classes")

        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body] == [upcoming.id]
        assert body[0]["spots_left"] == 6
        assert body[0]["instructor"]["name"] == "Test Instructor"

    def test_class_details_and_missing(self, client: TestClient, future_schedule):
        found = client.get(f"/api/v1/classes/{future_schedule.id}")
        missing = client.get("/api/v1/classes/01ARZ3NDEKTSV4RRFFQ69G5FAV")

        assert found.status_code == 200
        assert found.json()["class_type"]["credit_cost"] == 2
        assert missing.status_code == 404
        assert missing.json()["detail"]["code"] == "SCHEDULE_NOT_FOUND"

    def test_class_types_and_instructors(self, client: TestClient, make_class_type, make_instructor):
        make_class_type(name="Barre")
        make_instructor(name="Lee")

        assert [c["name"] for c in client.get("/api/v1/class-types").json()] == ["Barre"]
        assert [i["name"] for i in client.get("/api/v1/instructors").json()] == ["Lee"]

    def test_materials_for_booked_attendees(
        self, client: TestClient, auth_headers_student, future_schedule, make_material
    ):
        material = make_material(future_schedule, title="Pre-class stretches")
        url = f"/api/v1/classes/{future_schedule.id}/materials"

        refused = client.get(url, headers=auth_headers_student)
        booked = client.post(
            "/api/v1/bookings",
            json={"class_schedule_id": future_schedule.id},
            headers=auth_headers_student,
        )
        allowed = client.get(url, headers=auth_headers_student)

        assert refused.status_code == 403
        assert refused.json()["detail"]["code"] == "NOT_BOOKED"
        assert booked.status_code == 201
        assert allowed.status_code == 200
        assert allowed.json() == [
            {
                "id": material.id,
                "class_schedule_id": future_schedule.id,
                "title": "Pre-class stretches",
                "url": material.url,
                "created_at": allowed.json()[0]["created_at"],
            }
        ]

    def test_materials_need_a_login(self, client: TestClient, future_schedule):
        assert client.get(f"/api/v1/classes/{future_schedule.id}/materials").status_code == 401


class TestProfileRoutes:
    def test_update_own_contact_details(self, client: TestClient, auth_headers_student):
        response = client.patch(
            "/api/v1/profiles/me",
            json={"phone": "555-0199", "bio": "Runner"},
            headers=auth_headers_student,
        )

        assert response.status_code == 200
        assert response.json()["phone"] == "555-0199"
        assert response.json()["credit_balance"] == 10

    def test_balance_is_not_editable(self, client: TestClient, auth_headers_student):
        response = client.patch(
            "/api/v1/profiles/me", json={"credit_balance": 999}, headers=auth_headers_student
        )

        assert response.status_code == 422

    def test_student_cannot_edit_someone_else(
        self, client: TestClient, auth_headers_student, make_profile
    ):
        other = make_profile()

        response = client.patch(
            f"/api/v1/profiles/{other.id}", json={"bio": "x"}, headers=auth_headers_student
        )

        assert response.status_code == 403

    def test_admin_can_edit_someone_else(self, client: TestClient, auth_headers_admin, test_student):
        response = client.patch(
            f"/api/v1/profiles/{test_student.id}",
            json={"company_name": "Acme"},
            headers=auth_headers_admin,
        )

        assert response.status_code == 200
        assert response.json()["company_name"] == "Acme"
