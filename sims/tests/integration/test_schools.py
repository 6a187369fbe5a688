"""
tests/integration/test_schools.py - /schools endpoints.

School registration provisions the tenant's first admin. When provisioning
fails, the school row must not survive.
"""

from __future__ import annotations

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from sims.app.extensions import db
from sims.app.models.school import School

from .conftest import (
    access_token,
    admin_token,
    auth_headers,
    login,
    make_school,
    register,
    school_payload,
)


def _school_count(app) -> int:
    with app.app_context():
        return db.session.query(School).count()


# ═══════════════════════════════════════════════════════════════════════════
# POST /schools
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateSchool:

    def test_create_school_provisions_admin(self, client, sent_emails):
        data = make_school(client)

        school = data["school"]
        admin = data["admin"]
        assert school["email"] == "office@greenvalley.test"
        assert len(school["tenant_id"]) == 36
        assert admin["role"] == "admin"
        assert admin["tenant_id"] == school["tenant_id"]
        assert "admin_password" not in school

        assert sent_emails[0][0] == "admin@greenvalley.test"
        assert sent_emails[0][1] == "SIMS Registration"

    def test_admin_is_listed_under_new_tenant(self, client):
        token, school = admin_token(client)

        resp = client.get(
            f"/api/v1/users/?tenant_id={school['tenant_id']}",
            headers=auth_headers(token),
        )

        assert resp.status_code == 200
        results = resp.get_json()["data"]["results"]
        assert [u["email"] for u in results] == ["admin@greenvalley.test"]
        assert results[0]["role"] == "admin"

    def test_admin_can_log_in_after_registration(self, client):
        make_school(client)
        data = login(client, "admin@greenvalley.test")
        assert data["user"]["role"] == "admin"

    def test_tenant_id_is_generated_per_school(self, client):
        first = make_school(client)
        second = make_school(
            client,
            email="office@hillside.test",
            admin_email="admin@hillside.test",
        )
        assert first["school"]["tenant_id"] != second["school"]["tenant_id"]

    def test_duplicate_school_email_returns_400(self, app, client):
        make_school(client)
        resp = client.post(
            "/api/v1/schools/",
            json=school_payload(admin_email="other-admin@test.com"),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "DUPLICATE_EMAIL"
        assert error["message"] == "School email is already taken"
        assert _school_count(app) == 1

    def test_taken_admin_email_removes_school(self, app, client):
        register(client, email="taken@test.com")

        resp = client.post("/api/v1/schools/", json=school_payload(admin_email="taken@test.com"))

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "DUPLICATE_EMAIL"
        assert error["field"] == "admin_email"
        assert _school_count(app) == 0

    def test_database_failure_returns_500(self, app, client):
        with patch(
            "sims.app.services.user_service.insert_user",
            side_effect=OperationalError("INSERT", {}, Exception("db down")),
        ):
            resp = client.post("/api/v1/schools/", json=school_payload())

        assert resp.status_code == 500
        error = resp.get_json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == "Error creating school"
        assert _school_count(app) == 0

    def test_tenant_id_in_body_is_rejected(self, client):
        body = school_payload()
        body["tenant_id"] = "chosen-by-client"
        resp = client.post("/api/v1/schools/", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "tenant_id"


# ═══════════════════════════════════════════════════════════════════════════
# GET /schools
# ═══════════════════════════════════════════════════════════════════════════

class TestReadSchools:

    def test_list_is_public_and_paginated(self, client):
        make_school(client)
        make_school(client, name="Hillside", email="office@hillside.test", admin_email="a@hillside.test")

        resp = client.get("/api/v1/schools/?sort_by=name:desc&limit=1")

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["total_results"] == 2
        assert data["total_pages"] == 2
        assert data["results"][0]["name"] == "Hillside"

    def test_filter_by_name(self, client):
        make_school(client)
        make_school(client, name="Hillside", email="office@hillside.test", admin_email="a@hillside.test")

        resp = client.get("/api/v1/schools/?name=Hillside")
        results = resp.get_json()["data"]["results"]
        assert [s["name"] for s in results] == ["Hillside"]

    def test_get_by_id(self, client):
        school = make_school(client)["school"]
        resp = client.get(f"/api/v1/schools/{school['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["tenant_id"] == school["tenant_id"]

    def test_get_missing_returns_404(self, client):
        resp = client.get("/api/v1/schools/424242")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "SCHOOL_NOT_FOUND"

    def test_get_by_tenant_requires_auth(self, client):
        school = make_school(client)["school"]
        resp = client.get(f"/api/v1/schools/tenant/{school['tenant_id']}")
        assert resp.status_code == 401

    def test_get_by_tenant_and_email(self, client):
        token, school = admin_token(client)
        headers = auth_headers(token)

        by_tenant = client.get(f"/api/v1/schools/tenant/{school['tenant_id']}", headers=headers)
        by_email = client.get("/api/v1/schools/email/OFFICE@greenvalley.test", headers=headers)

        assert by_tenant.get_json()["data"]["id"] == school["id"]
        assert by_email.get_json()["data"]["id"] == school["id"]

    def test_get_by_unknown_tenant_returns_404(self, client):
        token, _ = admin_token(client)
        resp = client.get("/api/v1/schools/tenant/no-such-tenant", headers=auth_headers(token))
        assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# PATCH / DELETE /schools/:id
# ═══════════════════════════════════════════════════════════════════════════

class TestManageSchool:

    def test_admin_updates_own_school(self, client):
        token, school = admin_token(client)
        resp = client.patch(
            f"/api/v1/schools/{school['id']}",
            json={"name": "Green Valley Academy", "secondary": "JSS 1-3"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["name"] == "Green Valley Academy"
        assert data["secondary"] == "JSS 1-3"
        assert data["tenant_id"] == school["tenant_id"]

    def test_admin_of_other_tenant_is_forbidden(self, client):
        _, school = admin_token(client)
        other_token, _ = admin_token(
            client,
            name="Hillside",
            email="office@hillside.test",
            admin_email="admin@hillside.test",
        )
        resp = client.patch(
            f"/api/v1/schools/{school['id']}",
            json={"name": "Taken Over"},
            headers=auth_headers(other_token),
        )
        assert resp.status_code == 403

    def test_plain_user_is_forbidden(self, client):
        school = make_school(client)["school"]
        user = register(client, tenant_id=school["tenant_id"])
        resp = client.patch(
            f"/api/v1/schools/{school['id']}",
            json={"name": "Renamed"},
            headers=auth_headers(access_token(user)),
        )
        assert resp.status_code == 403

    def test_update_to_taken_email_returns_400(self, client):
        token, school = admin_token(client)
        make_school(client, name="Hillside", email="office@hillside.test", admin_email="a@hillside.test")
        resp = client.patch(
            f"/api/v1/schools/{school['id']}",
            json={"email": "office@hillside.test"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "DUPLICATE_EMAIL"

    def test_delete_school(self, app, client):
        token, school = admin_token(client)
        resp = client.delete(f"/api/v1/schools/{school['id']}", headers=auth_headers(token))
        assert resp.status_code == 204
        assert _school_count(app) == 0

    def test_update_trims_text_fields(self, client):
        token, school = admin_token(client)
        resp = client.patch(
            f"/api/v1/schools/{school['id']}",
            json={"name": "  Green Valley Academy ", "secondary": " JSS 1-3 "},
            headers=auth_headers(token),
        )
        data = resp.get_json()["data"]
        assert data["name"] == "Green Valley Academy"
        assert data["secondary"] == "JSS 1-3"
