"""
tests/integration/conftest.py - Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    points at in-memory SQLite unless TEST_DATABASE_URL says otherwise.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted so tests are isolated.
  - Outgoing email is patched out for every test; tests that care about the
    message assert on the `sent_emails` fixture.

Helper functions (not fixtures) are provided for common operations:
  - make_school(client, ...)    → {"school": {...}, "admin": {...}}
  - register(client, ...)       → {"user": {...}, "tokens": {...}}
  - make_user(app, ...)         → User row created directly (any role)
  - login(client, ...)          → {"user": {...}, "tokens": {...}}
  - auth_headers(token)         → {"Authorization": "Bearer <token>"}
  - admin_token(client, ...)    → access token of a fresh school admin
  - student_payload(tenant_id)  → a valid POST /students body

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from sims.app import create_app
from sims.app.extensions import db as _db

DEFAULT_PASSWORD = "Password1"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Steps:
      1. Create app with TestingConfig.
      2. Run db.create_all() to create all tables.
      3. Yield the app for the test session.
      4. Drop all tables at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows after every test.

    tokens are deleted before users so the order is FK-safe on databases
    that enforce foreign keys.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        from sqlalchemy import text
        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM tokens"))
            conn.execute(text("DELETE FROM students"))
            conn.execute(text("DELETE FROM users"))
            conn.execute(text("DELETE FROM schools"))
            conn.commit()


@pytest.fixture(autouse=True)
def sent_emails():
    """
    Replaces email delivery for every test and records each call as
    (to, subject, html).
    """
    outbox: list[tuple[str, str, str]] = []

    def _fake_send(to_email, subject, html_content):
        outbox.append((to_email, subject, html_content))
        return True

    with patch("sims.app.services.email_service.send_email", side_effect=_fake_send):
        yield outbox


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def school_payload(
    name: str = "Green Valley",
    email: str = "office@greenvalley.test",
    admin_email: str = "admin@greenvalley.test",
    admin_password: str = DEFAULT_PASSWORD,
) -> dict:
    return {
        "name": name,
        "email": email,
        "address": "1 School Road",
        "phone": "+1 555 0100",
        "primary": "Grades 1-5",
        "admin_first_name": "Ada",
        "admin_last_name": "Admin",
        "admin_email": admin_email,
        "admin_password": admin_password,
    }


def make_school(client, **kwargs) -> dict:
    """
    Registers a school (and its first admin) and returns the response data.
    Returns: {"school": {...}, "admin": {...}}
    """
    resp = client.post("/api/v1/schools/", json=school_payload(**kwargs))
    assert resp.status_code == 201, f"make_school failed: {resp.get_json()}"
    return resp.get_json()["data"]


def register(
    client,
    first_name: str = "Alice",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    tenant_id: str = "tenant-a",
) -> dict:
    """
    Registers a new `user`-role account and returns the full response data dict.
    Returns: {"user": {...}, "tokens": {"access": {...}, "refresh": {...}}}
    """
    if email is None:
        email = f"{first_name.lower()}@test.com"
    resp = client.post(
        "/api/v1/auth/register",
        json={
            "first_name": first_name,
            "last_name": "Tester",
            "email": email,
            "password": password,
            "tenant_id": tenant_id,
        },
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_user(
    app,
    first_name: str = "Alice",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    role: str = "user",
    tenant_id: str = "tenant-a",
) -> int:
    """Inserts a user directly through the service layer. Returns its id."""
    from sims.app.services import user_service

    if email is None:
        email = f"{first_name.lower()}@test.com"
    with app.app_context():
        user = user_service.insert_user(
            first_name=first_name,
            last_name="Tester",
            email=email,
            password=password,
            tenant_id=tenant_id,
            role=role,
            session=_db.session,
        )
        _db.session.commit()
        return user.id


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """
    Logs in a user and returns the response data dict.
    Returns: {"user": {...}, "tokens": {"access": {...}, "refresh": {...}}}
    """
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def access_token(data: dict) -> str:
    return data["tokens"]["access"]["token"]


def refresh_token(data: dict) -> str:
    return data["tokens"]["refresh"]["token"]


def admin_token(client, **school_kwargs) -> tuple[str, dict]:
    """
    Registers a school and logs its admin in.
    Returns: (access token, school dict)
    """
    created = make_school(client, **school_kwargs)
    session = login(client, created["admin"]["email"])
    return access_token(session), created["school"]


def student_payload(tenant_id: str, email: str = "kid@student.test", **overrides) -> dict:
    payload = {
        "name": "Sam Student",
        "guardian": "Pat Parent",
        "dob": "2015-04-01",
        "gender": "female",
        "religion": "none",
        "email": email,
        "address": "2 Home Street",
        "state": "Lagos",
        "country": "Nigeria",
        "class_name": "Primary 3",
        "section": "A",
        "student_no": "STU-001",
        "tenant_id": tenant_id,
    }
    payload.update(overrides)
    return payload
