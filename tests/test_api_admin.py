"""API tests for /api/v1/admin and the admin guard."""

import uuid

import pytest
from sqlalchemy import func, select

from rasta.models.otp import OtpEmail
from rasta.models.user import AccountType
from rasta.services.otp_service import EmailVerificationService

from conftest import auth_header, create_user, login

BASE = "/api/v1/admin"


@pytest.fixture
def admin(app, app_db):
    return create_user(
        app_db, app.state.hasher, username="root", email="root@example.com", account=AccountType.ADMIN
    )


@pytest.fixture
def admin_headers(client, admin):
    return auth_header(login(client, "root"))


@pytest.fixture
def member(app, app_db):
    return create_user(app_db, app.state.hasher)


class TestAdminGuard:
    def test_no_token(self, client) -> None:
        assert client.get(f"{BASE}/users").status_code == 401

    def test_non_admin_forbidden(self, client, member) -> None:
        headers = auth_header(login(client, "johndoe"))
        resp = client.get(f"{BASE}/users", headers=headers)
        assert resp.status_code == 403
        assert resp.json() == {"status": "error", "message": "forbidden"}

    def test_token_for_unknown_user(self, client, app) -> None:
        token = app.state.token_codec.generate_token("ghost@example.com", str(uuid.uuid4()))
        assert client.get(f"{BASE}/users", headers=auth_header(token)).status_code == 401


class TestDirectory:
    def test_list_and_count(self, client, app, app_db, admin_headers) -> None:
        for i in range(11):
            create_user(app_db, app.state.hasher, username=f"user{i:02d}", email=f"u{i}@example.com")

        resp = client.get(f"{BASE}/users/count", headers=admin_headers)
        assert resp.json()["data"] == {"user_count": 12}

        data = client.get(f"{BASE}/users", headers=admin_headers).json()["data"]
        assert (data["limit"], data["page"], len(data["users"])) == (10, 1, 10)
        assert "email" in data["users"][0]

        data = client.get(f"{BASE}/users?limit=5&page=3", headers=admin_headers).json()["data"]
        assert len(data["users"]) == 2

        data = client.get(f"{BASE}/users?limit=0&page=-2", headers=admin_headers).json()["data"]
        assert (data["limit"], data["page"]) == (10, 1)

    def test_get_user(self, client, admin_headers, member) -> None:
        resp = client.get(f"{BASE}/users/{member.id}", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["email"] == "john@example.com"
        assert data["oauth"] == {"enabled": False}

        resp = client.get(f"{BASE}/users/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "user not found"


class TestLifecycle:
    def test_disable_and_enable(self, client, admin_headers, member) -> None:
        assert client.put(f"{BASE}/users/{member.id}/disable", headers=admin_headers).status_code == 200
        resp = client.post("/api/v1/users/login", json={"username": "johndoe", "password": "Abcdefg1!"})
        assert resp.status_code == 403

        assert client.put(f"{BASE}/users/{member.id}/enable", headers=admin_headers).status_code == 200
        assert login(client, "johndoe")

    def test_cannot_disable_self(self, client, admin, admin_headers) -> None:
        resp = client.put(f"{BASE}/users/{admin.id}/disable", headers=admin_headers)
        assert resp.status_code == 403

    def test_disable_unknown_user(self, client, admin_headers) -> None:
        resp = client.put(f"{BASE}/users/{uuid.uuid4()}/disable", headers=admin_headers)
        assert resp.status_code == 404

    def test_delete_cascades(self, client, app, app_db, admin_headers) -> None:
        pending = create_user(app_db, app.state.hasher, username="pending", email="p@example.com", verified=False)
        EmailVerificationService(
            app_db, app.state.settings, app.state.hasher, app.state.email_sender
        ).generate(pending)

        resp = client.delete(f"{BASE}/users/{pending.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert app_db.execute(select(func.count()).select_from(OtpEmail)).scalar_one() == 0
        assert client.get(f"{BASE}/users/{pending.id}", headers=admin_headers).status_code == 404
