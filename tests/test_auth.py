import time
from datetime import timedelta

from jose import jwt

from inventory_api.config.settings import settings
from inventory_api.core.auth.service import AuthService
from inventory_api.shared.database.models import UserRole


class TestRegisterAndLogin:

    def test_register_then_login(self, client):
        register = client.post("/api/auth/register", json={
            "name": "Ana",
            "email": "ana@example.com",
            "password": "secret1",
        })
        assert register.status_code == 201
        assert register.json()["user"]["role"] == "USER"

        login = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret1"})

        assert login.status_code == 200
        body = login.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["last_login"] is not None

        payload = jwt.decode(body["access_token"], settings.secret_key, algorithms=[settings.algorithm])
        assert payload["email"] == "ana@example.com"
        assert payload["role"] == "USER"
        assert "id" in payload and "exp" in payload

    def test_duplicate_email_is_a_conflict(self, client, admin_user):
        response = client.post("/api/auth/register", json={
            "name": "Otro",
            "email": admin_user.email,
            "password": "secret1",
        })
        assert response.status_code == 409
        assert response.json()["error_code"] == "EMAIL_ALREADY_REGISTERED"

    def test_short_password(self, client):
        response = client.post("/api/auth/register", json={
            "name": "Ana",
            "email": "ana@example.com",
            "password": "123",
        })
        assert response.status_code == 400

    def test_wrong_password(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTHENTICATION_ERROR"

    def test_inactive_user_cannot_login(self, client, make_user):
        user = make_user(email="off@example.com", password="secret1", role=UserRole.USER, is_active=False)
        response = client.post("/api/auth/login", json={"email": user.email, "password": "secret1"})
        assert response.status_code == 401

    def test_login_form(self, client, admin_user):
        response = client.post("/api/auth/login-form", data={"username": admin_user.email, "password": "admin123"})
        assert response.status_code == 200
        assert response.json()["user"]["email"] == admin_user.email


class TestTokens:

    def test_token_expires_after_a_day_by_default(self, admin_user):
        token = AuthService.create_access_token(data={"id": admin_user.id, "email": admin_user.email, "role": admin_user.role})
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm], options={"verify_exp": False})
        lifetime = payload["exp"] - int(time.time())
        assert 24 * 3600 - 60 <= lifetime <= 24 * 3600 + 60

    def test_expired_token_is_rejected(self, client, admin_user):
        token = AuthService.create_access_token(
            data={"id": admin_user.id, "email": admin_user.email, "role": admin_user.role},
            expires_delta=timedelta(minutes=-1),
        )
        response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_verify(self, client, auth_headers, admin_user):
        response = client.get("/api/auth/verify", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["id"] == admin_user.id


class TestAccountEndpoints:

    def test_change_password(self, client, auth_headers, admin_user):
        response = client.post("/api/auth/change-password", json={
            "current_password": "admin123",
            "new_password": "nuevo123",
        }, headers=auth_headers)
        assert response.status_code == 200

        login = client.post("/api/auth/login", json={"email": admin_user.email, "password": "nuevo123"})
        assert login.status_code == 200

    def test_change_password_requires_current(self, client, auth_headers):
        response = client.post("/api/auth/change-password", json={
            "current_password": "wrong",
            "new_password": "nuevo123",
        }, headers=auth_headers)
        assert response.status_code == 401

    def test_logout(self, client, auth_headers):
        assert client.post("/api/auth/logout", headers=auth_headers).json()["success"] is True

    def test_users_list_is_admin_only(self, client, auth_headers, make_user, headers_for):
        regular = make_user(email="user@example.com", password="secret1", role=UserRole.USER)

        as_admin = client.get("/api/auth/users", headers=auth_headers)
        as_user = client.get("/api/auth/users", headers=headers_for(regular))

        assert as_admin.status_code == 200
        assert len(as_admin.json()["users"]) == 2
        assert as_user.status_code == 403
        assert as_user.json()["error_code"] == "AUTHORIZATION_ERROR"
