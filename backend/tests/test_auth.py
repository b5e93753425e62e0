"""Tests for registration, login, tokens and role guards."""

import jwt
import pytest

from config import app_config
from exceptions import AuthenticationError, ValidationError
from services.auth_service import (
    create_access_token,
    decode_access_token,
    hash_password,
    resolve_role,
    verify_password,
)

from conftest import TEST_PASSWORD


class TestPasswords:

    def test_hash_verifies_only_the_original_password(self):
        hashed = hash_password("correct horse")

        assert hashed.startswith("$argon2id$")
        assert verify_password(hashed, "correct horse")
        assert not verify_password(hashed, "wrong horse")

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("not-a-hash", "anything")


class TestTokens:

    def test_token_carries_subject_and_role(self, homeowner):
        token = create_access_token(homeowner)

        payload = jwt.decode(token, app_config.JWT_SECRET_KEY, algorithms=["HS256"])
        assert payload["sub"] == homeowner.id
        assert payload["role"] == "homeowner"
        assert payload["exp"] > payload["iat"]
        assert decode_access_token(token) == homeowner.id

    def test_expired_token_is_rejected(self, homeowner):
        token = create_access_token(homeowner, expires_minutes=-1)

        with pytest.raises(AuthenticationError, match="expired"):
            decode_access_token(token)

    def test_token_signed_with_another_key_is_rejected(self, homeowner):
        token = jwt.encode({"sub": homeowner.id, "exp": 9999999999}, "another-key", algorithm="HS256")

        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(token)


class TestResolveRole:

    @pytest.mark.parametrize("requested,expected", [
        ("homeowner", ("homeowner", None)),
        ("company_admin", ("company_admin", None)),
        ("professional", ("professional", None)),
        ("architect", ("professional", "architect")),
        ("Interior-Designer", ("professional", "interior-designer")),
    ])
    def test_known_roles(self, requested, expected):
        assert resolve_role(requested) == expected

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError):
            resolve_role("admin")

    def test_unknown_role(self):
        with pytest.raises(ValidationError, match="Unknown role"):
            resolve_role("landlord")


class TestRegisterEndpoint:

    def test_register_returns_token_and_user(self, client):
        response = client.post("/api/register", json={
            "name": "  Priya  ",
            "email": "Priya@Example.com",
            "password": "longenough",
            "role": "homeowner",
            "location": "Pune",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email"] == "priya@example.com"
        assert body["user"]["name"] == "Priya"
        assert body["user"]["role"] == "homeowner"
        assert "_id" in body["user"]
        assert "passwordHash" not in body["user"]

    def test_auth_prefixed_route_registers_professional_type(self, client):
        response = client.post("/api/auth/register", json={
            "name": "Kiran", "email": "kiran@example.com", "password": "longenough", "role": "contractor",
        })

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["role"] == "professional"
        assert user["professionalType"] == "contractor"

    def test_duplicate_email_conflicts(self, client, homeowner):
        response = client.post("/api/register", json={
            "name": "Again", "email": homeowner.email.upper(), "password": "longenough",
        })

        assert response.status_code == 409
        assert response.json()["message"] == "User already exists with this email"

    @pytest.mark.parametrize("payload", [
        {"name": "A", "email": "not-an-email", "password": "longenough"},
        {"name": "A", "email": "a@example.com", "password": "short"},
        {"name": "   ", "email": "a@example.com", "password": "longenough"},
    ])
    def test_invalid_payload_is_a_bad_request(self, client, payload):
        response = client.post("/api/register", json=payload)

        assert response.status_code == 400
        assert response.json()["message"]

    def test_admin_role_is_a_bad_request(self, client):
        response = client.post("/api/register", json={
            "name": "Eve", "email": "eve@example.com", "password": "longenough", "role": "admin",
        })

        assert response.status_code == 400


class TestLoginEndpoint:

    def test_login_with_valid_credentials(self, client, homeowner):
        response = client.post("/api/auth/login", json={"email": homeowner.email, "password": TEST_PASSWORD})

        assert response.status_code == 200
        assert decode_access_token(response.json()["token"]) == homeowner.id

    def test_wrong_password_is_unauthorized(self, client, homeowner):
        response = client.post("/api/auth/login", json={"email": homeowner.email, "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_deactivated_account_cannot_login(self, client, make_user):
        user = make_user("homeowner", is_active=False)

        response = client.post("/api/auth/login", json={"email": user.email, "password": TEST_PASSWORD})

        assert response.status_code == 401


class TestProfileEndpoint:

    def test_profile_requires_token(self, client):
        response = client.get("/api/users/profile")

        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"

    def test_garbage_token_is_unauthorized(self, client):
        response = client.get("/api/users/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_get_and_update_profile(self, client, homeowner, auth):
        headers = auth(homeowner)

        assert client.get("/api/users/profile", headers=headers).json()["name"] == "Asha Homeowner"

        response = client.put("/api/users/profile", json={"phone": "+91 98200 00000", "location": "Mumbai"},
                              headers=headers)

        assert response.status_code == 200
        assert response.json()["phone"] == "+91 98200 00000"
        assert response.json()["location"] == "Mumbai"
        assert response.json()["name"] == "Asha Homeowner"

    def test_token_of_deleted_user_is_unauthorized(self, client, make_user, db_session, auth):
        user = make_user("homeowner")
        headers = auth(user)
        db_session.delete(user)
        db_session.commit()

        assert client.get("/api/users/profile", headers=headers).status_code == 401


class TestRoleGuard:

    def test_wrong_role_is_forbidden(self, client, homeowner, auth):
        response = client.get("/api/admin/overview", headers=auth(homeowner))

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied"
