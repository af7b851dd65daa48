from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from blogapi.dependencies import get_token_issuer
from blogapi.main import app
from blogapi.models.user_model import User
from blogapi.services.token_store import TokenStore
from blogapi.services.tokens import TokenIssuer
from tests.conftest import ACCESS_KEYS, REFRESH_KEYS, cookie_header, generate_key_pair, refresh_cookie_from

REVOKED = {"success": False, "detail": "Token is expired or has been revoked"}


def test_created_existed_user(client):
    response = client.post("/auth/register", json={
        "username": "another_user",
        "email": "user@example.com",
        "password": "Password1!",
        "first_name": "Another",
        "last_name": "User",
    })
    assert response.status_code == 400
    assert response.json() == {"success": False, "detail": "Email is already in use"}


def test_created_user_with_taken_username(client):
    response = client.post("/auth/register", json={
        "username": "user_example",
        "email": "fresh@example.com",
        "password": "Password1!",
        "first_name": "Fresh",
        "last_name": "User",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Username is already in use"


@pytest.mark.parametrize("field, value", [
    ("username", "short"),
    ("username", "x" * 31),
    ("username", "later@example.com"),
    ("email", "not-an-email"),
    ("password", "12345"),
    ("first_name", "   "),
])
def test_created_user_with_validation_error(client, field, value):
    payload = {
        "username": "valid_user",
        "email": "valid@example.com",
        "password": "secret1",
        "first_name": "Valid",
        "last_name": "User",
    }
    payload[field] = value

    response = client.post("/auth/register", json=payload)
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", field]


@pytest.mark.parametrize("credentials", [
    {"email": "user@example.com", "password": "wrong-password"},
    {"email": "nobody@example.com", "password": "password"},
])
def test_login_failure_is_generic(client, credentials):
    response = client.post("/auth/login", json=credentials)

    assert response.status_code == 401
    assert response.json() == {"success": False, "detail": "Failed to login"}
    assert "set-cookie" not in response.headers


def test_refresh_without_cookie(client):
    response = client.post("/auth/refresh")
    assert response.status_code == 401


def test_refresh_with_valid_signature_but_not_in_store(client, db, issuer):
    user = db.get(User, 1)
    token = issuer.issue_refresh(user)

    response = client.post("/auth/refresh", headers=cookie_header(token))
    assert response.status_code == 403
    assert response.json() == REVOKED


def test_refresh_with_forged_token_in_store(client, db):
    forged_private_key, forged_public_key = generate_key_pair()
    forger = TokenIssuer(ACCESS_KEYS[0], ACCESS_KEYS[1], forged_private_key, forged_public_key)
    token = forger.issue_refresh(db.get(User, 1))
    TokenStore(db).record(1, token)

    response = client.post("/auth/refresh", headers=cookie_header(token))
    assert response.status_code == 403
    assert response.json() == REVOKED


def test_refresh_with_expired_token_is_removed_once(client, db):
    expired_issuer = TokenIssuer(ACCESS_KEYS[0], ACCESS_KEYS[1], REFRESH_KEYS[0], REFRESH_KEYS[1],
                                 refresh_lifetime=timedelta(seconds=-10))
    token = expired_issuer.issue_refresh(db.get(User, 1))
    store = TokenStore(db)
    store.record(1, token)

    response = client.post("/auth/refresh", headers=cookie_header(token))
    assert response.status_code == 403
    assert response.json() == REVOKED
    cleared = refresh_cookie_from(response)
    assert cleared is not None
    assert cleared["max-age"] == "0"
    assert not store.is_active(token)

    response = client.post("/auth/refresh", headers=cookie_header(token))
    assert response.status_code == 403
    assert response.json() == REVOKED
    assert not store.is_active(token)


def test_logout_without_cookie(client):
    response = client.post("/auth/logout")
    assert response.status_code == 204
    assert "max-age=0" in response.headers["set-cookie"].lower()


def test_logging_out_a_logged_out_user(client, logged_in_user):
    token, logout = logged_in_user
    logout()

    response = client.post("/auth/logout", headers=cookie_header(token["refresh_token"]))
    assert response.status_code == 204
    assert "max-age=0" in response.headers["set-cookie"].lower()


def test_not_authorization(client):
    response = client.get("/user/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "detail": "Not authenticated"}


@pytest.mark.parametrize("header", ["Bearer not-a-token", "Token abc"])
def test_malformed_authorization_header(client, header):
    response = client.get("/user/me", headers={"Authorization": header})
    assert response.status_code in (401, 403)


def test_refresh_token_is_not_an_access_token(client, logged_in_user):
    token, _ = logged_in_user

    response = client.get("/user/me", headers={"Authorization": f"Bearer {token['refresh_token']}"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Access token is expired or has been revoked"


def test_expired_access_token(client, db):
    expired_issuer = TokenIssuer(ACCESS_KEYS[0], ACCESS_KEYS[1], REFRESH_KEYS[0], REFRESH_KEYS[1],
                                 access_lifetime=timedelta(seconds=-10))
    token = expired_issuer.issue_access(db.get(User, 1))

    response = client.get("/user/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_access_token_of_deleted_user(client, db, issuer):
    user = db.get(User, 1)
    token = issuer.issue_access(user)
    db.delete(user)
    db.commit()

    response = client.get("/user/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "detail": "Unable to find user"}


def test_non_admin_cannot_list_users(client, logged_in_user):
    token, _ = logged_in_user

    response = client.get("/user/", headers={"Authorization": f"Bearer {token['access_token']}"})
    assert response.status_code == 403
    assert response.json() == {"success": False, "detail": "Insufficient permissions"}


def test_user_cannot_read_other_account(client, logged_in_user):
    token, _ = logged_in_user

    response = client.get("/user/2", headers={"Authorization": f"Bearer {token['access_token']}"})
    assert response.status_code == 403


def test_password_change_with_wrong_old_password(client, logged_in_user):
    token, _ = logged_in_user

    response = client.patch(
        "/user/password",
        json={"old_password": "not-my-password", "password": "new_password"},
        headers={"Authorization": f"Bearer {token['access_token']}"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Password does not match"


def test_corrupted_stored_credentials(client, db):
    user = db.get(User, 1)
    user.password_hash = "not-a-hex-digest"
    db.commit()

    response = client.post("/auth/login", json={"email": "user@example.com", "password": "password"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "detail": "An unexpected error occurred"}


def test_missing_signing_key_returns_generic_error():
    def broken_issuer():
        raise RuntimeError("PRIV_ACCESS_KEY is not configured")

    app.dependency_overrides[get_token_issuer] = broken_issuer
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/auth/login", json={"email": "user@example.com", "password": "password"})
    finally:
        del app.dependency_overrides[get_token_issuer]

    assert response.status_code == 500
    assert response.json() == {"success": False, "detail": "An unexpected error occurred"}
    assert "PRIV_ACCESS_KEY" not in response.text
    assert response.headers["x-request-id"]
