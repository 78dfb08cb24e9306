"""Admin login, the bearer/cookie token checks and the health check."""

from datetime import UTC, datetime, timedelta

from src.api.auth_utils import issue_admin_token

ADMIN_EMAIL = "admin@example.com"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_sets_cookie_and_returns_token(client, admin_credentials):
    email, password = admin_credentials
    response = client.post("/api/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert response.cookies.get("access_token") is not None

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["email"] == email


def test_login_wrong_password(client, admin_credentials):
    email, _ = admin_credentials
    response = client.post("/api/auth/login", data={"username": email, "password": "wrong"})
    assert response.status_code == 401


def test_login_email_is_case_insensitive(client, admin_credentials):
    email, password = admin_credentials
    response = client.post(
        "/api/auth/login", data={"username": email.upper(), "password": password}
    )
    assert response.status_code == 200


def test_admin_routes_require_token(client):
    assert client.get("/api/admin/services").status_code == 401
    assert client.get("/api/admin/blacklist").status_code == 401
    assert client.post("/api/storage/signed-urls", json={"paths": []}).status_code == 401


def test_garbage_token_rejected(client):
    response = client.get("/api/admin/addons", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_token_for_other_subject_rejected(client, settings):
    token = issue_admin_token("someone@example.com", settings.secret_key)
    response = client.get("/api/admin/addons", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_signed_with_other_key_rejected(client):
    token = issue_admin_token(ADMIN_EMAIL, "some-other-key")
    response = client.get("/api/admin/addons", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_expired_token_rejected(client, settings):
    token = issue_admin_token(
        ADMIN_EMAIL,
        settings.secret_key,
        now_utc=datetime.now(UTC) - timedelta(days=2),
    )
    response = client.get("/api/admin/addons", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_cookie_token_accepted(client, settings):
    token = issue_admin_token(ADMIN_EMAIL, settings.secret_key)
    client.cookies.set("access_token", f"Bearer {token}")
    assert client.get("/api/admin/addons").status_code == 200


def test_public_routes_are_open(client):
    assert client.get("/api/public/services").status_code == 200
    assert client.get("/api/public/blacklist").status_code == 200
