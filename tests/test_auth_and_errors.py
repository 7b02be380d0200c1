from datetime import datetime, timedelta

from backend.models.user import AdminSession


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_returns_token_with_expiry(client, admin_user, admin_credentials):
    response = client.post("/api/auth/login", json=admin_credentials)
    assert response.status_code == 200
    payload = response.json()
    assert payload["token"]
    assert payload["user"]["username"] == admin_credentials["username"]

    expires_at = datetime.fromisoformat(payload["expires_at"])
    assert timedelta(hours=23) < expires_at - datetime.utcnow() <= timedelta(hours=24)


def test_error_envelope_on_invalid_login(client, admin_user, admin_credentials):
    response = client.post("/api/auth/login", json={**admin_credentials, "password": "wrong"})
    assert response.status_code == 401
    payload = response.json()
    assert payload["statusCode"] == 401
    assert payload["error"] == "Unauthorized"


def test_unknown_user_is_rejected(client, admin_user, admin_credentials):
    response = client.post("/api/auth/login", json={**admin_credentials, "username": "nobody"})
    assert response.status_code == 401


def test_protected_route_requires_token(client):
    response = client.get("/api/catalog")
    assert response.status_code == 401
    assert response.json()["message"] == "Missing or invalid Authorization header"


def test_expired_session_is_rejected(client, db_session, auth_headers):
    token = auth_headers["Authorization"].replace("Bearer ", "", 1)
    session = db_session.query(AdminSession).filter(AdminSession.id == token).one()
    session.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.get("/api/catalog", headers=auth_headers)
    assert response.status_code == 401
    assert db_session.query(AdminSession).filter(AdminSession.id == token).first() is None


def test_logout_revokes_session(client, auth_headers):
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 200

    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 200

    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401


def test_admin_seeded_from_settings(db_session, monkeypatch):
    from backend.models.user import AdminUser
    from backend.services import auth

    monkeypatch.setattr(auth.settings, "admin_username", "frontdesk")
    monkeypatch.setattr(auth.settings, "admin_password", "letmein")

    seeded = auth.ensure_admin_user(db_session)
    assert seeded.username == "frontdesk"
    assert seeded.password_hash != "letmein"
    assert auth.authenticate(db_session, "frontdesk", "letmein") is not None

    # a second call keeps the existing admin
    assert auth.ensure_admin_user(db_session).id == seeded.id
    assert db_session.query(AdminUser).count() == 1


def test_admin_not_seeded_without_password(db_session, monkeypatch):
    from backend.services import auth

    monkeypatch.setattr(auth.settings, "admin_password", None)
    assert auth.ensure_admin_user(db_session) is None
