from __future__ import annotations

from sqlalchemy.orm import Session

from cafeteria_survey.models import AuthorizedUser, UserRole


def _authorize(db_session: Session, email: str = "jdoe@example.com", role: UserRole = UserRole.ADMIN) -> None:
    db_session.add(AuthorizedUser(email=email, role=role))
    db_session.commit()


def test_login_sets_session_cookie(client, db_session: Session, directory) -> None:
    _authorize(db_session)
    directory.passwords["jdoe"] = "secret"

    response = client.post("/api/auth/login", json={"username": "jdoe", "password": "secret"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"] == {"email": "jdoe@example.com", "username": "jdoe", "role": "admin"}
    assert "auth-token" in response.cookies
    assert "httponly" in response.headers["set-cookie"].lower()

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "jdoe@example.com"

    bearer = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert bearer.json()["role"] == "admin"


def test_login_failures_map_to_distinct_statuses(client, db_session: Session, directory) -> None:
    not_listed = client.post("/api/auth/login", json={"username": "stranger", "password": "secret"})
    assert not_listed.status_code == 403
    assert directory.calls == []

    _authorize(db_session, role=UserRole.READONLY)
    directory.passwords["jdoe"] = "secret"
    wrong = client.post("/api/auth/login", json={"username": "jdoe", "password": "nope"})
    assert wrong.status_code == 401

    directory.unavailable = True
    outage = client.post("/api/auth/login", json={"username": "jdoe", "password": "secret"})
    assert outage.status_code == 503

    empty = client.post("/api/auth/login", json={"username": "jdoe", "password": ""})
    assert empty.status_code == 422


def test_logout_clears_cookie(client, db_session: Session, directory) -> None:
    _authorize(db_session)
    directory.passwords["jdoe"] = "secret"
    client.post("/api/auth/login", json={"username": "jdoe@example.com", "password": "secret"})

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get("/api/auth/me").status_code == 401


def test_invalid_tokens_are_rejected(client) -> None:
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_health_endpoints(client) -> None:
    assert client.get("/api/healthz").json()["status"] == "ok"
    assert client.get("/api/readyz").json()["status"] == "ready"
