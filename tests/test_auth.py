from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from precinct import main as app_main
from precinct.infra import db, passwords


@pytest.fixture()
def auth_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "auth_test.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: object, _connection_record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)
    client = TestClient(app_main.app)
    yield client
    client.close()


def _auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _bootstrap_admin(client: TestClient) -> str:
    response = client.post(
        "/api/auth/bootstrap-admin",
        json={"badgeNo": "A0001", "name": "admin", "password": "admin-pass"},
    )
    assert response.status_code == 201
    login = client.post("/api/auth/login", json={"badgeNo": "A0001", "password": "admin-pass"})
    assert login.status_code == 200
    return login.json()["data"]["token"]


def test_bootstrap_admin_only_once(auth_client: TestClient) -> None:
    first = auth_client.post(
        "/api/auth/bootstrap-admin",
        json={"badgeNo": "A0001", "name": "admin", "password": "admin-pass"},
    )
    assert first.status_code == 201
    data = first.json()["data"]
    assert data["roles"] == ["ADMIN"]
    assert "user:manage" in data["permissions"]
    assert "case:view_all" in data["permissions"]

    second = auth_client.post(
        "/api/auth/bootstrap-admin",
        json={"badgeNo": "A0002", "name": "other", "password": "admin-pass"},
    )
    assert second.status_code == 409
    assert second.json()["errorCode"] == "CONFLICT"


def test_login_returns_token_and_profile(auth_client: TestClient) -> None:
    _bootstrap_admin(auth_client)
    response = auth_client.post("/api/auth/login", json={"badgeNo": "A0001", "password": "admin-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["user"]["badgeNo"] == "A0001"
    assert body["data"]["user"]["roles"] == ["ADMIN"]


def test_login_rejects_bad_credentials_uniformly(auth_client: TestClient) -> None:
    _bootstrap_admin(auth_client)
    wrong_password = auth_client.post("/api/auth/login", json={"badgeNo": "A0001", "password": "nope-nope"})
    unknown_badge = auth_client.post("/api/auth/login", json={"badgeNo": "Z9999", "password": "admin-pass"})
    assert wrong_password.status_code == 401
    assert unknown_badge.status_code == 401
    assert wrong_password.json()["errorCode"] == "UNAUTHENTICATED"
    assert wrong_password.json()["message"] == unknown_badge.json()["message"]


def test_register_issues_token_without_permissions(auth_client: TestClient) -> None:
    response = auth_client.post(
        "/api/auth/register",
        json={"badgeNo": "P2001", "name": "chen", "password": "secret-1"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["roles"] == []
    assert data["user"]["permissions"] == []

    gated = auth_client.get("/api/cases", headers=_auth_header(data["token"]))
    assert gated.status_code == 403
    assert gated.json()["errorCode"] == "UNAUTHORIZED"


def test_register_duplicate_badge_conflicts(auth_client: TestClient) -> None:
    payload = {"badgeNo": "P2001", "name": "chen", "password": "secret-1"}
    assert auth_client.post("/api/auth/register", json=payload).status_code == 201
    duplicate = auth_client.post("/api/auth/register", json=payload)
    assert duplicate.status_code == 409
    assert "badgeNo" in duplicate.json()["details"]["fieldErrors"]


def test_register_rejects_short_password(auth_client: TestClient) -> None:
    response = auth_client.post(
        "/api/auth/register",
        json={"badgeNo": "P2001", "name": "chen", "password": "123"},
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "VALIDATION_ERROR"
    assert "password" in response.json()["details"]["fieldErrors"]


def test_passwords_are_bounded_by_encoded_length(auth_client: TestClient) -> None:
    too_long = auth_client.post(
        "/api/auth/register",
        json={"badgeNo": "P2002", "name": "chen", "password": "密码" * 13},
    )
    assert too_long.status_code == 400
    assert too_long.json()["errorCode"] == "VALIDATION_ERROR"
    assert "password" in too_long.json()["details"]["fieldErrors"]

    at_limit = auth_client.post(
        "/api/auth/register",
        json={"badgeNo": "P2002", "name": "chen", "password": "密码" * 12},
    )
    assert at_limit.status_code == 201
    login = auth_client.post("/api/auth/login", json={"badgeNo": "P2002", "password": "密码" * 12})
    assert login.status_code == 200

    token = login.json()["data"]["token"]
    change = auth_client.put(
        "/api/auth/password",
        json={"oldPassword": "密码" * 12, "newPassword": "口令" * 13},
        headers=_auth_header(token),
    )
    assert change.status_code == 400
    assert "newPassword" in change.json()["details"]["fieldErrors"]

    oversized_login = auth_client.post("/api/auth/login", json={"badgeNo": "P2002", "password": "密码" * 40})
    assert oversized_login.status_code == 401


def test_me_requires_token(auth_client: TestClient) -> None:
    missing = auth_client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.json()["errorCode"] == "UNAUTHENTICATED"

    garbage = auth_client.get("/api/auth/me", headers=_auth_header("not-a-token"))
    assert garbage.status_code == 401


def test_me_reflects_current_roles_while_token_keeps_snapshot(auth_client: TestClient) -> None:
    admin_token = _bootstrap_admin(auth_client)
    roles = auth_client.get("/api/officers/roles", headers=_auth_header(admin_token)).json()["data"]
    officer_role = next(item["id"] for item in roles if item["code"] == "OFFICER")
    created = auth_client.post(
        "/api/officers",
        json={"name": "zhang", "badgeNo": "P1001", "roleIds": [officer_role]},
        headers=_auth_header(admin_token),
    ).json()["data"]
    login = auth_client.post(
        "/api/auth/login",
        json={"badgeNo": "P1001", "password": created["initialPassword"]},
    )
    officer_token = login.json()["data"]["token"]

    revoked = auth_client.put(
        f"/api/officers/{created['id']}",
        json={"roleIds": []},
        headers=_auth_header(admin_token),
    )
    assert revoked.status_code == 200

    me = auth_client.get("/api/auth/me", headers=_auth_header(officer_token))
    assert me.status_code == 200
    assert me.json()["data"]["permissions"] == []
    assert auth_client.get("/api/cases", headers=_auth_header(officer_token)).status_code == 200


def test_change_password(auth_client: TestClient) -> None:
    token = _bootstrap_admin(auth_client)
    wrong = auth_client.put(
        "/api/auth/password",
        json={"oldPassword": "guess-me", "newPassword": "new-secret"},
        headers=_auth_header(token),
    )
    assert wrong.status_code == 400
    assert "oldPassword" in wrong.json()["details"]["fieldErrors"]

    changed = auth_client.put(
        "/api/auth/password",
        json={"oldPassword": "admin-pass", "newPassword": "new-secret"},
        headers=_auth_header(token),
    )
    assert changed.status_code == 200
    old_login = auth_client.post("/api/auth/login", json={"badgeNo": "A0001", "password": "admin-pass"})
    assert old_login.status_code == 401
    new_login = auth_client.post("/api/auth/login", json={"badgeNo": "A0001", "password": "new-secret"})
    assert new_login.status_code == 200


def test_deactivated_officer_cannot_login(auth_client: TestClient) -> None:
    admin_token = _bootstrap_admin(auth_client)
    created = auth_client.post(
        "/api/officers",
        json={"name": "li", "badgeNo": "P1002"},
        headers=_auth_header(admin_token),
    ).json()["data"]
    deleted = auth_client.delete(f"/api/officers/{created['id']}", headers=_auth_header(admin_token))
    assert deleted.status_code == 200

    login = auth_client.post(
        "/api/auth/login",
        json={"badgeNo": "P1002", "password": created["initialPassword"]},
    )
    assert login.status_code == 401
    assert login.json()["message"] == "account locked"
