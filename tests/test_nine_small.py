from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from precinct import main as app_main
from precinct.domain.models import Community
from precinct.domain.rules import validate_inspection
from precinct.infra import db, passwords
from precinct.services import nine_small_service


@pytest.fixture()
def nine_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "nine_small_test.db"
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
    return login.json()["data"]["token"]


def _login_with_role(client: TestClient, admin_token: str, role_code: str, badge_no: str) -> tuple[int, str]:
    roles = client.get("/api/officers/roles", headers=_auth_header(admin_token)).json()["data"]
    role_id = next(item["id"] for item in roles if item["code"] == role_code)
    created = client.post(
        "/api/officers",
        json={"name": badge_no.lower(), "badgeNo": badge_no, "roleIds": [role_id]},
        headers=_auth_header(admin_token),
    ).json()["data"]
    login = client.post("/api/auth/login", json={"badgeNo": badge_no, "password": created["initialPassword"]})
    return created["id"], login.json()["data"]["token"]


def _seed_community(name: str = "riverside") -> int:
    with Session(db.engine) as session:
        community = Community(name=name)
        session.add(community)
        session.commit()
        return community.id


def _create_place(client: TestClient, token: str, community_id: int, name: str = "noodle shop") -> int:
    response = client.post(
        "/api/nine-small/places",
        json={"name": name, "address": "5 market street", "communityId": community_id, "type": "catering"},
        headers=_auth_header(token),
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


def test_place_crud_and_name_uniqueness(nine_client: TestClient) -> None:
    admin_token = _bootstrap_admin(nine_client)
    _, worker_token = _login_with_role(nine_client, admin_token, "COMMUNITY", "W1001")
    community_id = _seed_community()
    place_id = _create_place(nine_client, worker_token, community_id)

    duplicate = nine_client.post(
        "/api/nine-small/places",
        json={"name": "noodle shop", "address": "elsewhere", "communityId": community_id},
        headers=_auth_header(worker_token),
    )
    assert duplicate.status_code == 409
    assert "name" in duplicate.json()["details"]["fieldErrors"]

    updated = nine_client.put(
        f"/api/nine-small/places/{place_id}",
        json={"principalName": "he", "contactPhone": "13700000000"},
        headers=_auth_header(worker_token),
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["principalName"] == "he"
    assert updated.json()["data"]["name"] == "noodle shop"

    listing = nine_client.get("/api/nine-small/places?placeName=noodle", headers=_auth_header(worker_token))
    assert listing.json()["data"]["total"] == 1


def test_place_management_requires_nine_manage(nine_client: TestClient) -> None:
    admin_token = _bootstrap_admin(nine_client)
    _, officer_token = _login_with_role(nine_client, admin_token, "OFFICER", "P1001")
    response = nine_client.post(
        "/api/nine-small/places",
        json={"name": "kiosk", "address": "1 road"},
        headers=_auth_header(officer_token),
    )
    assert response.status_code == 403


def test_inspections_flow(nine_client: TestClient) -> None:
    admin_token = _bootstrap_admin(nine_client)
    officer_id, officer_token = _login_with_role(nine_client, admin_token, "OFFICER", "P1001")
    place_id = _create_place(nine_client, admin_token, _seed_community())

    first = nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-03-01", "inspectorOfficerId": officer_id, "hasHiddenDanger": True},
        headers=_auth_header(officer_token),
    )
    assert first.status_code == 201
    inspection_id = first.json()["data"]["id"]
    nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-04-01", "inspectorName": "volunteer"},
        headers=_auth_header(officer_token),
    )

    listing = nine_client.get(
        f"/api/nine-small/places/{place_id}/inspections",
        headers=_auth_header(officer_token),
    ).json()["data"]
    assert [item["inspectDate"] for item in listing["items"]] == ["2024-04-01", "2024-03-01"]

    rectified = nine_client.put(
        f"/api/nine-small/inspections/{inspection_id}",
        json={"rectifiedDate": "2024-03-10", "rectificationAdvice": "clear exits"},
        headers=_auth_header(officer_token),
    )
    assert rectified.status_code == 200
    data = rectified.json()["data"]
    assert data["rectifiedDate"] == "2024-03-10"
    assert data["hasHiddenDanger"] is True
    assert data["placeId"] == place_id


def test_inspection_validation(nine_client: TestClient) -> None:
    admin_token = _bootstrap_admin(nine_client)
    place_id = _create_place(nine_client, admin_token, _seed_community())

    anonymous = nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-03-01"},
        headers=_auth_header(admin_token),
    )
    assert anonymous.status_code == 400
    assert "inspectorName" in anonymous.json()["details"]["fieldErrors"]

    backwards = nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-03-01", "inspectorName": "he", "rectifiedDate": "2024-02-01"},
        headers=_auth_header(admin_token),
    )
    assert backwards.status_code == 400
    assert "rectifiedDate" in backwards.json()["details"]["fieldErrors"]

    missing_place = nine_client.post(
        "/api/nine-small/places/999/inspections",
        json={"inspectDate": "2024-03-01", "inspectorName": "he"},
        headers=_auth_header(admin_token),
    )
    assert missing_place.status_code == 404


def test_rectified_date_check_is_enforced_by_storage(
    nine_client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    admin_token = _bootstrap_admin(nine_client)
    place_id = _create_place(nine_client, admin_token, _seed_community())

    def _skip_dates(values):  # type: ignore[no-untyped-def]
        validate_inspection({**values, "rectified_date": None})

    monkeypatch.setattr(nine_small_service, "validate_inspection", _skip_dates)
    response = nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-03-01", "inspectorName": "he", "rectifiedDate": "2024-02-01"},
        headers=_auth_header(admin_token),
    )
    assert response.status_code == 400
    assert response.json()["details"]["fieldErrors"] == {
        "rectifiedDate": "rectified date must not precede inspect date"
    }


def test_move_inspection_to_missing_place_is_rejected(nine_client: TestClient) -> None:
    admin_token = _bootstrap_admin(nine_client)
    place_id = _create_place(nine_client, admin_token, _seed_community())
    inspection_id = nine_client.post(
        f"/api/nine-small/places/{place_id}/inspections",
        json={"inspectDate": "2024-03-01", "inspectorName": "he"},
        headers=_auth_header(admin_token),
    ).json()["data"]["id"]

    response = nine_client.put(
        f"/api/nine-small/inspections/{inspection_id}",
        json={"placeId": 999},
        headers=_auth_header(admin_token),
    )
    assert response.status_code == 400
    assert "placeId" in response.json()["details"]["fieldErrors"]
