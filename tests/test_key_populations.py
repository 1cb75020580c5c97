from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine, select

from precinct import main as app_main
from precinct.domain.models import DictItem, KeyPopulation, KeyPopulationVisit
from precinct.infra import db, passwords
from precinct.services.key_population_service import KeyPopulationService, next_visit_after


@pytest.fixture()
def keypop_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "keypop_test.db"
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


def _login(client: TestClient, badge_no: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"badgeNo": badge_no, "password": password})
    assert response.status_code == 200
    return response.json()["data"]["token"]


def _bootstrap_admin(client: TestClient) -> str:
    response = client.post(
        "/api/auth/bootstrap-admin",
        json={"badgeNo": "A0001", "name": "admin", "password": "admin-pass"},
    )
    assert response.status_code == 201
    return _login(client, "A0001", "admin-pass")


def _create_officer(client: TestClient, admin_token: str, badge_no: str, role: str = "OFFICER") -> tuple[int, str]:
    roles = client.get("/api/officers/roles", headers=_auth_header(admin_token)).json()["data"]
    role_id = next(item["id"] for item in roles if item["code"] == role)
    response = client.post(
        "/api/officers",
        json={"name": badge_no.lower(), "badgeNo": badge_no, "roleIds": [role_id]},
        headers=_auth_header(admin_token),
    )
    assert response.status_code == 201
    data = response.json()["data"]
    return data["id"], _login(client, badge_no, data["initialPassword"])


def _seed_dicts() -> dict[str, int]:
    with Session(db.engine) as session:
        items = {
            "drugs": DictItem(dict_type="keypop_type", code="drugs", label="drug related"),
            "strict": DictItem(dict_type="control_level", code="strict", label="strict"),
        }
        session.add_all(items.values())
        session.commit()
        return {key: item.id for key, item in items.items()}


def _person_payload(dicts: dict[str, int], **extra: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": "qian",
        "idCardNo": "110101199001011234",
        "isKeyPopulation": True,
        "typeItemId": dicts["drugs"],
        "controlLevelItemId": dicts["strict"],
        "revisitIntervalDays": 14,
    }
    payload.update(extra)
    return payload


def _register(client: TestClient, token: str, dicts: dict[str, int], **extra: object) -> dict[str, object]:
    response = client.post("/api/key-populations", json=_person_payload(dicts, **extra), headers=_auth_header(token))
    assert response.status_code == 201
    return response.json()["data"]


def test_key_person_requires_type_and_control_level(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    response = keypop_client.post(
        "/api/key-populations",
        json={"name": "qian", "isKeyPopulation": True},
        headers=_auth_header(admin_token),
    )
    assert response.status_code == 400
    assert set(response.json()["details"]["fieldErrors"]) == {"typeItemId", "controlLevelItemId"}

    ordinary = keypop_client.post(
        "/api/key-populations",
        json={"name": "qian"},
        headers=_auth_header(admin_token),
    )
    assert ordinary.status_code == 201
    assert ordinary.json()["data"]["isKeyPopulation"] is False
    assert ordinary.json()["data"]["revisitIntervalDays"] == 30


def test_officers_only_see_people_they_control(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    controller_id, controller_token = _create_officer(keypop_client, admin_token, "P1001")
    _, outsider_token = _create_officer(keypop_client, admin_token, "P1002")
    dicts = _seed_dicts()
    controlled = _register(keypop_client, admin_token, dicts, controlOfficerId=controller_id)
    _register(keypop_client, admin_token, dicts, name="zhou", idCardNo="110101199202021234")

    mine = keypop_client.get("/api/key-populations", headers=_auth_header(controller_token)).json()["data"]
    assert mine["total"] == 1
    assert [item["id"] for item in mine["items"]] == [controlled["id"]]

    assert keypop_client.get("/api/key-populations", headers=_auth_header(outsider_token)).json()["data"]["total"] == 0
    everything = keypop_client.get("/api/key-populations", headers=_auth_header(admin_token)).json()["data"]
    assert everything["total"] == 2

    detail = keypop_client.get(f"/api/key-populations/{controlled['id']}", headers=_auth_header(controller_token))
    assert detail.status_code == 200
    denied = keypop_client.get(f"/api/key-populations/{controlled['id']}", headers=_auth_header(outsider_token))
    assert denied.status_code == 403
    assert denied.json()["errorCode"] == "UNAUTHORIZED"

    read_only = keypop_client.put(
        f"/api/key-populations/{controlled['id']}",
        json={"remark": "x"},
        headers=_auth_header(controller_token),
    )
    assert read_only.status_code == 403


def test_duplicate_id_card_conflicts(keypop_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    dicts = _seed_dicts()
    _register(keypop_client, admin_token, dicts)

    duplicate = keypop_client.post("/api/key-populations", json=_person_payload(dicts), headers=_auth_header(admin_token))
    assert duplicate.status_code == 409
    assert "idCardNo" in duplicate.json()["details"]["fieldErrors"]

    monkeypatch.setattr(KeyPopulationService, "_check_id_card", lambda *args, **kwargs: None)
    raced = keypop_client.post("/api/key-populations", json=_person_payload(dicts), headers=_auth_header(admin_token))
    assert raced.status_code == 409
    assert raced.json()["details"]["fieldErrors"] == {"idCardNo": "id card number is already registered"}

    with Session(db.engine) as session:
        assert len(session.exec(select(KeyPopulation)).all()) == 1


def test_visits_reschedule_the_next_visit(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    officer_id, officer_token = _create_officer(keypop_client, admin_token, "P1001")
    dicts = _seed_dicts()
    person_id = _register(keypop_client, admin_token, dicts, controlOfficerId=officer_id)["id"]

    latest = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-10", "visitContent": "at home"},
        headers=_auth_header(officer_token),
    )
    assert latest.status_code == 201
    assert latest.json()["data"]["visitorOfficerId"] == officer_id
    latest_id = latest.json()["data"]["id"]

    earlier = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-01", "visitorName": "grid worker"},
        headers=_auth_header(officer_token),
    )
    assert earlier.status_code == 201
    assert earlier.json()["data"]["visitorOfficerId"] is None

    person = keypop_client.get(f"/api/key-populations/{person_id}", headers=_auth_header(officer_token)).json()["data"]
    assert person["latestVisitDate"] == "2024-05-10"
    assert person["nextVisitDate"] == "2024-05-24"

    visits = keypop_client.get(f"/api/key-populations/{person_id}/visits", headers=_auth_header(officer_token))
    assert [item["visitDate"] for item in visits.json()["data"]] == ["2024-05-10", "2024-05-01"]

    removed = keypop_client.delete(f"/api/key-populations/visits/{latest_id}", headers=_auth_header(officer_token))
    assert removed.status_code == 200
    person = keypop_client.get(f"/api/key-populations/{person_id}", headers=_auth_header(officer_token)).json()["data"]
    assert person["latestVisitDate"] == "2024-05-01"
    assert person["nextVisitDate"] == "2024-05-15"

    stretched = keypop_client.put(
        f"/api/key-populations/{person_id}",
        json={"revisitIntervalDays": 30},
        headers=_auth_header(admin_token),
    )
    assert stretched.status_code == 200
    assert stretched.json()["data"]["nextVisitDate"] == "2024-05-31"


def test_visit_update_moves_dates_and_requires_a_visitor(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    dicts = _seed_dicts()
    person_id = _register(keypop_client, admin_token, dicts)["id"]
    visit_id = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-01"},
        headers=_auth_header(admin_token),
    ).json()["data"]["id"]

    anonymous = keypop_client.put(
        f"/api/key-populations/visits/{visit_id}",
        json={"visitorOfficerId": None, "visitorName": ""},
        headers=_auth_header(admin_token),
    )
    assert anonymous.status_code == 400
    assert "visitorName" in anonymous.json()["details"]["fieldErrors"]

    moved = keypop_client.put(
        f"/api/key-populations/visits/{visit_id}",
        json={"visitDate": "2024-06-01", "isAbnormal": True},
        headers=_auth_header(admin_token),
    )
    assert moved.status_code == 200
    assert moved.json()["data"]["isAbnormal"] is True
    person = keypop_client.get(f"/api/key-populations/{person_id}", headers=_auth_header(admin_token)).json()["data"]
    assert person["latestVisitDate"] == "2024-06-01"
    assert person["nextVisitDate"] == next_visit_after("2024-06-01", 14)


def test_failed_visit_leaves_person_untouched(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    dicts = _seed_dicts()
    person_id = _register(keypop_client, admin_token, dicts)["id"]

    response = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-10", "visitorOfficerId": 9999},
        headers=_auth_header(admin_token),
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "VALIDATION_ERROR"

    with Session(db.engine) as session:
        person = session.get(KeyPopulation, person_id)
        assert person is not None
        assert person.latest_visit_date is None
        assert person.next_visit_date is None
        assert session.exec(select(KeyPopulationVisit)).all() == []


def test_visit_permissions(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    controller_id, _ = _create_officer(keypop_client, admin_token, "P1001")
    _, outsider_token = _create_officer(keypop_client, admin_token, "P1002")
    _, worker_token = _create_officer(keypop_client, admin_token, "C1001", role="COMMUNITY")
    dicts = _seed_dicts()
    person_id = _register(keypop_client, admin_token, dicts, controlOfficerId=controller_id)["id"]

    foreign = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-10"},
        headers=_auth_header(outsider_token),
    )
    assert foreign.status_code == 403

    ungranted = keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-10"},
        headers=_auth_header(worker_token),
    )
    assert ungranted.status_code == 403
    assert ungranted.json()["message"] == "missing permission: keypop:visit"

    assert keypop_client.get(f"/api/key-populations/{person_id}", headers=_auth_header(worker_token)).status_code == 200
    assert keypop_client.get("/api/key-populations/404", headers=_auth_header(admin_token)).status_code == 404


def test_delete_person_removes_visits(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    dicts = _seed_dicts()
    person_id = _register(keypop_client, admin_token, dicts)["id"]
    keypop_client.post(
        f"/api/key-populations/{person_id}/visits",
        json={"visitDate": "2024-05-10"},
        headers=_auth_header(admin_token),
    )

    deleted = keypop_client.delete(f"/api/key-populations/{person_id}", headers=_auth_header(admin_token))
    assert deleted.status_code == 200
    assert keypop_client.get(f"/api/key-populations/{person_id}", headers=_auth_header(admin_token)).status_code == 404

    with Session(db.engine) as session:
        assert session.exec(select(KeyPopulationVisit)).all() == []


def test_list_filters_and_ordering(keypop_client: TestClient) -> None:
    admin_token = _bootstrap_admin(keypop_client)
    dicts = _seed_dicts()
    plain = _register(keypop_client, admin_token, dicts, name="sun", idCardNo=None, isKeyPopulation=False)
    unvisited = _register(keypop_client, admin_token, dicts, name="zhou", idCardNo="110101199202021234")
    visited = _register(keypop_client, admin_token, dicts, name="wu", idCardNo="110101199303031234")
    keypop_client.post(
        f"/api/key-populations/{visited['id']}/visits",
        json={"visitDate": "2024-05-10"},
        headers=_auth_header(admin_token),
    )

    listing = keypop_client.get("/api/key-populations", headers=_auth_header(admin_token)).json()["data"]
    assert [item["id"] for item in listing["items"]] == [visited["id"], unvisited["id"], plain["id"]]

    keyed = keypop_client.get("/api/key-populations?isKey=false", headers=_auth_header(admin_token)).json()["data"]
    assert [item["id"] for item in keyed["items"]] == [plain["id"]]

    by_card = keypop_client.get("/api/key-populations?idCardNo=19920202", headers=_auth_header(admin_token))
    assert [item["id"] for item in by_card.json()["data"]["items"]] == [unvisited["id"]]
