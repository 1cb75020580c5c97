from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from precinct.domain.errors import ConflictError, StorageError, ValidationFailedError
from precinct.domain.models import (
    CaseOfficer,
    CaseRecord,
    CaseUpdate,
    Community,
    Household,
    HouseholdMember,
)
from precinct.infra import db
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import (
    ensure_participant,
    load_children,
    merge_patch,
    patch_includes,
    reconcile_children,
    row_id,
    unit_of_work,
)


@pytest.fixture()
def aggregate_engine(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Engine, None, None]:
    db_path = tmp_path / "aggregate_test.db"
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
    yield test_engine
    test_engine.dispose()


def test_merge_patch_keeps_absent_fields_and_applies_explicit_nulls() -> None:
    existing = CaseRecord(
        case_no="C-1",
        case_name="theft",
        case_type_item_id=1,
        main_officer_id=1,
        received_date="2024-01-01",
        deadline_date="2024-02-01",
        remark="note",
    )
    patch = CaseUpdate.model_validate({"remark": None, "caseName": "burglary"})
    merged = merge_patch(existing, patch)
    assert merged["remark"] is None
    assert merged["case_name"] == "burglary"
    assert merged["deadline_date"] == "2024-02-01"
    assert merged["case_no"] == "C-1"


def test_patch_includes_tells_omitted_from_empty() -> None:
    assert not patch_includes(CaseUpdate.model_validate({"remark": "x"}), "officers")
    assert patch_includes(CaseUpdate.model_validate({"officers": []}), "officers")
    assert patch_includes(CaseUpdate.model_validate({"officers": None}), "officers")


def test_ensure_participant_adopts_or_appends() -> None:
    rows = [CaseOfficer(officer_id=2, role="协办"), CaseOfficer(officer_id=5)]

    def adopt(row: CaseOfficer) -> None:
        row.role = row.role or "主办"

    adopted = ensure_participant(
        rows,
        5,
        key=lambda row: row.officer_id,
        build=lambda: CaseOfficer(officer_id=5, role="主办"),
        adopt=adopt,
    )
    assert [(row.officer_id, row.role) for row in adopted] == [(2, "协办"), (5, "主办")]

    appended = ensure_participant(
        rows[:1],
        9,
        key=lambda row: row.officer_id,
        build=lambda: CaseOfficer(officer_id=9, role="主办"),
    )
    assert [row.officer_id for row in appended] == [2, 9]


def test_reconcile_children_replaces_set(aggregate_engine: Engine) -> None:
    with Session(aggregate_engine) as session:
        community = Community(name="east")
        session.add(community)
        session.flush()
        household = Household(community_id=community.id, address="1 east road")
        session.add(household)
        session.flush()
        household_id = household.id
        session.add_all(
            [
                HouseholdMember(household_id=household_id, name="a"),
                HouseholdMember(household_id=household_id, name="b"),
            ]
        )
        session.commit()

    with Session(aggregate_engine) as session:
        reconcile_children(
            session,
            HouseholdMember,
            "household_id",
            household_id,
            [HouseholdMember(name="c")],
        )
        session.commit()
        names = [row.name for row in load_children(session, HouseholdMember, "household_id", household_id)]
    assert names == ["c"]


def test_unit_of_work_rolls_back_on_domain_error(aggregate_engine: Engine) -> None:
    with pytest.raises(ValidationFailedError):
        with unit_of_work() as session:
            session.add(Community(name="west"))
            session.flush()
            raise ValidationFailedError("stop")

    with Session(aggregate_engine) as session:
        assert session.exec(select(Community)).all() == []


def test_unit_of_work_translates_unique_violation(aggregate_engine: Engine) -> None:
    with Session(aggregate_engine) as session:
        session.add(Community(name="north"))
        session.commit()

    policy = ConstraintPolicy(
        conflict_message="community already exists",
        unique_fields={"communities.name": "name"},
    )
    with pytest.raises(ConflictError) as excinfo:
        with unit_of_work(policy) as session:
            session.add(Community(name="south"))
            session.add(Community(name="north"))

    assert excinfo.value.field_errors == {"name": "community already exists"}
    with Session(aggregate_engine) as session:
        assert [row.name for row in session.exec(select(Community)).all()] == ["north"]


def test_row_id_requires_a_flushed_row(aggregate_engine: Engine) -> None:
    community = Community(name="riverside")
    with pytest.raises(StorageError):
        row_id(community)

    with unit_of_work() as session:
        session.add(community)
        session.flush()
        assert row_id(community) == community.id
