from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_
from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError
from precinct.domain.models import (
    Household,
    HouseholdCreate,
    HouseholdDetail,
    HouseholdMember,
    HouseholdMemberInput,
    HouseholdMemberRead,
    HouseholdRead,
    HouseholdUpdate,
    now_utc,
)
from precinct.domain.rules import validate_household
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import (
    AggregateService,
    apply_values,
    load_children,
    merge_patch,
    patch_includes,
    reconcile_children,
    row_id,
)
from precinct.services.paging import apply_pagination, count_rows

logger = logging.getLogger(__name__)

ROOM_CONFLICT = "a household is already registered for this room"
ROOM_FIELDS = ("community_id", "building_no", "unit_no", "room_no")

HOUSEHOLD_FIELDS = (
    "community_id",
    "police_officer_id",
    "address",
    "building_no",
    "unit_no",
    "room_no",
    "house_type_item_id",
    "is_rental",
    "householder_name",
    "householder_phone",
    "remark",
)

HOUSEHOLD_POLICY = ConstraintPolicy(
    conflict_message=ROOM_CONFLICT,
    unique_fields={
        "uq_community_households_room": "roomNo",
        "community_households.community_id": "roomNo",
    },
)


def _member_rows(members: list[HouseholdMemberInput]) -> list[HouseholdMember]:
    return [HouseholdMember(**item.model_dump()) for item in members]


class HouseholdService(AggregateService):
    constraint_policy = HOUSEHOLD_POLICY

    def _get_household(self, session: Session, household_id: int) -> Household:
        household = session.get(Household, household_id)
        if household is None:
            raise NotFoundError("household not found")
        return household

    def _check_room(self, session: Session, values: dict[str, Any], exclude_id: int | None = None) -> None:
        # Only a fully addressed room is unique.
        if any(values.get(name) in (None, "") for name in ROOM_FIELDS):
            return
        statement = select(Household.id)
        for name in ROOM_FIELDS:
            statement = statement.where(getattr(Household, name) == values[name])
        if exclude_id is not None:
            statement = statement.where(Household.id != exclude_id)
        if session.exec(statement).first() is not None:
            raise ConflictError(ROOM_CONFLICT, {"roomNo": ROOM_CONFLICT})

    def _detail(self, session: Session, household: Household) -> HouseholdDetail:
        members = load_children(session, HouseholdMember, "household_id", row_id(household))
        return HouseholdDetail(
            **HouseholdRead.model_validate(household).model_dump(),
            members=[HouseholdMemberRead.model_validate(item) for item in members],
        )

    def list_households(
        self,
        *,
        community_id: int | None = None,
        police_officer_id: int | None = None,
        is_rental: bool | None = None,
        house_type_item_id: int | None = None,
        keyword: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[HouseholdRead], int]:
        statement = select(Household)
        if community_id is not None:
            statement = statement.where(Household.community_id == community_id)
        if police_officer_id is not None:
            statement = statement.where(Household.police_officer_id == police_officer_id)
        if is_rental is not None:
            statement = statement.where(Household.is_rental == is_rental)
        if house_type_item_id is not None:
            statement = statement.where(Household.house_type_item_id == house_type_item_id)
        if keyword:
            pattern = f"%{keyword.strip()}%"
            statement = statement.where(
                or_(
                    col(Household.address).like(pattern),
                    col(Household.householder_name).like(pattern),
                    col(Household.householder_phone).like(pattern),
                )
            )
        with self._session() as session:
            total = count_rows(session, statement)
            statement = apply_pagination(statement.order_by(col(Household.id).desc()), page, page_size)
            rows = session.exec(statement).all()
            return [HouseholdRead.model_validate(row) for row in rows], total

    def get_household(self, household_id: int) -> HouseholdDetail:
        with self._session() as session:
            return self._detail(session, self._get_household(session, household_id))

    def create_household(self, payload: HouseholdCreate) -> HouseholdDetail:
        values = payload.model_dump(exclude={"members"})
        validate_household(values)
        with self._session() as session:
            self._check_room(session, values)

        household = Household(**values)
        with self._unit_of_work() as session:
            session.add(household)
            session.flush()
            household_id = row_id(household)
            if payload.members:
                reconcile_children(
                    session,
                    HouseholdMember,
                    "household_id",
                    household_id,
                    _member_rows(payload.members),
                )
        logger.info("household %s created in community %s", household_id, household.community_id)
        return self.get_household(household_id)

    def update_household(self, household_id: int, payload: HouseholdUpdate) -> HouseholdDetail:
        with self._session() as session:
            existing = self._get_household(session, household_id)
            merged = merge_patch(existing, payload, exclude={"members"})
            if merged.get("is_rental") is None:
                merged["is_rental"] = existing.is_rental
            validate_household(merged)
            if any(merged.get(name) != getattr(existing, name) for name in ROOM_FIELDS):
                self._check_room(session, merged, household_id)

        with self._unit_of_work() as session:
            household = self._get_household(session, household_id)
            apply_values(household, merged, HOUSEHOLD_FIELDS)
            household.updated_at = now_utc()
            session.add(household)
            if patch_includes(payload, "members"):
                reconcile_children(
                    session,
                    HouseholdMember,
                    "household_id",
                    household_id,
                    _member_rows(payload.members or []),
                )
        logger.info("household %s updated", household_id)
        return self.get_household(household_id)
