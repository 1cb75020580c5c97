from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError, ValidationFailedError
from precinct.domain.models import (
    InspectionCreate,
    InspectionUpdate,
    NineSmallInspection,
    NineSmallPlace,
    PlaceCreate,
    PlaceUpdate,
    now_utc,
)
from precinct.domain.rules import validate_inspection, validate_place
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import AggregateService, apply_values, merge_patch
from precinct.services.paging import apply_pagination, count_rows

logger = logging.getLogger(__name__)

PLACE_CONFLICT = "a place with this name already exists in the community"
RECTIFIED_BEFORE_INSPECT = "rectified date must not precede inspect date"

PLACE_FIELDS = (
    "name",
    "address",
    "community_id",
    "type",
    "type_item_id",
    "grid_name",
    "principal_name",
    "contact_phone",
    "remark",
)
INSPECTION_FIELDS = (
    "place_id",
    "inspect_date",
    "inspector_officer_id",
    "inspector_name",
    "description",
    "has_hidden_danger",
    "rectification_advice",
    "rectification_status_id",
    "rectified_date",
)

PLACE_POLICY = ConstraintPolicy(
    conflict_message=PLACE_CONFLICT,
    unique_fields={
        "uq_nine_small_places_community_name": "name",
        "nine_small_places.community_id": "name",
    },
)
INSPECTION_POLICY = ConstraintPolicy(
    conflict_message="inspection already exists",
    check_fields={
        "ck_nine_small_inspections_rectified_after_inspect": ("rectifiedDate", RECTIFIED_BEFORE_INSPECT),
    },
)


class NineSmallService(AggregateService):
    constraint_policy = PLACE_POLICY

    def _get_place(self, session: Session, place_id: int) -> NineSmallPlace:
        place = session.get(NineSmallPlace, place_id)
        if place is None:
            raise NotFoundError("place not found")
        return place

    def _get_inspection(self, session: Session, inspection_id: int) -> NineSmallInspection:
        inspection = session.get(NineSmallInspection, inspection_id)
        if inspection is None:
            raise NotFoundError("inspection not found")
        return inspection

    def _check_place_name(
        self,
        session: Session,
        community_id: int | None,
        name: str | None,
        exclude_id: int | None = None,
    ) -> None:
        if community_id is None or not name:
            return
        statement = (
            select(NineSmallPlace.id)
            .where(NineSmallPlace.community_id == community_id)
            .where(NineSmallPlace.name == name)
        )
        if exclude_id is not None:
            statement = statement.where(NineSmallPlace.id != exclude_id)
        if session.exec(statement).first() is not None:
            raise ConflictError(PLACE_CONFLICT, {"name": PLACE_CONFLICT})

    def list_places(
        self,
        *,
        community_id: int | None = None,
        place_name: str | None = None,
        type_item_id: int | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[NineSmallPlace], int]:
        statement = select(NineSmallPlace)
        if community_id is not None:
            statement = statement.where(NineSmallPlace.community_id == community_id)
        if place_name:
            statement = statement.where(col(NineSmallPlace.name).like(f"%{place_name.strip()}%"))
        if type_item_id is not None:
            statement = statement.where(NineSmallPlace.type_item_id == type_item_id)
        with self._session() as session:
            total = count_rows(session, statement)
            statement = apply_pagination(statement.order_by(col(NineSmallPlace.id).desc()), page, page_size)
            return list(session.exec(statement).all()), total

    def get_place(self, place_id: int) -> NineSmallPlace:
        with self._session() as session:
            return self._get_place(session, place_id)

    def create_place(self, payload: PlaceCreate) -> NineSmallPlace:
        values = payload.model_dump()
        validate_place(values)
        with self._session() as session:
            self._check_place_name(session, payload.community_id, payload.name)

        place = NineSmallPlace(**values)
        with self._unit_of_work() as session:
            session.add(place)
        logger.info("nine-small place %s created", place.id)
        return place

    def update_place(self, place_id: int, payload: PlaceUpdate) -> NineSmallPlace:
        with self._session() as session:
            existing = self._get_place(session, place_id)
            merged = merge_patch(existing, payload)
            validate_place(merged)
            if merged["name"] != existing.name or merged["community_id"] != existing.community_id:
                self._check_place_name(session, merged["community_id"], merged["name"], place_id)

        with self._unit_of_work() as session:
            place = self._get_place(session, place_id)
            apply_values(place, merged, PLACE_FIELDS)
            place.updated_at = now_utc()
            session.add(place)
        logger.info("nine-small place %s updated", place_id)
        return place

    def list_inspections(
        self,
        place_id: int,
        *,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[NineSmallInspection], int]:
        with self._session() as session:
            self._get_place(session, place_id)
            statement = select(NineSmallInspection).where(NineSmallInspection.place_id == place_id)
            total = count_rows(session, statement)
            statement = statement.order_by(
                col(NineSmallInspection.inspect_date).desc(),
                col(NineSmallInspection.id).desc(),
            )
            return list(session.exec(apply_pagination(statement, page, page_size)).all()), total

    def get_inspection(self, inspection_id: int) -> NineSmallInspection:
        with self._session() as session:
            return self._get_inspection(session, inspection_id)

    def create_inspection(self, place_id: int, payload: InspectionCreate) -> NineSmallInspection:
        with self._session() as session:
            self._get_place(session, place_id)
        values = payload.model_dump()
        validate_inspection(values)

        inspection = NineSmallInspection(place_id=place_id, **values)
        with self._unit_of_work(INSPECTION_POLICY) as session:
            session.add(inspection)
        logger.info("inspection %s recorded for place %s", inspection.id, place_id)
        return inspection

    def update_inspection(self, inspection_id: int, payload: InspectionUpdate) -> NineSmallInspection:
        with self._session() as session:
            existing = self._get_inspection(session, inspection_id)
            merged = merge_patch(existing, payload)
            if merged.get("place_id") is None:
                merged["place_id"] = existing.place_id
            if merged.get("has_hidden_danger") is None:
                merged["has_hidden_danger"] = existing.has_hidden_danger
            validate_inspection(merged)
            if merged["place_id"] != existing.place_id and session.get(NineSmallPlace, merged["place_id"]) is None:
                raise ValidationFailedError("target place does not exist", {"placeId": "target place does not exist"})

        with self._unit_of_work(INSPECTION_POLICY) as session:
            inspection = self._get_inspection(session, inspection_id)
            apply_values(inspection, merged, INSPECTION_FIELDS)
            inspection.updated_at = now_utc()
            session.add(inspection)
        logger.info("inspection %s updated", inspection_id)
        return inspection
