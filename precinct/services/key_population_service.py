from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import func
from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from precinct.domain.models import (
    KeyPopulation,
    KeyPopulationCreate,
    KeyPopulationRead,
    KeyPopulationUpdate,
    KeyPopulationVisit,
    SessionClaims,
    VisitCreate,
    VisitRead,
    VisitUpdate,
    now_utc,
)
from precinct.domain.permissions import PERM_KEYPOP_VIEW_ALL, has_permission
from precinct.domain.rules import validate_key_population, validate_visit
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import AggregateService, apply_values, merge_patch, row_id
from precinct.services.paging import apply_pagination, count_rows

logger = logging.getLogger(__name__)

ID_CARD_CONFLICT = "id card number is already registered"
INTERVAL_NOT_POSITIVE = "revisit interval must be at least one day"

POPULATION_FIELDS = (
    "name",
    "gender_item_id",
    "id_card_no",
    "community_id",
    "household_id",
    "contact_phone",
    "residence_address",
    "household_address",
    "is_key_population",
    "type_item_id",
    "control_level_item_id",
    "risk_level_item_id",
    "control_officer_id",
    "control_measure",
    "revisit_interval_days",
    "remark",
)
VISIT_FIELDS = (
    "visit_date",
    "visitor_officer_id",
    "visitor_name",
    "location",
    "visit_content",
    "is_abnormal",
)

KEY_POPULATION_POLICY = ConstraintPolicy(
    conflict_message=ID_CARD_CONFLICT,
    unique_fields={
        "uq_key_populations_id_card_no": "idCardNo",
        "key_populations.id_card_no": "idCardNo",
    },
    check_fields={
        "ck_key_populations_revisit_interval_positive": ("revisitIntervalDays", INTERVAL_NOT_POSITIVE),
    },
)


def next_visit_after(visit_date: str, interval_days: int) -> str:
    return (date.fromisoformat(visit_date) + timedelta(days=interval_days)).isoformat()


class KeyPopulationService(AggregateService):
    """Key-population registry and its visit history.

    Officers without ``keypop:view_all`` only see the people they control.
    Every visit write recomputes the person's latest and next visit dates in
    the same transaction as the visit row itself.
    """

    constraint_policy = KEY_POPULATION_POLICY

    def _get_population(self, session: Session, population_id: int) -> KeyPopulation:
        population = session.get(KeyPopulation, population_id)
        if population is None:
            raise NotFoundError("key population not found")
        return population

    def _get_visit(self, session: Session, visit_id: int) -> KeyPopulationVisit:
        visit = session.get(KeyPopulationVisit, visit_id)
        if visit is None:
            raise NotFoundError("visit not found")
        return visit

    def _authorize_view(self, population: KeyPopulation, claims: SessionClaims) -> None:
        if has_permission(claims, PERM_KEYPOP_VIEW_ALL):
            return
        if population.control_officer_id != claims.principal_id:
            raise PermissionDeniedError("not allowed to view this person")

    def _check_id_card(self, session: Session, id_card_no: str | None, exclude_id: int | None = None) -> None:
        if not id_card_no:
            return
        statement = select(KeyPopulation.id).where(KeyPopulation.id_card_no == id_card_no)
        if exclude_id is not None:
            statement = statement.where(KeyPopulation.id != exclude_id)
        if session.exec(statement).first() is not None:
            raise ConflictError(ID_CARD_CONFLICT, {"idCardNo": ID_CARD_CONFLICT})

    def _refresh_visit_dates(self, session: Session, population: KeyPopulation) -> None:
        session.flush()
        statement = select(func.max(KeyPopulationVisit.visit_date)).where(
            KeyPopulationVisit.population_id == row_id(population)
        )
        latest = session.exec(statement).one()
        population.latest_visit_date = latest
        population.next_visit_date = (
            next_visit_after(latest, population.revisit_interval_days) if latest else None
        )
        population.updated_at = now_utc()
        session.add(population)

    def _reload(self, population_id: int) -> KeyPopulationRead:
        with self._session() as session:
            return KeyPopulationRead.model_validate(self._get_population(session, population_id))

    def list_populations(
        self,
        claims: SessionClaims,
        *,
        community_id: int | None = None,
        type_item_id: int | None = None,
        name: str | None = None,
        id_card_no: str | None = None,
        is_key: bool | None = None,
        control_officer_id: int | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[KeyPopulationRead], int]:
        statement = select(KeyPopulation)
        if not has_permission(claims, PERM_KEYPOP_VIEW_ALL):
            statement = statement.where(KeyPopulation.control_officer_id == claims.principal_id)
        if community_id is not None:
            statement = statement.where(KeyPopulation.community_id == community_id)
        if type_item_id is not None:
            statement = statement.where(KeyPopulation.type_item_id == type_item_id)
        if name:
            statement = statement.where(col(KeyPopulation.name).like(f"%{name.strip()}%"))
        if id_card_no:
            statement = statement.where(col(KeyPopulation.id_card_no).like(f"%{id_card_no.strip()}%"))
        if is_key is not None:
            statement = statement.where(KeyPopulation.is_key_population == is_key)
        if control_officer_id is not None:
            statement = statement.where(KeyPopulation.control_officer_id == control_officer_id)

        with self._session() as session:
            total = count_rows(session, statement)
            statement = statement.order_by(
                col(KeyPopulation.is_key_population).desc(),
                col(KeyPopulation.next_visit_date).is_(None),
                col(KeyPopulation.next_visit_date).asc(),
                col(KeyPopulation.id).desc(),
            )
            rows = session.exec(apply_pagination(statement, page, page_size)).all()
            return [KeyPopulationRead.model_validate(row) for row in rows], total

    def get_population(self, population_id: int, claims: SessionClaims) -> KeyPopulationRead:
        with self._session() as session:
            population = self._get_population(session, population_id)
            self._authorize_view(population, claims)
            return KeyPopulationRead.model_validate(population)

    def create_population(self, payload: KeyPopulationCreate, claims: SessionClaims) -> KeyPopulationRead:
        values = payload.model_dump()
        validate_key_population(values)
        with self._session() as session:
            self._check_id_card(session, payload.id_card_no)

        population = KeyPopulation(**values)
        with self._unit_of_work() as session:
            session.add(population)
            session.flush()
            population_id = row_id(population)
        logger.info("key population %s registered by officer %s", population_id, claims.principal_id)
        return self._reload(population_id)

    def update_population(
        self,
        population_id: int,
        payload: KeyPopulationUpdate,
        claims: SessionClaims,
    ) -> KeyPopulationRead:
        with self._session() as session:
            existing = self._get_population(session, population_id)
            merged = merge_patch(existing, payload)
            for name in ("is_key_population", "revisit_interval_days"):
                if merged.get(name) is None:
                    merged[name] = getattr(existing, name)
            validate_key_population(merged)
            if merged["id_card_no"] and merged["id_card_no"] != existing.id_card_no:
                self._check_id_card(session, merged["id_card_no"], population_id)

        with self._unit_of_work() as session:
            population = self._get_population(session, population_id)
            interval_changed = merged["revisit_interval_days"] != population.revisit_interval_days
            apply_values(population, merged, POPULATION_FIELDS)
            population.updated_at = now_utc()
            session.add(population)
            if interval_changed:
                self._refresh_visit_dates(session, population)
        logger.info("key population %s updated by officer %s", population_id, claims.principal_id)
        return self._reload(population_id)

    def delete_population(self, population_id: int, claims: SessionClaims) -> None:
        with self._unit_of_work() as session:
            population = self._get_population(session, population_id)
            session.delete(population)
        logger.warning(
            "key population %s and its visits deleted by officer %s",
            population_id,
            claims.principal_id,
        )

    def list_visits(self, population_id: int, claims: SessionClaims) -> list[VisitRead]:
        with self._session() as session:
            self._authorize_view(self._get_population(session, population_id), claims)
            statement = (
                select(KeyPopulationVisit)
                .where(KeyPopulationVisit.population_id == population_id)
                .order_by(col(KeyPopulationVisit.visit_date).desc(), col(KeyPopulationVisit.id).desc())
            )
            return [VisitRead.model_validate(row) for row in session.exec(statement).all()]

    def create_visit(self, population_id: int, payload: VisitCreate, claims: SessionClaims) -> VisitRead:
        values = payload.model_dump()
        if values["visitor_officer_id"] is None and not (values["visitor_name"] or "").strip():
            values["visitor_officer_id"] = claims.principal_id
        validate_visit(values)
        with self._session() as session:
            self._authorize_view(self._get_population(session, population_id), claims)

        visit = KeyPopulationVisit(population_id=population_id, **values)
        with self._unit_of_work() as session:
            population = self._get_population(session, population_id)
            session.add(visit)
            self._refresh_visit_dates(session, population)
            visit_id = row_id(visit)
        logger.info("visit %s recorded for key population %s", visit_id, population_id)
        return VisitRead.model_validate(visit)

    def update_visit(self, visit_id: int, payload: VisitUpdate, claims: SessionClaims) -> VisitRead:
        with self._session() as session:
            existing = self._get_visit(session, visit_id)
            self._authorize_view(self._get_population(session, existing.population_id), claims)
            merged = merge_patch(existing, payload)
            for name in ("visit_date", "is_abnormal"):
                if merged.get(name) is None:
                    merged[name] = getattr(existing, name)
            validate_visit(merged)

        with self._unit_of_work() as session:
            visit = self._get_visit(session, visit_id)
            apply_values(visit, merged, VISIT_FIELDS)
            visit.updated_at = now_utc()
            session.add(visit)
            self._refresh_visit_dates(session, self._get_population(session, visit.population_id))
        logger.info("visit %s updated by officer %s", visit_id, claims.principal_id)
        return VisitRead.model_validate(visit)

    def delete_visit(self, visit_id: int, claims: SessionClaims) -> None:
        with self._unit_of_work() as session:
            visit = self._get_visit(session, visit_id)
            population = self._get_population(session, visit.population_id)
            self._authorize_view(population, claims)
            session.delete(visit)
            self._refresh_visit_dates(session, population)
        logger.warning("visit %s deleted by officer %s", visit_id, claims.principal_id)
