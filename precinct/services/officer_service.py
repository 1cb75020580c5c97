from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError, ValidationFailedError
from precinct.domain.models import (
    Officer,
    OfficerCreate,
    OfficerCreated,
    OfficerRead,
    OfficerRole,
    OfficerStatus,
    OfficerUpdate,
    Role,
    now_utc,
)
from precinct.domain.rules import validate_officer
from precinct.infra.passwords import generate_initial_password, hash_password
from precinct.services.aggregate import (
    AggregateService,
    apply_values,
    merge_patch,
    patch_includes,
    reconcile_children,
    row_id,
)
from precinct.services.auth_service import BADGE_CONFLICT, OFFICER_POLICY, find_badge_owner
from precinct.services.paging import apply_pagination, count_rows

logger = logging.getLogger(__name__)

OFFICER_FIELDS = ("badge_no", "name", "phone", "status", "is_active", "remark")


class OfficerService(AggregateService):
    constraint_policy = OFFICER_POLICY

    def _role_ids(self, session: Session, officer_id: int) -> list[int]:
        statement = (
            select(OfficerRole.role_id)
            .where(OfficerRole.officer_id == officer_id)
            .order_by(col(OfficerRole.role_id))
        )
        return list(session.exec(statement).all())

    def _read(self, session: Session, officer: Officer) -> OfficerRead:
        read = OfficerRead.model_validate(officer)
        return read.model_copy(update={"role_ids": self._role_ids(session, row_id(officer))})

    def _check_roles(self, session: Session, role_ids: list[int]) -> list[int]:
        unique_ids = list(dict.fromkeys(role_ids))
        if not unique_ids:
            return unique_ids
        found = set(session.exec(select(Role.id).where(col(Role.id).in_(unique_ids))).all())
        missing = [item for item in unique_ids if item not in found]
        if missing:
            raise ValidationFailedError("unknown role", {"roleIds": f"unknown role ids: {missing}"})
        return unique_ids

    def _check_badge(self, session: Session, badge_no: str | None, exclude_id: int | None = None) -> None:
        if badge_no and find_badge_owner(session, badge_no, exclude_id) is not None:
            raise ConflictError(BADGE_CONFLICT, {"badgeNo": BADGE_CONFLICT})

    def list_roles(self) -> list[Role]:
        with self._session() as session:
            return list(session.exec(select(Role).order_by(col(Role.id))).all())

    def list_officers(
        self,
        *,
        keyword: str | None = None,
        status: OfficerStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[OfficerRead], int]:
        with self._session() as session:
            statement = select(Officer)
            if keyword:
                pattern = f"%{keyword.strip()}%"
                statement = statement.where(
                    or_(
                        col(Officer.name).like(pattern),
                        col(Officer.badge_no).like(pattern),
                        col(Officer.phone).like(pattern),
                    )
                )
            if status is not None:
                statement = statement.where(Officer.status == status)
            total = count_rows(session, statement)
            statement = apply_pagination(statement.order_by(col(Officer.id).desc()), page, page_size)
            rows = session.exec(statement).all()
            return [self._read(session, row) for row in rows], total

    def get_officer(self, officer_id: int) -> OfficerRead:
        with self._session() as session:
            officer = session.get(Officer, officer_id)
            if officer is None:
                raise NotFoundError("officer not found")
            return self._read(session, officer)

    def create_officer(self, payload: OfficerCreate) -> OfficerCreated:
        validate_officer(payload.model_dump())
        with self._session() as session:
            self._check_badge(session, payload.badge_no)
            role_ids = self._check_roles(session, payload.role_ids)

        initial_password = generate_initial_password()
        officer = Officer(
            badge_no=payload.badge_no,
            name=payload.name,
            phone=payload.phone,
            status=payload.status,
            is_active=payload.is_active,
            remark=payload.remark,
            password_hash=hash_password(initial_password),
        )
        with self._unit_of_work() as session:
            session.add(officer)
            session.flush()
            officer_id = row_id(officer)
            reconcile_children(
                session,
                OfficerRole,
                "officer_id",
                officer_id,
                [OfficerRole(officer_id=officer_id, role_id=role_id) for role_id in role_ids],
            )
        logger.info("officer %s created with %d roles", officer_id, len(role_ids))
        read = self.get_officer(officer_id)
        return OfficerCreated(**read.model_dump(), initial_password=initial_password)

    def update_officer(self, officer_id: int, payload: OfficerUpdate) -> OfficerRead:
        with self._session() as session:
            existing = session.get(Officer, officer_id)
            if existing is None:
                raise NotFoundError("officer not found")
            merged = merge_patch(existing, payload, exclude={"role_ids"})
            validate_officer(merged)
            if merged.get("status") is None:
                merged["status"] = existing.status
            if merged.get("is_active") is None:
                merged["is_active"] = existing.is_active
            if merged.get("badge_no") != existing.badge_no:
                self._check_badge(session, merged.get("badge_no"), officer_id)
            role_ids = None
            if patch_includes(payload, "role_ids"):
                role_ids = self._check_roles(session, payload.role_ids or [])

        with self._unit_of_work() as session:
            officer = session.get(Officer, officer_id)
            if officer is None:
                raise NotFoundError("officer not found")
            apply_values(officer, merged, OFFICER_FIELDS)
            officer.updated_at = now_utc()
            session.add(officer)
            if role_ids is not None:
                reconcile_children(
                    session,
                    OfficerRole,
                    "officer_id",
                    officer_id,
                    [OfficerRole(officer_id=officer_id, role_id=role_id) for role_id in role_ids],
                )
        logger.info("officer %s updated", officer_id)
        return self.get_officer(officer_id)

    def deactivate_officer(self, officer_id: int) -> None:
        with self._unit_of_work() as session:
            officer = session.get(Officer, officer_id)
            if officer is None:
                raise NotFoundError("officer not found")
            officer.status = OfficerStatus.LOCKED
            officer.is_active = False
            officer.updated_at = now_utc()
            session.add(officer)
        logger.warning("officer %s deactivated", officer_id)
