from __future__ import annotations

import logging
from typing import Any, Literal

from sqlalchemy import case, exists, or_
from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from precinct.domain.models import (
    CaseCreate,
    CaseDetail,
    CaseOfficer,
    CaseOfficerInput,
    CaseOfficerRead,
    CasePerson,
    CasePersonInput,
    CasePersonRead,
    CaseRead,
    CaseRecord,
    CaseStatus,
    CaseUpdate,
    SessionClaims,
    now_utc,
)
from precinct.domain.permissions import PERM_CASE_VIEW_ALL, has_permission
from precinct.domain.rules import validate_case
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import (
    AggregateService,
    apply_values,
    ensure_participant,
    load_children,
    merge_patch,
    patch_includes,
    reconcile_children,
    row_id,
)
from precinct.services.paging import apply_pagination, count_rows

logger = logging.getLogger(__name__)

MAIN_OFFICER_ROLE = "主办"
CASE_NO_CONFLICT = "case number already exists"

CASE_FIELDS = (
    "case_no",
    "case_name",
    "case_type_item_id",
    "main_officer_id",
    "received_date",
    "deadline_date",
    "status",
    "closed_date",
    "result_item_id",
    "transfer_target",
    "transfer_date",
    "transfer_return_date",
    "archive_location",
    "archive_date",
    "summary",
    "remark",
)
CHILD_COLLECTIONS = {"officers", "persons"}

CASE_POLICY = ConstraintPolicy(
    conflict_message=CASE_NO_CONFLICT,
    unique_fields={
        "uq_case_records_case_no": "caseNo",
        "case_records.case_no": "caseNo",
    },
    check_fields={
        "ck_case_records_deadline_after_received": (
            "deadlineDate",
            "deadline date must not precede received date",
        ),
    },
)

STATUS_ORDER = case(
    (col(CaseRecord.status) == CaseStatus.IN_PROGRESS, 0),
    (col(CaseRecord.status) == CaseStatus.TRANSFERRED, 1),
    (col(CaseRecord.status) == CaseStatus.ARCHIVED, 2),
    (col(CaseRecord.status) == CaseStatus.CLOSED, 3),
    else_=4,
)

CaseScope = Literal["my", "all"]


def _officer_rows(officers: list[CaseOfficerInput], main_officer_id: int) -> list[CaseOfficer]:
    rows = [
        CaseOfficer(officer_id=item.officer_id, role=item.role, remark=item.remark)
        for item in {item.officer_id: item for item in officers}.values()
    ]

    def adopt(row: CaseOfficer) -> None:
        if not row.role:
            row.role = MAIN_OFFICER_ROLE

    return ensure_participant(
        rows,
        main_officer_id,
        key=lambda row: row.officer_id,
        build=lambda: CaseOfficer(officer_id=main_officer_id, role=MAIN_OFFICER_ROLE),
        adopt=adopt,
    )


def _person_rows(persons: list[CasePersonInput]) -> list[CasePerson]:
    return [CasePerson(**item.model_dump()) for item in persons]


class CaseService(AggregateService):
    constraint_policy = CASE_POLICY

    def _get_case(self, session: Session, case_id: int) -> CaseRecord:
        record = session.get(CaseRecord, case_id)
        if record is None:
            raise NotFoundError("case not found")
        return record

    def _is_participant(self, session: Session, record: CaseRecord, officer_id: int) -> bool:
        if record.main_officer_id == officer_id:
            return True
        statement = (
            select(CaseOfficer.id)
            .where(CaseOfficer.case_id == record.id)
            .where(CaseOfficer.officer_id == officer_id)
        )
        return session.exec(statement).first() is not None

    def _authorize_owner(self, record: CaseRecord, claims: SessionClaims, action: str) -> None:
        if has_permission(claims, PERM_CASE_VIEW_ALL):
            return
        if record.main_officer_id != claims.principal_id:
            raise PermissionDeniedError(f"not allowed to {action} this case")

    def _check_case_no(self, session: Session, case_no: str | None, exclude_id: int | None = None) -> None:
        if not case_no:
            return
        statement = select(CaseRecord.id).where(CaseRecord.case_no == case_no)
        if exclude_id is not None:
            statement = statement.where(CaseRecord.id != exclude_id)
        if session.exec(statement).first() is not None:
            raise ConflictError(CASE_NO_CONFLICT, {"caseNo": CASE_NO_CONFLICT})

    def _detail(self, session: Session, record: CaseRecord) -> CaseDetail:
        case_id = row_id(record)
        officers = load_children(session, CaseOfficer, "case_id", case_id)
        persons = load_children(session, CasePerson, "case_id", case_id)
        return CaseDetail(
            **CaseRead.model_validate(record).model_dump(),
            officers=[CaseOfficerRead.model_validate(item) for item in officers],
            persons=[CasePersonRead.model_validate(item) for item in persons],
        )

    def list_cases(
        self,
        claims: SessionClaims,
        *,
        scope: CaseScope = "my",
        keyword: str | None = None,
        case_type_item_id: int | None = None,
        status: CaseStatus | None = None,
        received_from: str | None = None,
        received_to: str | None = None,
        main_officer_id: int | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[CaseRead], int]:
        can_view_all = has_permission(claims, PERM_CASE_VIEW_ALL)
        effective_scope = "all" if scope == "all" and can_view_all else "my"

        statement = select(CaseRecord)
        if keyword:
            pattern = f"%{keyword.strip()}%"
            statement = statement.where(
                or_(col(CaseRecord.case_name).like(pattern), col(CaseRecord.case_no).like(pattern))
            )
        if case_type_item_id is not None:
            statement = statement.where(CaseRecord.case_type_item_id == case_type_item_id)
        if status is not None:
            statement = statement.where(CaseRecord.status == status)
        if received_from:
            statement = statement.where(col(CaseRecord.received_date) >= received_from)
        if received_to:
            statement = statement.where(col(CaseRecord.received_date) <= received_to)
        if main_officer_id is not None and can_view_all:
            statement = statement.where(CaseRecord.main_officer_id == main_officer_id)
        if effective_scope == "my":
            participates = exists().where(
                col(CaseOfficer.case_id) == col(CaseRecord.id),
                col(CaseOfficer.officer_id) == claims.principal_id,
            )
            statement = statement.where(
                or_(CaseRecord.main_officer_id == claims.principal_id, participates)
            )

        with self._session() as session:
            total = count_rows(session, statement)
            statement = statement.order_by(
                STATUS_ORDER,
                col(CaseRecord.deadline_date).is_(None),
                col(CaseRecord.deadline_date).asc(),
                col(CaseRecord.id).desc(),
            )
            rows = session.exec(apply_pagination(statement, page, page_size)).all()
            return [CaseRead.model_validate(row) for row in rows], total

    def get_case(self, case_id: int, claims: SessionClaims) -> CaseDetail:
        with self._session() as session:
            record = self._get_case(session, case_id)
            if not has_permission(claims, PERM_CASE_VIEW_ALL) and not self._is_participant(
                session, record, claims.principal_id
            ):
                raise PermissionDeniedError("not allowed to view this case")
            return self._detail(session, record)

    def _reload(self, case_id: int) -> CaseDetail:
        # No view check: the write may have handed the case to another officer.
        with self._session() as session:
            return self._detail(session, self._get_case(session, case_id))

    def create_case(self, payload: CaseCreate, claims: SessionClaims) -> CaseDetail:
        values: dict[str, Any] = payload.model_dump(exclude=CHILD_COLLECTIONS)
        if values.get("main_officer_id") is None:
            values["main_officer_id"] = claims.principal_id
        validate_case(values)

        with self._session() as session:
            self._check_case_no(session, values["case_no"])

        record = CaseRecord(**values, created_by=claims.principal_id)
        with self._unit_of_work() as session:
            session.add(record)
            session.flush()
            case_id = row_id(record)
            reconcile_children(
                session,
                CaseOfficer,
                "case_id",
                case_id,
                _officer_rows(payload.officers or [], record.main_officer_id),
            )
            if payload.persons:
                reconcile_children(session, CasePerson, "case_id", case_id, _person_rows(payload.persons))
        logger.info("case %s (%s) created by officer %s", case_id, record.case_no, claims.principal_id)
        return self._reload(case_id)

    def update_case(self, case_id: int, payload: CaseUpdate, claims: SessionClaims) -> CaseDetail:
        with self._session() as session:
            existing = self._get_case(session, case_id)
            self._authorize_owner(existing, claims, "modify")
            merged = merge_patch(existing, payload, exclude=CHILD_COLLECTIONS)
            if merged.get("status") is None:
                merged["status"] = existing.status
            validate_case(merged)
            if merged["case_no"] != existing.case_no:
                self._check_case_no(session, merged["case_no"], case_id)
            main_changed = merged["main_officer_id"] != existing.main_officer_id

        with self._unit_of_work() as session:
            record = self._get_case(session, case_id)
            apply_values(record, merged, CASE_FIELDS)
            record.updated_at = now_utc()
            session.add(record)
            if patch_includes(payload, "officers"):
                reconcile_children(
                    session,
                    CaseOfficer,
                    "case_id",
                    case_id,
                    _officer_rows(payload.officers or [], record.main_officer_id),
                )
            elif main_changed:
                current = load_children(session, CaseOfficer, "case_id", case_id)
                if all(row.officer_id != record.main_officer_id for row in current):
                    session.add(
                        CaseOfficer(case_id=case_id, officer_id=record.main_officer_id, role=MAIN_OFFICER_ROLE)
                    )
            if patch_includes(payload, "persons"):
                reconcile_children(session, CasePerson, "case_id", case_id, _person_rows(payload.persons or []))
        logger.info("case %s updated by officer %s", case_id, claims.principal_id)
        return self._reload(case_id)

    def delete_case(self, case_id: int, claims: SessionClaims) -> None:
        with self._unit_of_work() as session:
            record = self._get_case(session, case_id)
            self._authorize_owner(record, claims, "delete")
            if record.status != CaseStatus.IN_PROGRESS:
                raise ValidationFailedError(
                    "only in-progress cases can be deleted",
                    {"status": "only in-progress cases can be deleted"},
                )
            session.delete(record)
        logger.warning("case %s deleted by officer %s", case_id, claims.principal_id)
