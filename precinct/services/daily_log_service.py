from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import case, func
from sqlmodel import Session, col, select

from precinct.domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from precinct.domain.models import (
    DailyLog,
    DailyLogCreate,
    DailyLogUpdate,
    LogStatisticsRead,
    SessionClaims,
    now_utc,
)
from precinct.domain.permissions import PERM_LOG_VIEW_ALL, has_permission
from precinct.domain.rules import validate_daily_log, validate_date_range
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import AggregateService, apply_values, merge_patch

logger = logging.getLogger(__name__)

DUPLICATE_DAY = "a log already exists for this date"

LOG_FIELDS = (
    "log_date",
    "is_on_duty",
    "alarm_count",
    "admin_case_count",
    "criminal_case_count",
    "content",
)
NOT_NULL_FIELDS = ("is_on_duty", "alarm_count", "admin_case_count", "criminal_case_count")

DAILY_LOG_POLICY = ConstraintPolicy(
    conflict_message=DUPLICATE_DAY,
    unique_fields={
        "uq_daily_logs_officer_date": "logDate",
        "daily_logs.officer_id": "logDate",
    },
)


def today() -> date:
    return date.today()


class DailyLogService(AggregateService):
    constraint_policy = DAILY_LOG_POLICY

    def _get_log(self, session: Session, log_id: int) -> DailyLog:
        log = session.get(DailyLog, log_id)
        if log is None:
            raise NotFoundError("daily log not found")
        return log

    def _check_day(self, session: Session, officer_id: int, log_date: str, exclude_id: int | None = None) -> None:
        statement = (
            select(DailyLog.id)
            .where(DailyLog.officer_id == officer_id)
            .where(DailyLog.log_date == log_date)
        )
        if exclude_id is not None:
            statement = statement.where(DailyLog.id != exclude_id)
        if session.exec(statement).first() is not None:
            raise ConflictError(DUPLICATE_DAY, {"logDate": DUPLICATE_DAY})

    def _authorize_owner(self, log: DailyLog, claims: SessionClaims, action: str) -> None:
        if log.officer_id != claims.principal_id:
            raise PermissionDeniedError(f"only the author can {action} this log")

    def resolve_officer(self, claims: SessionClaims, officer_id: int | None) -> int:
        target = officer_id or claims.principal_id
        if target != claims.principal_id and not has_permission(claims, PERM_LOG_VIEW_ALL):
            raise PermissionDeniedError("only your own logs are visible")
        return target

    def list_logs(
        self,
        claims: SessionClaims,
        *,
        officer_id: int | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        is_on_duty: bool | None = None,
    ) -> list[DailyLog]:
        target = self.resolve_officer(claims, officer_id)
        statement = select(DailyLog).where(DailyLog.officer_id == target)
        if date_from:
            statement = statement.where(col(DailyLog.log_date) >= date_from)
        if date_to:
            statement = statement.where(col(DailyLog.log_date) <= date_to)
        if is_on_duty is not None:
            statement = statement.where(DailyLog.is_on_duty == is_on_duty)
        statement = statement.order_by(col(DailyLog.log_date).desc(), col(DailyLog.id).desc())
        with self._session() as session:
            return list(session.exec(statement).all())

    def get_log(self, log_id: int, claims: SessionClaims) -> DailyLog:
        with self._session() as session:
            log = self._get_log(session, log_id)
        if log.officer_id != claims.principal_id and not has_permission(claims, PERM_LOG_VIEW_ALL):
            raise PermissionDeniedError("only your own logs are visible")
        return log

    def get_today(self, claims: SessionClaims) -> DailyLog | None:
        statement = (
            select(DailyLog)
            .where(DailyLog.officer_id == claims.principal_id)
            .where(DailyLog.log_date == today().isoformat())
        )
        with self._session() as session:
            return session.exec(statement).first()

    def missing_dates(self, claims: SessionClaims, days: int, officer_id: int | None = None) -> list[str]:
        target = self.resolve_officer(claims, officer_id)
        current = today()
        window = [(current - timedelta(days=offset)).isoformat() for offset in range(days)]
        statement = (
            select(DailyLog.log_date)
            .where(DailyLog.officer_id == target)
            .where(col(DailyLog.log_date) >= window[-1])
        )
        with self._session() as session:
            logged = set(session.exec(statement).all())
        return [day for day in window if day not in logged]

    def statistics(
        self,
        claims: SessionClaims,
        date_from: str,
        date_to: str,
        officer_id: int | None = None,
    ) -> LogStatisticsRead:
        validate_date_range(date_from, date_to)
        target = self.resolve_officer(claims, officer_id)
        statement = (
            select(
                func.count(col(DailyLog.id)),
                func.sum(case((col(DailyLog.is_on_duty), 1), else_=0)),
                func.sum(DailyLog.alarm_count),
                func.sum(DailyLog.admin_case_count),
                func.sum(DailyLog.criminal_case_count),
            )
            .where(DailyLog.officer_id == target)
            .where(col(DailyLog.log_date) >= date_from)
            .where(col(DailyLog.log_date) <= date_to)
        )
        with self._session() as session:
            total, duty, alarms, admin_cases, criminal_cases = session.exec(statement).one()
        # SUM over no rows is NULL.
        return LogStatisticsRead(
            officer_id=target,
            date_from=date_from,
            date_to=date_to,
            total_logs=total or 0,
            duty_days=duty or 0,
            total_alarms=alarms or 0,
            total_admin_cases=admin_cases or 0,
            total_criminal_cases=criminal_cases or 0,
        )

    def create_log(self, payload: DailyLogCreate, claims: SessionClaims) -> DailyLog:
        values = payload.model_dump()
        validate_daily_log(values, today=today().isoformat())
        with self._session() as session:
            self._check_day(session, claims.principal_id, payload.log_date)

        log = DailyLog(officer_id=claims.principal_id, **values)
        with self._unit_of_work() as session:
            session.add(log)
        logger.info("daily log %s created for %s by officer %s", log.id, log.log_date, claims.principal_id)
        return log

    def update_log(self, log_id: int, payload: DailyLogUpdate, claims: SessionClaims) -> DailyLog:
        with self._session() as session:
            existing = self._get_log(session, log_id)
            self._authorize_owner(existing, claims, "modify")
            merged = merge_patch(existing, payload)
            for name in NOT_NULL_FIELDS:
                if merged.get(name) is None:
                    merged[name] = getattr(existing, name)
            validate_daily_log(merged, today=today().isoformat())
            if merged["log_date"] != existing.log_date:
                self._check_day(session, existing.officer_id, merged["log_date"], log_id)

        with self._unit_of_work() as session:
            log = self._get_log(session, log_id)
            apply_values(log, merged, LOG_FIELDS)
            log.updated_at = now_utc()
            session.add(log)
        logger.info("daily log %s updated", log_id)
        return log

    def delete_log(self, log_id: int, claims: SessionClaims) -> None:
        with self._unit_of_work() as session:
            log = self._get_log(session, log_id)
            self._authorize_owner(log, claims, "delete")
            session.delete(log)
        logger.warning("daily log %s deleted by officer %s", log_id, claims.principal_id)
