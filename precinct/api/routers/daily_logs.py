from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import get_current_claims, require_any_perm, require_perm
from precinct.domain.models import (
    ApiResponse,
    DailyLogCreate,
    DailyLogRead,
    DailyLogUpdate,
    LogStatisticsRead,
    MissingLogDatesRead,
    SessionClaims,
    TodayLogRead,
)
from precinct.domain.permissions import PERM_LOG_MANAGE, PERM_LOG_VIEW_ALL
from precinct.services.daily_log_service import DailyLogService

router = APIRouter()

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def get_daily_log_service() -> DailyLogService:
    return DailyLogService()


Claims = Annotated[SessionClaims, Depends(get_current_claims)]
Service = Annotated[DailyLogService, Depends(get_daily_log_service)]
CanRead = Depends(require_any_perm(PERM_LOG_MANAGE, PERM_LOG_VIEW_ALL))


@router.get("", response_model=ApiResponse[list[DailyLogRead]], dependencies=[CanRead])
def list_logs(
    claims: Claims,
    service: Service,
    officer_id: Annotated[int | None, Query(alias="officerId", gt=0)] = None,
    date_from: Annotated[str | None, Query(alias="dateFrom", pattern=DATE_PATTERN)] = None,
    date_to: Annotated[str | None, Query(alias="dateTo", pattern=DATE_PATTERN)] = None,
    is_on_duty: Annotated[bool | None, Query(alias="isOnDuty")] = None,
) -> ApiResponse[list[DailyLogRead]]:
    logs = service.list_logs(
        claims,
        officer_id=officer_id,
        date_from=date_from,
        date_to=date_to,
        is_on_duty=is_on_duty,
    )
    return ApiResponse(data=[DailyLogRead.model_validate(item) for item in logs])


@router.get("/today", response_model=ApiResponse[TodayLogRead], dependencies=[CanRead])
def today_log(claims: Claims, service: Service) -> ApiResponse[TodayLogRead]:
    log = service.get_today(claims)
    read = DailyLogRead.model_validate(log) if log is not None else None
    return ApiResponse(data=TodayLogRead(has_today_log=log is not None, today_log=read))


@router.get("/missing-dates", response_model=ApiResponse[MissingLogDatesRead], dependencies=[CanRead])
def missing_dates(
    claims: Claims,
    service: Service,
    days: Annotated[int, Query(ge=1, le=30)] = 7,
    officer_id: Annotated[int | None, Query(alias="officerId", gt=0)] = None,
) -> ApiResponse[MissingLogDatesRead]:
    dates = service.missing_dates(claims, days, officer_id)
    target = officer_id or claims.principal_id
    return ApiResponse(data=MissingLogDatesRead(officer_id=target, days=days, missing_dates=dates))


@router.get("/statistics", response_model=ApiResponse[LogStatisticsRead], dependencies=[CanRead])
def statistics(
    claims: Claims,
    service: Service,
    date_from: Annotated[str, Query(alias="dateFrom", pattern=DATE_PATTERN)],
    date_to: Annotated[str, Query(alias="dateTo", pattern=DATE_PATTERN)],
    officer_id: Annotated[int | None, Query(alias="officerId", gt=0)] = None,
) -> ApiResponse[LogStatisticsRead]:
    return ApiResponse(data=service.statistics(claims, date_from, date_to, officer_id))


@router.get("/{log_id}", response_model=ApiResponse[DailyLogRead], dependencies=[CanRead])
def get_log(log_id: int, claims: Claims, service: Service) -> ApiResponse[DailyLogRead]:
    return ApiResponse(data=DailyLogRead.model_validate(service.get_log(log_id, claims)))


@router.post(
    "",
    response_model=ApiResponse[DailyLogRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_LOG_MANAGE))],
)
def create_log(payload: DailyLogCreate, claims: Claims, service: Service) -> ApiResponse[DailyLogRead]:
    log = service.create_log(payload, claims)
    return ApiResponse(data=DailyLogRead.model_validate(log), message="daily log created")


@router.put(
    "/{log_id}",
    response_model=ApiResponse[DailyLogRead],
    dependencies=[Depends(require_perm(PERM_LOG_MANAGE))],
)
def update_log(log_id: int, payload: DailyLogUpdate, claims: Claims, service: Service) -> ApiResponse[DailyLogRead]:
    log = service.update_log(log_id, payload, claims)
    return ApiResponse(data=DailyLogRead.model_validate(log), message="daily log updated")


@router.delete(
    "/{log_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_perm(PERM_LOG_MANAGE))],
)
def delete_log(log_id: int, claims: Claims, service: Service) -> ApiResponse[None]:
    service.delete_log(log_id, claims)
    return ApiResponse(data=None, message="daily log deleted")
