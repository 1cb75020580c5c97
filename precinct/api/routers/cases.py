from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import get_current_claims, require_any_perm, require_perm
from precinct.domain.models import (
    ApiResponse,
    CaseCreate,
    CaseDetail,
    CaseRead,
    CaseStatus,
    CaseUpdate,
    Page,
    SessionClaims,
)
from precinct.domain.permissions import PERM_CASE_CREATE, PERM_CASE_VIEW_ALL, PERM_CASE_VIEW_MY
from precinct.services.case_service import CaseScope, CaseService
from precinct.services.paging import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


def get_case_service() -> CaseService:
    return CaseService()


Claims = Annotated[SessionClaims, Depends(get_current_claims)]
Service = Annotated[CaseService, Depends(get_case_service)]


@router.get(
    "",
    response_model=ApiResponse[Page[CaseRead]],
    dependencies=[Depends(require_any_perm(PERM_CASE_VIEW_MY, PERM_CASE_VIEW_ALL))],
)
def list_cases(
    claims: Claims,
    service: Service,
    scope: CaseScope = "my",
    keyword: str | None = None,
    case_type_item_id: Annotated[int | None, Query(alias="caseTypeItemId", gt=0)] = None,
    status_filter: Annotated[CaseStatus | None, Query(alias="status")] = None,
    received_from: Annotated[str | None, Query(alias="receivedFrom", pattern=r"^\d{4}-\d{2}-\d{2}$")] = None,
    received_to: Annotated[str | None, Query(alias="receivedTo", pattern=r"^\d{4}-\d{2}-\d{2}$")] = None,
    main_officer_id: Annotated[int | None, Query(alias="mainOfficerId", gt=0)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[CaseRead]]:
    items, total = service.list_cases(
        claims,
        scope=scope,
        keyword=keyword,
        case_type_item_id=case_type_item_id,
        status=status_filter,
        received_from=received_from,
        received_to=received_to,
        main_officer_id=main_officer_id,
        page=page,
        page_size=page_size,
    )
    return ApiResponse(data=Page[CaseRead](items=items, total=total, page=page, page_size=page_size))


@router.get(
    "/{case_id}",
    response_model=ApiResponse[CaseDetail],
    dependencies=[Depends(require_any_perm(PERM_CASE_VIEW_MY, PERM_CASE_VIEW_ALL))],
)
def get_case(case_id: int, claims: Claims, service: Service) -> ApiResponse[CaseDetail]:
    return ApiResponse(data=service.get_case(case_id, claims))


@router.post(
    "",
    response_model=ApiResponse[CaseDetail],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_CASE_CREATE))],
)
def create_case(payload: CaseCreate, claims: Claims, service: Service) -> ApiResponse[CaseDetail]:
    return ApiResponse(data=service.create_case(payload, claims), message="case created")


@router.put(
    "/{case_id}",
    response_model=ApiResponse[CaseDetail],
    dependencies=[Depends(require_perm(PERM_CASE_CREATE))],
)
def update_case(case_id: int, payload: CaseUpdate, claims: Claims, service: Service) -> ApiResponse[CaseDetail]:
    return ApiResponse(data=service.update_case(case_id, payload, claims), message="case updated")


@router.delete(
    "/{case_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_perm(PERM_CASE_CREATE))],
)
def delete_case(case_id: int, claims: Claims, service: Service) -> ApiResponse[None]:
    service.delete_case(case_id, claims)
    return ApiResponse(data=None, message="case deleted")
