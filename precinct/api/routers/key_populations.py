from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import get_current_claims, require_any_perm, require_perm
from precinct.domain.models import (
    ApiResponse,
    KeyPopulationCreate,
    KeyPopulationRead,
    KeyPopulationUpdate,
    Page,
    SessionClaims,
    VisitCreate,
    VisitRead,
    VisitUpdate,
)
from precinct.domain.permissions import (
    PERM_KEYPOP_MANAGE,
    PERM_KEYPOP_VIEW_ALL,
    PERM_KEYPOP_VIEW_MY,
    PERM_KEYPOP_VISIT,
)
from precinct.services.key_population_service import KeyPopulationService
from precinct.services.paging import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


def get_key_population_service() -> KeyPopulationService:
    return KeyPopulationService()


Claims = Annotated[SessionClaims, Depends(get_current_claims)]
Service = Annotated[KeyPopulationService, Depends(get_key_population_service)]
CanView = Depends(require_any_perm(PERM_KEYPOP_VIEW_MY, PERM_KEYPOP_VIEW_ALL))
CanManage = Depends(require_perm(PERM_KEYPOP_MANAGE))
CanVisit = Depends(require_perm(PERM_KEYPOP_VISIT))


@router.get("", response_model=ApiResponse[Page[KeyPopulationRead]], dependencies=[CanView])
def list_populations(
    claims: Claims,
    service: Service,
    community_id: Annotated[int | None, Query(alias="communityId", gt=0)] = None,
    type_item_id: Annotated[int | None, Query(alias="typeItemId", gt=0)] = None,
    name: Annotated[str | None, Query(max_length=100)] = None,
    id_card_no: Annotated[str | None, Query(alias="idCardNo", max_length=50)] = None,
    is_key: Annotated[bool | None, Query(alias="isKey")] = None,
    control_officer_id: Annotated[int | None, Query(alias="controlOfficerId", gt=0)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[KeyPopulationRead]]:
    items, total = service.list_populations(
        claims,
        community_id=community_id,
        type_item_id=type_item_id,
        name=name,
        id_card_no=id_card_no,
        is_key=is_key,
        control_officer_id=control_officer_id,
        page=page,
        page_size=page_size,
    )
    return ApiResponse(data=Page[KeyPopulationRead](items=items, total=total, page=page, page_size=page_size))


@router.get("/{population_id}", response_model=ApiResponse[KeyPopulationRead], dependencies=[CanView])
def get_population(population_id: int, claims: Claims, service: Service) -> ApiResponse[KeyPopulationRead]:
    return ApiResponse(data=service.get_population(population_id, claims))


@router.post(
    "",
    response_model=ApiResponse[KeyPopulationRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[CanManage],
)
def create_population(
    payload: KeyPopulationCreate,
    claims: Claims,
    service: Service,
) -> ApiResponse[KeyPopulationRead]:
    return ApiResponse(data=service.create_population(payload, claims), message="key population created")


@router.put("/{population_id}", response_model=ApiResponse[KeyPopulationRead], dependencies=[CanManage])
def update_population(
    population_id: int,
    payload: KeyPopulationUpdate,
    claims: Claims,
    service: Service,
) -> ApiResponse[KeyPopulationRead]:
    population = service.update_population(population_id, payload, claims)
    return ApiResponse(data=population, message="key population updated")


@router.delete("/{population_id}", response_model=ApiResponse[None], dependencies=[CanManage])
def delete_population(population_id: int, claims: Claims, service: Service) -> ApiResponse[None]:
    service.delete_population(population_id, claims)
    return ApiResponse(data=None, message="key population and its visits deleted")


@router.get("/{population_id}/visits", response_model=ApiResponse[list[VisitRead]], dependencies=[CanView])
def list_visits(population_id: int, claims: Claims, service: Service) -> ApiResponse[list[VisitRead]]:
    return ApiResponse(data=service.list_visits(population_id, claims))


@router.post(
    "/{population_id}/visits",
    response_model=ApiResponse[VisitRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[CanVisit],
)
def create_visit(
    population_id: int,
    payload: VisitCreate,
    claims: Claims,
    service: Service,
) -> ApiResponse[VisitRead]:
    visit = service.create_visit(population_id, payload, claims)
    return ApiResponse(data=visit, message="visit recorded and next visit date rescheduled")


@router.put("/visits/{visit_id}", response_model=ApiResponse[VisitRead], dependencies=[CanVisit])
def update_visit(visit_id: int, payload: VisitUpdate, claims: Claims, service: Service) -> ApiResponse[VisitRead]:
    return ApiResponse(data=service.update_visit(visit_id, payload, claims), message="visit updated")


@router.delete("/visits/{visit_id}", response_model=ApiResponse[None], dependencies=[CanVisit])
def delete_visit(visit_id: int, claims: Claims, service: Service) -> ApiResponse[None]:
    service.delete_visit(visit_id, claims)
    return ApiResponse(data=None, message="visit deleted")
