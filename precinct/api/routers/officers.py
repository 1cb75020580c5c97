from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import require_perm
from precinct.domain.models import (
    ApiResponse,
    OfficerCreate,
    OfficerCreated,
    OfficerRead,
    OfficerStatus,
    OfficerUpdate,
    Page,
    RoleRead,
)
from precinct.domain.permissions import PERM_USER_MANAGE
from precinct.services.officer_service import OfficerService
from precinct.services.paging import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(dependencies=[Depends(require_perm(PERM_USER_MANAGE))])


def get_officer_service() -> OfficerService:
    return OfficerService()


Service = Annotated[OfficerService, Depends(get_officer_service)]


@router.get("", response_model=ApiResponse[Page[OfficerRead]])
def list_officers(
    service: Service,
    keyword: str | None = None,
    status_filter: Annotated[OfficerStatus | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[OfficerRead]]:
    items, total = service.list_officers(keyword=keyword, status=status_filter, page=page, page_size=page_size)
    return ApiResponse(data=Page[OfficerRead](items=items, total=total, page=page, page_size=page_size))


@router.get("/roles", response_model=ApiResponse[list[RoleRead]])
def list_roles(service: Service) -> ApiResponse[list[RoleRead]]:
    return ApiResponse(data=[RoleRead.model_validate(item) for item in service.list_roles()])


@router.post("", response_model=ApiResponse[OfficerCreated], status_code=status.HTTP_201_CREATED)
def create_officer(payload: OfficerCreate, service: Service) -> ApiResponse[OfficerCreated]:
    return ApiResponse(data=service.create_officer(payload), message="officer created")


@router.get("/{officer_id}", response_model=ApiResponse[OfficerRead])
def get_officer(officer_id: int, service: Service) -> ApiResponse[OfficerRead]:
    return ApiResponse(data=service.get_officer(officer_id))


@router.put("/{officer_id}", response_model=ApiResponse[OfficerRead])
def update_officer(officer_id: int, payload: OfficerUpdate, service: Service) -> ApiResponse[OfficerRead]:
    return ApiResponse(data=service.update_officer(officer_id, payload), message="officer updated")


@router.delete("/{officer_id}", response_model=ApiResponse[None])
def deactivate_officer(officer_id: int, service: Service) -> ApiResponse[None]:
    service.deactivate_officer(officer_id)
    return ApiResponse(data=None, message="officer deactivated")
