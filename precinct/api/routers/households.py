from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import require_perm
from precinct.domain.models import (
    ApiResponse,
    HouseholdCreate,
    HouseholdDetail,
    HouseholdRead,
    HouseholdUpdate,
    Page,
)
from precinct.domain.permissions import PERM_COMMUNITY_MANAGE
from precinct.services.household_service import HouseholdService
from precinct.services.paging import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(dependencies=[Depends(require_perm(PERM_COMMUNITY_MANAGE))])


def get_household_service() -> HouseholdService:
    return HouseholdService()


Service = Annotated[HouseholdService, Depends(get_household_service)]


@router.get("", response_model=ApiResponse[Page[HouseholdRead]])
def list_households(
    service: Service,
    community_id: Annotated[int | None, Query(alias="communityId", gt=0)] = None,
    police_officer_id: Annotated[int | None, Query(alias="policeOfficerId", gt=0)] = None,
    is_rental: Annotated[bool | None, Query(alias="isRental")] = None,
    house_type_item_id: Annotated[int | None, Query(alias="houseTypeItemId", gt=0)] = None,
    keyword: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[HouseholdRead]]:
    items, total = service.list_households(
        community_id=community_id,
        police_officer_id=police_officer_id,
        is_rental=is_rental,
        house_type_item_id=house_type_item_id,
        keyword=keyword,
        page=page,
        page_size=page_size,
    )
    return ApiResponse(data=Page[HouseholdRead](items=items, total=total, page=page, page_size=page_size))


@router.get("/{household_id}", response_model=ApiResponse[HouseholdDetail])
def get_household(household_id: int, service: Service) -> ApiResponse[HouseholdDetail]:
    return ApiResponse(data=service.get_household(household_id))


@router.post("", response_model=ApiResponse[HouseholdDetail], status_code=status.HTTP_201_CREATED)
def create_household(payload: HouseholdCreate, service: Service) -> ApiResponse[HouseholdDetail]:
    return ApiResponse(data=service.create_household(payload), message="household created")


@router.put("/{household_id}", response_model=ApiResponse[HouseholdDetail])
def update_household(
    household_id: int,
    payload: HouseholdUpdate,
    service: Service,
) -> ApiResponse[HouseholdDetail]:
    return ApiResponse(data=service.update_household(household_id, payload), message="household updated")
