from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from precinct.api.deps import require_perm
from precinct.domain.models import (
    ApiResponse,
    InspectionCreate,
    InspectionRead,
    InspectionUpdate,
    Page,
    PlaceCreate,
    PlaceRead,
    PlaceUpdate,
)
from precinct.domain.permissions import PERM_NINE_INSPECT, PERM_NINE_MANAGE
from precinct.services.nine_small_service import NineSmallService
from precinct.services.paging import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


def get_nine_small_service() -> NineSmallService:
    return NineSmallService()


Service = Annotated[NineSmallService, Depends(get_nine_small_service)]
PageQuery = Annotated[int, Query(ge=1)]
PageSizeQuery = Annotated[int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)]


@router.get(
    "/places",
    response_model=ApiResponse[Page[PlaceRead]],
    dependencies=[Depends(require_perm(PERM_NINE_MANAGE))],
)
def list_places(
    service: Service,
    community_id: Annotated[int | None, Query(alias="communityId", gt=0)] = None,
    place_name: Annotated[str | None, Query(alias="placeName", max_length=100)] = None,
    type_item_id: Annotated[int | None, Query(alias="typeItemId", gt=0)] = None,
    page: PageQuery = 1,
    page_size: PageSizeQuery = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[PlaceRead]]:
    items, total = service.list_places(
        community_id=community_id,
        place_name=place_name,
        type_item_id=type_item_id,
        page=page,
        page_size=page_size,
    )
    reads = [PlaceRead.model_validate(item) for item in items]
    return ApiResponse(data=Page[PlaceRead](items=reads, total=total, page=page, page_size=page_size))


@router.get(
    "/places/{place_id}",
    response_model=ApiResponse[PlaceRead],
    dependencies=[Depends(require_perm(PERM_NINE_MANAGE))],
)
def get_place(place_id: int, service: Service) -> ApiResponse[PlaceRead]:
    return ApiResponse(data=PlaceRead.model_validate(service.get_place(place_id)))


@router.post(
    "/places",
    response_model=ApiResponse[PlaceRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_NINE_MANAGE))],
)
def create_place(payload: PlaceCreate, service: Service) -> ApiResponse[PlaceRead]:
    return ApiResponse(data=PlaceRead.model_validate(service.create_place(payload)), message="place created")


@router.put(
    "/places/{place_id}",
    response_model=ApiResponse[PlaceRead],
    dependencies=[Depends(require_perm(PERM_NINE_MANAGE))],
)
def update_place(place_id: int, payload: PlaceUpdate, service: Service) -> ApiResponse[PlaceRead]:
    place = service.update_place(place_id, payload)
    return ApiResponse(data=PlaceRead.model_validate(place), message="place updated")


@router.get(
    "/places/{place_id}/inspections",
    response_model=ApiResponse[Page[InspectionRead]],
    dependencies=[Depends(require_perm(PERM_NINE_INSPECT))],
)
def list_inspections(
    place_id: int,
    service: Service,
    page: PageQuery = 1,
    page_size: PageSizeQuery = DEFAULT_PAGE_SIZE,
) -> ApiResponse[Page[InspectionRead]]:
    items, total = service.list_inspections(place_id, page=page, page_size=page_size)
    reads = [InspectionRead.model_validate(item) for item in items]
    return ApiResponse(data=Page[InspectionRead](items=reads, total=total, page=page, page_size=page_size))


@router.post(
    "/places/{place_id}/inspections",
    response_model=ApiResponse[InspectionRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_NINE_INSPECT))],
)
def create_inspection(place_id: int, payload: InspectionCreate, service: Service) -> ApiResponse[InspectionRead]:
    inspection = service.create_inspection(place_id, payload)
    return ApiResponse(data=InspectionRead.model_validate(inspection), message="inspection recorded")


@router.get(
    "/inspections/{inspection_id}",
    response_model=ApiResponse[InspectionRead],
    dependencies=[Depends(require_perm(PERM_NINE_INSPECT))],
)
def get_inspection(inspection_id: int, service: Service) -> ApiResponse[InspectionRead]:
    return ApiResponse(data=InspectionRead.model_validate(service.get_inspection(inspection_id)))


@router.put(
    "/inspections/{inspection_id}",
    response_model=ApiResponse[InspectionRead],
    dependencies=[Depends(require_perm(PERM_NINE_INSPECT))],
)
def update_inspection(
    inspection_id: int,
    payload: InspectionUpdate,
    service: Service,
) -> ApiResponse[InspectionRead]:
    inspection = service.update_inspection(inspection_id, payload)
    return ApiResponse(data=InspectionRead.model_validate(inspection), message="inspection updated")
