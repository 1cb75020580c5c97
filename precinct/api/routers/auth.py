from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from precinct.api.deps import get_current_claims
from precinct.domain.models import (
    ApiResponse,
    BootstrapAdminRequest,
    ChangePasswordRequest,
    CurrentOfficerRead,
    LoginRequest,
    RegisterRequest,
    SessionClaims,
    TokenResponse,
)
from precinct.services.auth_service import AuthService

router = APIRouter()


def get_auth_service() -> AuthService:
    return AuthService()


Claims = Annotated[SessionClaims, Depends(get_current_claims)]
Service = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/login", response_model=ApiResponse[TokenResponse])
def login(payload: LoginRequest, service: Service) -> ApiResponse[TokenResponse]:
    return ApiResponse(data=service.login(payload), message="login succeeded")


@router.post("/register", response_model=ApiResponse[TokenResponse], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: Service) -> ApiResponse[TokenResponse]:
    return ApiResponse(data=service.register(payload), message="registered")


@router.get("/me", response_model=ApiResponse[CurrentOfficerRead])
def me(claims: Claims, service: Service) -> ApiResponse[CurrentOfficerRead]:
    return ApiResponse(data=service.me(claims.principal_id))


@router.put("/password", response_model=ApiResponse[None])
def change_password(payload: ChangePasswordRequest, claims: Claims, service: Service) -> ApiResponse[None]:
    service.change_password(claims.principal_id, payload)
    return ApiResponse(data=None, message="password changed")


@router.post(
    "/bootstrap-admin",
    response_model=ApiResponse[CurrentOfficerRead],
    status_code=status.HTTP_201_CREATED,
)
def bootstrap_admin(payload: BootstrapAdminRequest, service: Service) -> ApiResponse[CurrentOfficerRead]:
    return ApiResponse(data=service.bootstrap_admin(payload), message="bootstrap admin created")
