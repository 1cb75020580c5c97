from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from precinct.domain.errors import AuthenticationError
from precinct.domain.models import SessionClaims
from precinct.domain.permissions import PermissionRequirement, require
from precinct.infra.auth import InvalidTokenError, decode_access_token
from precinct.infra.request_context import set_request_context

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_claims(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> SessionClaims:
    if not token:
        raise AuthenticationError("missing bearer token")
    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        raise AuthenticationError("invalid or expired token") from exc
    request.state.claims = claims
    set_request_context(claims.principal_id)
    return claims


def require_requirement(requirement: PermissionRequirement) -> Callable[[SessionClaims], SessionClaims]:
    def _checker(claims: Annotated[SessionClaims, Depends(get_current_claims)]) -> SessionClaims:
        return require(claims, requirement)

    return _checker


def require_perm(permission: str) -> Callable[[SessionClaims], SessionClaims]:
    return require_requirement(PermissionRequirement.any_of(permission))


def require_any_perm(*permissions: str) -> Callable[[SessionClaims], SessionClaims]:
    return require_requirement(PermissionRequirement.any_of(*(item for item in permissions if item)))


def require_all_perms(*permissions: str) -> Callable[[SessionClaims], SessionClaims]:
    return require_requirement(PermissionRequirement.all_of(*(item for item in permissions if item)))
