from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from pydantic import ValidationError

from precinct.domain.models import SessionClaims

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MIN = int(os.getenv("JWT_EXPIRES_MIN", "10080"))


class InvalidTokenError(Exception):
    pass


def create_access_token(
    *,
    principal_id: int,
    display_name: str,
    role_codes: Iterable[str] = (),
    permission_codes: Iterable[str] = (),
    expires_minutes: int | None = None,
    now: datetime | None = None,
) -> str:
    issued = now or datetime.now(UTC)
    expire_delta = timedelta(minutes=expires_minutes if expires_minutes is not None else JWT_EXPIRES_MIN)
    payload: dict[str, Any] = {
        "principalId": principal_id,
        "displayName": display_name,
        "roleCodes": sorted(set(role_codes)),
        "permissionCodes": sorted(set(permission_codes)),
        "iat": int(issued.timestamp()),
        "exp": int((issued + expire_delta).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> SessionClaims:
    try:
        decoded = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if not isinstance(decoded, dict):
        raise InvalidTokenError("Invalid token payload")
    try:
        return SessionClaims.model_validate(decoded)
    except ValidationError as exc:
        raise InvalidTokenError("Invalid token claims") from exc
