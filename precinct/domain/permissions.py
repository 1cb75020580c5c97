from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from precinct.domain.errors import AuthenticationError, PermissionDeniedError

if TYPE_CHECKING:
    from precinct.domain.models import SessionClaims

PERM_USER_MANAGE = "user:manage"
PERM_CASE_VIEW_MY = "case:view_my"
PERM_CASE_VIEW_ALL = "case:view_all"
PERM_CASE_CREATE = "case:create"
PERM_COMMUNITY_MANAGE = "community:manage"
PERM_NINE_MANAGE = "nine:manage"
PERM_NINE_INSPECT = "nine:inspect"
PERM_LOG_MANAGE = "log:manage"
PERM_LOG_VIEW_ALL = "log:view_all"
PERM_KEYPOP_VIEW_MY = "keypop:view_my"
PERM_KEYPOP_VIEW_ALL = "keypop:view_all"
PERM_KEYPOP_MANAGE = "keypop:manage"
PERM_KEYPOP_VISIT = "keypop:visit"

DEFAULT_PERMISSION_CODES = [
    PERM_USER_MANAGE,
    PERM_CASE_VIEW_MY,
    PERM_CASE_VIEW_ALL,
    PERM_CASE_CREATE,
    PERM_COMMUNITY_MANAGE,
    PERM_NINE_MANAGE,
    PERM_NINE_INSPECT,
    PERM_LOG_MANAGE,
    PERM_LOG_VIEW_ALL,
    PERM_KEYPOP_VIEW_MY,
    PERM_KEYPOP_VIEW_ALL,
    PERM_KEYPOP_MANAGE,
    PERM_KEYPOP_VISIT,
]

ROLE_ADMIN = "ADMIN"
ROLE_OFFICER = "OFFICER"
ROLE_COMMUNITY = "COMMUNITY"

DEFAULT_ROLE_PERMISSIONS: dict[str, tuple[str, list[str]]] = {
    ROLE_ADMIN: ("administrator", list(DEFAULT_PERMISSION_CODES)),
    ROLE_OFFICER: (
        "community officer",
        [
            PERM_CASE_VIEW_MY,
            PERM_CASE_CREATE,
            PERM_LOG_MANAGE,
            PERM_NINE_INSPECT,
            PERM_KEYPOP_VIEW_MY,
            PERM_KEYPOP_VISIT,
        ],
    ),
    ROLE_COMMUNITY: (
        "community worker",
        [PERM_COMMUNITY_MANAGE, PERM_NINE_MANAGE, PERM_NINE_INSPECT, PERM_KEYPOP_MANAGE, PERM_KEYPOP_VIEW_ALL],
    ),
}


class RequirementMode(StrEnum):
    ALL = "all"
    ANY = "any"


@dataclass(frozen=True)
class PermissionRequirement:
    codes: tuple[str, ...]
    mode: RequirementMode = RequirementMode.ANY

    @classmethod
    def any_of(cls, *codes: str) -> PermissionRequirement:
        return cls(codes=tuple(codes), mode=RequirementMode.ANY)

    @classmethod
    def all_of(cls, *codes: str) -> PermissionRequirement:
        return cls(codes=tuple(codes), mode=RequirementMode.ALL)

    def describe(self) -> str:
        joiner = " and " if self.mode == RequirementMode.ALL else " or "
        return joiner.join(self.codes)


def has_permission(claims: SessionClaims, permission: str) -> bool:
    return permission in claims.permission_codes


def satisfies(granted: Iterable[str], requirement: PermissionRequirement) -> bool:
    granted_set = set(granted)
    if not requirement.codes:
        return True
    if requirement.mode == RequirementMode.ALL:
        return all(code in granted_set for code in requirement.codes)
    return any(code in granted_set for code in requirement.codes)


def require(claims: SessionClaims | None, requirement: PermissionRequirement) -> SessionClaims:
    """Coarse edge check. Own-vs-all scoping is decided by the services."""
    if claims is None:
        raise AuthenticationError("authentication required")
    if not satisfies(claims.permission_codes, requirement):
        raise PermissionDeniedError(f"missing permission: {requirement.describe()}")
    return claims
