from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError

from precinct.domain.errors import AppError, ConflictError, StorageError, ValidationFailedError

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"


class ViolationKind(StrEnum):
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"


_SQLSTATE_KINDS: dict[str, ViolationKind] = {
    UNIQUE_VIOLATION: ViolationKind.UNIQUE,
    FOREIGN_KEY_VIOLATION: ViolationKind.FOREIGN_KEY,
    CHECK_VIOLATION: ViolationKind.CHECK,
}

# Lower-cased driver wording for engines that do not report a SQLSTATE (sqlite, mysql).
_MESSAGE_KINDS: tuple[tuple[str, ViolationKind], ...] = (
    ("unique constraint", ViolationKind.UNIQUE),
    ("duplicate", ViolationKind.UNIQUE),
    ("foreign key constraint", ViolationKind.FOREIGN_KEY),
    ("check constraint", ViolationKind.CHECK),
)


@dataclass(frozen=True)
class ConstraintPolicy:
    """Names the fields behind an aggregate's constraints.

    Markers are matched against the violated constraint name when the driver
    reports one, and against the driver message otherwise.
    """

    conflict_message: str = "resource already exists"
    unique_fields: Mapping[str, str] = field(default_factory=dict)
    check_fields: Mapping[str, tuple[str, str]] = field(default_factory=dict)
    foreign_key_message: str = "referenced record does not exist or is still referenced"


DEFAULT_POLICY = ConstraintPolicy()


def _driver_error(exc: SQLAlchemyError) -> object | None:
    return getattr(exc, "orig", None)


def _sqlstate(exc: SQLAlchemyError) -> str | None:
    orig = _driver_error(exc)
    if orig is None:
        return None
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(exc: SQLAlchemyError) -> str | None:
    diag = getattr(_driver_error(exc), "diag", None)
    return getattr(diag, "constraint_name", None)


def _message(exc: SQLAlchemyError) -> str:
    orig = _driver_error(exc)
    return str(orig if orig is not None else exc)


def classify_violation(exc: SQLAlchemyError) -> ViolationKind | None:
    sqlstate = _sqlstate(exc)
    if sqlstate in _SQLSTATE_KINDS:
        return _SQLSTATE_KINDS[sqlstate]
    lowered = _message(exc).lower()
    for needle, kind in _MESSAGE_KINDS:
        if needle in lowered:
            return kind
    return None


def _match_marker(exc: SQLAlchemyError, markers: Mapping[str, object]) -> str | None:
    constraint = _constraint_name(exc)
    if constraint and constraint in markers:
        return constraint
    message = _message(exc)
    for marker in markers:
        if marker in message:
            return marker
    return None


def translate_storage_error(exc: SQLAlchemyError, policy: ConstraintPolicy = DEFAULT_POLICY) -> AppError:
    kind = classify_violation(exc)
    if kind == ViolationKind.UNIQUE:
        marker = _match_marker(exc, policy.unique_fields)
        field_errors = {policy.unique_fields[marker]: policy.conflict_message} if marker else None
        return ConflictError(policy.conflict_message, field_errors)
    if kind == ViolationKind.FOREIGN_KEY:
        return ValidationFailedError(policy.foreign_key_message)
    if kind == ViolationKind.CHECK:
        marker = _match_marker(exc, policy.check_fields)
        if marker is None:
            return ValidationFailedError("data violates a storage rule")
        field_name, message = policy.check_fields[marker]
        return ValidationFailedError(message, {field_name: message})
    return StorageError()
