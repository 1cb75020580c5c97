from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE_ERROR: 500,
    ErrorKind.INTERNAL_ERROR: 500,
}


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    default_message = "internal server error"

    def __init__(self, message: str | None = None, field_errors: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.field_errors = dict(field_errors or {})
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


class AuthenticationError(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "authentication required"


class PermissionDeniedError(AppError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "permission denied"


class ValidationFailedError(AppError):
    kind = ErrorKind.VALIDATION_ERROR
    default_message = "validation failed"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "resource already exists"


class StorageError(AppError):
    kind = ErrorKind.STORAGE_ERROR
    default_message = "database error"


class InternalError(AppError):
    kind = ErrorKind.INTERNAL_ERROR
