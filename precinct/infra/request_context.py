from __future__ import annotations

from contextvars import ContextVar

principal_id_ctx: ContextVar[int | None] = ContextVar("principal_id", default=None)


def set_request_context(principal_id: int | None) -> None:
    principal_id_ctx.set(principal_id)


def get_principal_id() -> int | None:
    return principal_id_ctx.get()
