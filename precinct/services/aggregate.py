from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from precinct.domain.errors import AppError, ErrorKind, StorageError
from precinct.infra.db import get_engine
from precinct.infra.storage_errors import DEFAULT_POLICY, ConstraintPolicy, translate_storage_error

logger = logging.getLogger(__name__)

ChildT = TypeVar("ChildT", bound=SQLModel)


def patch_includes(patch: BaseModel, field: str) -> bool:
    return field in patch.model_fields_set


def patch_values(patch: BaseModel, exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Fields the caller actually sent, explicit nulls included."""
    excluded = set(exclude)
    return {
        name: getattr(patch, name)
        for name in patch.model_fields_set
        if name not in excluded
    }


def merge_patch(existing: SQLModel, patch: BaseModel, exclude: Iterable[str] = ()) -> dict[str, Any]:
    merged = existing.model_dump()
    merged.update(patch_values(patch, exclude))
    return merged


def apply_values(target: SQLModel, values: dict[str, Any], fields: Iterable[str]) -> None:
    for name in fields:
        if name in values:
            setattr(target, name, values[name])


def ensure_participant(
    rows: Sequence[ChildT],
    owner_id: int,
    *,
    key: Callable[[ChildT], int],
    build: Callable[[], ChildT],
    adopt: Callable[[ChildT], None] | None = None,
) -> list[ChildT]:
    result = list(rows)
    for row in result:
        if key(row) == owner_id:
            if adopt is not None:
                adopt(row)
            return result
    result.append(build())
    return result


def reconcile_children(
    session: Session,
    model: type[ChildT],
    parent_field: str,
    parent_id: int,
    rows: Sequence[ChildT],
) -> list[ChildT]:
    """Replace every child of the parent with ``rows``, keeping their order."""
    column = getattr(model, parent_field)
    existing = session.exec(select(model).where(column == parent_id)).all()
    for row in existing:
        session.delete(row)
    session.flush()
    for row in rows:
        setattr(row, parent_field, parent_id)
        session.add(row)
    session.flush()
    return list(rows)


def row_id(row: SQLModel) -> int:
    """Primary key of a row the session has already flushed."""
    value = getattr(row, "id", None)
    if value is None:
        raise StorageError("row was not assigned a primary key")
    return int(value)


def load_children(session: Session, model: type[ChildT], parent_field: str, parent_id: int) -> list[ChildT]:
    column = getattr(model, parent_field)
    statement = select(model).where(column == parent_id).order_by(model.id)
    return list(session.exec(statement).all())


@contextmanager
def unit_of_work(policy: ConstraintPolicy = DEFAULT_POLICY) -> Iterator[Session]:
    """One transaction per aggregate write.

    Commits when the block completes. Any failure rolls everything back;
    storage failures leave as taxonomy errors, never as raw driver errors.
    """
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
        session.commit()
    except AppError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        translated = translate_storage_error(exc, policy)
        if translated.kind == ErrorKind.STORAGE_ERROR:
            logger.error("transaction rolled back on storage failure", exc_info=exc)
        else:
            logger.info("transaction rolled back: %s (%s)", translated.message, translated.kind)
        raise translated from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class AggregateService:
    constraint_policy: ConstraintPolicy = DEFAULT_POLICY

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _unit_of_work(self, policy: ConstraintPolicy | None = None) -> AbstractContextManager[Session]:
        return unit_of_work(policy or self.constraint_policy)
