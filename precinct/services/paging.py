from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlmodel import Session, select
from sqlmodel.sql.expression import SelectOfScalar

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def count_rows(session: Session, statement: SelectOfScalar[Any]) -> int:
    subquery = statement.order_by(None).subquery()
    return int(session.exec(select(func.count()).select_from(subquery)).one())


def apply_pagination(statement: SelectOfScalar[Any], page: int, page_size: int) -> SelectOfScalar[Any]:
    return statement.limit(page_size).offset((page - 1) * page_size)
