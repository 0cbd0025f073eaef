import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.orm import Query

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    data: list[T]
    total: int
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True


def normalize_page(page: int | None, limit: int | None, default_limit: int) -> tuple[int, int]:
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, limit


def paginate(query: Query, page: int, limit: int) -> tuple[list, int, int]:
    """Count and fetch one page as two separate queries.

    Returns ``(rows, total, total_pages)``.
    """
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, total, math.ceil(total / limit)


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """Build a substring LIKE pattern that matches ``%`` and ``_`` literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
