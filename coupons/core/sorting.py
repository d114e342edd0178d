"""Shared sorting and pagination utilities for repository queries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from coupons.core.database import Base

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a listing plus the total number of matching rows."""

    items: list[T]
    total: int
    page: int
    page_limit: int

    @property
    def last_page(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.page_limit - 1) // self.page_limit


def apply_allowed_sorting(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    sort: str | Iterable[str] | None,
    allowed: Sequence[str],
) -> Query:  # type: ignore[type-arg]
    """Apply "field direction" sort keys that appear in an allow-list.

    Args:
        query: The SQLAlchemy query to sort.
        model: The SQLAlchemy model class.
        sort: A single sort key or a list of keys, e.g. "created_at desc".
        allowed: The accepted sort keys. Anything else is skipped silently.

    Returns:
        The query with ordering applied.
    """
    if sort is None:
        return query
    keys = [sort] if isinstance(sort, str) else list(sort)

    for key in keys:
        if key not in allowed:
            continue
        parts = key.split(" ")
        if len(parts) < 2:
            parts.append("desc")
        field, direction = parts[0], parts[1]
        order_func = asc if direction == "asc" else desc
        query = query.order_by(order_func(getattr(model, field)))
    return query


def paginate(
    query: Query,  # type: ignore[type-arg]
    page: int = 1,
    page_limit: int = 20,
) -> Page[Any]:
    """Return the requested 1-based page of a query."""
    page = max(page, 1)
    page_limit = max(page_limit, 1)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_limit).limit(page_limit).all()
    return Page(items=items, total=total, page=page, page_limit=page_limit)
