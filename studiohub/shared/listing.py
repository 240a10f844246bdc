"""List endpoint helpers: offset paging and a start-time window."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select

from studiohub.shared.exceptions import InvalidRangeException
from studiohub.shared.utils import ensure_utc

T = TypeVar("T")
S = TypeVar("S", bound=Select)


class ListParams(BaseModel):
    limit: int
    offset: int


def get_list_params(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> ListParams:
    """FastAPI dependency for list paging."""
    return ListParams(limit=limit, offset=offset)


class TimeWindow(BaseModel):
    """Half-open ``[starts_from, starts_before)`` filter on a start timestamp."""

    starts_from: datetime | None = None
    starts_before: datetime | None = None

    def apply(self, stmt: S, column) -> S:
        if self.starts_from is not None:
            stmt = stmt.where(column >= self.starts_from)
        if self.starts_before is not None:
            stmt = stmt.where(column < self.starts_before)
        return stmt


def build_time_window(starts_from: datetime | None, starts_before: datetime | None) -> TimeWindow:
    starts_from = ensure_utc(starts_from) if starts_from is not None else None
    starts_before = ensure_utc(starts_before) if starts_before is not None else None
    if starts_from is not None and starts_before is not None and starts_before <= starts_from:
        raise InvalidRangeException(
            "starts_before must be after starts_from",
            starts_from=starts_from.isoformat(),
            starts_before=starts_before.isoformat(),
        )
    return TimeWindow(starts_from=starts_from, starts_before=starts_before)


def get_time_window(
    starts_from: datetime | None = Query(default=None),
    starts_before: datetime | None = Query(default=None),
) -> TimeWindow:
    """FastAPI dependency; naive timestamps are read as UTC."""
    return build_time_window(starts_from, starts_before)


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    limit: int
    offset: int
    starts_from: datetime | None = None
    starts_before: datetime | None = None


def build_page(
    items: list[T],
    total: int,
    params: ListParams,
    window: TimeWindow | None = None,
) -> Page[T]:
    return Page(
        items=items,
        total=total,
        limit=params.limit,
        offset=params.offset,
        starts_from=window.starts_from if window is not None else None,
        starts_before=window.starts_before if window is not None else None,
    )
