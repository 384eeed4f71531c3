"""
List helpers for race/horse listings: date checks, paging and search.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from racebook.normalize import parse_timestamp


def _now(now: Optional[datetime]) -> datetime:
    return parse_timestamp(now) if now else datetime.now(timezone.utc)


def is_upcoming(value: Any, now: Optional[datetime] = None) -> bool:
    """True if the date is strictly in the future."""
    moment = parse_timestamp(value)
    return moment is not None and moment > _now(now)


def is_past(value: Any, now: Optional[datetime] = None) -> bool:
    """True if the date is strictly in the past."""
    moment = parse_timestamp(value)
    return moment is not None and moment < _now(now)


def is_today(value: Any, now: Optional[datetime] = None) -> bool:
    """True if the date falls on the same UTC calendar day as now."""
    moment = parse_timestamp(value)
    return moment is not None and moment.date() == _now(now).date()


@dataclass
class Page:
    """One page of a listing."""

    items: list = field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1
    total_items: int = 0
    has_next: bool = False
    has_prev: bool = False

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
            "totalItems": self.total_items,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


def paginate(items: list, page: int = 1, per_page: int = 10) -> Page:
    """
    Slice a listing into pages (1-based).

    Examples:
        >>> paginate(list(range(25)), page=3).items
        [20, 21, 22, 23, 24]
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if per_page < 1:
        raise ValueError("per_page must be >= 1")

    start = (page - 1) * per_page
    end = start + per_page
    return Page(
        items=items[start:end],
        total_pages=math.ceil(len(items) / per_page),
        current_page=page,
        total_items=len(items),
        has_next=end < len(items),
        has_prev=page > 1,
    )


def get_nested(record: Any, path: str) -> Any:
    """Follow a dotted path ("results.winner") through nested dicts."""
    current = record
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def search_items(items: list[dict], term: Optional[str], fields: Iterable[str]) -> list[dict]:
    """
    Case-insensitive substring search over the given fields.

    An empty term returns every item.
    """
    if not term:
        return items

    term = term.lower()
    fields = list(fields)
    matches = []
    for item in items:
        for path in fields:
            value = get_nested(item, path)
            if value is not None and value != "" and term in str(value).lower():
                matches.append(item)
                break
    return matches
