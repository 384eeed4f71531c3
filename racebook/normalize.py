"""
Name, number and timestamp normalization utilities.

Stored records are plain JSON objects written by forms and imports, so values
arrive as strings, numbers or nothing at all. These helpers give consistent
comparisons across all of them.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def fold_name(name: Optional[str]) -> str:
    """
    Case-fold a horse name for uniqueness checks.

    Only case is ignored; punctuation and spacing still count.

    Examples:
        >>> fold_name("STAR")
        'star'
        >>> fold_name(None)
        ''
    """
    if not name:
        return ""
    return str(name).casefold()


def names_match(name1: Optional[str], name2: Optional[str]) -> bool:
    """
    Check if two horse names are the same ignoring case.

    Examples:
        >>> names_match("Star", "STAR")
        True
        >>> names_match("Star", "Star Gazer")
        False
    """
    folded = fold_name(name1)
    return bool(folded) and folded == fold_name(name2)


def parse_decimal(value: Any) -> Optional[float]:
    """
    Read the leading number from a form value.

    Mirrors how browsers read numeric inputs: "57.5kg" -> 57.5, "abc" -> None.
    NaN and infinities read as None.

    Examples:
        >>> parse_decimal("4.50")
        4.5
        >>> parse_decimal(" 57kg")
        57.0
        >>> parse_decimal("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return None
        number = float(match.group(1))

    if not math.isfinite(number):
        return None
    return number


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime as ISO-8601 UTC with milliseconds and a Z suffix.

    Naive datetimes are taken to be UTC.

    Examples:
        >>> format_timestamp(datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc))
        '2026-10-17T09:30:00.000Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or timestamp into an aware UTC datetime.

    Accepts a trailing Z and date-only values. Values without an offset are
    taken to be UTC. Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def calendar_day(value: Any) -> Optional[str]:
    """
    The calendar-day part of a stored date string.

    Uses the text before "T", so "2026-10-17T23:00:00.000Z" and
    "2026-10-17" fall on the same day regardless of offset.

    Examples:
        >>> calendar_day("2026-10-17T09:30:00.000Z")
        '2026-10-17'
        >>> calendar_day(None) is None
        True
    """
    if not isinstance(value, str) or not value:
        return None
    return value.split("T")[0]


def timestamp_sort_key(value: Any) -> datetime:
    """Sort key for stored timestamps; unparseable values sort oldest."""
    return parse_timestamp(value) or datetime.min.replace(tzinfo=timezone.utc)
