"""
Display formatting for money, dates and times (US English).
"""

from typing import Any, Optional

from racebook.normalize import parse_timestamp


def format_currency(amount: Any) -> str:
    """
    Format an amount as US dollars.

    Examples:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-20)
        '-$20.00'
    """
    value = float(amount or 0)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_date(value: Any) -> Optional[str]:
    """
    Short date, e.g. "Oct 17, 2026". None if the value isn't a date.
    """
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_time(value: Any) -> Optional[str]:
    """
    Two-digit 12-hour time, e.g. "09:30 AM". None if the value isn't a date.
    """
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return moment.strftime("%I:%M %p")
