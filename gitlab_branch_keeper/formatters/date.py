"""Date and time formatting utilities."""

from typing import Any


def format_date(date: Any) -> str:
    """
    Format a date object to YYYY-MM-DD string.

    Args:
        date: Date object (datetime, date or None)

    Returns:
        Formatted date string, or "-" when no date is known
    """
    if date is None:
        return "-"
    if hasattr(date, "strftime"):
        return date.strftime("%Y-%m-%d")
    return str(date)
