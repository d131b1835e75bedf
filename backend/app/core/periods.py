"""Calendar month helpers shared by the carryover engine and the reports."""

from datetime import date

from dateutil.relativedelta import relativedelta


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1, days=-1)


def previous_month(year: int, month: int) -> tuple[int, int]:
    """The month before ``(year, month)``, wrapping January to December."""
    prev = date(year, month, 1) - relativedelta(months=1)
    return prev.year, prev.month


def month_key(year: int, month: int) -> str:
    """Carryover store key, e.g. ``2025-03``."""
    return f"{year}-{month:02d}"
