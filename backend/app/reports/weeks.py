"""Calendar-week buckets for a report month.

Weeks run Monday to Sunday. The first and last week of a month usually
straddle the adjacent month; they keep their natural bounds for display and
carry clamped bounds for deciding which transactions belong to them.
"""

from datetime import date, timedelta
from typing import Iterable

from app.reports.schemas import WeekDescriptor

WEEK_LENGTH = timedelta(days=7)


def week_start(day: date) -> date:
    """The Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def iso_week_number(day: date) -> int:
    """ISO 8601 week of the year (the week holding the year's first Thursday is 1)."""
    return day.isocalendar()[1]


def build_weeks(month_start: date, month_end: date) -> list[WeekDescriptor]:
    """Ordered weeks covering ``[month_start, month_end]``.

    Sequence numbers start at 1 for every month. The clamped ranges of the
    returned weeks tile the month exactly: no gaps and no overlaps.
    """
    if month_start > month_end:
        raise ValueError(f"month_start {month_start} is after month_end {month_end}")

    weeks: list[WeekDescriptor] = []
    cursor = week_start(month_start)
    sequence = 1
    while cursor <= month_end:
        natural_end = cursor + timedelta(days=6)
        weeks.append(
            WeekDescriptor(
                sequence_number=sequence,
                start_date=cursor,
                end_date=natural_end,
                start_boundary=max(cursor, month_start),
                end_boundary=min(natural_end, month_end),
                iso_week=iso_week_number(cursor),
            )
        )
        cursor += WEEK_LENGTH
        sequence += 1
    return weeks


def assign_week(weeks: Iterable[WeekDescriptor], day: date) -> WeekDescriptor | None:
    """The week whose clamped range holds ``day``, or ``None`` if outside all of them."""
    for week in weeks:
        if week.contains(day):
            return week
    return None


def format_week_label(week: WeekDescriptor) -> str:
    """Display label using the natural bounds, e.g. ``29/12 - 04/01``."""
    return f"{week.start_date:%d/%m} - {week.end_date:%d/%m}"
