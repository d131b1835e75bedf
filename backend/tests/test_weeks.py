from datetime import date, timedelta

import pytest
from hypothesis import given, settings, strategies as st

from app.core.periods import month_bounds
from app.reports.weeks import assign_week, build_weeks, format_week_label, week_start


months = st.tuples(st.integers(min_value=1990, max_value=2100), st.integers(min_value=1, max_value=12))


class TestBuildWeeks:
    def test_month_starting_on_thursday(self):
        # 1 January 2026 is a Thursday
        weeks = build_weeks(date(2026, 1, 1), date(2026, 1, 31))

        first = weeks[0]
        assert first.sequence_number == 1
        assert first.start_date == date(2025, 12, 29)
        assert first.start_boundary == date(2026, 1, 1)
        assert first.end_date == date(2026, 1, 4)
        assert first.end_boundary == date(2026, 1, 4)
        assert first.iso_week == 1

        last = weeks[-1]
        assert last.start_date == date(2026, 1, 26)
        assert last.end_date == date(2026, 2, 1)
        assert last.end_boundary == date(2026, 1, 31)
        assert len(weeks) == 5

    def test_tail_of_month_goes_to_last_week(self):
        weeks = build_weeks(date(2026, 1, 1), date(2026, 1, 31))

        for day in (date(2026, 1, 29), date(2026, 1, 30), date(2026, 1, 31)):
            assert assign_week(weeks, day).sequence_number == 5

    def test_february_starting_on_monday(self):
        # February 2021 has 28 days and starts on a Monday
        weeks = build_weeks(date(2021, 2, 1), date(2021, 2, 28))

        assert len(weeks) == 4
        assert all(w.start_date == w.start_boundary for w in weeks)
        assert all(w.end_date == w.end_boundary for w in weeks)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            build_weeks(date(2026, 3, 31), date(2026, 3, 1))

    @given(month=months)
    @settings(max_examples=200)
    def test_clamped_weeks_tile_the_month(self, month):
        """The clamped ranges cover every day of the month exactly once."""
        start, end = month_bounds(*month)
        weeks = build_weeks(start, end)

        assert weeks[0].start_boundary == start
        assert weeks[-1].end_boundary == end
        assert [w.sequence_number for w in weeks] == list(range(1, len(weeks) + 1))
        for prev, nxt in zip(weeks, weeks[1:]):
            assert nxt.start_boundary == prev.end_boundary + timedelta(days=1)

        day = start
        while day <= end:
            owners = [w for w in weeks if w.contains(day)]
            assert len(owners) == 1
            day += timedelta(days=1)

    @given(month=months)
    @settings(max_examples=100)
    def test_natural_bounds_are_full_iso_weeks(self, month):
        start, end = month_bounds(*month)

        for week in build_weeks(start, end):
            assert week.start_date.weekday() == 0
            assert week.end_date - week.start_date == timedelta(days=6)
            assert week.start_date <= week.start_boundary <= week.end_boundary <= week.end_date
            assert week.iso_week == week.start_date.isocalendar()[1]


class TestAssignWeek:
    def test_date_outside_month_has_no_week(self):
        weeks = build_weeks(date(2026, 1, 1), date(2026, 1, 31))

        # Visible in the first week's natural bounds, but not in the month
        assert assign_week(weeks, date(2025, 12, 30)) is None
        assert assign_week(weeks, date(2026, 2, 1)) is None

    def test_week_start_is_monday_on_or_before(self):
        assert week_start(date(2026, 1, 1)) == date(2025, 12, 29)
        assert week_start(date(2025, 12, 29)) == date(2025, 12, 29)


def test_format_week_label_uses_natural_bounds():
    weeks = build_weeks(date(2026, 1, 1), date(2026, 1, 31))

    assert format_week_label(weeks[0]) == "29/12 - 04/01"
    assert format_week_label(weeks[-1]) == "26/01 - 01/02"
