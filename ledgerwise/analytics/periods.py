"""
Reporting Period Calculator

Maps a period keyword and a reference date to a concrete window of calendar
days, and to the window immediately before it.

Window shapes:
- week: Sunday to Saturday around the reference day
- month: first to last day of the reference month
- semester: rolling six calendar months ending with the reference month
- year: January 1 through the end of the reference month (year to date)

Unknown period keywords fall back to month.

Every function takes the reference date explicitly. Nothing here reads
the system clock.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Union

from ledgerwise.models.summary import DateRange, ReportingPeriod

DateLike = Union[date, datetime, str]

# Smallest step between two distinct datetimes
ONE_INSTANT = timedelta(microseconds=1)


def to_day(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def _add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    new_year, new_month = divmod(index, 12)
    return new_year, new_month + 1


def _first_of_month(year: int, month: int) -> date:
    return date(year, month, 1)


def _last_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _days_window(first: date, last: date) -> DateRange:
    return DateRange(start=start_of_day(first), end=end_of_day(last))


def _week_window(day: date) -> DateRange:
    # date.weekday() is 0 for Monday; weeks here start on Sunday
    sunday = day - timedelta(days=(day.weekday() + 1) % 7)
    return _days_window(sunday, sunday + timedelta(days=6))


def _months_window(year: int, month: int, span: int) -> DateRange:
    """`span` calendar months ending with (year, month)."""
    first_year, first_month = _add_months(year, month, -(span - 1))
    return _days_window(
        _first_of_month(first_year, first_month),
        _last_of_month(year, month),
    )


def resolve_period(period: Union[ReportingPeriod, str, None]) -> ReportingPeriod:
    """Turn a keyword into a ReportingPeriod, defaulting to MONTH."""
    if isinstance(period, ReportingPeriod):
        return period
    try:
        return ReportingPeriod(str(period).lower())
    except ValueError:
        return ReportingPeriod.MONTH


def range_for_period(
    period: Union[ReportingPeriod, str],
    reference_date: DateLike,
) -> DateRange:
    """Window of the given kind that contains `reference_date`."""
    day = to_day(reference_date)
    kind = resolve_period(period)

    if kind == ReportingPeriod.WEEK:
        return _week_window(day)
    if kind == ReportingPeriod.SEMESTER:
        return _months_window(day.year, day.month, 6)
    if kind == ReportingPeriod.YEAR:
        return _days_window(date(day.year, 1, 1), _last_of_month(day.year, day.month))
    return _months_window(day.year, day.month, 1)


def previous_range_for_period(
    period: Union[ReportingPeriod, str],
    reference_date: DateLike,
) -> DateRange:
    """
    The window one unit before `range_for_period(period, reference_date)`.

    Boundaries are recomputed from calendar months rather than by
    subtracting a fixed duration, so month lengths are respected.
    For YEAR the previous window is the whole prior calendar year.
    """
    day = to_day(reference_date)
    kind = resolve_period(period)

    if kind == ReportingPeriod.WEEK:
        return _week_window(day - timedelta(weeks=1))
    if kind == ReportingPeriod.SEMESTER:
        year, month = _add_months(day.year, day.month, -6)
        return _months_window(year, month, 6)
    if kind == ReportingPeriod.YEAR:
        prior = day.year - 1
        return _days_window(date(prior, 1, 1), date(prior, 12, 31))
    year, month = _add_months(day.year, day.month, -1)
    return _months_window(year, month, 1)


def custom_range(date_from: DateLike, date_to: DateLike) -> DateRange:
    """User-picked window, aligned to whole days."""
    return _days_window(to_day(date_from), to_day(date_to))


def previous_custom_range(current: DateRange) -> DateRange:
    """
    A window of the same length ending the instant before `current` starts.

    The result is re-aligned to whole days.
    """
    duration = current.end - current.start
    previous_end = current.start - ONE_INSTANT
    previous_start = previous_end - duration
    return _days_window(previous_start.date(), previous_end.date())


def is_in_range(value: DateLike, window: DateRange) -> bool:
    """
    Day-granularity membership test.

    Time of day is ignored on both sides, so the window's own start
    and end are always inside it.
    """
    day = to_day(value)
    return window.start.date() <= day <= window.end.date()


def format_date_range(window: DateRange) -> str:
    """Short label such as 'Jan 1 - Jan 31, 2024'."""
    start, end = window.start, window.end
    return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
