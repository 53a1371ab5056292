"""Weekday numbering conventions and semester week arithmetic.

Course rules store weekdays Monday-first (1 = Monday ... 7 = Sunday). Generic
calendar APIs number days Sunday-first (1 = Sunday ... 7 = Saturday), and the
week grid may start on Monday, Sunday or Saturday depending on the user's
preference. Every conversion between these lives here.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Sequence


class WeekdayConvention(Enum):
    """Which weekday occupies the leftmost column of a week grid."""
    
    MONDAY_FIRST = "monday"
    SUNDAY_FIRST = "sunday"
    SATURDAY_FIRST = "saturday"


DEFAULT_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _check_ordinal(ordinal: int) -> None:
    if not 1 <= ordinal <= 7:
        raise ValueError(f"Weekday ordinal must be 1-7, got {ordinal}")


def ordinal_from_calendar_weekday(weekday: int) -> int:
    """Convert a Sunday-first calendar weekday (1 = Sunday) to a Monday-first ordinal."""
    _check_ordinal(weekday)
    return 7 if weekday == 1 else weekday - 1


def ordinal_for_date(day: date) -> int:
    """Return the Monday-first ordinal (1-7) of a date."""
    return day.isoweekday()


def day_column(ordinal: int, convention: WeekdayConvention) -> int:
    """Map a Monday-first ordinal to a 0-6 grid column.
    
    Args:
        ordinal: Stored weekday, 1 = Monday ... 7 = Sunday.
        convention: Which weekday is shown in column 0.
        
    Returns:
        Column index in display order.
    """
    _check_ordinal(ordinal)
    if convention is WeekdayConvention.SUNDAY_FIRST:
        return ordinal % 7
    if convention is WeekdayConvention.SATURDAY_FIRST:
        return (ordinal + 1) % 7
    return ordinal - 1


def ordinal_for_column(column: int, convention: WeekdayConvention) -> int:
    """Inverse of :func:`day_column`."""
    if not 0 <= column <= 6:
        raise ValueError(f"Column must be 0-6, got {column}")
    if convention is WeekdayConvention.SUNDAY_FIRST:
        return column if column else 7
    if convention is WeekdayConvention.SATURDAY_FIRST:
        return (column + 5) % 7 + 1
    return column + 1


def weekday_labels(
    convention: WeekdayConvention,
    labels: Sequence[str] = DEFAULT_WEEKDAY_LABELS
) -> list[str]:
    """Return Monday-first ``labels`` reordered for display."""
    if len(labels) != 7:
        raise ValueError("Exactly seven weekday labels are required")
    return [labels[ordinal_for_column(col, convention) - 1] for col in range(7)]


def week_dates(target: date, convention: WeekdayConvention) -> list[date]:
    """Return the seven dates of the displayed week containing ``target``."""
    first = target - timedelta(days=day_column(ordinal_for_date(target), convention))
    return [first + timedelta(days=i) for i in range(7)]


def semester_week_anchor(semester_start: date) -> date:
    """Return the Monday of the week containing ``semester_start``."""
    return semester_start - timedelta(days=semester_start.weekday())


def week_number(day: date, semester_start: date) -> int:
    """Return the 1-based teaching week of ``day``.
    
    Days before the semester's first week yield numbers below 1.
    """
    return (day - semester_week_anchor(semester_start)).days // 7 + 1
