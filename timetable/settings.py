"""Externally supplied configuration for timetable computations."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .periods import DEFAULT_PERIOD_TABLE, PeriodTimeTable
from .weekdays import WeekdayConvention


@dataclass(frozen=True)
class TimetableSettings:
    """Read-only inputs shared by the grid, materializer and resolver.
    
    The semester start date has no sensible default: week numbers are
    meaningless without it, so callers that need weeks must set it.
    """
    
    semester_start: Optional[date] = None
    weekday_convention: WeekdayConvention = WeekdayConvention.MONDAY_FIRST
    visible_start_hour: int = 8
    visible_end_hour: int = 21
    reminder_lead_minutes: int = 10
    search_horizon_days: int = 14
    period_table: PeriodTimeTable = field(default=DEFAULT_PERIOD_TABLE)
    
    def __post_init__(self) -> None:
        if not 0 <= self.visible_start_hour < self.visible_end_hour <= 24:
            raise ValueError(
                f"Invalid visible hours: {self.visible_start_hour}-{self.visible_end_hour}"
            )
        if self.search_horizon_days < 0:
            raise ValueError("Search horizon must not be negative")
        if self.reminder_lead_minutes < 0:
            raise ValueError("Reminder lead time must not be negative")
    
    def require_semester_start(self) -> date:
        if self.semester_start is None:
            raise ValueError("Semester start date is not configured")
        return self.semester_start
