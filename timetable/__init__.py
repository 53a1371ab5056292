"""Timetable core: period table, recurrence rules and their projections."""

from .grid import GridPosition, position, project_blocks
from .importer import load_course_document, parse_course_document, parse_weeks
from .materializer import APP_TAG, NOTE_PREFIX, materialize, occurrence_tag
from .merger import ColorAllocator, merge_blocks, rules_for_week
from .models import (
    CourseRule,
    DisplayBlock,
    MaterializedOccurrence,
    NextSession,
    PeriodSlot,
    Schedule,
)
from .periods import DEFAULT_PERIOD_TABLE, PeriodTimeTable, TimeTableLoadError, load_period_table
from .repository import InMemoryRuleRepository, RuleRepository
from .resolver import find_next
from .settings import TimetableSettings
from .weekdays import WeekdayConvention, day_column, week_number

__all__ = [
    "APP_TAG",
    "ColorAllocator",
    "CourseRule",
    "DEFAULT_PERIOD_TABLE",
    "DisplayBlock",
    "GridPosition",
    "InMemoryRuleRepository",
    "MaterializedOccurrence",
    "NOTE_PREFIX",
    "NextSession",
    "PeriodSlot",
    "PeriodTimeTable",
    "RuleRepository",
    "Schedule",
    "TimeTableLoadError",
    "TimetableSettings",
    "WeekdayConvention",
    "day_column",
    "find_next",
    "load_course_document",
    "load_period_table",
    "materialize",
    "merge_blocks",
    "occurrence_tag",
    "parse_course_document",
    "parse_weeks",
    "position",
    "project_blocks",
    "rules_for_week",
    "week_number",
]
