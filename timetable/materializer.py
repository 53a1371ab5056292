"""Expand recurring course rules into dated occurrences for a semester."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from .models import CourseRule, MaterializedOccurrence
from .periods import PeriodTimeTable
from .weekdays import semester_week_anchor

logger = logging.getLogger(__name__)

APP_TAG = "timetable2ical://occurrence"
NOTE_PREFIX = "Added by timetable2ical"


def occurrence_tag(rule_id: str, week: int) -> str:
    """Build the ownership marker attached to every emitted event."""
    return f"{APP_TAG}/{rule_id}/{week}"


def occurrence_date(rule: CourseRule, week: int, semester_start: date) -> date:
    """Return the calendar date on which ``rule`` meets in ``week``.
    
    Raises:
        OverflowError: If the date falls outside the supported range.
    """
    offset = (week - 1) * 7 + (rule.weekday - 1)
    return semester_week_anchor(semester_start) + timedelta(days=offset)


def occurrence_span(
    rule: CourseRule,
    day: date,
    table: PeriodTimeTable
) -> Optional[tuple[datetime, datetime]]:
    """Return the start and end timestamps of ``rule`` on ``day``.
    
    Returns:
        The span, or None if the rule's slots are missing from the table.
    """
    first = table.lookup(rule.start_slot)
    duration = table.duration_minutes(rule.start_slot, rule.end_slot)
    if first is None or duration is None:
        return None
    start = datetime.combine(day, time()) + timedelta(minutes=first.start_minutes)
    return start, start + timedelta(minutes=duration)


def materialize(
    rules: Iterable[CourseRule],
    semester_start: date,
    table: PeriodTimeTable
) -> list[MaterializedOccurrence]:
    """Produce one occurrence per rule per active week.
    
    Week 1 is the Monday-based week containing ``semester_start``. Rows that
    cannot be dated (unknown slots, dates out of range) are skipped so one
    bad rule never aborts the batch.
    
    Args:
        rules: Course rules to expand.
        semester_start: Any date inside the first teaching week.
        table: Period table for slot times.
        
    Returns:
        Occurrences in rule order, then ascending week number.
    """
    occurrences: list[MaterializedOccurrence] = []
    
    for rule in rules:
        for week in sorted(rule.weeks):
            if week < 1:
                continue
            
            try:
                day = occurrence_date(rule, week, semester_start)
            except OverflowError:
                logger.debug("Skipping %s week %d: date out of range", rule.name, week)
                continue
            
            span = occurrence_span(rule, day, table)
            if span is None:
                logger.debug(
                    "Skipping %s week %d: slots %d-%d not in period table",
                    rule.name, week, rule.start_slot, rule.end_slot
                )
                continue
            
            start, end = span
            occurrences.append(MaterializedOccurrence(
                rule_id=rule.id,
                week=week,
                start=start,
                end=end,
                tag=occurrence_tag(rule.id, week)
            ))
    
    return occurrences
