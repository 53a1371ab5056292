"""Find the next upcoming class session relative to a point in time."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .materializer import occurrence_span
from .models import CourseRule, NextSession
from .periods import PeriodTimeTable
from .weekdays import ordinal_for_date, week_number

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 14


def find_next(
    rules: Iterable[CourseRule],
    now: datetime,
    semester_start: date,
    table: PeriodTimeTable,
    horizon_days: int = DEFAULT_HORIZON_DAYS
) -> Optional[NextSession]:
    """Return the soonest session starting strictly after ``now``.
    
    Days from today through today + ``horizon_days`` are searched. A
    session already in progress is never returned. Equal start times keep
    the first one found in day order, then rule order.
    
    Args:
        rules: Candidate course rules.
        now: Reference instant.
        semester_start: Any date inside the first teaching week.
        table: Period table for slot times.
        horizon_days: Number of days after today to search.
        
    Returns:
        The next session, or None if nothing starts within the horizon.
    """
    if horizon_days < 0:
        raise ValueError("Search horizon must not be negative")
    
    rules = list(rules)
    today = now.date()
    best: Optional[NextSession] = None
    
    for day_offset in range(horizon_days + 1):
        day = today + timedelta(days=day_offset)
        week = week_number(day, semester_start)
        if week < 1:
            continue
        
        weekday = ordinal_for_date(day)
        for rule in rules:
            if rule.weekday != weekday or not rule.is_active_in(week):
                continue
            
            span = occurrence_span(rule, day, table)
            if span is None:
                logger.debug("Ignoring %s: slots not in period table", rule.name)
                continue
            
            start, end = span
            if start <= now:
                continue
            if best is None or start < best.start:
                best = NextSession(rule=rule, start=start, end=end)
    
    return best
