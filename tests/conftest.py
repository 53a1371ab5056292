from datetime import date

import pytest

from timetable import CourseRule


@pytest.fixture
def semester_start():
    # A Monday
    return date(2026, 3, 2)


@pytest.fixture
def make_rule():
    def _make(name="Algorithms", weekday=2, start_slot=3, slot_span=2, weeks=(1, 2), **kwargs):
        kwargs.setdefault("teacher", "Dr. Chen")
        kwargs.setdefault("location", "B101")
        return CourseRule(
            name=name,
            weekday=weekday,
            start_slot=start_slot,
            slot_span=slot_span,
            weeks=frozenset(weeks),
            **kwargs
        )
    return _make
