"""Import course rules from a timetable export document."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union

from .merger import ColorAllocator
from .models import CourseRule, Schedule, optional_int

logger = logging.getLogger(__name__)

_WEEK_PART_RE = re.compile(r"^(\d+)(?:-(\d+))?$")


def parse_weeks(value: Any) -> frozenset[int]:
    """Parse active weeks from a list of ints or a string like ``"1-8,10,12-16"``.
    
    Raises:
        ValueError: If the value cannot be read as a set of positive weeks.
    """
    weeks: set[int] = set()
    
    if isinstance(value, str):
        for part in value.replace(" ", "").split(","):
            if not part:
                continue
            match = _WEEK_PART_RE.match(part)
            if not match:
                raise ValueError(f"Invalid week range: {part!r}")
            first = int(match.group(1))
            last = int(match.group(2) or first)
            if last < first:
                raise ValueError(f"Week range is reversed: {part!r}")
            weeks.update(range(first, last + 1))
    elif isinstance(value, list):
        for item in value:
            week = optional_int(item)
            if week is None:
                raise ValueError(f"Invalid week: {item!r}")
            weeks.add(week)
    else:
        raise ValueError(f"Weeks must be a list or a range string, got {value!r}")
    
    if not weeks or min(weeks) < 1:
        raise ValueError(f"Weeks must be positive and non-empty: {value!r}")
    return frozenset(weeks)


def _required_int(row: dict[str, Any], key: str, default: Optional[int] = None) -> int:
    value = optional_int(row.get(key, default))
    if value is None:
        raise ValueError(f"'{key}' must be an integer, got {row.get(key)!r}")
    return value


def parse_course_document(
    text: Union[str, bytes],
    allocator: Optional[ColorAllocator] = None
) -> tuple[Schedule, list[CourseRule]]:
    """Parse an exported timetable into a schedule and its course rules.
    
    Expected shape::
    
        {"schedule": {"id": "...", "name": "...", "term": "..."},
         "courses": [{"name": ..., "teacher": ..., "location": ...,
                      "day_of_week": 1, "time_slot": 3, "duration": 2,
                      "weeks": "1-16"}]}
    
    Colors are assigned per course name in document order. Rows identical
    to an earlier row are dropped.
    
    Raises:
        ValueError: If the document or any course row is invalid.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid course document: {e}") from e
    if not isinstance(document, dict):
        raise ValueError("Course document must be a JSON object")
    
    meta = document.get("schedule") or {}
    schedule = Schedule(
        id=str(meta.get("id") or "default"),
        name=str(meta.get("name") or "Timetable"),
        term_label=str(meta.get("term") or ""),
        is_active=bool(meta.get("active", True))
    )
    
    if allocator is None:
        allocator = ColorAllocator()
    
    rows = document.get("courses")
    if not isinstance(rows, list):
        raise ValueError("Course document must contain a 'courses' list")
    
    rules: list[CourseRule] = []
    seen_ids: set[str] = set()
    for row_number, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Course row {row_number} is not an object")
        try:
            name = str(row["name"]).strip()
            if not name:
                raise ValueError("course name is empty")
            rule = CourseRule(
                name=name,
                teacher=str(row.get("teacher") or ""),
                location=str(row.get("location") or ""),
                weekday=_required_int(row, "day_of_week"),
                start_slot=_required_int(row, "time_slot"),
                slot_span=_required_int(row, "duration", 1),
                weeks=parse_weeks(row.get("weeks")),
                schedule_id=schedule.id,
                color=allocator.color_for(name)
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Course row {row_number}: {e}") from e
        
        # Identical rows share an id, and with it the calendar UID
        if rule.id in seen_ids:
            logger.warning("Course row %d repeats an earlier row, skipping", row_number)
            continue
        seen_ids.add(rule.id)
        rules.append(rule)
    
    logger.debug("Imported %d course rules for schedule %s", len(rules), schedule.id)
    return schedule, rules


def load_course_document(path: Union[str, Path]) -> tuple[Schedule, list[CourseRule]]:
    """Read and parse a course document from disk."""
    return parse_course_document(Path(path).read_text(encoding="utf-8"))
