"""Data models for timetable rules and their derived projections."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional


@dataclass(frozen=True)
class PeriodSlot:
    """A numbered class period and its wall-clock span."""
    
    index: int
    start_minutes: int  # minutes since midnight
    end_minutes: int
    name: str = ""
    
    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"Slot index must be at least 1, got {self.index}")
        if self.start_minutes >= self.end_minutes:
            raise ValueError(f"Slot {self.index}: start must be before end")
    
    @property
    def start_time(self) -> time:
        return time(self.start_minutes // 60, self.start_minutes % 60)
    
    @property
    def end_time(self) -> time:
        return time(self.end_minutes // 60, self.end_minutes % 60)


@dataclass(frozen=True)
class CourseRule:
    """One recurring commitment: a weekday, a slot range and a set of weeks."""
    
    name: str
    teacher: str
    location: str
    weekday: int  # 1-7: Monday-Sunday
    start_slot: int
    slot_span: int = 1
    weeks: frozenset[int] = field(default_factory=frozenset)
    schedule_id: str = ""
    color: str = ""
    id: str = ""
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "weeks", frozenset(self.weeks))
        if not 1 <= self.weekday <= 7:
            raise ValueError(f"Weekday must be 1-7 (Mon-Sun), got {self.weekday}")
        if self.start_slot < 1:
            raise ValueError(f"Start slot must be at least 1, got {self.start_slot}")
        if self.slot_span < 1:
            raise ValueError("Slot span must be at least 1")
        if not self.weeks:
            raise ValueError(f"Course '{self.name}' has no active weeks")
        if not self.id:
            object.__setattr__(self, "id", self._generate_id())
    
    def _generate_id(self) -> str:
        unique_string = (
            f"{self.schedule_id}-{self.name}-{self.teacher}-{self.location}-"
            f"{self.weekday}-{self.start_slot}-{self.slot_span}-"
            f"{','.join(str(w) for w in sorted(self.weeks))}"
        )
        return hashlib.md5(unique_string.encode()).hexdigest()
    
    @property
    def end_slot(self) -> int:
        return self.start_slot + self.slot_span - 1
    
    @property
    def identity(self) -> tuple[str, str, str, int]:
        return (self.name, self.teacher, self.location, self.weekday)
    
    def is_active_in(self, week: int) -> bool:
        return week in self.weeks


@dataclass
class Schedule:
    """A named timetable that owns a set of course rules."""
    
    id: str
    name: str
    term_label: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    is_active: bool = False


@dataclass(frozen=True)
class DisplayBlock:
    """Contiguous slots of one course on one weekday, merged for display."""
    
    weekday: int
    start_slot: int
    slot_span: int
    color: str
    name: str = ""
    teacher: str = ""
    location: str = ""
    source_rule_ids: tuple[str, ...] = ()
    
    @property
    def end_slot(self) -> int:
        return self.start_slot + self.slot_span - 1


@dataclass(frozen=True)
class MaterializedOccurrence:
    """A single dated instance of a course rule."""
    
    rule_id: str
    week: int
    start: datetime
    end: datetime
    tag: str = ""


@dataclass(frozen=True)
class NextSession:
    """The soonest upcoming occurrence among a set of rules."""
    
    rule: CourseRule
    start: datetime
    end: datetime
    
    def reminder_at(self, lead_minutes: int = 10) -> datetime:
        """Return when a reminder for this session should fire."""
        return self.start - timedelta(minutes=lead_minutes)
    
    def in_lead_window(self, now: datetime, lead_minutes: int = 10) -> bool:
        """Check whether ``now`` falls between the reminder time and the start.
        
        Live status is only shown inside this window; once the session has
        started it is no longer "next".
        """
        return self.reminder_at(lead_minutes) <= now < self.start


def optional_int(value: object) -> Optional[int]:
    """Coerce a loosely-typed value to int, returning None when impossible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None
