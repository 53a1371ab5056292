"""iCalendar file used as a calendar sink."""

import hashlib
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from icalendar import Calendar, Event

from timetable.materializer import NOTE_PREFIX
from timetable.models import CourseRule, MaterializedOccurrence
from .base import CalendarSink, SinkError, SinkNotFoundError, SinkPermissionError

logger = logging.getLogger(__name__)

TAG_PROPERTY = "X-TIMETABLE2ICAL-TAG"


def _naive(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time())


class ICalSink(CalendarSink):
    """Calendar sink backed by an in-memory ``icalendar.Calendar``.
    
    Load an existing file with :meth:`open` so that re-syncing replaces the
    events written last time instead of duplicating them, then
    :meth:`save` the result.
    """
    
    CALENDAR_NAME = "Timetable"
    
    def __init__(self, calendar: Optional[Calendar] = None, timezone: Optional[str] = None) -> None:
        """Initialize the sink.
        
        Args:
            calendar: Existing calendar to modify. A new one is created if omitted.
            timezone: IANA zone attached to written times. Floating local
                times are written when omitted.
        """
        try:
            self._tz = ZoneInfo(timezone) if timezone else None
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone: {timezone}") from e
        self._calendar = calendar if calendar is not None else self._new_calendar(timezone)
    
    @classmethod
    def _new_calendar(cls, timezone: Optional[str]) -> Calendar:
        calendar = Calendar()
        calendar.add("prodid", "-//timetable2ical//course timetable//EN")
        calendar.add("version", "2.0")
        calendar.add("calscale", "GREGORIAN")
        calendar.add("method", "PUBLISH")
        calendar.add("x-wr-calname", cls.CALENDAR_NAME)
        if timezone:
            calendar.add("x-wr-timezone", timezone)
        return calendar
    
    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        timezone: Optional[str] = None,
        create: bool = True
    ) -> "ICalSink":
        """Load a sink from an ``.ics`` file.
        
        Args:
            path: File to read.
            timezone: Zone for newly written events.
            create: Start an empty calendar when the file does not exist.
            
        Raises:
            SinkNotFoundError: If the file is missing and ``create`` is False.
            SinkPermissionError: If the file cannot be read.
            SinkError: If the file is not a valid calendar.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            if create:
                return cls(timezone=timezone)
            raise SinkNotFoundError(f"Calendar file not found: {path}") from e
        except PermissionError as e:
            raise SinkPermissionError(f"Cannot read calendar file: {path}") from e
        
        try:
            calendar = Calendar.from_ical(data)
        except ValueError as e:
            raise SinkError(f"Invalid calendar file {path}: {e}") from e
        return cls(calendar, timezone=timezone)
    
    @property
    def calendar(self) -> Calendar:
        return self._calendar
    
    def events(self) -> list[Event]:
        return [c for c in self._calendar.subcomponents if isinstance(c, Event)]
    
    def _generate_uid(self, occurrence: MaterializedOccurrence) -> str:
        return hashlib.md5(occurrence.tag.encode()).hexdigest() + "@timetable2ical"
    
    def _localize(self, value: datetime) -> datetime:
        return value.replace(tzinfo=self._tz) if self._tz else value
    
    def create(self, occurrence: MaterializedOccurrence, rule: CourseRule) -> str:
        uid = self._generate_uid(occurrence)
        
        event = Event()
        event.add("uid", uid)
        event.add("dtstart", self._localize(occurrence.start))
        event.add("dtend", self._localize(occurrence.end))
        event.add("dtstamp", datetime.now(self._tz))
        event.add("summary", rule.name)
        
        if rule.location:
            event.add("location", rule.location)
        
        # Description: note prefix, then the teacher on its own line
        description = NOTE_PREFIX
        if rule.teacher:
            description = f"{NOTE_PREFIX}\n{rule.teacher}"
        event.add("description", description)
        
        event.add("url", occurrence.tag)
        event.add(TAG_PROPERTY, occurrence.tag)
        
        self._calendar.add_component(event)
        return uid
    
    @staticmethod
    def event_tag(event: Event) -> Optional[str]:
        """Return the ownership tag of an event, if it has one."""
        value = event.get(TAG_PROPERTY) or event.get("url")
        return str(value) if value else None
    
    def _remove(self, events: list[Event]) -> int:
        for event in events:
            self._calendar.subcomponents.remove(event)
        return len(events)
    
    def delete(self, uid: str) -> None:
        """Remove a single event by UID.
        
        Raises:
            SinkNotFoundError: If no event has that UID.
        """
        matches = [e for e in self.events() if str(e.get("uid", "")) == uid]
        if not matches:
            raise SinkNotFoundError(f"No event with UID {uid}")
        self._remove(matches)
    
    def delete_by_tag(self, tag_prefix: str) -> int:
        matches = []
        for event in self.events():
            tag = self.event_tag(event)
            if tag and tag.startswith(tag_prefix):
                matches.append(event)
        return self._remove(matches)
    
    def delete_by_title_and_range(
        self,
        titles: Iterable[str],
        start: datetime,
        end: datetime
    ) -> int:
        wanted = set(titles)
        lower, upper = _naive(start), _naive(end)
        matches = []
        for event in self.events():
            if str(event.get("summary", "")) not in wanted or "dtstart" not in event:
                continue
            event_start = _naive(event.decoded("dtstart"))
            if lower <= event_start <= upper:
                matches.append(event)
        return self._remove(matches)
    
    def to_ical(self) -> bytes:
        return self._calendar.to_ical()
    
    def save(self, output_path: Union[str, Path]) -> None:
        """Write the calendar to an ``.ics`` file.
        
        Raises:
            SinkPermissionError: If the file cannot be written.
        """
        try:
            with open(output_path, "wb") as f:
                f.write(self.to_ical())
        except PermissionError as e:
            raise SinkPermissionError(f"Cannot write calendar file: {output_path}") from e
        logger.debug("Saved %d events to %s", len(self.events()), output_path)
