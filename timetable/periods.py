"""Period slot table: maps class period numbers to wall-clock times."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Union

from bs4 import BeautifulSoup, Tag

from .models import CourseRule, PeriodSlot

logger = logging.getLogger(__name__)


class TimeTableLoadError(ValueError):
    """Raised when a period table document cannot be loaded as a whole."""


_TIME_RE = re.compile(r"^(\d{1,2}):?(\d{2})$")
_HTML_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")


def parse_clock(value: str) -> int:
    """Parse ``"0800"``, ``"08:00"`` or ``"8:00"`` into minutes since midnight.
    
    Raises:
        TimeTableLoadError: If the value is not a valid time of day.
    """
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise TimeTableLoadError(f"Cannot parse time: {value!r}")
    hour, minute = map(int, match.groups())
    if hour > 23 or minute > 59:
        raise TimeTableLoadError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def _format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _slot_index(name: Any) -> int:
    text = str(name).strip()
    if not text.isdecimal():
        raise TimeTableLoadError(f"Slot name is not a number: {name!r}")
    try:
        return int(text)
    except ValueError as e:
        raise TimeTableLoadError(f"Slot name is not a number: {name!r}") from e


class PeriodTimeTable:
    """Immutable, ordered set of non-overlapping period slots.
    
    Lookups come in two flavours. :meth:`lookup` and :meth:`duration_minutes`
    return ``None`` for unknown slots and are meant for data-integrity paths.
    :meth:`start_minutes` and :meth:`end_minutes` take a fallback and are
    meant for layout code that must keep drawing.
    """
    
    def __init__(self, slots: Iterable[PeriodSlot]) -> None:
        ordered = tuple(slots)
        if not ordered:
            raise TimeTableLoadError("Period table has no slots")
        
        previous: Optional[PeriodSlot] = None
        for slot in ordered:
            if previous is not None:
                if slot.index <= previous.index:
                    raise TimeTableLoadError(
                        f"Slots must be ordered by index: {slot.index} after {previous.index}"
                    )
                if slot.start_minutes < previous.end_minutes:
                    raise TimeTableLoadError(
                        f"Slot {slot.index} overlaps slot {previous.index}"
                    )
            previous = slot
        
        self._slots = ordered
        self._by_index = {slot.index: slot for slot in ordered}
    
    def __len__(self) -> int:
        return len(self._slots)
    
    def __iter__(self) -> Iterator[PeriodSlot]:
        return iter(self._slots)
    
    def __repr__(self) -> str:
        return f"PeriodTimeTable({len(self._slots)} slots)"
    
    def lookup(self, index: int) -> Optional[PeriodSlot]:
        """Return the slot with the given index.
        
        Args:
            index: Slot number, 1-based.
            
        Returns:
            The slot, or None if the table has no such slot.
        """
        return self._by_index.get(index)
    
    def duration_minutes(self, start_slot: int, end_slot: int) -> Optional[int]:
        """Return minutes from the start of ``start_slot`` to the end of ``end_slot``.
        
        Args:
            start_slot: First occupied slot.
            end_slot: Last occupied slot (inclusive).
            
        Returns:
            Duration in minutes, or None if either slot is missing.
        """
        first = self.lookup(start_slot)
        last = self.lookup(end_slot)
        if first is None or last is None:
            return None
        return last.end_minutes - first.start_minutes
    
    def start_minutes(self, index: int, fallback: int) -> int:
        """Return the slot's start in minutes since midnight.
        
        Args:
            index: Slot number.
            fallback: Value returned when the slot is missing.
            
        Returns:
            Start minutes, or ``fallback``.
        """
        slot = self.lookup(index)
        return slot.start_minutes if slot else fallback
    
    def end_minutes(self, index: int, fallback: int) -> int:
        """Return the slot's end in minutes since midnight, or ``fallback``."""
        slot = self.lookup(index)
        return slot.end_minutes if slot else fallback
    
    def covers(self, rule: CourseRule) -> bool:
        """Check that every slot the rule occupies exists in this table."""
        return all(self.lookup(i) is not None for i in range(rule.start_slot, rule.end_slot + 1))
    
    def time_range(self, index: int) -> Optional[tuple[str, str]]:
        """Return ``("HH:MM", "HH:MM")`` for a slot, or None if it is missing."""
        slot = self.lookup(index)
        if slot is None:
            return None
        return _format_clock(slot.start_minutes), _format_clock(slot.end_minutes)
    
    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "PeriodTimeTable":
        """Build a table from a ``{"classtime": [...]}`` document.
        
        Each entry carries a ``name`` (the slot number as text) and
        ``start_time``/``end_time`` in ``HHMM`` or ``HH:MM`` form.
        
        Raises:
            TimeTableLoadError: If any part of the document is invalid. No
                partially parsed table is ever returned.
        """
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise TimeTableLoadError(f"Invalid JSON: {e}") from e
        
        entries = document.get("classtime") if isinstance(document, dict) else None
        if not isinstance(entries, list):
            raise TimeTableLoadError("Document must contain a 'classtime' list")
        
        slots: list[PeriodSlot] = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise TimeTableLoadError(f"Entry {position} is not an object")
            try:
                name = entry["name"]
                start_text = entry["start_time"]
                end_text = entry["end_time"]
            except KeyError as e:
                raise TimeTableLoadError(f"Entry {position} is missing {e}") from e
            slots.append(cls._build_slot(name, start_text, end_text))
        
        return cls(sorted(slots, key=lambda s: s.index))
    
    @classmethod
    def from_html(cls, markup: str) -> "PeriodTimeTable":
        """Build a table from a class-time HTML table.
        
        Every row whose first cell holds a slot number must contain a start
        and an end time (``8:00`` style) in its remaining cells. Header and
        break rows whose first cell is not a number are ignored.
        
        Raises:
            TimeTableLoadError: If no table is found or a slot row is invalid.
        """
        soup = BeautifulSoup(markup, "lxml")
        table = soup.find("table")
        if not table or not isinstance(table, Tag):
            raise TimeTableLoadError("Class time table not found in the page")
        
        slots: list[PeriodSlot] = []
        for row in table.find_all("tr"):
            if not isinstance(row, Tag):
                continue
            
            cells = row.find_all(["td", "th"])
            if not cells:
                continue
            
            name = cells[0].get_text(strip=True)
            if not name.isdecimal():
                continue
            
            rest = " ".join(cell.get_text(" ", strip=True) for cell in cells[1:])
            times = _HTML_TIME_RE.findall(rest)
            if len(times) < 2:
                raise TimeTableLoadError(f"Slot {name} has no start/end time")
            (start_h, start_m), (end_h, end_m) = times[0], times[1]
            slots.append(cls._build_slot(name, f"{start_h}:{start_m}", f"{end_h}:{end_m}"))
        
        return cls(sorted(slots, key=lambda s: s.index))
    
    @staticmethod
    def _build_slot(name: Any, start_text: str, end_text: str) -> PeriodSlot:
        index = _slot_index(name)
        try:
            return PeriodSlot(
                index=index,
                start_minutes=parse_clock(start_text),
                end_minutes=parse_clock(end_text),
                name=str(name).strip()
            )
        except TimeTableLoadError:
            raise
        except ValueError as e:
            raise TimeTableLoadError(str(e)) from e


def _slot(index: int, start: str, end: str) -> PeriodSlot:
    return PeriodSlot(index, parse_clock(start), parse_clock(end), str(index))


DEFAULT_PERIOD_TABLE = PeriodTimeTable([
    _slot(1, "08:00", "08:40"),
    _slot(2, "08:45", "09:25"),
    _slot(3, "09:45", "10:25"),
    _slot(4, "10:35", "11:15"),
    _slot(5, "11:20", "12:00"),
    _slot(6, "13:30", "14:10"),
    _slot(7, "14:15", "14:55"),
    _slot(8, "15:15", "15:55"),
    _slot(9, "16:00", "16:40"),
    _slot(10, "18:30", "19:10"),
    _slot(11, "19:15", "19:55"),
    _slot(12, "20:05", "20:45"),
])


def load_period_table(path: Union[str, Path]) -> PeriodTimeTable:
    """Load a period table from a ``.json`` or ``.html`` file.
    
    The caller keeps whatever table it had until this returns successfully.
    
    Raises:
        TimeTableLoadError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TimeTableLoadError(f"Cannot read period table {path}: {e}") from e
    
    try:
        if path.suffix.lower() in (".html", ".htm"):
            table = PeriodTimeTable.from_html(text)
        else:
            table = PeriodTimeTable.from_json(text)
    except TimeTableLoadError as e:
        logger.warning("Rejected period table %s: %s", path, e)
        raise
    
    logger.debug("Loaded %d period slots from %s", len(table), path)
    return table
