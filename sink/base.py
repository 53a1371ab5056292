"""Abstract calendar sink that receives materialized occurrences."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable

from timetable.models import CourseRule, MaterializedOccurrence


class SinkError(Exception):
    """Base class for calendar sink failures."""


class SinkPermissionError(SinkError):
    """The sink refused access. Retrying will not help."""


class SinkNotFoundError(SinkError):
    """The requested calendar or event does not exist."""


class CalendarSink(ABC):
    """Interface for calendars that materialized occurrences are written to.
    
    Extend this class to write to other targets (platform calendars, remote
    calendar APIs). Every event created through a sink carries the
    occurrence's tag so it can later be found and removed.
    """
    
    @abstractmethod
    def create(self, occurrence: MaterializedOccurrence, rule: CourseRule) -> str:
        """Write one occurrence.
        
        Args:
            occurrence: Dated instance to write.
            rule: The rule it was materialized from (title, place, teacher).
            
        Returns:
            Identifier of the created event.
        """
        pass
    
    @abstractmethod
    def delete_by_tag(self, tag_prefix: str) -> int:
        """Remove every event whose tag starts with ``tag_prefix``.
        
        Returns:
            Number of events removed.
        """
        pass
    
    @abstractmethod
    def delete_by_title_and_range(
        self,
        titles: Iterable[str],
        start: datetime,
        end: datetime
    ) -> int:
        """Remove events titled with one of ``titles`` that start in ``[start, end]``.
        
        Returns:
            Number of events removed.
        """
        pass
