"""Calendar sinks that receive materialized course occurrences."""

from .base import CalendarSink, SinkError, SinkNotFoundError, SinkPermissionError
from .ical_sink import ICalSink
from .reconcile import SweepPolicy, SyncReport, reconcile_external_sink

__all__ = [
    "CalendarSink",
    "ICalSink",
    "SinkError",
    "SinkNotFoundError",
    "SinkPermissionError",
    "SweepPolicy",
    "SyncReport",
    "reconcile_external_sink",
]
