"""Idempotent re-sync of materialized occurrences into a calendar sink.

Mark and sweep: everything this tool wrote earlier carries the application
tag, so a sync first sweeps tagged events and then writes the fresh set.
The aggressive policy also sweeps untagged events that share a course title
and fall inside the synced date range. That catches events written before
tagging existed, but it can also remove a user's own event with the same
title.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from timetable.materializer import APP_TAG
from timetable.models import CourseRule, MaterializedOccurrence
from .base import CalendarSink

logger = logging.getLogger(__name__)


class SweepPolicy(Enum):
    TAGGED = "tagged"
    AGGRESSIVE = "aggressive"


@dataclass
class SyncReport:
    removed: int = 0
    created: int = 0


def reconcile_external_sink(
    occurrences: Iterable[MaterializedOccurrence],
    rules: Iterable[CourseRule],
    sink: CalendarSink,
    policy: SweepPolicy = SweepPolicy.TAGGED
) -> SyncReport:
    """Replace previously synced events in ``sink`` with ``occurrences``.
    
    Args:
        occurrences: Fresh occurrences, written in the given order.
        rules: Rules the occurrences came from, used for titles and details.
        sink: Calendar to write to.
        policy: How to find events from earlier syncs.
        
    Returns:
        Counts of removed and created events.
        
    Raises:
        SinkError: Propagated from the sink; the caller decides on retries.
    """
    occurrences = list(occurrences)
    rules_by_id = {rule.id: rule for rule in rules}
    report = SyncReport()
    
    report.removed = sink.delete_by_tag(APP_TAG)
    
    if policy is SweepPolicy.AGGRESSIVE and occurrences:
        titles = {rules_by_id[o.rule_id].name for o in occurrences if o.rule_id in rules_by_id}
        first = min(o.start for o in occurrences)
        last = max(o.start for o in occurrences)
        report.removed += sink.delete_by_title_and_range(titles, first, last)
    
    for occurrence in occurrences:
        rule = rules_by_id.get(occurrence.rule_id)
        if rule is None:
            logger.warning("Occurrence %s has no matching rule, skipping", occurrence.tag)
            continue
        sink.create(occurrence, rule)
        report.created += 1
    
    logger.info("Calendar sync removed %d and created %d events", report.removed, report.created)
    return report
