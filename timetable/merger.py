"""Merge per-slot course entries into display blocks for the week grid."""

import logging
from typing import Iterable, Optional, Sequence

from .models import CourseRule, DisplayBlock

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9",
)


class ColorAllocator:
    """Assigns palette colors to course names, round-robin on first sight.
    
    One allocator is one coloring session: the same name always gets the
    same color from it. Create a fresh allocator per merge unless colors
    must stay consistent across several merges.
    """
    
    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
        if not palette:
            raise ValueError("Palette must contain at least one color")
        self._palette = tuple(palette)
        self._assigned: dict[str, str] = {}
        self._next_index = 0
    
    def color_for(self, name: str) -> str:
        """Return the color for a course name, claiming the next palette entry if new.
        
        Args:
            name: Course name.
            
        Returns:
            Hex color string.
        """
        color = self._assigned.get(name)
        if color is None:
            color = self._palette[self._next_index % len(self._palette)]
            self._assigned[name] = color
            self._next_index += 1
        return color
    
    @property
    def assigned(self) -> dict[str, str]:
        return dict(self._assigned)


def merge_blocks(
    rules: Iterable[CourseRule],
    allocator: Optional[ColorAllocator] = None
) -> list[DisplayBlock]:
    """Compact slot entries into the minimal set of contiguous display blocks.
    
    Entries are grouped by (name, teacher, location, weekday). Within a group
    they are ordered by start slot and a block keeps growing while the next
    entry starts right after the block's last slot. Duplicate start slots
    within a group keep the first entry seen.
    
    Args:
        rules: Course entries, typically one per slot.
        allocator: Color session to use. A new one is created when omitted.
        
    Returns:
        Blocks grouped in order of first appearance, ascending within a group.
    """
    if allocator is None:
        allocator = ColorAllocator()
    
    groups: dict[tuple[str, str, str, int], list[CourseRule]] = {}
    for rule in rules:
        groups.setdefault(rule.identity, []).append(rule)
    
    blocks: list[DisplayBlock] = []
    for (name, teacher, location, weekday), entries in groups.items():
        entries.sort(key=lambda r: r.start_slot)
        
        run: list[CourseRule] = []
        run_end = 0
        seen_slots: set[int] = set()
        for entry in entries:
            if entry.start_slot in seen_slots:
                logger.debug("Dropping duplicate entry for %s at slot %d", name, entry.start_slot)
                continue
            seen_slots.add(entry.start_slot)
            
            if run and entry.start_slot == run_end + 1:
                run.append(entry)
                run_end = max(run_end, entry.end_slot)
                continue
            
            if run:
                blocks.append(_close_block(run, run_end, allocator))
            run = [entry]
            run_end = entry.end_slot
        
        if run:
            blocks.append(_close_block(run, run_end, allocator))
    
    return blocks


def _close_block(run: list[CourseRule], run_end: int, allocator: ColorAllocator) -> DisplayBlock:
    first = run[0]
    return DisplayBlock(
        weekday=first.weekday,
        start_slot=first.start_slot,
        slot_span=run_end - first.start_slot + 1,
        color=allocator.color_for(first.name),
        name=first.name,
        teacher=first.teacher,
        location=first.location,
        source_rule_ids=tuple(r.id for r in run)
    )


def rules_for_week(rules: Iterable[CourseRule], week: int) -> list[CourseRule]:
    """Return the rules that meet during the given teaching week."""
    return [rule for rule in rules if rule.is_active_in(week)]
