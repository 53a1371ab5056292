"""Project display blocks onto a scrollable week grid.

Coordinates are returned in whatever unit the caller uses for
``hour_height`` (points, pixels, percent); nothing here knows about pixels.
"""

import math
from typing import Iterable, NamedTuple, Optional

from .models import DisplayBlock
from .periods import PeriodTimeTable
from .settings import TimetableSettings
from .weekdays import WeekdayConvention, day_column

# Shortest block drawn, as a fraction of one hour
MIN_HEIGHT_HOUR_FRACTION = 0.25


class GridPosition(NamedTuple):
    column: int
    offset: float
    height: float


def position(
    block: DisplayBlock,
    table: PeriodTimeTable,
    visible_start_hour: int,
    visible_end_hour: int,
    hour_height: float,
    convention: WeekdayConvention = WeekdayConvention.MONDAY_FIRST,
    min_height: Optional[float] = None,
    day_column_width: Optional[float] = None
) -> Optional[GridPosition]:
    """Compute where a block sits on the grid.
    
    Args:
        block: Merged block to place.
        table: Period table used to turn slots into minutes.
        visible_start_hour: Hour shown at the top edge of the grid.
        visible_end_hour: Hour shown at the bottom edge of the grid.
        hour_height: Height of one hour in caller units.
        convention: Which weekday is shown in the first column.
        min_height: Lower clamp for the block height in caller units.
            Defaults to a quarter of ``hour_height``.
        day_column_width: Width of one day column, only checked for sanity.
        
    Returns:
        The block's column, top offset and height, or None when the block
        cannot be placed (unknown slots, empty window, non-finite sizes).
    """
    if visible_end_hour <= visible_start_hour:
        return None
    if not math.isfinite(hour_height):
        return None
    if day_column_width is not None and not math.isfinite(day_column_width):
        return None
    
    first = table.lookup(block.start_slot)
    if first is None:
        return None
    duration = table.duration_minutes(block.start_slot, block.end_slot)
    if duration is None:
        return None
    
    try:
        column = day_column(block.weekday, convention)
    except ValueError:
        return None
    
    offset = (first.start_minutes - visible_start_hour * 60) * hour_height / 60
    if min_height is None:
        min_height = hour_height * MIN_HEIGHT_HOUR_FRACTION
    height = max(min_height, duration * hour_height / 60)
    if not (math.isfinite(offset) and math.isfinite(height)):
        return None
    
    return GridPosition(column, offset, height)


def project_blocks(
    blocks: Iterable[DisplayBlock],
    settings: TimetableSettings,
    hour_height: float,
    min_height: Optional[float] = None
) -> list[tuple[DisplayBlock, GridPosition]]:
    """Place every block using the configured window, skipping unplaceable ones."""
    placed: list[tuple[DisplayBlock, GridPosition]] = []
    for block in blocks:
        pos = position(
            block,
            settings.period_table,
            settings.visible_start_hour,
            settings.visible_end_hour,
            hour_height,
            settings.weekday_convention,
            min_height
        )
        if pos is not None:
            placed.append((block, pos))
    return placed
