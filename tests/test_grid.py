import math

from timetable import DEFAULT_PERIOD_TABLE, TimetableSettings, WeekdayConvention, position, project_blocks
from timetable.models import DisplayBlock


def _block(weekday=2, start_slot=3, slot_span=2):
    return DisplayBlock(weekday=weekday, start_slot=start_slot, slot_span=slot_span, color="#FF6B6B")


def test_position_basic():
    pos = position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=60)
    # 09:45 is 105 minutes after 08:00; slots 3-4 last 90 minutes
    assert pos.column == 1
    assert pos.offset == 105
    assert pos.height == 90


def test_position_scales_with_hour_height():
    pos = position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=120)
    assert pos.offset == 210
    assert pos.height == 180


def test_position_uses_convention():
    sunday = _block(weekday=7)
    assert position(sunday, DEFAULT_PERIOD_TABLE, 8, 21, 60, WeekdayConvention.SUNDAY_FIRST).column == 0
    assert position(sunday, DEFAULT_PERIOD_TABLE, 8, 21, 60, WeekdayConvention.MONDAY_FIRST).column == 6


def test_height_is_clamped():
    pos = position(_block(slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=10, min_height=30)
    assert pos.height == 30


def test_missing_slot_returns_none():
    assert position(_block(start_slot=12, slot_span=2), DEFAULT_PERIOD_TABLE, 8, 21, 60) is None
    assert position(_block(start_slot=13, slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, 60) is None


def test_non_finite_returns_none():
    assert position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, math.inf) is None
    assert position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, math.nan) is None
    assert position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, 60, day_column_width=math.nan) is None
    assert position(_block(), DEFAULT_PERIOD_TABLE, 21, 8, 60) is None


def test_deterministic_and_monotonic():
    first = position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, 57.3)
    assert first == position(_block(), DEFAULT_PERIOD_TABLE, 8, 21, 57.3)
    offsets = [
        position(_block(start_slot=s, slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, 57.3).offset
        for s in range(1, 13)
    ]
    assert offsets == sorted(offsets)


def test_project_blocks_skips_unplaceable():
    settings = TimetableSettings()
    placed = project_blocks([_block(), _block(start_slot=13, slot_span=1)], settings, 60)
    assert len(placed) == 1
    assert placed[0][1].offset == 105


def test_default_clamp_follows_scale():
    first = position(_block(weekday=1, start_slot=1, slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=20)
    second = position(_block(weekday=1, start_slot=2, slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=20)
    assert first.offset + first.height <= second.offset

    normalized = position(_block(slot_span=1), DEFAULT_PERIOD_TABLE, 8, 21, hour_height=1.0)
    assert normalized.height < 1.0
