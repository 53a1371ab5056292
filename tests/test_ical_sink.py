from datetime import datetime

import pytest
from icalendar import Calendar, Event

from sink import ICalSink, SinkError, SinkNotFoundError, SweepPolicy, reconcile_external_sink
from timetable import DEFAULT_PERIOD_TABLE, NOTE_PREFIX, materialize


@pytest.fixture
def rule(make_rule):
    return make_rule(weeks=(1, 2, 3))


@pytest.fixture
def occurrences(rule, semester_start):
    return materialize([rule], semester_start, DEFAULT_PERIOD_TABLE)


def _user_event(summary, start):
    event = Event()
    event.add("uid", f"{summary}-{start:%Y%m%d}@example.com")
    event.add("summary", summary)
    event.add("dtstart", start)
    event.add("dtend", start.replace(hour=start.hour + 1))
    return event


def test_create_writes_tagged_event(rule, occurrences):
    sink = ICalSink()
    sink.create(occurrences[0], rule)

    [event] = sink.events()
    assert str(event["summary"]) == "Algorithms"
    assert str(event["location"]) == "B101"
    assert str(event["description"]).startswith(NOTE_PREFIX)
    assert "Dr. Chen" in str(event["description"])
    assert ICalSink.event_tag(event) == occurrences[0].tag
    assert event.decoded("dtstart") == datetime(2026, 3, 3, 9, 45)


def test_timezone_is_attached(rule, occurrences):
    sink = ICalSink(timezone="Asia/Shanghai")
    sink.create(occurrences[0], rule)
    assert sink.events()[0].decoded("dtstart").tzinfo is not None


def test_unknown_timezone():
    with pytest.raises(ValueError):
        ICalSink(timezone="Nowhere/Nothing")


def test_resync_is_idempotent(tmp_path, rule, occurrences):
    path = tmp_path / "schedule.ics"
    for _ in range(2):
        sink = ICalSink.open(path)
        reconcile_external_sink(occurrences, [rule], sink)
        sink.save(path)

    reopened = ICalSink.open(path, create=False)
    assert len(reopened.events()) == 3


def test_tagged_sweep_keeps_user_events(rule, occurrences):
    sink = ICalSink()
    own = _user_event("Algorithms", datetime(2026, 3, 4, 9, 0))
    sink.calendar.add_component(own)
    reconcile_external_sink(occurrences, [rule], sink)

    report = reconcile_external_sink(occurrences, [rule], sink)
    assert report.removed == 3
    assert report.created == 3
    assert own in sink.events()


def test_aggressive_sweep_removes_untagged_matches(rule, occurrences):
    sink = ICalSink()
    legacy = _user_event("Algorithms", datetime(2026, 3, 10, 9, 45))
    outside = _user_event("Algorithms", datetime(2026, 6, 1, 9, 45))
    unrelated = _user_event("Dentist", datetime(2026, 3, 10, 9, 45))
    for event in (legacy, outside, unrelated):
        sink.calendar.add_component(event)

    report = reconcile_external_sink(occurrences, [rule], sink, SweepPolicy.AGGRESSIVE)
    events = sink.events()
    assert report.removed == 1
    assert legacy not in events
    assert outside in events
    assert unrelated in events
    assert len(events) == 5


def test_occurrence_without_rule_is_skipped(rule, occurrences):
    sink = ICalSink()
    report = reconcile_external_sink(occurrences, [], sink)
    assert report.created == 0
    assert sink.events() == []


def test_delete_by_uid(rule, occurrences):
    sink = ICalSink()
    uid = sink.create(occurrences[0], rule)
    sink.delete(uid)
    assert sink.events() == []
    with pytest.raises(SinkNotFoundError):
        sink.delete(uid)


def test_open_missing_file_without_create(tmp_path):
    with pytest.raises(SinkNotFoundError):
        ICalSink.open(tmp_path / "missing.ics", create=False)


def test_open_invalid_file(tmp_path):
    path = tmp_path / "broken.ics"
    path.write_text("this is not a calendar")
    with pytest.raises(SinkError):
        ICalSink.open(path)


def test_saved_file_parses(tmp_path, rule, occurrences):
    path = tmp_path / "out.ics"
    sink = ICalSink()
    reconcile_external_sink(occurrences, [rule], sink)
    sink.save(path)
    calendar = Calendar.from_ical(path.read_bytes())
    assert len(calendar.walk("VEVENT")) == 3
