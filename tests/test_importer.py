import json

import pytest

from sink import ICalSink, reconcile_external_sink
from timetable import (
    DEFAULT_PERIOD_TABLE,
    InMemoryRuleRepository,
    Schedule,
    materialize,
    parse_course_document,
    parse_weeks,
)
from timetable.merger import DEFAULT_PALETTE


def _document(courses, schedule=None):
    return json.dumps({"schedule": schedule or {"id": "s1", "name": "Spring", "term": "2026-1"},
                       "courses": courses})


def test_parse_weeks_formats():
    assert parse_weeks("1-3,5, 7-8") == frozenset({1, 2, 3, 5, 7, 8})
    assert parse_weeks([2, "4"]) == frozenset({2, 4})


@pytest.mark.parametrize("value", ["", "3-1", "a-b", [], [0], None, [True]])
def test_parse_weeks_rejects(value):
    with pytest.raises(ValueError):
        parse_weeks(value)


def test_parse_document_assigns_colors():
    schedule, rules = parse_course_document(_document([
        {"name": "Algorithms", "teacher": "Dr. Chen", "location": "B101",
         "day_of_week": 2, "time_slot": 3, "duration": 2, "weeks": "1-16"},
        {"name": "Physics", "day_of_week": 4, "time_slot": 1, "weeks": [1, 2]},
        {"name": "Algorithms", "day_of_week": 5, "time_slot": 6, "duration": 2, "weeks": "1-16"},
    ]))
    assert schedule.id == "s1"
    assert schedule.term_label == "2026-1"
    assert [r.color for r in rules] == [DEFAULT_PALETTE[0], DEFAULT_PALETTE[1], DEFAULT_PALETTE[0]]
    assert rules[1].slot_span == 1
    assert all(r.schedule_id == "s1" for r in rules)
    assert len(rules[0].weeks) == 16


def test_parse_document_names_bad_row():
    with pytest.raises(ValueError, match="row 2"):
        parse_course_document(_document([
            {"name": "Ok", "day_of_week": 1, "time_slot": 1, "weeks": [1]},
            {"name": "Bad", "day_of_week": 8, "time_slot": 1, "weeks": [1]},
        ]))


def test_parse_document_requires_courses():
    with pytest.raises(ValueError):
        parse_course_document(json.dumps({"schedule": {}}))
    with pytest.raises(ValueError):
        parse_course_document("not json")


def test_repository_round_trip(make_rule):
    repo = InMemoryRuleRepository()
    repo.create_schedule(Schedule(id="s1", name="Spring", is_active=True))
    repo.create_schedule(Schedule(id="s2", name="Old"))
    first = make_rule(schedule_id="s1")
    second = make_rule(name="Physics", schedule_id="s1")
    repo.create_rule(first)
    repo.create_rule(second)

    assert repo.active_schedule().id == "s1"
    assert repo.list_rules("s1") == [first, second]

    edited = make_rule(schedule_id="s1", location="C202")
    repo.update_rule(first.id, edited)
    assert repo.list_rules("s1") == [edited, second]

    repo.delete_rule(second.id)
    assert repo.list_rules("s1") == [edited]

    repo.delete_schedule("s1")
    assert repo.get_schedule("s1") is None
    assert repo.list_rules("s1") == []
    with pytest.raises(KeyError):
        repo.delete_rule(edited.id)


def test_repository_rejects_unknown_schedule(make_rule):
    repo = InMemoryRuleRepository()
    with pytest.raises(KeyError):
        repo.create_rule(make_rule(schedule_id="missing"))


def test_repeated_rows_are_dropped(semester_start):
    row = {"name": "Algorithms", "day_of_week": 2, "time_slot": 3, "duration": 2, "weeks": [1, 2]}
    _, rules = parse_course_document(_document([row, dict(row), dict(row, weeks=[3])]))
    assert len(rules) == 2
    assert len({r.id for r in rules}) == 2

    sink = ICalSink()
    reconcile_external_sink(materialize(rules, semester_start, DEFAULT_PERIOD_TABLE), rules, sink)
    uids = [str(e["uid"]) for e in sink.events()]
    assert len(uids) == 3
    assert len(set(uids)) == 3
