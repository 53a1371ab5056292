import json

import pytest

import timetable2iCal


@pytest.fixture
def courses_file(tmp_path):
    path = tmp_path / "courses.json"
    path.write_text(json.dumps({
        "schedule": {"id": "s1", "name": "Spring"},
        "courses": [
            {"name": "Algorithms", "teacher": "Dr. Chen", "location": "B101",
             "day_of_week": 2, "time_slot": 3, "duration": 1, "weeks": [1, 2]},
            {"name": "Algorithms", "teacher": "Dr. Chen", "location": "B101",
             "day_of_week": 2, "time_slot": 4, "duration": 1, "weeks": [1, 2]},
        ],
    }))
    return path


def test_sync_writes_calendar(tmp_path, courses_file, capsys):
    output = tmp_path / "out"
    timetable2iCal.main(["sync", str(courses_file), "--start-date", "2026-03-02", "-o", str(output)])
    timetable2iCal.main(["sync", str(courses_file), "--start-date", "2026-03-02", "-o", str(output)])

    out = capsys.readouterr().out
    assert "Removed 4 old events, wrote 4 events." in out
    assert (tmp_path / "out.ics").read_bytes().count(b"BEGIN:VEVENT") == 4


def test_next(courses_file, capsys):
    timetable2iCal.main([
        "next", str(courses_file), "--start-date", "2026-03-02", "--now", "2026-03-03T09:40"
    ])
    out = capsys.readouterr().out
    assert "Next: Algorithms" in out
    assert "2026-03-03 09:45 - 10:25" in out
    assert "Starting soon." in out


def test_next_nothing_upcoming(courses_file, capsys):
    timetable2iCal.main([
        "next", str(courses_file), "--start-date", "2026-03-02", "--now", "2026-06-01T09:00"
    ])
    assert "No upcoming class" in capsys.readouterr().out


def test_grid_merges_slots(courses_file, capsys):
    timetable2iCal.main(["grid", str(courses_file), "--week", "1"])
    out = capsys.readouterr().out
    assert "Tue  slots 3-4 (09:45-11:15)" in out
    assert "top=105.0 height=90.0" in out


def test_bad_period_table_exits(tmp_path, courses_file, capsys):
    periods = tmp_path / "periods.json"
    periods.write_text(json.dumps({"classtime": [{"name": "one", "start_time": "0800", "end_time": "0840"}]}))
    with pytest.raises(SystemExit) as exc:
        timetable2iCal.main(["grid", str(courses_file), "--periods", str(periods)])
    assert exc.value.code == 1
    assert "Slot name is not a number" in capsys.readouterr().err


def test_next_rejects_offset_timestamp(courses_file, capsys):
    with pytest.raises(SystemExit) as exc:
        timetable2iCal.main([
            "next", str(courses_file), "--start-date", "2026-03-02", "--now", "2026-03-03T09:40+08:00"
        ])
    assert exc.value.code == 2
    assert "UTC offset" in capsys.readouterr().err


def test_parse_datetime_accepts_local_time():
    assert timetable2iCal.parse_datetime("2026-03-03T09:40").tzinfo is None
