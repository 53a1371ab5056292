#!/usr/bin/env python3
"""Course timetable to iCalendar converter.

Reads a timetable export, expands its weekly course rules over the semester
and keeps an iCalendar (.ics) file in sync. Also prints the next upcoming
class and the merged week grid.
"""

import argparse
import logging
import sys
from datetime import date, datetime
from typing import Optional

from sink import ICalSink, SinkError, SweepPolicy, reconcile_external_sink
from timetable import (
    DEFAULT_PERIOD_TABLE,
    PeriodTimeTable,
    TimetableSettings,
    WeekdayConvention,
    find_next,
    load_course_document,
    load_period_table,
    materialize,
    merge_blocks,
    project_blocks,
    rules_for_week,
    week_number,
)
from timetable.weekdays import weekday_labels


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: '{date_str}'. Expected YYYY-MM-DD."
        )


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 local timestamp such as 2026-03-02T09:30.
    
    Timestamps with a UTC offset are rejected: all times are local.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid timestamp: '{value}'. Expected YYYY-MM-DDTHH:MM."
        )
    
    if parsed.tzinfo is not None:
        raise argparse.ArgumentTypeError(
            f"Timestamp '{value}' has a UTC offset. Give a local time without one."
        )
    return parsed


def get_period_table(path: Optional[str]) -> PeriodTimeTable:
    """Return the period table from ``path``, or the built-in table."""
    if not path:
        return DEFAULT_PERIOD_TABLE
    return load_period_table(path)


def build_settings(args: argparse.Namespace) -> TimetableSettings:
    return TimetableSettings(
        semester_start=getattr(args, "start_date", None),
        weekday_convention=WeekdayConvention(getattr(args, "week_start", "monday")),
        search_horizon_days=getattr(args, "horizon", 14),
        reminder_lead_minutes=getattr(args, "lead", 10),
        period_table=get_period_table(args.periods)
    )


def run_sync(args: argparse.Namespace) -> None:
    settings = build_settings(args)
    schedule, rules = load_course_document(args.courses)
    
    # Ensure output file has .ics extension
    output_path = args.output
    if not output_path.lower().endswith(".ics"):
        output_path = f"{output_path}.ics"
    
    occurrences = materialize(rules, settings.require_semester_start(), settings.period_table)
    print(f"Found {len(rules)} course rules in '{schedule.name}'.")
    
    if not occurrences:
        print("Warning: No occurrences produced. The calendar will only be cleared.")
    
    sink = ICalSink.open(output_path, timezone=args.timezone)
    policy = SweepPolicy.AGGRESSIVE if args.aggressive else SweepPolicy.TAGGED
    report = reconcile_external_sink(occurrences, rules, sink, policy)
    sink.save(output_path)
    
    print(f"Removed {report.removed} old events, wrote {report.created} events.")
    print(f"Schedule saved to: {output_path}")


def run_next(args: argparse.Namespace) -> None:
    settings = build_settings(args)
    _, rules = load_course_document(args.courses)
    now = args.now or datetime.now()
    
    session = find_next(
        rules,
        now,
        settings.require_semester_start(),
        settings.period_table,
        settings.search_horizon_days
    )
    if session is None:
        print(f"No upcoming class in the next {settings.search_horizon_days} days.")
        return
    
    print(f"Next: {session.rule.name}")
    if session.rule.location:
        print(f"Location: {session.rule.location}")
    print(f"Time: {session.start:%Y-%m-%d %H:%M} - {session.end:%H:%M}")
    print(f"Reminder at: {session.reminder_at(settings.reminder_lead_minutes):%Y-%m-%d %H:%M}")
    if session.in_lead_window(now, settings.reminder_lead_minutes):
        print("Starting soon.")


def run_grid(args: argparse.Namespace) -> None:
    settings = build_settings(args)
    _, rules = load_course_document(args.courses)
    
    if args.week is not None:
        rules = rules_for_week(rules, args.week)
    elif settings.semester_start is not None:
        current = week_number(date.today(), settings.semester_start)
        print(f"Week {current}")
        rules = rules_for_week(rules, current)
    
    labels = weekday_labels(settings.weekday_convention)
    placed = project_blocks(merge_blocks(rules), settings, args.hour_height)
    placed.sort(key=lambda item: (item[1].column, item[1].offset))
    
    for block, pos in placed:
        times = settings.period_table.time_range(block.start_slot)
        end_times = settings.period_table.time_range(block.end_slot)
        span = f"{times[0]}-{end_times[1]}" if times and end_times else "?"
        print(
            f"{labels[pos.column]}  slots {block.start_slot}-{block.end_slot} ({span})  "
            f"{block.name} {block.color}  top={pos.offset:.1f} height={pos.height:.1f}"
        )
    
    if not placed:
        print("Nothing to show.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync a course timetable to iCalendar format.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 timetable2iCal.py sync courses.json --start-date 2026-03-02
  python3 timetable2iCal.py next courses.json --start-date 2026-03-02 --now 2026-03-03T09:00
  python3 timetable2iCal.py grid courses.json --week 3 --week-start sunday
        """
    )
    
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "courses",
        help="Course document (JSON) exported from the timetable"
    )
    common.add_argument(
        "--periods",
        default=None,
        help="Period time table (.json or .html). Default: built-in 12-slot table"
    )
    
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    sync = subparsers.add_parser("sync", parents=[common], help="Write occurrences to an .ics file")
    sync.add_argument(
        "--start-date",
        type=parse_date,
        required=True,
        help="Any date in the first week of the semester (format: YYYY-MM-DD)"
    )
    sync.add_argument(
        "-o", "--output",
        default="schedule.ics",
        help="Output file path (default: schedule.ics)"
    )
    sync.add_argument(
        "--timezone",
        default=None,
        help="IANA timezone for written events (default: floating local time)"
    )
    sync.add_argument(
        "--aggressive",
        action="store_true",
        help="Also remove untagged events with a course title within the semester"
    )
    sync.set_defaults(handler=run_sync)
    
    nxt = subparsers.add_parser("next", parents=[common], help="Show the next upcoming class")
    nxt.add_argument(
        "--start-date",
        type=parse_date,
        required=True,
        help="Any date in the first week of the semester (format: YYYY-MM-DD)"
    )
    nxt.add_argument(
        "--now",
        type=parse_datetime,
        default=None,
        help="Local reference time without UTC offset (default: current local time)"
    )
    nxt.add_argument(
        "--horizon",
        type=int,
        default=14,
        help="Days to search ahead (default: 14)"
    )
    nxt.add_argument(
        "--lead",
        type=int,
        default=10,
        help="Reminder lead time in minutes (default: 10)"
    )
    nxt.set_defaults(handler=run_next)
    
    grid = subparsers.add_parser("grid", parents=[common], help="Print merged blocks of a week")
    grid.add_argument(
        "--start-date",
        type=parse_date,
        default=None,
        help="Semester start, used to pick the current week"
    )
    grid.add_argument(
        "--week",
        type=int,
        default=None,
        help="Teaching week to show (default: current week, or all weeks)"
    )
    grid.add_argument(
        "--week-start",
        choices=[c.value for c in WeekdayConvention],
        default="monday",
        help="First day of the displayed week (default: monday)"
    )
    grid.add_argument(
        "--hour-height",
        type=float,
        default=60.0,
        help="Height of one hour in output units (default: 60)"
    )
    grid.set_defaults(handler=run_grid)
    
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )
    
    try:
        args.handler(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)
    except (ValueError, OSError, SinkError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
