from datetime import datetime

from app.core.rollover_scheduler import BRAZIL_TZ, should_run_rollover, parse_schedule_time


def _brazil(hour, minute, day=10):
    return datetime(2026, 3, day, hour, minute, tzinfo=BRAZIL_TZ)


def test_parse_schedule_time():
    assert parse_schedule_time("03:00") == (3, 0)
    assert parse_schedule_time("7") == (7, 0)


def test_runs_inside_tolerance_window():
    assert should_run_rollover(_brazil(3, 0), None, "03:00")
    assert should_run_rollover(_brazil(3, 2), None, "03:00")


def test_does_not_run_outside_window():
    assert not should_run_rollover(_brazil(3, 5), None, "03:00")
    assert not should_run_rollover(_brazil(4, 0), None, "03:00")


def test_runs_once_per_day():
    last_run = _brazil(3, 0)

    assert not should_run_rollover(_brazil(3, 1), last_run, "03:00")
    assert should_run_rollover(_brazil(3, 0, day=11), last_run, "03:00")
