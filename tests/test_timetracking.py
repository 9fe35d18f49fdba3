from __future__ import annotations

import datetime as dt
import logging

import pytest

from iskascrum.core import Core
from iskascrum.timetracking import TimerState, format_duration

from conftest import FakeClock


def _open_count(core: Core, task_id: int, user_id: int) -> int:
    row = core.store.query_one(
        "SELECT COUNT(*) AS n FROM time_entries WHERE task_id=? AND user_id=? AND end_time IS NULL",
        (task_id, user_id),
    )
    assert row is not None
    return int(row["n"])


def _closed_entry(core: Core, clock: FakeClock, task_id: int, user_id: int, seconds: int) -> None:
    core.timer.start(task_id, user_id)
    clock.advance(seconds)
    core.timer.stop(task_id, user_id)


def test_start_then_stop(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    assert core.timer.state(task_id, user_id) is TimerState.IDLE

    entry = core.timer.start(task_id, user_id)
    assert entry.running
    assert entry.start_time == "2026-10-19 09:00:00"
    assert entry.duration_seconds is None
    assert core.timer.state(task_id, user_id) is TimerState.RUNNING
    assert core.timer.active_timer(task_id, user_id) == entry

    clock.advance(125)
    ack = core.timer.stop(task_id, user_id)

    assert ack.success
    closed = core.timer.get_entry(entry.id)
    assert closed is not None
    assert closed.end_time == "2026-10-19 09:02:05"
    assert closed.duration_seconds == 125
    assert core.timer.state(task_id, user_id) is TimerState.IDLE
    assert core.timer.active_timer(task_id, user_id) is None


def test_stop_when_idle_is_a_no_op(core: Core, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    core.timer.start(task_id, user_id)

    first = core.timer.stop(task_id, user_id)
    second = core.timer.stop(task_id, user_id)

    assert first.success and first.message == ""
    assert second.success and second.message == "no active timer"


def test_start_closes_running_entry_first(
    core: Core, clock: FakeClock, task_and_user: tuple[int, int], caplog: pytest.LogCaptureFixture
) -> None:
    task_id, user_id = task_and_user
    first = core.timer.start(task_id, user_id)
    clock.advance(30)

    with caplog.at_level(logging.INFO, logger="iskascrum.timetracking"):
        second = core.timer.start(task_id, user_id)

    assert _open_count(core, task_id, user_id) == 1
    closed = core.timer.get_entry(first.id)
    assert closed is not None
    assert closed.duration_seconds == 30
    assert closed.end_time == second.start_time
    assert core.timer.active_timer(task_id, user_id) == second

    transitions = [r.getMessage() for r in caplog.records if r.name == "iskascrum.timetracking"]
    assert len(transitions) == 2
    assert transitions[0].endswith("RUNNING -> IDLE")
    assert transitions[1].endswith("IDLE -> RUNNING")


def test_at_most_one_open_entry_over_a_sequence(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    for op in ("start", "start", "stop", "stop", "start", "stop", "start", "start", "start"):
        getattr(core.timer, op)(task_id, user_id)
        clock.advance(7)
        assert _open_count(core, task_id, user_id) <= 1


def test_timers_are_per_user(core: Core, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    other = core.users.create({"name": "Ken", "email": "ken@example.com"})

    core.timer.start(task_id, user_id)
    core.timer.start(task_id, other.id)
    core.timer.stop(task_id, user_id)

    assert core.timer.state(task_id, user_id) is TimerState.IDLE
    assert core.timer.state(task_id, other.id) is TimerState.RUNNING


def test_duration_never_negative(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    entry = core.timer.start(task_id, user_id)
    clock.advance(-45)
    core.timer.stop(task_id, user_id)

    closed = core.timer.get_entry(entry.id)
    assert closed is not None
    assert closed.duration_seconds == 0


def test_clock_is_truncated_to_seconds(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    clock.now = dt.datetime(2026, 10, 19, 9, 0, 0, 900000)
    entry = core.timer.start(task_id, user_id)
    clock.now = dt.datetime(2026, 10, 19, 9, 0, 10, 100000)
    core.timer.stop(task_id, user_id)

    assert entry.start_time == "2026-10-19 09:00:00"
    closed = core.timer.get_entry(entry.id)
    assert closed is not None
    assert closed.duration_seconds == 10


def test_total_time(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    assert core.timer.total_time(task_id) == 0

    for seconds in (60, 0, 300):
        _closed_entry(core, clock, task_id, user_id, seconds)
    core.timer.start(task_id, user_id)
    clock.advance(999)

    assert core.timer.total_time(task_id) == 360


def test_user_report_window(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    clock.now = dt.datetime(2026, 10, 18, 10, 0, 0)
    _closed_entry(core, clock, task_id, user_id, 600)
    clock.now = dt.datetime(2026, 10, 19, 9, 0, 0)
    _closed_entry(core, clock, task_id, user_id, 120)
    clock.now = dt.datetime(2026, 10, 19, 23, 50, 0)
    _closed_entry(core, clock, task_id, user_id, 1200)
    clock.now = dt.datetime(2026, 10, 19, 15, 0, 0)
    running = core.timer.start(task_id, user_id)

    report = core.timer.user_report(user_id, "2026-10-19T00:00:00", "2026-10-19T23:59:59")

    assert [e.start_time for e in report] == ["2026-10-19 09:00:00", "2026-10-19 15:00:00"]
    assert report[-1] == running
    assert core.timer.user_total_time(user_id, dt.datetime(2026, 10, 19), dt.datetime(2026, 10, 19, 23, 59, 59)) == 120


def test_user_report_rejects_bad_bounds(core: Core, task_and_user: tuple[int, int]) -> None:
    _, user_id = task_and_user
    with pytest.raises(ValueError):
        core.timer.user_report(user_id, "yesterday", "today")


def test_today_totals(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    idle = core.users.create({"name": "Zed", "email": "zed@example.com"})
    clock.now = dt.datetime(2026, 10, 18, 22, 0, 0)
    _closed_entry(core, clock, task_id, user_id, 300)
    clock.now = dt.datetime(2026, 10, 19, 8, 0, 0)
    _closed_entry(core, clock, task_id, user_id, 3725)

    assert core.timer.user_total_time_today(user_id) == 3725
    assert core.timer.user_total_time_today(idle.id) == 0
    team = {row["name"]: row for row in core.timer.team_time_today()}
    assert team["Aiko"]["total_seconds"] == 3725
    assert team["Aiko"]["display"] == "1:02:05"
    assert team["Zed"]["total_seconds"] == 0


def test_elapsed(core: Core, clock: FakeClock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    entry = core.timer.start(task_id, user_id)
    clock.advance(42)
    assert core.timer.elapsed(entry) == 42

    core.timer.stop(task_id, user_id)
    closed = core.timer.get_entry(entry.id)
    assert closed is not None
    clock.advance(100)
    assert core.timer.elapsed(closed) == 42


def test_format_duration() -> None:
    assert format_duration(0) == "0:00:00"
    assert format_duration(59) == "0:00:59"
    assert format_duration(3725) == "1:02:05"
    assert format_duration(-5) == "0:00:00"
    assert format_duration(None) == "0:00:00"


def test_typical_flow(core: Core, clock: FakeClock) -> None:
    user = core.users.create({"name": "Mio", "email": "mio@example.com"})
    project = core.projects.create({"name": "Sprint 1"})
    issue = core.issues.create({"project_id": project.id, "title": "Fix login bug", "status": "open", "priority": "high"})
    task = core.tasks.create({"issue_id": issue.id, "title": "Patch auth module", "status": "pending"})

    core.timer.start(task.id, user.id)
    clock.advance(95)
    core.timer.stop(task.id, user.id)

    assert core.timer.total_time(task.id) == 95
    core.projects.delete(project.id)
    assert core.issues.list(project.id) == []
