"""Per-(task, user) timers backed by the ``time_entries`` table.

A pair is RUNNING while it has an entry with a NULL ``end_time`` and
IDLE otherwise. ``start`` on a RUNNING pair closes the open entry first,
so at most one entry per pair is open once ``start`` returns. The check
and the write are separate statements; two processes starting the same
pair at once can still leave two open entries.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
from collections.abc import Callable, Mapping
from typing import Any

from iskascrum.fields import parse_timestamp, to_local_naive, to_sql_timestamp
from iskascrum.models import Ack, TimeEntryRow
from iskascrum.store import Store


log = logging.getLogger("iskascrum.timetracking")

Clock = Callable[[], dt.datetime]


class TimerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


def duration_seconds(start: Any, end: Any) -> int:
    delta = parse_timestamp(end) - parse_timestamp(start)
    return max(0, int(delta.total_seconds() // 1))


def format_duration(total_seconds: int | None) -> str:
    s = max(0, int(total_seconds or 0))
    h, rest = divmod(s, 3600)
    m, sec = divmod(rest, 60)
    return f"{h}:{m:02d}:{sec:02d}"


def day_bounds(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    start = dt.datetime.combine(day, dt.time.min)
    end = dt.datetime.combine(day, dt.time(23, 59, 59))
    return start, end


class TimeTracker:
    def __init__(self, store: Store, clock: Clock | None = None) -> None:
        self._store = store
        self._clock: Clock = clock or dt.datetime.now

    def _now(self) -> dt.datetime:
        return to_local_naive(self._clock())

    def _to_entry(self, row: Mapping[str, Any]) -> TimeEntryRow:
        return TimeEntryRow(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            user_id=int(row["user_id"]),
            start_time=str(row["start_time"]),
            end_time=str(row["end_time"]) if row["end_time"] is not None else None,
            duration_seconds=int(row["duration_seconds"]) if row["duration_seconds"] is not None else None,
            created_at=str(row["created_at"]) if row["created_at"] is not None else None,
            updated_at=str(row["updated_at"]) if row["updated_at"] is not None else None,
        )

    def _transition(self, task_id: int, user_id: int, before: TimerState, after: TimerState) -> None:
        log.info("Timer task=%s user=%s %s -> %s", task_id, user_id, before.name, after.name)

    def _open_entries(self, task_id: int, user_id: int) -> list[TimeEntryRow]:
        rows = self._store.query(
            """
            SELECT * FROM time_entries
            WHERE task_id=? AND user_id=? AND end_time IS NULL
            ORDER BY start_time DESC, id DESC
            """,
            (int(task_id), int(user_id)),
        )
        return [self._to_entry(row) for row in rows]

    def _close(self, entry: TimeEntryRow, now: dt.datetime) -> int:
        duration = duration_seconds(entry.start_time, now)
        self._store.execute(
            "UPDATE time_entries SET end_time=?, duration_seconds=?, updated_at=CURRENT_TIMESTAMP WHERE id=?",
            (to_sql_timestamp(now), duration, entry.id),
        )
        self._transition(entry.task_id, entry.user_id, TimerState.RUNNING, TimerState.IDLE)
        return duration

    def get_entry(self, entry_id: int) -> TimeEntryRow | None:
        row = self._store.query_one("SELECT * FROM time_entries WHERE id=?", (int(entry_id),))
        if row is None:
            return None
        return self._to_entry(row)

    def active_timer(self, task_id: int, user_id: int) -> TimeEntryRow | None:
        entries = self._open_entries(task_id, user_id)
        if not entries:
            return None
        return entries[0]

    def state(self, task_id: int, user_id: int) -> TimerState:
        if self.active_timer(task_id, user_id) is None:
            return TimerState.IDLE
        return TimerState.RUNNING

    def start(self, task_id: int, user_id: int) -> TimeEntryRow:
        now = self._now()
        for entry in self._open_entries(task_id, user_id):
            self._close(entry, now)

        result = self._store.execute(
            "INSERT INTO time_entries (task_id, user_id, start_time) VALUES (?, ?, ?)",
            (int(task_id), int(user_id), to_sql_timestamp(now)),
        )
        self._transition(task_id, user_id, TimerState.IDLE, TimerState.RUNNING)
        entry = self.get_entry(result.inserted_id) if result.inserted_id is not None else None
        if entry is None:
            raise RuntimeError("time_entry_not_found_after_start")
        return entry

    def stop(self, task_id: int, user_id: int) -> Ack:
        active = self.active_timer(task_id, user_id)
        if active is None:
            return Ack(success=True, message="no active timer")
        self._close(active, self._now())
        return Ack()

    def total_time(self, task_id: int) -> int:
        row = self._store.query_one(
            """
            SELECT COALESCE(SUM(duration_seconds), 0) AS total
            FROM time_entries
            WHERE task_id=? AND end_time IS NOT NULL
            """,
            (int(task_id),),
        )
        if row is None:
            return 0
        return int(row["total"] or 0)

    def user_report(self, user_id: int, from_ts: Any, to_ts: Any) -> list[TimeEntryRow]:
        """Entries started at/after ``from_ts`` and ended at/before ``to_ts``.

        Entries that are still running are included whatever their start
        relative to ``to_ts``, so an open timer always shows up.
        """
        rows = self._store.query(
            """
            SELECT * FROM time_entries
            WHERE user_id=? AND start_time>=? AND (end_time<=? OR end_time IS NULL)
            ORDER BY start_time, id
            """,
            (
                int(user_id),
                to_sql_timestamp(parse_timestamp(from_ts)),
                to_sql_timestamp(parse_timestamp(to_ts)),
            ),
        )
        return [self._to_entry(row) for row in rows]

    def user_total_time(self, user_id: int, from_ts: Any, to_ts: Any) -> int:
        return sum(e.duration_seconds or 0 for e in self.user_report(user_id, from_ts, to_ts))

    def user_total_time_today(self, user_id: int) -> int:
        start, end = day_bounds(self._now().date())
        return self.user_total_time(user_id, start, end)

    def team_time_today(self) -> list[dict[str, Any]]:
        start, end = day_bounds(self._now().date())
        users = self._store.query("SELECT id, name FROM users ORDER BY name, id")
        out: list[dict[str, Any]] = []
        for u in users:
            total = self.user_total_time(int(u["id"]), start, end)
            out.append(
                {
                    "user_id": int(u["id"]),
                    "name": str(u["name"]),
                    "total_seconds": total,
                    "display": format_duration(total),
                }
            )
        return out

    def elapsed(self, entry: TimeEntryRow) -> int:
        if entry.running:
            return duration_seconds(entry.start_time, self._now())
        return int(entry.duration_seconds or 0)
