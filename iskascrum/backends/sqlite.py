from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from iskascrum.backends.base import Backend, ConnectivityError, ExecResult, is_insert, normalize_row


log = logging.getLogger("iskascrum.backends.sqlite")


class SQLiteBackend(Backend):
    name = "sqlite"
    placeholder = "?"

    def connect(self, settings: Mapping[str, Any]) -> sqlite3.Connection:
        raw = str(settings.get("path") or "").strip()
        if not raw:
            raise ConnectivityError("sqlite.path is not set")
        db_path = Path(raw).expanduser()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(db_path), check_same_thread=False, timeout=30)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON;")
            conn.execute("PRAGMA journal_mode=WAL;")
        except (OSError, sqlite3.Error) as e:
            raise ConnectivityError(f"Cannot open SQLite database {db_path}: {e}") from e
        log.debug("Opened SQLite database %s", db_path)
        return conn

    def execute(self, handle: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        try:
            cur = handle.execute(self.translate(sql), tuple(params))
            handle.commit()
        except sqlite3.Error:
            handle.rollback()
            raise
        inserted_id = int(cur.lastrowid) if is_insert(sql) and cur.lastrowid is not None else None
        return ExecResult(inserted_id=inserted_id, rows_affected=max(0, int(cur.rowcount or 0)))

    def query(self, handle: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        rows = handle.execute(self.translate(sql), tuple(params)).fetchall()
        return [normalize_row(dict(row)) for row in rows]

    def close(self, handle: sqlite3.Connection) -> None:
        handle.close()
