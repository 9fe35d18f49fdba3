from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from iskascrum.backends.base import Backend, ConnectivityError, ExecResult, is_insert, normalize_row

try:
    import pymysql
    from pymysql.cursors import DictCursor
except ImportError:  # pragma: no cover - driver is a declared dependency
    pymysql = None
    DictCursor = None


log = logging.getLogger("iskascrum.backends.mysql")


class MySQLBackend(Backend):
    name = "mysql"
    placeholder = "%s"

    def connect(self, settings: Mapping[str, Any]) -> Any:
        if pymysql is None:
            raise ConnectivityError("PyMySQL is not installed")
        try:
            conn = pymysql.connect(
                host=str(settings.get("host") or "localhost"),
                port=int(settings.get("port") or 3306),
                user=str(settings.get("user") or ""),
                password=str(settings.get("password") or ""),
                database=str(settings.get("database") or ""),
                charset="utf8mb4",
                cursorclass=DictCursor,
                autocommit=True,
                connect_timeout=int(settings.get("connect_timeout") or 10),
            )
        except pymysql.err.Error as e:
            raise ConnectivityError(f"Cannot connect to MySQL at {settings.get('host')}:{settings.get('port')}: {e}") from e
        log.debug("Connected to MySQL %s:%s", settings.get("host"), settings.get("port"))
        return conn

    def execute(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        with handle.cursor() as cur:
            affected = cur.execute(self.translate(sql), tuple(params))
            inserted_id = int(cur.lastrowid) if is_insert(sql) and cur.lastrowid else None
        return ExecResult(inserted_id=inserted_id, rows_affected=int(affected or 0))

    def query(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with handle.cursor() as cur:
            cur.execute(self.translate(sql), tuple(params))
            rows = cur.fetchall() or []
        return [normalize_row(row) for row in rows]

    def close(self, handle: Any) -> None:
        handle.close()
