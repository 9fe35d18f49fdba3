from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from iskascrum.backends.base import Backend, ConnectivityError, ExecResult, is_insert, normalize_row

try:
    import psycopg
    from psycopg.rows import dict_row
except ImportError:  # pragma: no cover - driver is a declared dependency
    psycopg = None
    dict_row = None


log = logging.getLogger("iskascrum.backends.postgresql")


def with_returning_id(sql: str) -> str:
    """Append ``RETURNING id`` to an INSERT that does not already return it."""
    if not is_insert(sql) or " RETURNING " in f" {sql.upper()} ":
        return sql
    return sql.rstrip().rstrip(";") + " RETURNING id"


class PostgreSQLBackend(Backend):
    name = "postgresql"
    placeholder = "%s"

    def connect(self, settings: Mapping[str, Any]) -> Any:
        if psycopg is None:
            raise ConnectivityError("psycopg is not installed")
        try:
            conn = psycopg.connect(
                host=str(settings.get("host") or "localhost"),
                port=int(settings.get("port") or 5432),
                user=str(settings.get("user") or ""),
                password=str(settings.get("password") or ""),
                dbname=str(settings.get("database") or ""),
                connect_timeout=int(settings.get("connect_timeout") or 10),
                autocommit=True,
                row_factory=dict_row,
            )
        except psycopg.Error as e:
            raise ConnectivityError(
                f"Cannot connect to PostgreSQL at {settings.get('host')}:{settings.get('port')}: {e}"
            ) from e
        log.debug("Connected to PostgreSQL %s:%s", settings.get("host"), settings.get("port"))
        return conn

    def execute(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        with handle.cursor() as cur:
            cur.execute(self.translate(with_returning_id(sql)), tuple(params))
            inserted_id = None
            if is_insert(sql):
                row = cur.fetchone()
                inserted_id = int(row["id"]) if row else None
            affected = cur.rowcount
        return ExecResult(inserted_id=inserted_id, rows_affected=max(0, int(affected or 0)))

    def query(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with handle.cursor() as cur:
            cur.execute(self.translate(sql), tuple(params))
            rows = cur.fetchall() or []
        return [normalize_row(row) for row in rows]

    def close(self, handle: Any) -> None:
        handle.close()
