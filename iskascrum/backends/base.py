from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any


SQL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConnectivityError(RuntimeError):
    pass


@dataclass(frozen=True)
class ExecResult:
    inserted_id: int | None
    rows_affected: int


@dataclass(frozen=True)
class ConnectionCheck:
    success: bool
    message: str


def is_insert(sql: str) -> bool:
    return sql.lstrip().upper().startswith("INSERT")


def translate_placeholders(sql: str, marker: str) -> str:
    """Rewrite ``?`` placeholders into ``marker``.

    A ``?`` inside a quoted literal is left alone. For pyformat markers
    every literal ``%`` is doubled, quoted or not, since the driver
    formats the whole statement text.
    """
    if marker == "?":
        return sql
    escape_percent = marker.startswith("%")
    out: list[str] = []
    quote: str | None = None
    for ch in sql:
        if ch == "%" and escape_percent:
            out.append("%%")
        elif quote is not None:
            out.append(ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(marker)
        else:
            out.append(ch)
    return "".join(out)


def normalize_value(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        return value.replace(microsecond=0, tzinfo=None).strftime(SQL_TIMESTAMP_FORMAT)
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k): normalize_value(v) for k, v in row.items()}


class Backend:
    """One relational engine behind the execute/query contract.

    Statements are written once with ``?`` placeholders; each engine
    translates them and hands back plain ``dict`` rows.
    """

    name: str
    placeholder: str = "?"

    def connect(self, settings: Mapping[str, Any]) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def execute(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> ExecResult:  # pragma: no cover - interface
        raise NotImplementedError

    def query(self, handle: Any, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self, handle: Any) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def translate(self, sql: str) -> str:
        return translate_placeholders(sql, self.placeholder)
