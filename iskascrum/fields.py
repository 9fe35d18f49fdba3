"""Normalisation of caller-supplied values at the repository boundary.

Optional values arrive from forms as missing keys, ``None`` or ``""``.
All three become ``None`` before they reach a statement, so the store
holds SQL NULL rather than an empty string. Any other text, whitespace
included, is stored as given.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from iskascrum.backends.base import SQL_TIMESTAMP_FORMAT


def normalize_optional(value: Any) -> Any | None:
    if value is None:
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def optional_int(value: Any) -> int | None:
    value = normalize_optional(value)
    if value is None:
        return None
    return int(value)


def optional_text(value: Any) -> str | None:
    value = normalize_optional(value)
    if value is None:
        return None
    return str(value)


def with_default(value: Any, default: str) -> str:
    value = normalize_optional(value)
    if value is None:
        return default
    return str(value)


def to_local_naive(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(microsecond=0)


def to_sql_timestamp(value: dt.datetime) -> str:
    return to_local_naive(value).strftime(SQL_TIMESTAMP_FORMAT)


def parse_timestamp(value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return to_local_naive(value)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    text = str(value).strip()
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"invalid timestamp: {value!r}") from e
    return to_local_naive(parsed)


def optional_timestamp(value: Any) -> str | None:
    value = normalize_optional(value)
    if value is None:
        return None
    return to_sql_timestamp(parse_timestamp(value))
