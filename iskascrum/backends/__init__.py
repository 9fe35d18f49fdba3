from __future__ import annotations

import logging
from typing import Any

from iskascrum.backends.base import Backend, ConnectionCheck, ConnectivityError, ExecResult
from iskascrum.backends.mysql import MySQLBackend
from iskascrum.backends.postgresql import PostgreSQLBackend
from iskascrum.backends.sqlite import SQLiteBackend
from iskascrum.config import ConfigError, backend_settings

__all__ = [
    "BACKENDS",
    "Backend",
    "ConnectionCheck",
    "ConnectivityError",
    "ExecResult",
    "MySQLBackend",
    "PostgreSQLBackend",
    "SQLiteBackend",
    "get_backend",
    "test_connection",
]

log = logging.getLogger("iskascrum.backends")

BACKENDS: dict[str, type[Backend]] = {
    SQLiteBackend.name: SQLiteBackend,
    MySQLBackend.name: MySQLBackend,
    PostgreSQLBackend.name: PostgreSQLBackend,
}


def get_backend(backend_type: str) -> Backend:
    cls = BACKENDS.get(str(backend_type or "").strip().lower())
    if cls is None:
        raise ConfigError(f"Unsupported database type: {backend_type}")
    return cls()


def test_connection(config: dict[str, Any]) -> ConnectionCheck:
    """Open and immediately close a connection described by ``config``.

    Failures are reported in the result instead of raised, so a settings
    dialog can show them before the configuration is saved.
    """
    try:
        backend_type, settings = backend_settings(config)
        backend = get_backend(backend_type)
        handle = backend.connect(settings)
        backend.close(handle)
    except Exception as e:
        log.warning("Connection test failed: %s", e)
        return ConnectionCheck(success=False, message=str(e))
    return ConnectionCheck(success=True, message=f"Connected to {backend_type}")
