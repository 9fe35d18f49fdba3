from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from iskascrum.backends import Backend, ExecResult, get_backend
from iskascrum.config import backend_settings
from iskascrum.schema import create_tables


log = logging.getLogger("iskascrum.store")


class Store:
    """The process-wide store connection.

    Opened once at startup and closed once at shutdown; every repository
    and the time tracker share it. Not safe for concurrent writers.
    """

    def __init__(self, backend: Backend, handle: Any, config: dict[str, Any]) -> None:
        self._backend = backend
        self._handle = handle
        self._config = config

    @classmethod
    def open(cls, config: dict[str, Any], *, provision: bool = True) -> Store:
        backend_type, settings = backend_settings(config)
        backend = get_backend(backend_type)
        handle = backend.connect(settings)
        store = cls(backend, handle, config)
        log.info("Connected to %s backend", backend.name)
        if provision:
            try:
                create_tables(store)
            except Exception:
                store.close()
                raise
        return store

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def config(self) -> dict[str, Any]:
        return self._config

    @property
    def closed(self) -> bool:
        return self._handle is None

    def _require_handle(self) -> Any:
        if self._handle is None:
            raise RuntimeError("store is closed")
        return self._handle

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        return self._backend.execute(self._require_handle(), sql, params)

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return self._backend.query(self._require_handle(), sql, params)

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        rows = self.query(sql, params)
        if not rows:
            return None
        return rows[0]

    def close(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is None:
            return
        self._backend.close(handle)
        log.info("Closed %s backend", self._backend.name)

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
