from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TypeVar

from iskascrum import backends
from iskascrum.backends import ConnectionCheck
from iskascrum.config import ConfigStore
from iskascrum.repositories import (
    IssueRepository,
    ProjectRepository,
    SubtaskRepository,
    TaskRepository,
    UserRepository,
)
from iskascrum.store import Store
from iskascrum.timetracking import Clock, TimeTracker


log = logging.getLogger("iskascrum.core")

T = TypeVar("T")


class Core:
    """Configuration, store connection and the components built on it.

    One instance per process: ``initialize()`` at startup, ``close()`` at
    shutdown. Repositories and the tracker are only available in between.
    """

    def __init__(self, config_path: Path | None = None, *, clock: Clock | None = None) -> None:
        self.config_store = ConfigStore(config_path)
        self._clock = clock
        self._store: Store | None = None
        self._users: UserRepository | None = None
        self._projects: ProjectRepository | None = None
        self._issues: IssueRepository | None = None
        self._tasks: TaskRepository | None = None
        self._subtasks: SubtaskRepository | None = None
        self._timer: TimeTracker | None = None

    def _require(self, component: T | None) -> T:
        if component is None or self._store is None:
            raise RuntimeError("core is not initialized")
        return component

    @property
    def store(self) -> Store:
        return self._require(self._store)

    @property
    def users(self) -> UserRepository:
        return self._require(self._users)

    @property
    def projects(self) -> ProjectRepository:
        return self._require(self._projects)

    @property
    def issues(self) -> IssueRepository:
        return self._require(self._issues)

    @property
    def tasks(self) -> TaskRepository:
        return self._require(self._tasks)

    @property
    def subtasks(self) -> SubtaskRepository:
        return self._require(self._subtasks)

    @property
    def timer(self) -> TimeTracker:
        return self._require(self._timer)

    def initialize(self) -> Core:
        if self._store is not None:
            return self
        config = self.config_store.load()
        store = Store.open(config)
        self._store = store
        self._users = UserRepository(store)
        self._projects = ProjectRepository(store)
        self._issues = IssueRepository(store)
        self._tasks = TaskRepository(store)
        self._subtasks = SubtaskRepository(store)
        self._timer = TimeTracker(store, clock=self._clock)
        log.info("Initialized with %s backend", store.backend.name)
        return self

    def close(self) -> None:
        store = self._store
        self._store = None
        self._users = self._projects = self._issues = None
        self._tasks = self._subtasks = None
        self._timer = None
        if store is not None:
            store.close()

    def get_config(self) -> dict[str, Any]:
        return self.config_store.get()

    def save_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Persist ``config``. The open connection keeps using the old one until restart."""
        return self.config_store.save(config)

    def test_connection(self, config: dict[str, Any] | None = None) -> ConnectionCheck:
        return backends.test_connection(config if config is not None else self.get_config())

    def __enter__(self) -> Core:
        return self.initialize()

    def __exit__(self, *exc: object) -> None:
        self.close()
