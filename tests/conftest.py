from __future__ import annotations

import datetime as dt
from collections.abc import Iterator
from pathlib import Path

import pytest

from iskascrum.core import Core


class FakeClock:
    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + dt.timedelta(seconds=seconds)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    p = tmp_path / "home"
    monkeypatch.setenv("ISKA_SCRUM_HOME", str(p))
    return p


@pytest.fixture
def config_path(home: Path) -> Path:
    return home / "config.json"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(dt.datetime(2026, 10, 19, 9, 0, 0))


@pytest.fixture
def core(config_path: Path, clock: FakeClock) -> Iterator[Core]:
    with Core(config_path, clock=clock) as c:
        yield c


@pytest.fixture
def task_and_user(core: Core) -> tuple[int, int]:
    user = core.users.create({"name": "Aiko", "email": "aiko@example.com"})
    project = core.projects.create({"name": "Sprint 1"})
    issue = core.issues.create({"project_id": project.id, "title": "Fix login bug"})
    task = core.tasks.create({"issue_id": issue.id, "title": "Patch auth module"})
    return task.id, user.id
