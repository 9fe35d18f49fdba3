from __future__ import annotations

import json
from pathlib import Path

import pytest

from iskascrum.api import OPERATIONS, call
from iskascrum.core import Core


def test_operation_names() -> None:
    expected = {
        "get-database-config",
        "save-database-config",
        "test-database-connection",
        "get-project-tasks",
        "start-task-timer",
        "stop-task-timer",
        "get-task-total-time",
        "get-user-time-report",
        "get-user-total-time-today",
    }
    for entity in ("user", "project", "issue", "task", "subtask"):
        expected |= {f"get-{entity}s", f"create-{entity}", f"update-{entity}", f"delete-{entity}"}
    assert set(OPERATIONS) == expected


def test_unknown_operation(core: Core) -> None:
    with pytest.raises(KeyError):
        call(core, "drop-everything")


def test_crud_returns_plain_data(core: Core) -> None:
    project = call(core, "create-project", {"name": "Sprint 1"})
    assert isinstance(project, dict)
    assert project["status"] == "active"

    issue = call(core, "create-issue", {"project_id": project["id"], "title": "Fix login bug", "priority": "high"})
    assert call(core, "update-issue", issue["id"], {"status": "review"}) == {"success": True, "message": ""}

    issues = call(core, "get-issues", project["id"])
    assert [i["status"] for i in issues] == ["review"]
    assert json.dumps(issues)

    task = call(core, "create-task", {"issue_id": issue["id"], "title": "Patch"})
    assert [t["id"] for t in call(core, "get-project-tasks", project["id"])] == [task["id"]]
    assert call(core, "delete-project", project["id"])["success"] is True
    assert call(core, "get-projects") == []


def test_timer_operations(core: Core, clock, task_and_user: tuple[int, int]) -> None:
    task_id, user_id = task_and_user
    entry = call(core, "start-task-timer", task_id, user_id)
    assert entry["end_time"] is None

    clock.advance(90)
    assert call(core, "stop-task-timer", task_id, user_id)["success"] is True
    assert call(core, "stop-task-timer", task_id, user_id)["message"] == "no active timer"
    assert call(core, "get-task-total-time", task_id) == 90
    assert call(core, "get-user-total-time-today", user_id) == 90

    report = call(core, "get-user-time-report", user_id, "2026-10-19T00:00:00", "2026-10-19T23:59:59")
    assert [r["duration_seconds"] for r in report] == [90]


def test_config_operations(core: Core, config_path: Path) -> None:
    cfg = call(core, "get-database-config")
    assert cfg["type"] == "sqlite"

    check = call(core, "test-database-connection", cfg)
    assert check == {"success": True, "message": "Connected to sqlite"}

    cfg["mysql"]["host"] = "db.example.com"
    assert call(core, "save-database-config", cfg)["success"] is True
    assert json.loads(config_path.read_text(encoding="utf-8"))["mysql"]["host"] == "db.example.com"
    assert call(core, "get-database-config")["mysql"]["host"] == "db.example.com"


def test_entity_operations_need_initialized_core(config_path: Path) -> None:
    core = Core(config_path)
    with pytest.raises(RuntimeError, match="core is not initialized"):
        call(core, "get-projects")
    assert call(core, "get-database-config")["type"] == "sqlite"

    core.initialize()
    assert call(core, "get-projects") == []
    core.close()
    with pytest.raises(RuntimeError, match="core is not initialized"):
        call(core, "start-task-timer", 1, 1)
