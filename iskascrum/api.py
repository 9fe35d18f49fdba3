"""Operation table for whatever front end drives the core.

Names are the channel names the desktop shell sends; arguments are the
positional values it sends along. Results are plain JSON-ready data.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any

from iskascrum.core import Core
from iskascrum.models import Ack


log = logging.getLogger("iskascrum.api")

Operation = Callable[..., Any]


def _save_config(core: Core, config: dict[str, Any]) -> Ack:
    core.save_config(config)
    return Ack()


def _test_connection(core: Core, config: dict[str, Any] | None = None) -> Any:
    return core.test_connection(config)


OPERATIONS: dict[str, Operation] = {
    "get-database-config": lambda core: core.get_config(),
    "save-database-config": _save_config,
    "test-database-connection": _test_connection,
    "get-users": lambda core: core.users.list(),
    "create-user": lambda core, fields: core.users.create(fields),
    "update-user": lambda core, user_id, fields: core.users.update(user_id, fields),
    "delete-user": lambda core, user_id: core.users.delete(user_id),
    "get-projects": lambda core: core.projects.list(),
    "create-project": lambda core, fields: core.projects.create(fields),
    "update-project": lambda core, project_id, fields: core.projects.update(project_id, fields),
    "delete-project": lambda core, project_id: core.projects.delete(project_id),
    "get-issues": lambda core, project_id=None: core.issues.list(project_id),
    "create-issue": lambda core, fields: core.issues.create(fields),
    "update-issue": lambda core, issue_id, fields: core.issues.update(issue_id, fields),
    "delete-issue": lambda core, issue_id: core.issues.delete(issue_id),
    "get-tasks": lambda core, issue_id=None: core.tasks.list(issue_id),
    "create-task": lambda core, fields: core.tasks.create(fields),
    "update-task": lambda core, task_id, fields: core.tasks.update(task_id, fields),
    "delete-task": lambda core, task_id: core.tasks.delete(task_id),
    "get-subtasks": lambda core, task_id=None: core.subtasks.list(task_id),
    "create-subtask": lambda core, fields: core.subtasks.create(fields),
    "update-subtask": lambda core, subtask_id, fields: core.subtasks.update(subtask_id, fields),
    "delete-subtask": lambda core, subtask_id: core.subtasks.delete(subtask_id),
    "get-project-tasks": lambda core, project_id: core.tasks.by_project(project_id),
    "start-task-timer": lambda core, task_id, user_id: core.timer.start(task_id, user_id),
    "stop-task-timer": lambda core, task_id, user_id: core.timer.stop(task_id, user_id),
    "get-task-total-time": lambda core, task_id: core.timer.total_time(task_id),
    "get-user-time-report": lambda core, user_id, from_ts, to_ts: core.timer.user_report(user_id, from_ts, to_ts),
    "get-user-total-time-today": lambda core, user_id: core.timer.user_total_time_today(user_id),
}


def to_plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    return value


def call(core: Core, operation: str, *args: Any) -> Any:
    """Run one named operation. Unknown names raise ``KeyError``."""
    fn = OPERATIONS[operation]
    log.debug("call %s args=%s", operation, len(args))
    return to_plain(fn(core, *args))
