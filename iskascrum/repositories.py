from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from iskascrum.fields import optional_int, optional_text, optional_timestamp, with_default
from iskascrum.models import (
    ISSUE_OPEN,
    PRIORITY_MEDIUM,
    PROJECT_ACTIVE,
    ROLE_MEMBER,
    TASK_PENDING,
    Ack,
    IssueRow,
    ProjectRow,
    SubtaskRow,
    TaskRow,
    UserRow,
)
from iskascrum.store import Store


log = logging.getLogger("iskascrum.repositories")

Normalizer = Callable[[Any], Any]


def _required(value: Any) -> Any:
    # Missing required values go to the store as NULL and fail its NOT NULL constraint.
    if value is None:
        return None
    return str(value)


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _opt_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _defaulted(default: str) -> Normalizer:
    return lambda value: with_default(value, default)


class _Repository:
    table: str
    mutable: dict[str, Normalizer]

    def __init__(self, store: Store) -> None:
        self._store = store

    def _insert(self, columns: list[str], values: list[Any]) -> int:
        marks = ", ".join("?" for _ in columns)
        result = self._store.execute(
            f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({marks})",
            values,
        )
        if result.inserted_id is None:
            raise RuntimeError(f"{self.table}_insert_returned_no_id")
        log.debug("Created %s id=%s", self.table, result.inserted_id)
        return result.inserted_id

    def update(self, row_id: int, fields: Mapping[str, Any]) -> Ack:
        """Replace the mutable fields present in ``fields``.

        Keys that are absent keep their stored value; ``updated_at`` is
        refreshed on every call.
        """
        sets: list[str] = []
        args: list[Any] = []
        for column, normalize in self.mutable.items():
            if column not in fields:
                continue
            sets.append(f"{column}=?")
            args.append(normalize(fields[column]))
        sets.append("updated_at=CURRENT_TIMESTAMP")
        args.append(int(row_id))
        self._store.execute(f"UPDATE {self.table} SET {', '.join(sets)} WHERE id=?", args)
        return Ack()

    def delete(self, row_id: int) -> Ack:
        self._store.execute(f"DELETE FROM {self.table} WHERE id=?", (int(row_id),))
        log.debug("Deleted %s id=%s", self.table, row_id)
        return Ack()

    def get(self, row_id: int) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def _created(self, row_id: int) -> Any:
        row = self.get(row_id)
        if row is None:
            raise RuntimeError(f"{self.table}_not_found_after_insert")
        return row


class UserRepository(_Repository):
    table = "users"
    mutable = {
        "name": _required,
        "email": _required,
        "role": _defaulted(ROLE_MEMBER),
    }

    def _to_user(self, row: Mapping[str, Any]) -> UserRow:
        return UserRow(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            role=str(row["role"] or ROLE_MEMBER),
            created_at=_opt_str(row["created_at"]),
            updated_at=_opt_str(row["updated_at"]),
        )

    def list(self) -> list[UserRow]:
        rows = self._store.query("SELECT * FROM users ORDER BY created_at DESC, id DESC")
        return [self._to_user(row) for row in rows]

    def get(self, user_id: int) -> UserRow | None:
        row = self._store.query_one("SELECT * FROM users WHERE id=?", (int(user_id),))
        if row is None:
            return None
        return self._to_user(row)

    def create(self, fields: Mapping[str, Any]) -> UserRow:
        user_id = self._insert(
            ["name", "email", "role"],
            [
                _required(fields.get("name")),
                _required(fields.get("email")),
                with_default(fields.get("role"), ROLE_MEMBER),
            ],
        )
        return self._created(user_id)


class ProjectRepository(_Repository):
    table = "projects"
    mutable = {
        "name": _required,
        "description": optional_text,
        "status": _defaulted(PROJECT_ACTIVE),
    }

    def _to_project(self, row: Mapping[str, Any]) -> ProjectRow:
        return ProjectRow(
            id=int(row["id"]),
            name=str(row["name"]),
            description=_opt_str(row["description"]),
            status=str(row["status"] or PROJECT_ACTIVE),
            created_at=_opt_str(row["created_at"]),
            updated_at=_opt_str(row["updated_at"]),
        )

    def list(self) -> list[ProjectRow]:
        rows = self._store.query("SELECT * FROM projects ORDER BY created_at DESC, id DESC")
        return [self._to_project(row) for row in rows]

    def get(self, project_id: int) -> ProjectRow | None:
        row = self._store.query_one("SELECT * FROM projects WHERE id=?", (int(project_id),))
        if row is None:
            return None
        return self._to_project(row)

    def create(self, fields: Mapping[str, Any]) -> ProjectRow:
        project_id = self._insert(
            ["name", "description", "status"],
            [
                _required(fields.get("name")),
                optional_text(fields.get("description")),
                with_default(fields.get("status"), PROJECT_ACTIVE),
            ],
        )
        return self._created(project_id)


class IssueRepository(_Repository):
    table = "issues"
    mutable = {
        "title": _required,
        "description": optional_text,
        "status": _defaulted(ISSUE_OPEN),
        "priority": _defaulted(PRIORITY_MEDIUM),
        "assigned_to": optional_int,
    }

    _SELECT = """
        SELECT i.*, u1.name AS created_by_name, u2.name AS assigned_to_name
        FROM issues i
        LEFT JOIN users u1 ON u1.id=i.created_by
        LEFT JOIN users u2 ON u2.id=i.assigned_to
    """

    def _to_issue(self, row: Mapping[str, Any]) -> IssueRow:
        return IssueRow(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            title=str(row["title"]),
            description=_opt_str(row["description"]),
            status=str(row["status"] or ISSUE_OPEN),
            priority=str(row["priority"] or PRIORITY_MEDIUM),
            created_by=_opt_int(row["created_by"]),
            created_by_name=_opt_str(row["created_by_name"]),
            assigned_to=_opt_int(row["assigned_to"]),
            assigned_to_name=_opt_str(row["assigned_to_name"]),
            created_at=_opt_str(row["created_at"]),
            updated_at=_opt_str(row["updated_at"]),
        )

    def list(self, project_id: int | None = None) -> list[IssueRow]:
        sql = self._SELECT
        args: list[Any] = []
        if project_id is not None:
            sql += " WHERE i.project_id=?"
            args.append(int(project_id))
        sql += " ORDER BY i.created_at DESC, i.id DESC"
        return [self._to_issue(row) for row in self._store.query(sql, args)]

    def get(self, issue_id: int) -> IssueRow | None:
        row = self._store.query_one(self._SELECT + " WHERE i.id=?", (int(issue_id),))
        if row is None:
            return None
        return self._to_issue(row)

    def create(self, fields: Mapping[str, Any]) -> IssueRow:
        issue_id = self._insert(
            ["project_id", "title", "description", "status", "priority", "created_by", "assigned_to"],
            [
                optional_int(fields.get("project_id")),
                _required(fields.get("title")),
                optional_text(fields.get("description")),
                with_default(fields.get("status"), ISSUE_OPEN),
                with_default(fields.get("priority"), PRIORITY_MEDIUM),
                optional_int(fields.get("created_by")),
                optional_int(fields.get("assigned_to")),
            ],
        )
        return self._created(issue_id)


class TaskRepository(_Repository):
    table = "tasks"
    mutable = {
        "title": _required,
        "description": optional_text,
        "status": _defaulted(TASK_PENDING),
        "priority": _defaulted(PRIORITY_MEDIUM),
        "assigned_to": optional_int,
        "due_date": optional_timestamp,
    }

    _SELECT = """
        SELECT t.*, u.name AS assigned_to_name
        FROM tasks t
        LEFT JOIN users u ON u.id=t.assigned_to
    """

    def _to_task(self, row: Mapping[str, Any]) -> TaskRow:
        return TaskRow(
            id=int(row["id"]),
            issue_id=int(row["issue_id"]),
            title=str(row["title"]),
            description=_opt_str(row["description"]),
            status=str(row["status"] or TASK_PENDING),
            priority=str(row["priority"] or PRIORITY_MEDIUM),
            assigned_to=_opt_int(row["assigned_to"]),
            assigned_to_name=_opt_str(row["assigned_to_name"]),
            due_date=_opt_str(row["due_date"]),
            created_at=_opt_str(row["created_at"]),
            updated_at=_opt_str(row["updated_at"]),
        )

    def list(self, issue_id: int | None = None) -> list[TaskRow]:
        sql = self._SELECT
        args: list[Any] = []
        if issue_id is not None:
            sql += " WHERE t.issue_id=?"
            args.append(int(issue_id))
        sql += " ORDER BY t.created_at DESC, t.id DESC"
        return [self._to_task(row) for row in self._store.query(sql, args)]

    def by_project(self, project_id: int) -> list[TaskRow]:
        """Tasks of every issue in a project, for board views."""
        sql = """
            SELECT t.*, u.name AS assigned_to_name
            FROM tasks t
            JOIN issues i ON i.id=t.issue_id
            LEFT JOIN users u ON u.id=t.assigned_to
            WHERE i.project_id=?
            ORDER BY t.created_at DESC, t.id DESC
        """
        return [self._to_task(row) for row in self._store.query(sql, (int(project_id),))]

    def get(self, task_id: int) -> TaskRow | None:
        row = self._store.query_one(self._SELECT + " WHERE t.id=?", (int(task_id),))
        if row is None:
            return None
        return self._to_task(row)

    def create(self, fields: Mapping[str, Any]) -> TaskRow:
        task_id = self._insert(
            ["issue_id", "title", "description", "status", "priority", "assigned_to", "due_date"],
            [
                optional_int(fields.get("issue_id")),
                _required(fields.get("title")),
                optional_text(fields.get("description")),
                with_default(fields.get("status"), TASK_PENDING),
                with_default(fields.get("priority"), PRIORITY_MEDIUM),
                optional_int(fields.get("assigned_to")),
                optional_timestamp(fields.get("due_date")),
            ],
        )
        return self._created(task_id)


class SubtaskRepository(_Repository):
    table = "subtasks"
    mutable = {
        "title": _required,
        "description": optional_text,
        "status": _defaulted(TASK_PENDING),
        "assigned_to": optional_int,
        "due_date": optional_timestamp,
    }

    _SELECT = """
        SELECT s.*, u.name AS assigned_to_name
        FROM subtasks s
        LEFT JOIN users u ON u.id=s.assigned_to
    """

    def _to_subtask(self, row: Mapping[str, Any]) -> SubtaskRow:
        return SubtaskRow(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            title=str(row["title"]),
            description=_opt_str(row["description"]),
            status=str(row["status"] or TASK_PENDING),
            assigned_to=_opt_int(row["assigned_to"]),
            assigned_to_name=_opt_str(row["assigned_to_name"]),
            due_date=_opt_str(row["due_date"]),
            created_at=_opt_str(row["created_at"]),
            updated_at=_opt_str(row["updated_at"]),
        )

    def list(self, task_id: int | None = None) -> list[SubtaskRow]:
        sql = self._SELECT
        args: list[Any] = []
        if task_id is not None:
            sql += " WHERE s.task_id=?"
            args.append(int(task_id))
        sql += " ORDER BY s.created_at DESC, s.id DESC"
        return [self._to_subtask(row) for row in self._store.query(sql, args)]

    def get(self, subtask_id: int) -> SubtaskRow | None:
        row = self._store.query_one(self._SELECT + " WHERE s.id=?", (int(subtask_id),))
        if row is None:
            return None
        return self._to_subtask(row)

    def create(self, fields: Mapping[str, Any]) -> SubtaskRow:
        subtask_id = self._insert(
            ["task_id", "title", "description", "status", "assigned_to", "due_date"],
            [
                optional_int(fields.get("task_id")),
                _required(fields.get("title")),
                optional_text(fields.get("description")),
                with_default(fields.get("status"), TASK_PENDING),
                optional_int(fields.get("assigned_to")),
                optional_timestamp(fields.get("due_date")),
            ],
        )
        return self._created(subtask_id)
