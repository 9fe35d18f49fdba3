from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from iskascrum.config import ConfigError

if TYPE_CHECKING:
    from iskascrum.store import Store


log = logging.getLogger("iskascrum.schema")

# Creation order: parents before the tables that reference them.
TABLES = ("users", "projects", "issues", "tasks", "subtasks", "time_entries")


@dataclass(frozen=True)
class Dialect:
    pk: str
    fk_int: str
    short_text: str
    enum_text: str
    datetime: str
    created_at: str
    updated_at: str
    index_if_not_exists: bool


DIALECTS: dict[str, Dialect] = {
    "sqlite": Dialect(
        pk="INTEGER PRIMARY KEY AUTOINCREMENT",
        fk_int="INTEGER",
        short_text="TEXT",
        enum_text="TEXT",
        datetime="DATETIME",
        created_at="DATETIME DEFAULT CURRENT_TIMESTAMP",
        updated_at="DATETIME DEFAULT CURRENT_TIMESTAMP",
        index_if_not_exists=True,
    ),
    "mysql": Dialect(
        pk="INT AUTO_INCREMENT PRIMARY KEY",
        fk_int="INT",
        short_text="VARCHAR(255)",
        enum_text="VARCHAR(50)",
        datetime="DATETIME",
        created_at="TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        updated_at="TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP",
        index_if_not_exists=False,
    ),
    "postgresql": Dialect(
        pk="SERIAL PRIMARY KEY",
        fk_int="INTEGER",
        short_text="VARCHAR(255)",
        enum_text="VARCHAR(50)",
        datetime="TIMESTAMP",
        created_at="TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        updated_at="TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        index_if_not_exists=True,
    ),
}


def get_dialect(backend_name: str) -> Dialect:
    d = DIALECTS.get(backend_name)
    if d is None:
        raise ConfigError(f"Unsupported database type: {backend_name}")
    return d


def create_statements(backend_name: str) -> list[str]:
    d = get_dialect(backend_name)
    statements = [
        f"""
        CREATE TABLE IF NOT EXISTS users (
          id {d.pk},
          name {d.short_text} NOT NULL,
          email {d.short_text} UNIQUE NOT NULL,
          role {d.enum_text} DEFAULT 'member',
          created_at {d.created_at},
          updated_at {d.updated_at}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS projects (
          id {d.pk},
          name {d.short_text} NOT NULL,
          description TEXT,
          status {d.enum_text} DEFAULT 'active',
          created_at {d.created_at},
          updated_at {d.updated_at}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS issues (
          id {d.pk},
          project_id {d.fk_int} NOT NULL,
          title {d.short_text} NOT NULL,
          description TEXT,
          status {d.enum_text} DEFAULT 'open',
          priority {d.enum_text} DEFAULT 'medium',
          created_by {d.fk_int},
          assigned_to {d.fk_int},
          created_at {d.created_at},
          updated_at {d.updated_at},
          FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
          FOREIGN KEY (created_by) REFERENCES users(id),
          FOREIGN KEY (assigned_to) REFERENCES users(id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS tasks (
          id {d.pk},
          issue_id {d.fk_int} NOT NULL,
          title {d.short_text} NOT NULL,
          description TEXT,
          status {d.enum_text} DEFAULT 'pending',
          priority {d.enum_text} DEFAULT 'medium',
          assigned_to {d.fk_int},
          due_date {d.datetime},
          created_at {d.created_at},
          updated_at {d.updated_at},
          FOREIGN KEY (issue_id) REFERENCES issues(id) ON DELETE CASCADE,
          FOREIGN KEY (assigned_to) REFERENCES users(id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS subtasks (
          id {d.pk},
          task_id {d.fk_int} NOT NULL,
          title {d.short_text} NOT NULL,
          description TEXT,
          status {d.enum_text} DEFAULT 'pending',
          assigned_to {d.fk_int},
          due_date {d.datetime},
          created_at {d.created_at},
          updated_at {d.updated_at},
          FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
          FOREIGN KEY (assigned_to) REFERENCES users(id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS time_entries (
          id {d.pk},
          task_id {d.fk_int} NOT NULL,
          user_id {d.fk_int} NOT NULL,
          start_time {d.datetime} NOT NULL,
          end_time {d.datetime},
          duration_seconds {d.fk_int},
          created_at {d.created_at},
          updated_at {d.updated_at},
          FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
          FOREIGN KEY (user_id) REFERENCES users(id)
        )
        """,
    ]
    if d.index_if_not_exists:
        statements.append("CREATE INDEX IF NOT EXISTS idx_time_entries_task_user ON time_entries(task_id, user_id)")
        statements.append("CREATE INDEX IF NOT EXISTS idx_time_entries_user_start ON time_entries(user_id, start_time)")
    return statements


def create_tables(store: Store) -> None:
    for statement in create_statements(store.backend.name):
        store.execute(statement)
    log.info("Schema ready on %s (%d tables)", store.backend.name, len(TABLES))
