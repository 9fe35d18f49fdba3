from __future__ import annotations

from dataclasses import dataclass


ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"
ROLE_SCRUM_MASTER = "scrum_master"
ROLES = (ROLE_MEMBER, ROLE_ADMIN, ROLE_SCRUM_MASTER)

PROJECT_ACTIVE = "active"
PROJECT_INACTIVE = "inactive"
PROJECT_COMPLETED = "completed"
PROJECT_STATUSES = (PROJECT_ACTIVE, PROJECT_INACTIVE, PROJECT_COMPLETED)

ISSUE_OPEN = "open"
ISSUE_IN_PROGRESS = "in_progress"
ISSUE_REVIEW = "review"
ISSUE_CLOSED = "closed"
ISSUE_STATUSES = (ISSUE_OPEN, ISSUE_IN_PROGRESS, ISSUE_REVIEW, ISSUE_CLOSED)

PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
PRIORITY_CRITICAL = "critical"
PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH, PRIORITY_CRITICAL)

TASK_PENDING = "pending"
TASK_IN_PROGRESS = "in_progress"
TASK_REVIEW = "review"
TASK_COMPLETED = "completed"
TASK_STATUSES = (TASK_PENDING, TASK_IN_PROGRESS, TASK_REVIEW, TASK_COMPLETED)


@dataclass(frozen=True)
class Ack:
    success: bool = True
    message: str = ""


@dataclass(frozen=True)
class UserRow:
    id: int
    name: str
    email: str
    role: str
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class ProjectRow:
    id: int
    name: str
    description: str | None
    status: str
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class IssueRow:
    id: int
    project_id: int
    title: str
    description: str | None
    status: str
    priority: str
    created_by: int | None
    created_by_name: str | None
    assigned_to: int | None
    assigned_to_name: str | None
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class TaskRow:
    id: int
    issue_id: int
    title: str
    description: str | None
    status: str
    priority: str
    assigned_to: int | None
    assigned_to_name: str | None
    due_date: str | None
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class SubtaskRow:
    id: int
    task_id: int
    title: str
    description: str | None
    status: str
    assigned_to: int | None
    assigned_to_name: str | None
    due_date: str | None
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class TimeEntryRow:
    id: int
    task_id: int
    user_id: int
    start_time: str
    end_time: str | None
    duration_seconds: int | None
    created_at: str | None
    updated_at: str | None

    @property
    def running(self) -> bool:
        return self.end_time is None
