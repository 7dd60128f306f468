"""Data models for the synthetic issue-tracker dataset using dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from joinbench._version import version as _joinbench_version


def _now() -> datetime:
    return datetime.now().astimezone()


class Status(str, Enum):
    """Issue status enumeration."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class Priority(str, Enum):
    """Issue priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Project:
    """A project owning many issues."""

    id: str
    name: str
    description: str
    owner_id: str
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Issue:
    """An issue belonging to a project."""

    id: str
    title: str
    description: str
    project_id: str  # Foreign key, not enforced
    assignee_id: str
    status: Status = Status.OPEN
    priority: Priority = Priority.MEDIUM
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class Comment:
    """A comment on an issue."""

    id: str
    content: str
    issue_id: str  # Foreign key, not enforced
    author_id: str
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DatasetSize:
    """Entity counts for one benchmark run."""

    label: str
    project_count: int
    issue_count: int
    comment_count: int

    @property
    def total_records(self) -> int:
        """Total number of records generated for this size."""
        return self.project_count + self.issue_count + self.comment_count


def _require_str(record: object, name: str) -> None:
    value = getattr(record, name, None)
    if not isinstance(value, str) or not value:
        msg = f"{type(record).__name__}.{name} must be a non-empty string"
        raise ValueError(msg)


def _require_datetime(record: object, name: str) -> None:
    if not isinstance(getattr(record, name, None), datetime):
        msg = f"{type(record).__name__}.{name} must be a datetime"
        raise TypeError(msg)


def validate_project(project: Any) -> None:
    """Validate that a project has all required fields with valid types."""
    if not isinstance(project, Project):
        msg = f"Expected Project, got {type(project).__name__}"
        raise TypeError(msg)
    for name in ("id", "name", "description", "owner_id"):
        _require_str(project, name)
    _require_datetime(project, "created_at")


def validate_issue(issue: Any) -> None:
    """Validate that an issue has all required fields with valid types."""
    if not isinstance(issue, Issue):
        msg = f"Expected Issue, got {type(issue).__name__}"
        raise TypeError(msg)
    for name in ("id", "title", "description", "project_id", "assignee_id"):
        _require_str(issue, name)
    if not isinstance(issue.status, Status):
        msg = f"Status must be a Status enum value, got {issue.status}"
        raise TypeError(msg)
    if not isinstance(issue.priority, Priority):
        msg = f"Priority must be a Priority enum value, got {issue.priority}"
        raise TypeError(msg)
    _require_datetime(issue, "created_at")
    _require_datetime(issue, "updated_at")


def validate_comment(comment: Any) -> None:
    """Validate that a comment has all required fields with valid types."""
    if not isinstance(comment, Comment):
        msg = f"Expected Comment, got {type(comment).__name__}"
        raise TypeError(msg)
    for name in ("id", "content", "issue_id", "author_id"):
        _require_str(comment, name)
    _require_datetime(comment, "created_at")


def record_to_dict(record: Project | Issue | Comment) -> dict[str, Any]:
    """Convert a generated record to a dictionary, serializing datetimes."""
    if isinstance(record, Project):
        return {
            "record_type": "project",
            "joinbench_version": _joinbench_version,
            "id": record.id,
            "name": record.name,
            "description": record.description,
            "owner_id": record.owner_id,
            "created_at": record.created_at.isoformat(),
        }
    if isinstance(record, Issue):
        return {
            "record_type": "issue",
            "joinbench_version": _joinbench_version,
            "id": record.id,
            "title": record.title,
            "description": record.description,
            "status": record.status.value,
            "priority": record.priority.value,
            "project_id": record.project_id,
            "assignee_id": record.assignee_id,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
        }
    return {
        "record_type": "comment",
        "joinbench_version": _joinbench_version,
        "id": record.id,
        "content": record.content,
        "issue_id": record.issue_id,
        "author_id": record.author_id,
        "created_at": record.created_at.isoformat(),
    }
