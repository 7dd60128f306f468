"""Synthetic issue-tracker data for the join benchmark.

Every value is derived from the record's position, so two calls with the
same counts produce structurally identical data. Only the timestamp fields
(wall-clock "now") differ between calls.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, NamedTuple

from joinbench.constants import PRIORITIES, STATUSES, USERS
from joinbench.errors import DatasetConfigError
from joinbench.models import Comment, Issue, Project

if TYPE_CHECKING:
    from joinbench.tracing import Tracer


class Dataset(NamedTuple):
    """Generated records, one list per entity kind."""

    projects: list[Project]
    issues: list[Issue]
    comments: list[Comment]


def _check_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"{name} must be a non-negative integer, got {value!r}"
        raise DatasetConfigError(msg)
    return value


def validate_counts(project_count: int, issue_count: int, comment_count: int) -> None:
    """Check that the three counts describe a generatable dataset.

    Issues reference projects and comments reference issues by index modulo
    the referenced count, so a zero upstream count with a non-zero downstream
    count has nothing to reference.

    Raises:
        DatasetConfigError: If any count is invalid
    """
    _check_count("project_count", project_count)
    _check_count("issue_count", issue_count)
    _check_count("comment_count", comment_count)

    if project_count == 0 and issue_count > 0:
        msg = f"Cannot assign {issue_count} issues to projects: project_count is 0"
        raise DatasetConfigError(msg)
    if issue_count == 0 and comment_count > 0:
        msg = f"Cannot assign {comment_count} comments to issues: issue_count is 0"
        raise DatasetConfigError(msg)


class DatasetGenerator:
    """Builds projects, issues and comments from their index."""

    def __init__(self, project_count: int, issue_count: int, comment_count: int) -> None:
        """Initialize the generator.

        Args:
            project_count: Number of projects to generate
            issue_count: Number of issues to generate
            comment_count: Number of comments to generate

        Raises:
            DatasetConfigError: If the counts are invalid
        """
        validate_counts(project_count, issue_count, comment_count)
        self.project_count = project_count
        self.issue_count = issue_count
        self.comment_count = comment_count

    @staticmethod
    def _now() -> datetime:
        return datetime.now().astimezone()

    def project(self, index: int) -> Project:
        """Generate the project at ``index``."""
        return Project(
            id=f"project-{index}",
            name=f"Project {index}",
            description=f"Description for project {index}",
            owner_id=USERS[index % len(USERS)],
            created_at=self._now(),
        )

    def issue(self, index: int) -> Issue:
        """Generate the issue at ``index``."""
        now = self._now()
        return Issue(
            id=f"issue-{index}",
            title=f"Issue {index}",
            description=f"Description for issue {index}",
            status=STATUSES[index % len(STATUSES)],
            priority=PRIORITIES[index % len(PRIORITIES)],
            project_id=f"project-{index % self.project_count}",
            assignee_id=USERS[index % len(USERS)],
            created_at=now,
            updated_at=now,
        )

    def comment(self, index: int) -> Comment:
        """Generate the comment at ``index``."""
        issue_index = index % self.issue_count
        return Comment(
            id=f"comment-{index}",
            content=f"Comment {index} on issue {issue_index}",
            issue_id=f"issue-{issue_index}",
            author_id=USERS[index % len(USERS)],
            created_at=self._now(),
        )

    def generate(self) -> Dataset:
        """Generate every record."""
        return Dataset(
            projects=[self.project(i) for i in range(self.project_count)],
            issues=[self.issue(i) for i in range(self.issue_count)],
            comments=[self.comment(i) for i in range(self.comment_count)],
        )


def generate_test_data(
    project_count: int,
    issue_count: int,
    comment_count: int,
    *,
    tracer: Tracer | None = None,
) -> Dataset:
    """Generate test projects, issues, and comments.

    Args:
        project_count: Number of projects to generate
        issue_count: Number of issues to generate
        comment_count: Number of comments to generate
        tracer: Optional tracer; generation is wrapped in a span

    Returns:
        Tuple of (projects, issues, comments)

    Raises:
        DatasetConfigError: If the counts are invalid
    """
    if tracer is None:
        return DatasetGenerator(project_count, issue_count, comment_count).generate()
    return tracer.with_span(
        "generate-test-data",
        lambda: DatasetGenerator(project_count, issue_count, comment_count).generate(),
        {
            "benchmark.project_count": project_count,
            "benchmark.issue_count": issue_count,
            "benchmark.comment_count": comment_count,
        },
    )
