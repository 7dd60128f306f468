"""Tests for synthetic dataset generation."""

import pytest

from joinbench.constants import USERS
from joinbench.errors import DatasetConfigError
from joinbench.generator import DatasetGenerator, generate_test_data, validate_counts
from joinbench.models import Priority, Status
from joinbench.tracing import Tracer


class TestCounts:
    """Generated record counts and identifiers."""

    @pytest.mark.parametrize(
        ("projects", "issues", "comments"),
        [(1, 1, 1), (10, 50, 200), (3, 7, 2), (5, 1, 9)],
    )
    def test_exact_counts_and_unique_ids(
        self,
        projects: int,
        issues: int,
        comments: int,
    ) -> None:
        """Each kind has exactly the requested number of unique IDs."""
        data = generate_test_data(projects, issues, comments)

        assert len(data.projects) == projects
        assert len(data.issues) == issues
        assert len(data.comments) == comments
        assert len({p.id for p in data.projects}) == projects
        assert len({i.id for i in data.issues}) == issues
        assert len({c.id for c in data.comments}) == comments

    def test_ids_follow_kind_index_pattern(self) -> None:
        """IDs are '<kind>-<index>'."""
        data = generate_test_data(2, 3, 4)
        assert [p.id for p in data.projects] == ["project-0", "project-1"]
        assert [i.id for i in data.issues] == ["issue-0", "issue-1", "issue-2"]
        assert data.comments[3].id == "comment-3"

    def test_all_zero_is_empty(self) -> None:
        """Zero counts yield empty lists."""
        data = generate_test_data(0, 0, 0)
        assert data == ([], [], [])

    def test_zero_downstream_counts_allowed(self) -> None:
        """Projects without issues, issues without comments are fine."""
        data = generate_test_data(4, 0, 0)
        assert len(data.projects) == 4
        data = generate_test_data(4, 6, 0)
        assert len(data.issues) == 6
        assert data.comments == []


class TestReferences:
    """Foreign keys cycle with modulo and always resolve."""

    def test_issue_project_reference(self) -> None:
        """issue i references project-(i mod p)."""
        data = generate_test_data(3, 10, 0)
        for index, issue in enumerate(data.issues):
            assert issue.project_id == f"project-{index % 3}"

    def test_comment_issue_reference(self) -> None:
        """comment i references issue-(i mod n)."""
        data = generate_test_data(2, 7, 30)
        for index, comment in enumerate(data.comments):
            assert comment.issue_id == f"issue-{index % 7}"
            assert comment.content == f"Comment {index} on issue {index % 7}"

    @pytest.mark.parametrize(
        ("projects", "issues", "comments"),
        [(1, 5, 5), (10, 3, 40), (200, 1000, 5000)],
    )
    def test_referential_integrity(
        self,
        projects: int,
        issues: int,
        comments: int,
    ) -> None:
        """Every reference resolves to a generated record."""
        data = generate_test_data(projects, issues, comments)
        project_ids = {p.id for p in data.projects}
        issue_ids = {i.id for i in data.issues}
        assert all(i.project_id in project_ids for i in data.issues)
        assert all(c.issue_id in issue_ids for c in data.comments)

    def test_users_cycle_through_pool(self) -> None:
        """Owner, assignee and author references cycle through five users."""
        data = generate_test_data(7, 7, 7)
        assert [p.owner_id for p in data.projects] == [*USERS, "user1", "user2"]
        assert {i.assignee_id for i in data.issues} == set(USERS)
        assert data.comments[5].author_id == "user1"

    def test_status_and_priority_cycle(self) -> None:
        """Status cycles every 3 issues, priority every 4."""
        data = generate_test_data(1, 12, 0)
        assert [i.status for i in data.issues[:4]] == [
            Status.OPEN,
            Status.IN_PROGRESS,
            Status.CLOSED,
            Status.OPEN,
        ]
        assert data.issues[3].priority == Priority.CRITICAL
        assert data.issues[4].priority == Priority.LOW


class TestDeterminism:
    """Output depends only on the counts (timestamps aside)."""

    def test_same_counts_same_structure(self) -> None:
        """Two calls differ only in timestamps."""
        first = generate_test_data(4, 9, 13)
        second = generate_test_data(4, 9, 13)

        def strip(records: list) -> list:  # type: ignore[type-arg]
            return [
                {k: v for k, v in vars(r).items() if k not in ("created_at", "updated_at")}
                for r in records
            ]

        assert strip(first.projects) == strip(second.projects)
        assert strip(first.issues) == strip(second.issues)
        assert strip(first.comments) == strip(second.comments)

    def test_generator_methods_match_batch(self) -> None:
        """Single-record builders agree with the batch output."""
        gen = DatasetGenerator(3, 5, 8)
        data = gen.generate()
        assert gen.issue(4).project_id == data.issues[4].project_id
        assert gen.comment(7).issue_id == data.comments[7].issue_id


class TestValidation:
    """Invalid counts are rejected up front."""

    def test_zero_projects_with_issues(self) -> None:
        """Issues cannot reference projects when there are none."""
        with pytest.raises(DatasetConfigError, match="project_count is 0"):
            generate_test_data(0, 5, 0)

    def test_zero_issues_with_comments(self) -> None:
        """Comments cannot reference issues when there are none."""
        with pytest.raises(DatasetConfigError, match="issue_count is 0"):
            generate_test_data(2, 0, 5)

    @pytest.mark.parametrize("bad", [-1, 1.5, "3", True, None])
    def test_non_integer_or_negative(self, bad: object) -> None:
        """Counts must be non-negative integers."""
        with pytest.raises(DatasetConfigError, match="non-negative integer"):
            validate_counts(1, bad, 0)  # type: ignore[arg-type]

    def test_config_error_is_value_error(self) -> None:
        """DatasetConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            generate_test_data(-1, 0, 0)


class TestTracing:
    """Generation is wrapped in a span when a tracer is given."""

    def test_span_recorded_with_counts(self) -> None:
        """A generate-test-data span carries the requested counts."""
        tracer = Tracer()
        generate_test_data(2, 3, 4, tracer=tracer)
        (span,) = tracer.finished
        assert span.name == "generate-test-data"
        assert span.attributes["benchmark.issue_count"] == 3

    def test_disabled_tracer_records_nothing(self) -> None:
        """A disabled tracer still returns the data."""
        tracer = Tracer(enabled=False)
        data = generate_test_data(1, 1, 1, tracer=tracer)
        assert len(data.issues) == 1
        assert tracer.finished == []
