"""Tests for result formatting."""

from joinbench.errors import CollectionNotReadyError
from joinbench.models import DatasetSize
from joinbench.report import (
    format_iteration_result,
    format_iteration_start,
    format_results,
    format_statistics,
    format_summary_table,
    format_trial_header,
)
from joinbench.runner import SizeFailure, TrialResult
from joinbench.stats import summarize

SMALL = DatasetSize("Small", 10, 50, 200)
MEDIUM = DatasetSize("Medium", 50, 250, 1000)


class TestProgressLines:
    """Per-trial and per-iteration output."""

    def test_trial_header(self) -> None:
        """The header lists the counts and iteration count."""
        header = format_trial_header(SMALL, 5)
        assert header.splitlines() == [
            "Benchmarking initial load (Small) with:",
            "   Projects: 10",
            "   Issues: 50",
            "   Comments: 200",
            "   Iterations: 5",
        ]

    def test_iteration_start(self) -> None:
        """Iterations are numbered from one."""
        assert format_iteration_start(2, 5) == "   Iteration 2/5..."

    def test_iteration_result(self) -> None:
        """Durations are shown with two decimals."""
        text = format_iteration_result(1.23456, 200)
        assert "Query ready in: 1.23ms" in text
        assert "Result count: 200" in text

    def test_statistics(self) -> None:
        """Every statistic appears with two decimals."""
        text = format_statistics(summarize([1.0, 2.0, 3.0]))
        assert "Average time: 2.00ms" in text
        assert "Median time: 2.00ms" in text
        assert "Min time: 1.00ms" in text
        assert "Max time: 3.00ms" in text
        assert "Std Dev: 0.82ms" in text

    def test_results_line(self) -> None:
        """The one-line summary starts with the label."""
        line = format_results(TrialResult(SMALL, [1.0, 3.0]))
        assert line.startswith("Small")
        assert "avg=    2.00ms" in line


class TestSummaryTable:
    """Cross-size summary table."""

    def test_columns_and_rows(self) -> None:
        """One row per size, in input order, with the average time."""
        table = format_summary_table(
            [TrialResult(SMALL, [1.0, 2.0, 3.0]), TrialResult(MEDIUM, [10.0])],
        )
        for heading in ("Dataset Size", "Projects", "Issues", "Comments", "Avg Time (ms)"):
            assert heading in table
        assert "2.00" in table
        assert "10.00" in table
        assert table.index("Small") < table.index("Medium")

    def test_empty_results(self) -> None:
        """No results still renders the header."""
        assert "Dataset Size" in format_summary_table([])

    def test_failed_sizes(self) -> None:
        """Failed sizes are listed with their error type."""
        table = format_summary_table(
            [TrialResult(SMALL, [1.0])],
            [SizeFailure(MEDIUM, CollectionNotReadyError("not ready"))],
        )
        assert "Medium" in table
        assert "failed: CollectionNotReadyError" in table
        assert "[red]" not in table
