"""Console formatting for benchmark results.

Everything here is pure formatting: functions take results and return
strings, callers decide where to print them.
"""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from joinbench.models import DatasetSize
    from joinbench.runner import SizeFailure, TrialResult
    from joinbench.stats import SummaryStatistics


def format_trial_header(size: DatasetSize, iterations: int) -> str:
    """Describe the dataset about to be benchmarked."""
    return "\n".join(
        [
            f"Benchmarking initial load ({size.label}) with:",
            f"   Projects: {size.project_count}",
            f"   Issues: {size.issue_count}",
            f"   Comments: {size.comment_count}",
            f"   Iterations: {iterations}",
        ],
    )


def format_iteration_start(iteration: int, iterations: int) -> str:
    """Progress line printed before each iteration."""
    return f"   Iteration {iteration}/{iterations}..."


def format_iteration_result(duration_ms: float, result_count: int) -> str:
    """Timing and row count for one finished iteration."""
    return (
        f"     Query ready in: {duration_ms:.2f}ms\n"
        f"     Result count: {result_count}"
    )


def format_statistics(stats: SummaryStatistics) -> str:
    """Summary statistics for one dataset size."""
    return "\n".join(
        [
            "Results:",
            f"   Average time: {stats.mean:.2f}ms",
            f"   Median time: {stats.median:.2f}ms",
            f"   Min time: {stats.min:.2f}ms",
            f"   Max time: {stats.max:.2f}ms",
            f"   Std Dev: {stats.stddev:.2f}ms",
        ],
    )


def format_results(result: TrialResult) -> str:
    """One-line summary of a trial, aligned for side-by-side comparison."""
    stats = result.stats
    return (
        f"{result.size.label:<12} "
        f"avg={stats.mean:>8.2f}ms  "
        f"median={stats.median:>8.2f}ms  "
        f"min={stats.min:>8.2f}ms  "
        f"max={stats.max:>8.2f}ms  "
        f"stdev={stats.stddev:>6.2f}ms"
    )


def format_summary_table(
    results: Sequence[TrialResult],
    failures: Sequence[SizeFailure] = (),
) -> str:
    """Format the cross-size summary as an aligned table using Rich.

    Sizes that failed (only possible with continue-on-error) are listed
    after the successful ones with their error instead of a time.

    Returns:
        Formatted table string (rendered by Rich)
    """
    table = Table(
        show_header=True,
        header_style="bold",
        box=box.ROUNDED,
        pad_edge=False,
        show_edge=False,
    )
    table.add_column("Dataset Size", no_wrap=True)
    table.add_column("Projects", justify="right", no_wrap=True)
    table.add_column("Issues", justify="right", no_wrap=True)
    table.add_column("Comments", justify="right", no_wrap=True)
    table.add_column("Avg Time (ms)", justify="right", no_wrap=True)

    for result in results:
        table.add_row(
            result.size.label,
            str(result.size.project_count),
            str(result.size.issue_count),
            str(result.size.comment_count),
            f"{result.stats.mean:.2f}",
        )
    for failure in failures:
        table.add_row(
            failure.size.label,
            str(failure.size.project_count),
            str(failure.size.issue_count),
            str(failure.size.comment_count),
            f"[red]failed: {type(failure.error).__name__}[/]",
        )

    string_io = StringIO()
    console = Console(file=string_io, force_terminal=False, width=100)
    console.print(table)
    return string_io.getvalue().rstrip()
