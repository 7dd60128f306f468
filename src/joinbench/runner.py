"""Trial runner: generate, load, query and time, over several dataset sizes.

Each iteration builds fresh data, fresh collections and a fresh query. The
timed window covers only ``preload()`` of the join query; generation,
loading and the readiness barrier happen before the clock starts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

import typer

from joinbench.collection import Collection, create_collection
from joinbench.config import BenchmarkSettings, load_settings
from joinbench.errors import DatasetConfigError
from joinbench.generator import generate_test_data
from joinbench.models import (
    Comment,
    DatasetSize,
    Issue,
    Project,
    validate_comment,
    validate_issue,
    validate_project,
)
from joinbench.query import LiveQueryCollection, Query, create_live_query_collection, eq
from joinbench.report import (
    format_iteration_result,
    format_iteration_start,
    format_results,
    format_statistics,
    format_summary_table,
    format_trial_header,
)
from joinbench.stats import SummaryStatistics, summarize
from joinbench.tracing import Tracer, disabled_tracer, setup_tracer

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class Collections(NamedTuple):
    """The three collections one iteration queries."""

    projects: Collection[Project]
    issues: Collection[Issue]
    comments: Collection[Comment]


@dataclass
class TrialResult:
    """Durations and statistics for one dataset size."""

    size: DatasetSize
    durations: list[float]
    result_counts: list[int] = field(default_factory=list[int])

    @property
    def stats(self) -> SummaryStatistics:
        """Summary statistics over :attr:`durations`."""
        return summarize(self.durations)


@dataclass
class SizeFailure:
    """A dataset size whose trial raised (continue-on-error only)."""

    size: DatasetSize
    error: BaseException


@dataclass
class BatchResult:
    """Outcome of a multi-size batch."""

    results: list[TrialResult] = field(default_factory=list[TrialResult])
    failures: list[SizeFailure] = field(default_factory=list[SizeFailure])

    @property
    def ok(self) -> bool:
        """True when every size completed."""
        return not self.failures


def create_collections(
    projects: list[Project],
    issues: list[Issue],
    comments: list[Comment],
    *,
    auto_index: str = "off",
    tracer: Tracer | None = None,
) -> Collections:
    """Load generated records into keyed collections.

    With ``auto_index="eager"`` the foreign-key fields used by the join are
    indexed during sync.
    """
    tracer = tracer or disabled_tracer()

    def build() -> Collections:
        return Collections(
            projects=create_collection(
                "projects",
                lambda project: project.id,
                projects,
                schema=validate_project,
                auto_index=auto_index,
                indexed_fields=("id",),
            ),
            issues=create_collection(
                "issues",
                lambda issue: issue.id,
                issues,
                schema=validate_issue,
                auto_index=auto_index,
                indexed_fields=("project_id",),
            ),
            comments=create_collection(
                "comments",
                lambda comment: comment.id,
                comments,
                schema=validate_comment,
                auto_index=auto_index,
                indexed_fields=("issue_id",),
            ),
        )

    return tracer.with_span(
        "create-collections",
        build,
        {
            "benchmark.projects_count": len(projects),
            "benchmark.issues_count": len(issues),
            "benchmark.comments_count": len(comments),
            "benchmark.auto_index": auto_index,
        },
    )


def _project_issue_comment(
    i: Issue,
    p: Project | None,
    c: Comment | None,
) -> dict[str, Any]:
    return {
        "project_id": p.id if p else None,
        "project_name": p.name if p else None,
        "project_description": p.description if p else None,
        "issue_id": i.id,
        "issue_title": i.title,
        "issue_status": i.status.value,
        "issue_priority": i.priority.value,
        "comment_id": c.id if c else None,
        "comment_content": c.content if c else None,
        "comment_author": c.author_id if c else None,
    }


def denormalized_issue_query(
    projects: Collection[Project],
    issues: Collection[Issue],
    comments: Collection[Comment],
    *,
    tracer: Tracer | None = None,
) -> LiveQueryCollection:
    """Declare issues LEFT JOIN projects LEFT JOIN comments, flattened.

    The query is created with sync off; nothing runs until ``preload()``.
    """
    tracer = tracer or disabled_tracer()

    def build() -> LiveQueryCollection:
        query = (
            Query()
            .from_(i=issues)
            .left_join(p=projects, on=lambda r: eq(r.i.project_id, r.p.id))
            .left_join(c=comments, on=lambda r: eq(r.c.issue_id, r.i.id))
            .select(_project_issue_comment)
        )
        return create_live_query_collection(query, start_sync=False)

    return tracer.with_span(
        "create-denormalized-query",
        build,
        {"benchmark.query_type": "complex_join", "benchmark.join_count": 2},
    )


async def run_iteration(
    size: DatasetSize,
    *,
    auto_index: str = "off",
    tracer: Tracer | None = None,
) -> tuple[float, int]:
    """Run one generate/load/query cycle.

    Returns:
        (duration in milliseconds, number of result rows)
    """
    tracer = tracer or disabled_tracer()

    data = generate_test_data(
        size.project_count,
        size.issue_count,
        size.comment_count,
        tracer=tracer,
    )
    collections = create_collections(
        data.projects,
        data.issues,
        data.comments,
        auto_index=auto_index,
        tracer=tracer,
    )

    async def wait_ready() -> None:
        await asyncio.gather(*(c.state_when_ready() for c in collections))

    await tracer.with_span_async(
        "wait-for-collections-ready",
        wait_ready,
        {"benchmark.collections_count": len(collections)},
    )

    query = denormalized_issue_query(
        collections.projects,
        collections.issues,
        collections.comments,
        tracer=tracer,
    )

    start = time.perf_counter()
    await tracer.with_span_async(
        "query-preload",
        query.preload,
        {"benchmark.query_type": "complex_join"},
    )
    end = time.perf_counter()

    return (end - start) * 1000, query.size


async def benchmark_initial_load(
    size: DatasetSize,
    iterations: int | None = None,
    *,
    settings: BenchmarkSettings | None = None,
    tracer: Tracer | None = None,
    verbose: bool = True,
) -> TrialResult:
    """Benchmark the initial load of the join query for one dataset size.

    Iterations run strictly one after another. Any exception aborts the
    whole trial and propagates; no partial statistics are produced.

    Args:
        size: Dataset size to generate
        iterations: Number of measured iterations (default from settings)
        settings: Batch settings (default: BenchmarkSettings())
        tracer: Tracer wrapping each phase in a span
        verbose: Whether to print progress

    Returns:
        TrialResult with one duration per iteration

    Raises:
        DatasetConfigError: If iterations is not positive or the size is invalid
    """
    settings = settings or BenchmarkSettings()
    tracer = tracer or disabled_tracer()
    if iterations is None:
        iterations = settings.iterations
    if iterations < 1:
        msg = f"iterations must be at least 1, got {iterations}"
        raise DatasetConfigError(msg)

    async def trial() -> TrialResult:
        if verbose:
            typer.echo("")
            typer.echo(format_trial_header(size, iterations))

        result = TrialResult(size=size, durations=[])
        for i in range(iterations):
            if verbose:
                typer.echo("")
                typer.echo(format_iteration_start(i + 1, iterations))

            duration, count = await tracer.with_span_async(
                "benchmark-iteration",
                lambda: run_iteration(
                    size,
                    auto_index=settings.auto_index,
                    tracer=tracer,
                ),
                {
                    "benchmark.iteration": i + 1,
                    "benchmark.total_iterations": iterations,
                },
            )
            result.durations.append(duration)
            result.result_counts.append(count)
            logger.debug(
                "%s iteration %d: %.3fms, %d rows",
                size.label,
                i + 1,
                duration,
                count,
            )
            if verbose:
                typer.echo(format_iteration_result(duration, count))

        if verbose:
            typer.echo("")
            typer.echo(format_statistics(result.stats))
        return result

    return await tracer.with_span_async(
        "benchmark-initial-load",
        trial,
        {
            "benchmark.project_count": size.project_count,
            "benchmark.issue_count": size.issue_count,
            "benchmark.comment_count": size.comment_count,
            "benchmark.iterations": iterations,
        },
    )


async def run_batch(
    sizes: Sequence[DatasetSize] | None = None,
    *,
    settings: BenchmarkSettings | None = None,
    tracer: Tracer | None = None,
    verbose: bool = True,
) -> BatchResult:
    """Benchmark several dataset sizes, one after another.

    By default the first failing size aborts the batch and its exception
    propagates. With ``settings.continue_on_error`` the failure is recorded
    and the next size still runs.
    """
    settings = settings or BenchmarkSettings()
    tracer = tracer or disabled_tracer()
    if sizes is None:
        sizes = settings.sizes

    async def batch() -> BatchResult:
        outcome = BatchResult()
        for size in sizes:
            try:
                result = await benchmark_initial_load(
                    size,
                    settings=settings,
                    tracer=tracer,
                    verbose=verbose,
                )
            except Exception as e:
                if not settings.continue_on_error:
                    raise
                logger.error("Dataset size %s failed: %s", size.label, e, exc_info=True)
                outcome.failures.append(SizeFailure(size=size, error=e))
                continue
            outcome.results.append(result)
        return outcome

    return await tracer.with_span_async(
        "run-benchmarks",
        batch,
        {"benchmark.total_datasets": len(sizes)},
    )


def run_benchmarks(
    settings: BenchmarkSettings | None = None,
    *,
    tracer: Tracer | None = None,
    verbose: bool = True,
) -> BatchResult:
    """Run the batch to completion, print the summary and flush traces.

    Args:
        settings: Batch settings (default: BenchmarkSettings())
        tracer: Tracer to use (default: built from settings)
        verbose: Whether to print progress and the summary table

    Returns:
        The batch outcome
    """
    settings = settings or BenchmarkSettings()
    tracer = tracer or setup_tracer(settings)

    if verbose:
        typer.echo("=" * 60)
        typer.echo("Join Query Initial Load Benchmark")
        typer.echo("=" * 60)
        tracing_state = "enabled" if tracer.enabled else "disabled"
        typer.echo(
            f"Iterations: {settings.iterations}  "
            f"auto-index: {settings.auto_index}  tracing: {tracing_state}",
        )

    try:
        outcome = asyncio.run(
            run_batch(settings=settings, tracer=tracer, verbose=verbose),
        )
    finally:
        if tracer.enabled:
            tracer.flush()

    if verbose:
        typer.echo("")
        typer.echo("Benchmark Summary")
        for result in outcome.results:
            typer.echo(format_results(result))
        typer.echo("")
        typer.echo(format_summary_table(outcome.results, outcome.failures))
    return outcome


def main() -> None:
    """Run the preset batch with settings from .joinbench.toml and the env."""
    run_benchmarks(load_settings())
