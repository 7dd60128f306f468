"""Benchmark commands for joinbench CLI."""

from __future__ import annotations

import logging

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from joinbench.config import BenchmarkSettings, load_settings
from joinbench.constants import (
    AUTO_INDEX_EAGER,
    SIZE_PRESETS,
    parse_size_labels,
)
from joinbench.models import DatasetSize

from ._helpers import parse_sizes

logger = logging.getLogger(__name__)


def _load_settings_or_exit() -> BenchmarkSettings:
    try:
        return load_settings()
    except ValueError as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(1) from None


def _run_once(settings: BenchmarkSettings) -> None:
    """Run one batch; report failures on stderr and exit non-zero."""
    from joinbench.runner import run_benchmarks

    try:
        outcome = run_benchmarks(settings)
    except Exception as e:
        logger.exception("Benchmark aborted")
        typer.echo(f"Error: benchmark aborted: {e}", err=True)
        raise typer.Exit(1) from None

    if not outcome.ok:
        failed = ", ".join(f.size.label for f in outcome.failures)
        typer.echo(f"Error: {len(outcome.failures)} size(s) failed: {failed}", err=True)
        raise typer.Exit(1)
    typer.echo("\nBenchmark completed!")


def _run_interactive(settings: BenchmarkSettings) -> None:
    """Re-run the batch each time Enter is pressed, until EOF or Ctrl+C."""
    from joinbench.runner import run_benchmarks

    typer.echo("Interactive mode: benchmarks run each time you press Enter.")
    typer.echo("Use Ctrl+C to exit at any time.")

    run_count = 0
    while True:
        try:
            typer.prompt(
                "Press Enter to run benchmarks (or Ctrl+C to exit)...",
                default="",
                show_default=False,
                prompt_suffix=" ",
            )
        except typer.Abort:
            typer.echo("\nExiting interactive mode...")
            return

        run_count += 1
        typer.echo(f"\nStarting benchmark run #{run_count}")
        typer.echo("=" * 40)
        try:
            run_benchmarks(settings)
        except Exception as e:
            logger.exception("Benchmark run #%d failed", run_count)
            typer.echo(f"Error during benchmark run #{run_count}: {e}", err=True)
            continue
        typer.echo(f"\nBenchmark run #{run_count} completed!")


def register(app: typer.Typer) -> None:
    """Register benchmark commands."""

    @app.command()
    def run(
        iterations: int | None = typer.Option(
            None,
            "--iterations",
            "-n",
            min=1,
            help="Measured iterations per dataset size (default: 5)",
        ),
        sizes: str | None = typer.Option(
            None,
            "--sizes",
            "-s",
            help="Comma-separated preset labels to run (default: all)",
        ),
        no_tracing: bool = typer.Option(
            False,
            "--no-tracing",
            help="Disable phase tracing for faster runs",
        ),
        eager_index: bool = typer.Option(
            False,
            "--eager-index",
            help="Index foreign-key fields while loading collections",
        ),
        continue_on_error: bool = typer.Option(
            False,
            "--continue-on-error",
            help="Keep running remaining sizes after a size fails",
        ),
        trace_file: str | None = typer.Option(
            None,
            "--trace-file",
            help="Append finished spans to this JSONL file",
        ),
        interactive: bool = typer.Option(
            False,
            "--interactive",
            "-i",
            help="Run the batch each time Enter is pressed",
        ),
    ) -> None:
        """Benchmark the join query over the dataset size presets.

        Runs Small (10/50/200), Medium (50/250/1000), Large (100/500/2000)
        and Very Large (200/1000/5000) projects/issues/comments, then prints
        a summary table. The first failing size aborts the batch unless
        --continue-on-error is given.
        """
        settings = _load_settings_or_exit().with_overrides(
            iterations=iterations,
            sizes=parse_sizes(parse_size_labels(sizes)) if sizes else None,
            tracing=False if no_tracing else None,
            auto_index=AUTO_INDEX_EAGER if eager_index else None,
            continue_on_error=True if continue_on_error else None,
            trace_file=trace_file,
        )

        if interactive:
            _run_interactive(settings)
        else:
            _run_once(settings)

    @app.command()
    def single(
        projects: int = typer.Argument(..., min=0, help="Number of projects"),
        issues: int = typer.Argument(..., min=0, help="Number of issues"),
        comments: int = typer.Argument(..., min=0, help="Number of comments"),
        iterations: int | None = typer.Option(
            None,
            "--iterations",
            "-n",
            min=1,
            help="Measured iterations (default: 5)",
        ),
        no_tracing: bool = typer.Option(
            False,
            "--no-tracing",
            help="Disable phase tracing for faster runs",
        ),
        eager_index: bool = typer.Option(
            False,
            "--eager-index",
            help="Index foreign-key fields while loading collections",
        ),
    ) -> None:
        """Benchmark the join query for one custom dataset size."""
        size = DatasetSize("Custom", projects, issues, comments)
        settings = _load_settings_or_exit().with_overrides(
            iterations=iterations,
            sizes=[size],
            tracing=False if no_tracing else None,
            auto_index=AUTO_INDEX_EAGER if eager_index else None,
            continue_on_error=False,
        )
        _run_once(settings)

    @app.command("sizes")
    def list_sizes() -> None:
        """List the dataset size presets."""
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

        for size in SIZE_PRESETS:
            table.add_row(
                size.label,
                str(size.project_count),
                str(size.issue_count),
                str(size.comment_count),
            )

        Console().print(table)
