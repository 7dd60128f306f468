"""joinbench CLI commands for running join-query benchmarks."""

from __future__ import annotations

import typer

from ._helpers import SortedGroup, configure_logging

app = typer.Typer(
    help="jbench - initial-load benchmark for multi-way join queries "
    "over synthetic issue-tracker data",
    no_args_is_help=True,
    cls=SortedGroup,
)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging (collection sync, spans, query materialization)",
    ),
) -> None:
    configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


from . import (  # noqa: E402
    _cmd_config,
    _cmd_features,
    _cmd_generate,
    _cmd_run,
)

for _mod in (
    _cmd_config,
    _cmd_features,
    _cmd_generate,
    _cmd_run,
):
    _mod.register(app)


def main() -> None:
    """Run the joinbench CLI application."""
    app()
