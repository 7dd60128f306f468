"""Dataset export command for joinbench CLI."""

from __future__ import annotations

from pathlib import Path

import orjson
import typer

from joinbench.errors import DatasetConfigError
from joinbench.generator import generate_test_data
from joinbench.models import record_to_dict


def register(app: typer.Typer) -> None:
    """Register generate command."""

    @app.command()
    def generate(
        projects: int = typer.Argument(..., help="Number of projects"),
        issues: int = typer.Argument(..., help="Number of issues"),
        comments: int = typer.Argument(..., help="Number of comments"),
        output: str | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write JSONL here instead of stdout",
        ),
    ) -> None:
        """Generate a synthetic dataset and write it as JSONL.

        Writes projects, then issues, then comments, one record per line,
        each tagged with its record_type.
        """
        try:
            data = generate_test_data(projects, issues, comments)
        except DatasetConfigError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

        records = [*data.projects, *data.issues, *data.comments]
        lines = b"".join(orjson.dumps(record_to_dict(r)) + b"\n" for r in records)

        if output is None:
            typer.echo(lines.decode(), nl=False)
            return

        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            f.write(lines)
        typer.echo(
            f"Wrote {len(data.projects)} projects, {len(data.issues)} issues, "
            f"{len(data.comments)} comments to {path}",
        )
