"""Shared infrastructure for joinbench CLI commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import typer
from typer.core import TyperGroup

from joinbench.constants import find_size_preset

if TYPE_CHECKING:
    import click

    from joinbench.models import DatasetSize

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class SortedGroup(TyperGroup):
    """Typer group that lists commands in alphabetical order."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return commands sorted alphabetically."""
        return sorted(super().list_commands(ctx))


def configure_logging(verbose: bool) -> None:
    """Send joinbench log records to stderr.

    Warnings are always shown; ``verbose`` adds debug records.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def parse_sizes(labels: list[str] | None) -> list[DatasetSize] | None:
    """Resolve ``--sizes`` labels to presets, or None when none were given.

    Raises:
        typer.BadParameter: If a label names no preset
    """
    if not labels:
        return None
    try:
        return [find_size_preset(label) for label in labels]
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--sizes") from None
