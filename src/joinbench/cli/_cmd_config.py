"""Configuration management commands for joinbench CLI."""

from __future__ import annotations

from typing import Any

import typer

from joinbench.config import load_config, save_config, settings_from_config
from joinbench.constants import parse_size_labels

from ._helpers import SortedGroup

# Sub-app for 'jbench config' subcommands
config_app = typer.Typer(
    help="Manage joinbench configuration (.joinbench.toml).",
    no_args_is_help=True,
    cls=SortedGroup,
)

# Keys that should be coerced to bool
_BOOL_KEYS = frozenset({"tracing", "continue_on_error"})

# Keys that should be coerced to int
_INT_KEYS = frozenset({"iterations"})

# Keys whose values are stored as arrays (list[str])
_ARRAY_KEYS = frozenset({"sizes"})

# All known config keys: type, description, default, and allowed values
_KNOWN_KEYS: dict[str, dict[str, Any]] = {
    "iterations": {
        "type": "int",
        "description": "Measured iterations per dataset size",
        "default": 5,
        "values": "positive integer",
    },
    "tracing": {
        "type": "bool",
        "description": "Wrap every benchmark phase in a span",
        "default": True,
        "values": "true, false (also: 1/0, yes/no, on/off)",
    },
    "auto_index": {
        "type": "str",
        "description": "Index foreign-key fields while loading collections",
        "default": "off",
        "values": "off, eager",
    },
    "trace_file": {
        "type": "str",
        "description": "JSONL file that finished spans are appended to",
        "default": "(none)",
    },
    "continue_on_error": {
        "type": "bool",
        "description": "Keep running remaining sizes after a size fails",
        "default": False,
        "values": "true, false (also: 1/0, yes/no, on/off)",
    },
    "sizes": {
        "type": "list[str]",
        "description": "Dataset size presets to run",
        "default": "Small, Medium, Large, Very Large",
        "values": "comma-separated preset labels",
    },
}

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _coerce_value(key: str, value: str) -> Any:
    """Coerce a string value to the appropriate type for a known key."""
    if key in _BOOL_KEYS:
        lower = value.lower()
        if lower in _TRUE_VALUES:
            return True
        if lower in _FALSE_VALUES:
            return False
        msg = f"Invalid boolean value '{value}' for key '{key}'. Use true/false."
        raise typer.BadParameter(msg)
    if key in _INT_KEYS:
        try:
            return int(value)
        except ValueError:
            msg = f"Invalid integer value '{value}' for key '{key}'."
            raise typer.BadParameter(msg) from None
    if key in _ARRAY_KEYS:
        return parse_size_labels(value)
    return value


def register(app: typer.Typer) -> None:
    """Register config commands."""
    app.add_typer(config_app, name="config")

    @config_app.command("set")
    def config_set(
        key: str = typer.Argument(..., help="Configuration key to set"),
        value: str = typer.Argument(..., help="Value to set"),
    ) -> None:
        """Set a configuration value."""
        if key not in _KNOWN_KEYS:
            typer.echo(
                f"Error: unknown key '{key}'. Run 'jbench config keys' to list keys.",
                err=True,
            )
            raise typer.Exit(1)

        coerced = _coerce_value(key, value)
        config = load_config()
        config[key] = coerced
        try:
            settings_from_config(config)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

        save_config(config)
        typer.echo(f"Set {key} = {coerced}")

    @config_app.command("get")
    def config_get(
        key: str = typer.Argument(..., help="Configuration key to read"),
    ) -> None:
        """Get a configuration value."""
        config = load_config()
        if key not in config:
            typer.echo(f"Error: Key '{key}' not found in config", err=True)
            raise typer.Exit(1)
        val = config[key]
        if isinstance(val, list):
            typer.echo(", ".join(str(i) for i in val))  # type: ignore[reportUnknownArgumentType, reportUnknownVariableType]
        else:
            typer.echo(val)

    @config_app.command("unset")
    def config_unset(
        key: str = typer.Argument(..., help="Configuration key to remove"),
    ) -> None:
        """Remove a configuration value (fall back to the default)."""
        config = load_config()
        if config.pop(key, None) is None:
            typer.echo(f"Error: Key '{key}' not found in config", err=True)
            raise typer.Exit(1)
        save_config(config)
        typer.echo(f"Unset {key}")

    @config_app.command("list")
    def config_list() -> None:
        """List all configuration values."""
        config = load_config()
        if not config:
            typer.echo("No configuration values set.")
            return
        for k, v in sorted(config.items()):
            if isinstance(v, list):
                typer.echo(f"{k} = {', '.join(str(i) for i in v)}")  # type: ignore[reportUnknownArgumentType, reportUnknownVariableType]
            else:
                typer.echo(f"{k} = {v}")

    @config_app.command("keys")
    def config_keys() -> None:
        """List all available configuration keys and their descriptions."""
        from rich import box
        from rich.console import Console
        from rich.table import Table

        table = Table(
            show_header=True,
            header_style="bold",
            box=box.ROUNDED,
            pad_edge=False,
            show_edge=False,
        )
        table.add_column("Key", no_wrap=True)
        table.add_column("Type", no_wrap=True)
        table.add_column("Default", no_wrap=True)
        table.add_column("Description", overflow="fold")
        table.add_column("Values", overflow="fold")

        for key, info in _KNOWN_KEYS.items():
            default = info["default"]
            if isinstance(default, bool):
                default = str(default).lower()
            else:
                default = str(default)
            table.add_row(
                key,
                info["type"],
                default,
                info["description"],
                info.get("values", ""),
            )

        Console().print(table)
