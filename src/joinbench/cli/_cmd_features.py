"""Feature flags command for joinbench CLI."""

from __future__ import annotations

import typer

from joinbench.feature_flags import FeatureFlag, _env_var_name, feature_enabled


def register(app: typer.Typer) -> None:
    """Register feature flag commands."""

    @app.command("features")
    def features() -> None:
        """List all feature flags with their env var and current status."""
        for flag in FeatureFlag:
            env_var = _env_var_name(flag)
            enabled = feature_enabled(flag)
            status = (
                typer.style("enabled", fg="green")
                if enabled
                else typer.style("disabled", fg="bright_black")
            )
            typer.echo(f"  {flag.value:<20s} {env_var:<40s} {status}")
