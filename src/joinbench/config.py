"""Configuration file handling for joinbench."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from joinbench.constants import (
    AUTO_INDEX_EAGER,
    AUTO_INDEX_MODES,
    AUTO_INDEX_OFF,
    CONFIG_FILENAME,
    DEFAULT_ITERATIONS,
    SIZE_PRESETS,
    find_size_preset,
)
from joinbench.feature_flags import FeatureFlag, feature_enabled
from joinbench.models import DatasetSize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkSettings:
    """Everything a batch run needs, scoped to one invocation."""

    iterations: int = DEFAULT_ITERATIONS
    tracing: bool = True
    auto_index: str = AUTO_INDEX_OFF
    trace_file: str | None = None
    continue_on_error: bool = False
    sizes: list[DatasetSize] = field(default_factory=lambda: list(SIZE_PRESETS))

    def with_overrides(self, **changes: Any) -> BenchmarkSettings:
        """Return a copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def get_config_path(base_dir: str | Path | None = None) -> Path:
    """Get the path to the config file.

    Args:
        base_dir: Directory holding the config file (default: current directory)

    Returns:
        Path to .joinbench.toml
    """
    base = Path.cwd() if base_dir is None else Path(base_dir)
    return base / CONFIG_FILENAME


def load_config(base_dir: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from .joinbench.toml.

    Args:
        base_dir: Directory holding the config file (default: current directory)

    Returns:
        Configuration dictionary, or empty dict if no config exists
    """
    config_path = get_config_path(base_dir)
    if not config_path.exists():
        return {}

    try:
        with config_path.open("rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}


def save_config(config: dict[str, Any], base_dir: str | Path | None = None) -> None:
    """Save configuration to .joinbench.toml.

    Args:
        config: Configuration dictionary to save
        base_dir: Directory holding the config file (default: current directory)
    """
    config_path = get_config_path(base_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with config_path.open("wb") as f:
        tomli_w.dump(config, f)


def _get_bool(config: dict[str, Any], key: str, default: bool) -> bool:
    value = config.get(key, default)
    if not isinstance(value, bool):
        msg = f"{key} must be true or false, got {value!r}"
        raise ValueError(msg)
    return value


def settings_from_config(config: dict[str, Any]) -> BenchmarkSettings:
    """Build settings from a config dictionary.

    Raises:
        ValueError: If a known key has an invalid value
    """
    settings = BenchmarkSettings()

    iterations = config.get("iterations", settings.iterations)
    if (
        isinstance(iterations, bool)
        or not isinstance(iterations, int)
        or iterations < 1
    ):
        msg = f"iterations must be a positive integer, got {iterations!r}"
        raise ValueError(msg)

    auto_index = config.get("auto_index", settings.auto_index)
    if auto_index not in AUTO_INDEX_MODES:
        modes = ", ".join(AUTO_INDEX_MODES)
        msg = f"auto_index must be one of {modes}, got {auto_index!r}"
        raise ValueError(msg)

    sizes = settings.sizes
    if "sizes" in config:
        labels = config["sizes"]
        if not isinstance(labels, list) or not labels:
            msg = f"sizes must be a non-empty list of preset labels, got {labels!r}"
            raise ValueError(msg)
        sizes = [find_size_preset(str(label)) for label in labels]

    trace_file = config.get("trace_file") or None

    return BenchmarkSettings(
        iterations=iterations,
        tracing=_get_bool(config, "tracing", settings.tracing),
        auto_index=auto_index,
        trace_file=str(trace_file) if trace_file else None,
        continue_on_error=_get_bool(
            config,
            "continue_on_error",
            settings.continue_on_error,
        ),
        sizes=sizes,
    )


def apply_feature_flags(settings: BenchmarkSettings) -> BenchmarkSettings:
    """Apply JOINBENCH_FEATURE_* environment overrides."""
    tracing = settings.tracing and not feature_enabled(FeatureFlag.NO_TRACING)
    eager = feature_enabled(
        FeatureFlag.EAGER_INDEX,
        default=settings.auto_index == AUTO_INDEX_EAGER,
    )
    return replace(
        settings,
        tracing=tracing,
        auto_index=AUTO_INDEX_EAGER if eager else AUTO_INDEX_OFF,
        continue_on_error=feature_enabled(
            FeatureFlag.CONTINUE_ON_ERROR,
            default=settings.continue_on_error,
        ),
    )


def load_settings(base_dir: str | Path | None = None) -> BenchmarkSettings:
    """Load settings from the config file, then apply environment flags.

    Precedence (highest first):
    1. JOINBENCH_FEATURE_* environment variables
    2. .joinbench.toml
    3. Built-in defaults
    """
    return apply_feature_flags(settings_from_config(load_config(base_dir)))
