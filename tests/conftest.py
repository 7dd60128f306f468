"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from joinbench.feature_flags import FeatureFlag, _env_var_name
from joinbench.generator import Dataset, generate_test_data
from joinbench.models import DatasetSize
from joinbench.runner import Collections, create_collections


@pytest.fixture(autouse=True)
def _clean_feature_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep JOINBENCH_FEATURE_* variables from the outer shell out of tests."""
    for flag in FeatureFlag:
        monkeypatch.delenv(_env_var_name(flag), raising=False)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory (no .joinbench.toml)."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def tiny_size() -> DatasetSize:
    """A dataset small enough to benchmark many times per test."""
    return DatasetSize("Tiny", 2, 5, 8)


@pytest.fixture
def small_data() -> Dataset:
    """The Small preset's dataset: 10 projects, 50 issues, 200 comments."""
    return generate_test_data(10, 50, 200)


@pytest.fixture
def small_collections(small_data: Dataset) -> Collections:
    """Ready collections loaded from the Small preset's dataset."""
    return create_collections(
        small_data.projects,
        small_data.issues,
        small_data.comments,
    )
