"""Exception types raised by the joinbench harness."""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for all joinbench errors."""


class DatasetConfigError(BenchmarkError, ValueError):
    """Invalid dataset size parameters (negative or dangling counts)."""


class DuplicateKeyError(BenchmarkError, ValueError):
    """Two records in one collection produced the same key."""

    def __init__(self, collection_id: str, key: object) -> None:
        self.collection_id = collection_id
        self.key = key
        super().__init__(
            f"Duplicate key {key!r} in collection '{collection_id}'",
        )


class EmptyInputError(BenchmarkError, ValueError):
    """Statistics were requested over an empty duration sequence."""


class QueryBuildError(BenchmarkError, ValueError):
    """A query was declared with unknown or conflicting aliases."""


class CollectionNotReadyError(BenchmarkError, RuntimeError):
    """Collection contents were accessed before the collection was ready."""
