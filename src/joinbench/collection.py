"""Keyed in-memory collections with a readiness signal."""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from joinbench.constants import AUTO_INDEX_EAGER, AUTO_INDEX_MODES, AUTO_INDEX_OFF
from joinbench.errors import CollectionNotReadyError, DuplicateKeyError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_ERROR = "error"


def _build_index(records: Iterable[T], field_name: str) -> dict[Any, list[T]]:
    index: dict[Any, list[T]] = {}
    for record in records:
        index.setdefault(getattr(record, field_name), []).append(record)
    return index


class Collection(Generic[T]):
    """A named collection of records keyed by ``get_key``.

    Records are indexed during sync. The whole key map is built before it
    is published, so callers either see every initial record or none of
    them.
    """

    def __init__(
        self,
        id: str,  # noqa: A002
        get_key: Callable[[T], str],
        initial_data: Iterable[T] = (),
        *,
        schema: Callable[[T], None] | None = None,
        auto_index: str = AUTO_INDEX_OFF,
        indexed_fields: Iterable[str] = (),
    ) -> None:
        if auto_index not in AUTO_INDEX_MODES:
            msg = (
                f"auto_index must be one of {', '.join(AUTO_INDEX_MODES)}, "
                f"got '{auto_index}'"
            )
            raise ValueError(msg)

        self.id = id
        self.get_key = get_key
        self.schema = schema
        self.auto_index = auto_index
        self.indexed_fields = tuple(indexed_fields)
        self._initial_data: list[T] | None = list(initial_data)
        self._records: dict[str, T] = {}
        self._indexes: dict[str, dict[Any, list[T]]] = {}
        self._status = STATUS_IDLE
        self._sync_error: Exception | None = None
        self._ready = asyncio.Event()

    def __repr__(self) -> str:
        return f"Collection(id={self.id!r}, status={self._status!r})"

    @property
    def status(self) -> str:
        """Lifecycle status: idle, loading, ready or error."""
        return self._status

    def is_ready(self) -> bool:
        """Check if the initial records are indexed and queryable."""
        return self._status == STATUS_READY

    def start_sync(self) -> None:
        """Index the initial records and mark the collection ready.

        Raises:
            DuplicateKeyError: If two records share a key
            TypeError: If a record fails schema validation
            ValueError: If a record fails schema validation
        """
        if self._status != STATUS_IDLE:
            return

        self._status = STATUS_LOADING
        records: dict[str, T] = {}
        indexes: dict[str, dict[Any, list[T]]] = {}
        try:
            for record in self._initial_data or ():
                if self.schema is not None:
                    self.schema(record)
                key = self.get_key(record)
                if key in records:
                    raise DuplicateKeyError(self.id, key)
                records[key] = record
            if self.auto_index == AUTO_INDEX_EAGER:
                for field_name in self.indexed_fields:
                    indexes[field_name] = _build_index(records.values(), field_name)
        except Exception as e:
            self._status = STATUS_ERROR
            self._sync_error = e
            raise

        self._records = records
        self._indexes = indexes
        self._initial_data = None
        self._status = STATUS_READY
        self._ready.set()
        logger.debug(
            "Collection %s ready with %d records (indexes: %s)",
            self.id,
            len(records),
            ", ".join(self._indexes) or "none",
        )

    async def state_when_ready(self) -> Mapping[str, T]:
        """Wait until the collection is ready and return its key map.

        Starts the sync if the collection was created without it.

        Raises:
            CollectionNotReadyError: If an earlier sync failed
        """
        if self._status == STATUS_IDLE:
            self.start_sync()
        if self._status == STATUS_ERROR:
            msg = f"Collection '{self.id}' failed to sync: {self._sync_error}"
            raise CollectionNotReadyError(msg) from self._sync_error
        await self._ready.wait()
        return MappingProxyType(self._records)

    def _check_ready(self) -> None:
        if self._status != STATUS_READY:
            msg = f"Collection '{self.id}' is not ready (status: {self._status})"
            raise CollectionNotReadyError(msg)

    @property
    def size(self) -> int:
        """Number of records in the collection."""
        self._check_ready()
        return len(self._records)

    def __len__(self) -> int:
        return self.size

    def get(self, key: str) -> T | None:
        """Get a record by key, or None if absent."""
        self._check_ready()
        return self._records.get(key)

    def has(self, key: str) -> bool:
        """Check whether a record with this key exists."""
        self._check_ready()
        return key in self._records

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    def keys(self) -> list[str]:
        """All keys in insertion order."""
        self._check_ready()
        return list(self._records)

    def values(self) -> list[T]:
        """All records in insertion order."""
        self._check_ready()
        return list(self._records.values())

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())

    def ensure_index(self, field_name: str) -> dict[Any, list[T]]:
        """Build (or return) a secondary index on ``field_name``.

        Returns:
            Mapping of field value to the records carrying that value
        """
        self._check_ready()
        index = self._indexes.get(field_name)
        if index is None:
            index = _build_index(self._records.values(), field_name)
            self._indexes[field_name] = index
        return index

    def index_for(self, field_name: str) -> dict[Any, list[T]] | None:
        """Return the secondary index on ``field_name`` if one was built."""
        return self._indexes.get(field_name)


def create_collection(
    id: str,  # noqa: A002
    get_key: Callable[[T], str],
    initial_data: Iterable[T] = (),
    *,
    schema: Callable[[T], None] | None = None,
    auto_index: str = AUTO_INDEX_OFF,
    indexed_fields: Iterable[str] = (),
    start_sync: bool = True,
) -> Collection[T]:
    """Create a local in-memory collection.

    Args:
        id: Collection name
        get_key: Extracts the unique key from a record
        initial_data: Records to load
        schema: Optional validator called on every record before indexing
        auto_index: "eager" builds indexes on ``indexed_fields`` during sync
        indexed_fields: Foreign-key fields worth indexing
        start_sync: Index the initial data immediately (default True)

    Returns:
        The collection, already ready when ``start_sync`` is True
    """
    collection = Collection(
        id,
        get_key,
        initial_data,
        schema=schema,
        auto_index=auto_index,
        indexed_fields=indexed_fields,
    )
    if start_sync:
        collection.start_sync()
    return collection
