"""Declarative left-join queries over collections, materialized once.

A query is declared with aliases::

    Query()
        .from_(i=issues)
        .left_join(p=projects, on=lambda r: eq(r.i.project_id, r.p.id))
        .select(lambda i, p: {"issue_id": i.id, "project": p.name if p else None})

Declaring a query never reads collection contents. Rows are computed by
:meth:`LiveQueryCollection.preload`, once, using a hash join per clause.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from joinbench.collection import (
    STATUS_ERROR,
    STATUS_IDLE,
    STATUS_LOADING,
    STATUS_READY,
    Collection,
)
from joinbench.errors import CollectionNotReadyError, QueryBuildError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

Row = dict[str, Any]


@dataclass(frozen=True)
class FieldRef:
    """Reference to ``alias.field`` inside a join condition."""

    alias: str
    field: str


@dataclass(frozen=True)
class Eq:
    """Equality between two field references."""

    left: FieldRef
    right: FieldRef


def eq(left: FieldRef, right: FieldRef) -> Eq:
    """Build an equality join condition."""
    if not isinstance(left, FieldRef) or not isinstance(right, FieldRef):
        msg = "eq() compares two field references, e.g. eq(r.i.project_id, r.p.id)"
        raise QueryBuildError(msg)
    return Eq(left, right)


class _AliasRef:
    def __init__(self, alias: str) -> None:
        self._alias = alias

    def __getattr__(self, name: str) -> FieldRef:
        if name.startswith("__"):
            raise AttributeError(name)
        return FieldRef(self._alias, name)


class _Refs:
    """Attribute access by alias, handed to join condition callbacks."""

    def __init__(self, aliases: list[str]) -> None:
        self._aliases = aliases

    def __getattr__(self, alias: str) -> _AliasRef:
        if alias.startswith("__"):
            raise AttributeError(alias)
        if alias not in self._aliases:
            msg = f"Unknown alias '{alias}' (known: {', '.join(self._aliases)})"
            raise QueryBuildError(msg)
        return _AliasRef(alias)


@dataclass(frozen=True)
class JoinClause:
    """One left join: ``alias`` is bound to rows of ``collection``.

    ``bound_ref`` points at an already-bound alias, ``join_field`` is the
    field of the joined collection it must equal.
    """

    alias: str
    collection: Collection[Any]
    bound_ref: FieldRef
    join_field: str


def _single_alias(
    kwargs: dict[str, Collection[Any]],
    method: str,
) -> tuple[str, Collection[Any]]:
    if len(kwargs) != 1:
        msg = f"{method}() takes exactly one alias=collection argument"
        raise QueryBuildError(msg)
    ((alias, collection),) = kwargs.items()
    if not isinstance(collection, Collection):
        kind = type(collection).__name__
        msg = f"{method}({alias}=...) expects a Collection, got {kind}"
        raise QueryBuildError(msg)
    return alias, collection


class Query:
    """Fluent builder for a left-join-and-project query."""

    def __init__(self) -> None:
        self.source_alias: str | None = None
        self.source: Collection[Any] | None = None
        self.joins: list[JoinClause] = []
        self.projection: Callable[..., Row] | None = None

    @property
    def aliases(self) -> list[str]:
        """Bound aliases in declaration order."""
        bound = [self.source_alias] if self.source_alias else []
        return bound + [j.alias for j in self.joins]

    @property
    def collections(self) -> list[Collection[Any]]:
        """Every collection the query reads."""
        sources = [self.source] if self.source is not None else []
        return sources + [j.collection for j in self.joins]

    def from_(self, **kwargs: Collection[Any]) -> Self:
        """Set the driving collection, e.g. ``from_(i=issues)``."""
        if self.source is not None:
            msg = "from_() may only be called once"
            raise QueryBuildError(msg)
        self.source_alias, self.source = _single_alias(kwargs, "from_")
        return self

    def left_join(
        self,
        *,
        on: Callable[[Any], Eq],
        **kwargs: Collection[Any],
    ) -> Self:
        """Left-join another collection, e.g. ``left_join(p=projects, on=...)``."""
        if self.source is None:
            msg = "left_join() requires from_() first"
            raise QueryBuildError(msg)
        alias, collection = _single_alias(kwargs, "left_join")
        if alias in self.aliases:
            msg = f"Alias '{alias}' is already bound"
            raise QueryBuildError(msg)

        condition = on(_Refs([*self.aliases, alias]))
        if not isinstance(condition, Eq):
            msg = "Join condition must be built with eq()"
            raise QueryBuildError(msg)

        if condition.right.alias == alias and condition.left.alias != alias:
            bound_ref, join_field = condition.left, condition.right.field
        elif condition.left.alias == alias and condition.right.alias != alias:
            bound_ref, join_field = condition.right, condition.left.field
        else:
            msg = (
                f"Join condition for '{alias}' must compare one field of '{alias}' "
                f"with a field of an earlier alias"
            )
            raise QueryBuildError(msg)

        self.joins.append(JoinClause(alias, collection, bound_ref, join_field))
        return self

    def select(self, fn: Callable[..., Row]) -> Self:
        """Project each joined row; ``fn`` receives one keyword per alias."""
        self.projection = fn
        return self

    def execute(self) -> list[Row]:
        """Compute the result rows from ready collections."""
        if self.source is None or self.source_alias is None:
            msg = "Query has no source; call from_() first"
            raise QueryBuildError(msg)

        rows: list[dict[str, Any]] = [
            {self.source_alias: record} for record in self.source.values()
        ]
        for join in self.joins:
            index = join.collection.index_for(join.join_field)
            if index is None:
                index = {}
                for record in join.collection.values():
                    key = getattr(record, join.join_field)
                    index.setdefault(key, []).append(record)

            joined: list[dict[str, Any]] = []
            for row in rows:
                bound = row.get(join.bound_ref.alias)
                value = None if bound is None else getattr(bound, join.bound_ref.field)
                matches = [] if value is None else index.get(value, [])
                if not matches:
                    joined.append({**row, join.alias: None})
                    continue
                for match in matches:
                    joined.append({**row, join.alias: match})
            rows = joined

        if self.projection is None:
            return rows
        return [self.projection(**row) for row in rows]


class LiveQueryCollection:
    """Result set of a query, materialized on :meth:`preload`.

    Sync stays off: the result is a point-in-time computation and does not
    follow later changes to the source collections.
    """

    def __init__(
        self,
        query: Query,
        *,
        id: str | None = None,  # noqa: A002
        start_sync: bool = False,
    ) -> None:
        self.query = query
        self.id = id or f"live-query-{'-'.join(query.aliases)}"
        self._rows: list[Row] = []
        self._status = STATUS_IDLE
        if start_sync:
            not_ready = [c.id for c in query.collections if not c.is_ready()]
            if not_ready:
                names = ", ".join(not_ready)
                msg = f"Cannot start sync, collections not ready: {names}"
                raise CollectionNotReadyError(msg)
            self._materialize()

    @property
    def status(self) -> str:
        """Lifecycle status: idle, loading, ready or error."""
        return self._status

    def _materialize(self) -> None:
        self._status = STATUS_LOADING
        try:
            self._rows = self.query.execute()
        except Exception:
            self._status = STATUS_ERROR
            raise
        self._status = STATUS_READY
        logger.debug("Live query %s materialized %d rows", self.id, len(self._rows))

    async def preload(self) -> None:
        """Wait for the source collections, then materialize the result once."""
        if self._status == STATUS_READY:
            return
        await asyncio.gather(*(c.state_when_ready() for c in self.query.collections))
        self._materialize()

    @property
    def size(self) -> int:
        """Number of materialized rows (0 before preload)."""
        return len(self._rows)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def to_list(self) -> list[Row]:
        """Copy of the materialized rows."""
        return list(self._rows)


def create_live_query_collection(
    query: Query,
    *,
    id: str | None = None,  # noqa: A002
    start_sync: bool = False,
) -> LiveQueryCollection:
    """Wrap a declared query in a collection that materializes it on demand."""
    return LiveQueryCollection(query, id=id, start_sync=start_sync)
