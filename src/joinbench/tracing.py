"""Side-channel span tracing for benchmark phases.

A :class:`Tracer` is an explicit object handed to the runner; there is no
process-wide tracing state. Spans wrap a phase, record its attributes and
duration, and are handed to exporters when they finish. A disabled tracer
still runs the wrapped operation and returns its result unchanged.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import orjson

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

    from joinbench.config import BenchmarkSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SpanRecord:
    """A finished (or in-flight) span."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict[str, Any])
    parent: str | None = None
    depth: int = 0
    start_ns: int = 0
    end_ns: int | None = None
    status: str = "ok"
    error: str | None = None

    @property
    def duration_ms(self) -> float:
        """Span duration in milliseconds (0.0 while still open)."""
        if self.end_ns is None:
            return 0.0
        return (self.end_ns - self.start_ns) / 1_000_000

    def to_dict(self) -> dict[str, Any]:
        """Serialize the span for JSONL export."""
        return {
            "record_type": "span",
            "name": self.name,
            "parent": self.parent,
            "depth": self.depth,
            "duration_ms": self.duration_ms,
            "status": self.status,
            "error": self.error,
            "attributes": self.attributes,
        }


class SpanExporter(Protocol):
    """Receives spans as they finish."""

    def export(self, span: SpanRecord) -> None: ...

    def flush(self) -> None: ...


class LoggingSpanExporter:
    """Emit one debug log line per finished span."""

    def export(self, span: SpanRecord) -> None:
        logger.debug(
            "%sspan %s finished in %.3fms (%s)",
            "  " * span.depth,
            span.name,
            span.duration_ms,
            span.status,
        )

    def flush(self) -> None:
        return None


class JsonlSpanExporter:
    """Buffer spans and append them to a JSONL file on flush."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._buffer: list[SpanRecord] = []
        # Fail early if the file cannot be opened for appending
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)

    def export(self, span: SpanRecord) -> None:
        self._buffer.append(span)

    def flush(self) -> None:
        if not self._buffer:
            return
        with self.path.open("ab") as f:
            for span in self._buffer:
                f.write(orjson.dumps(span.to_dict()))
                f.write(b"\n")
        logger.debug("Flushed %d spans to %s", len(self._buffer), self.path)
        self._buffer.clear()


class Tracer:
    """Span-wrapping facility with enable/disable and a flush hook."""

    def __init__(
        self,
        enabled: bool = True,
        exporters: list[SpanExporter] | None = None,
    ) -> None:
        self.enabled = enabled
        self._exporters: list[SpanExporter] = list(exporters or [])
        self._stack: list[SpanRecord] = []
        self.finished: list[SpanRecord] = []

    def set_enabled(self, enabled: bool) -> None:
        """Turn span recording on or off."""
        self.enabled = enabled

    def add_exporter(self, exporter: SpanExporter) -> None:
        """Register an exporter that receives every finished span."""
        self._exporters.append(exporter)

    @contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[SpanRecord | None]:
        """Open a span around the body of a ``with`` block.

        Spans opened while another span is open become its children. The
        span is closed (and exported) whether the body succeeds or raises;
        exceptions always propagate.
        """
        if not self.enabled:
            yield None
            return

        parent = self._stack[-1] if self._stack else None
        record = SpanRecord(
            name=name,
            attributes=dict(attributes or {}),
            parent=parent.name if parent else None,
            depth=len(self._stack),
            start_ns=time.perf_counter_ns(),
        )
        self._stack.append(record)
        try:
            yield record
        except BaseException as e:
            record.status = "error"
            record.error = f"{type(e).__name__}: {e}"
            raise
        finally:
            record.end_ns = time.perf_counter_ns()
            self._stack.pop()
            self.finished.append(record)
            for exporter in self._exporters:
                exporter.export(record)

    def with_span(
        self,
        name: str,
        fn: Callable[[], T],
        attributes: dict[str, Any] | None = None,
    ) -> T:
        """Run ``fn`` inside a span and return its result unchanged."""
        with self.span(name, attributes):
            return fn()

    async def with_span_async(
        self,
        name: str,
        fn: Callable[[], Awaitable[T]],
        attributes: dict[str, Any] | None = None,
    ) -> T:
        """Await ``fn()`` inside a span and return its result unchanged."""
        with self.span(name, attributes):
            return await fn()

    def flush(self) -> None:
        """Flush every exporter. Call before the process exits."""
        for exporter in self._exporters:
            exporter.flush()


def disabled_tracer() -> Tracer:
    """Return a tracer that records nothing."""
    return Tracer(enabled=False)


def setup_tracer(settings: BenchmarkSettings) -> Tracer:
    """Build the tracer described by ``settings``.

    Falls back to a disabled tracer if the span export file cannot be
    opened, so a broken trace destination never blocks a benchmark run.
    """
    if not settings.tracing:
        return disabled_tracer()

    tracer = Tracer(enabled=True, exporters=[LoggingSpanExporter()])
    if settings.trace_file:
        try:
            tracer.add_exporter(JsonlSpanExporter(settings.trace_file))
        except OSError as e:
            logger.warning(
                "Failed to open trace file %s: %s; running without tracing",
                settings.trace_file,
                e,
            )
            return disabled_tracer()
    return tracer
