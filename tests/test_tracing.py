"""Tests for span tracing."""

import asyncio
from pathlib import Path

import orjson
import pytest

from joinbench.config import BenchmarkSettings
from joinbench.tracing import (
    JsonlSpanExporter,
    LoggingSpanExporter,
    SpanRecord,
    Tracer,
    disabled_tracer,
    setup_tracer,
)


class _CollectingExporter:
    def __init__(self) -> None:
        self.spans: list[SpanRecord] = []
        self.flushes = 0

    def export(self, span: SpanRecord) -> None:
        self.spans.append(span)

    def flush(self) -> None:
        self.flushes += 1


class TestTracer:
    """Span recording and nesting."""

    def test_with_span_returns_result(self) -> None:
        """The wrapped function's result is returned unchanged."""
        tracer = Tracer()
        assert tracer.with_span("double", lambda: 21 * 2) == 42
        assert [s.name for s in tracer.finished] == ["double"]

    def test_attributes_recorded(self) -> None:
        """Span attributes are copied onto the record."""
        tracer = Tracer()
        attrs = {"benchmark.iteration": 1}
        tracer.with_span("iteration", lambda: None, attrs)
        attrs["benchmark.iteration"] = 2
        assert tracer.finished[0].attributes == {"benchmark.iteration": 1}

    def test_nested_spans(self) -> None:
        """Inner spans record their parent and depth."""
        tracer = Tracer()
        with tracer.span("outer"):
            with tracer.span("inner"):
                pass
        inner, outer = tracer.finished
        assert inner.name == "inner"
        assert inner.parent == "outer"
        assert inner.depth == 1
        assert outer.parent is None
        assert outer.duration_ms >= inner.duration_ms >= 0.0

    def test_error_marks_span_and_propagates(self) -> None:
        """A failing body marks the span as errored and re-raises."""
        tracer = Tracer()

        def boom() -> None:
            msg = "bad data"
            raise ValueError(msg)

        with pytest.raises(ValueError, match="bad data"):
            tracer.with_span("load", boom)
        span = tracer.finished[0]
        assert span.status == "error"
        assert span.error == "ValueError: bad data"

    def test_disabled_tracer_runs_operation(self) -> None:
        """A disabled tracer records nothing but still runs the body."""
        tracer = disabled_tracer()
        assert tracer.with_span("noop", lambda: "value") == "value"
        assert tracer.finished == []

    def test_set_enabled(self) -> None:
        """Tracing can be switched off and on."""
        tracer = Tracer()
        tracer.set_enabled(False)
        tracer.with_span("skipped", lambda: None)
        tracer.set_enabled(True)
        tracer.with_span("kept", lambda: None)
        assert [s.name for s in tracer.finished] == ["kept"]

    @pytest.mark.asyncio
    async def test_async_span(self) -> None:
        """with_span_async awaits and returns the coroutine's result."""
        tracer = Tracer()

        async def compute() -> int:
            await asyncio.sleep(0)
            return 7

        assert await tracer.with_span_async("compute", compute) == 7
        assert tracer.finished[0].name == "compute"

    def test_exporters_receive_spans_and_flush(self) -> None:
        """Exporters see every finished span and are flushed on demand."""
        exporter = _CollectingExporter()
        tracer = Tracer(exporters=[exporter])
        tracer.with_span("a", lambda: None)
        tracer.with_span("b", lambda: None)
        tracer.flush()
        assert [s.name for s in exporter.spans] == ["a", "b"]
        assert exporter.flushes == 1


class TestExporters:
    """Built-in span exporters."""

    def test_jsonl_exporter_writes_on_flush(self, tmp_path: Path) -> None:
        """Spans are buffered and appended as JSON lines on flush."""
        path = tmp_path / "traces" / "spans.jsonl"
        exporter = JsonlSpanExporter(path)
        assert path.exists()

        tracer = Tracer(exporters=[exporter])
        tracer.with_span("generate-test-data", lambda: None, {"benchmark.project_count": 3})
        assert path.read_bytes() == b""

        tracer.flush()
        lines = path.read_bytes().splitlines()
        assert len(lines) == 1
        record = orjson.loads(lines[0])
        assert record["record_type"] == "span"
        assert record["name"] == "generate-test-data"
        assert record["attributes"] == {"benchmark.project_count": 3}
        assert record["status"] == "ok"

    def test_jsonl_exporter_appends(self, tmp_path: Path) -> None:
        """A second flush appends rather than overwrites."""
        path = tmp_path / "spans.jsonl"
        tracer = Tracer(exporters=[JsonlSpanExporter(path)])
        tracer.with_span("first", lambda: None)
        tracer.flush()
        tracer.with_span("second", lambda: None)
        tracer.flush()
        names = [orjson.loads(line)["name"] for line in path.read_bytes().splitlines()]
        assert names == ["first", "second"]

    def test_logging_exporter(self, caplog: pytest.LogCaptureFixture) -> None:
        """The logging exporter emits a debug line per span."""
        caplog.set_level("DEBUG", logger="joinbench.tracing")
        tracer = Tracer(exporters=[LoggingSpanExporter()])
        tracer.with_span("query-preload", lambda: None)
        assert "span query-preload finished" in caplog.text


class TestSetupTracer:
    """Tracer construction from settings."""

    def test_tracing_off(self) -> None:
        """tracing=False yields a disabled tracer."""
        assert not setup_tracer(BenchmarkSettings(tracing=False)).enabled

    def test_tracing_on(self) -> None:
        """tracing=True yields an enabled tracer."""
        assert setup_tracer(BenchmarkSettings()).enabled

    def test_trace_file(self, tmp_path: Path) -> None:
        """A trace file adds a JSONL exporter."""
        path = tmp_path / "spans.jsonl"
        tracer = setup_tracer(BenchmarkSettings(trace_file=str(path)))
        tracer.with_span("run-benchmarks", lambda: None)
        tracer.flush()
        assert b"run-benchmarks" in path.read_bytes()

    def test_unopenable_trace_file_disables_tracing(
        self,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """If the trace file cannot be opened, the run continues untraced."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        settings = BenchmarkSettings(trace_file=str(blocker / "spans.jsonl"))

        tracer = setup_tracer(settings)

        assert not tracer.enabled
        assert "Failed to open trace file" in caplog.text
