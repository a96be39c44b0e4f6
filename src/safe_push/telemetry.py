"""Scoped tracing for one safe-push invocation.

A TraceContext owns its own OpenTelemetry ``TracerProvider``. It is created
by the outermost surface, handed to the orchestrator, and released exactly
once (``with`` block or ``release()``), which flushes and shuts the provider
down. No global tracer provider is installed.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
    SpanProcessor,
)
from opentelemetry.trace import Status, StatusCode

from safe_push import __version__
from safe_push.types import TraceExporter

TRACER_NAME = "safe-push"


def _json_line(span: ReadableSpan) -> str:
    return span.to_json(indent=None) + os.linesep


def build_span_exporter(exporter: TraceExporter, out: IO[str] | None = None) -> SpanExporter:
    """Create the span exporter for a ``--trace`` choice.

    ``otlp`` sends to the collector configured by the standard
    ``OTEL_EXPORTER_OTLP_*`` environment variables.
    """
    if exporter is TraceExporter.OTLP:
        return OTLPSpanExporter()
    stream = out or sys.stderr
    if exporter is TraceExporter.JSON:
        return ConsoleSpanExporter(out=stream, formatter=_json_line)
    return ConsoleSpanExporter(out=stream)


class TraceContext:
    """Collects spans for one invocation and exports them on release."""

    def __init__(
        self,
        exporter: TraceExporter | None = None,
        *,
        out: IO[str] | None = None,
        span_exporter: SpanExporter | None = None,
    ) -> None:
        self.exporter = exporter
        self.released = False
        self._provider: TracerProvider | None = None
        self._tracer: trace.Tracer = trace.NoOpTracer()
        if exporter is None:
            return

        resource = Resource.create({SERVICE_NAME: TRACER_NAME, SERVICE_VERSION: __version__})
        self._provider = TracerProvider(resource=resource)
        span_exporter = span_exporter or build_span_exporter(exporter, out)
        processor: SpanProcessor
        if exporter is TraceExporter.OTLP:
            processor = BatchSpanProcessor(span_exporter)
        else:
            processor = SimpleSpanProcessor(span_exporter)
        self._provider.add_span_processor(processor)
        self._tracer = self._provider.get_tracer(TRACER_NAME, __version__)

    @classmethod
    def disabled(cls) -> TraceContext:
        return cls(None)

    @property
    def enabled(self) -> bool:
        return self._provider is not None and not self.released

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[trace.Span]:
        """Run the block inside a span; exceptions are recorded on it and propagate."""
        with self._tracer.start_as_current_span(name, attributes=attributes or None) as span:
            yield span
            span.set_status(Status(StatusCode.OK))

    def release(self) -> None:
        """Flush and shut down the provider. Safe to call more than once."""
        if self.released:
            return
        self.released = True
        self._tracer = trace.NoOpTracer()
        if self._provider is not None:
            self._provider.force_flush()
            self._provider.shutdown()

    def __enter__(self) -> TraceContext:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.release()
