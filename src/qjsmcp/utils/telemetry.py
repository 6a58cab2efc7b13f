"""OpenTelemetry tracing helpers for qjsmcp.

Code calls ``get_tracer()`` unconditionally; until :func:`configure_telemetry`
installs an SDK provider the API hands back no-op spans.

Usage::

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("sandbox.run") as span:
        span.set_attribute(ATTR_EXIT_STATUS, 0)

Exporting spans needs the ``otel`` extra: ``pip install qjsmcp[otel]``.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from qjsmcp.config import TelemetrySettings

# Span attribute keys
ATTR_INVOCATION_ID = "qjsmcp.invocation.id"
ATTR_CODE_LENGTH = "qjsmcp.code.length"
ATTR_EXIT_STATUS = "qjsmcp.exit_status"
ATTR_TIMED_OUT = "qjsmcp.timed_out"
ATTR_TIMEOUT = "qjsmcp.timeout"
ATTR_STDOUT_LENGTH = "qjsmcp.stdout.length"
ATTR_STDERR_LENGTH = "qjsmcp.stderr.length"
ATTR_OUTCOME = "qjsmcp.outcome"
ATTR_TOOL_NAME = "qjsmcp.tool.name"

_INSTRUMENTATION_NAME = "qjsmcp"
_SDK_HINT = "Install it with: pip install qjsmcp[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name* (no-op until telemetry is configured)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(settings: TelemetrySettings, *, service_name: str = "qjsmcp") -> None:
    """Install an SDK tracer provider according to *settings*.

    Console export writes to stderr; stdout is reserved for the stdio
    transport.

    Raises:
        ImportError: If ``opentelemetry-sdk`` (or, for OTLP export,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_SDK_HINT}"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if settings.export_to_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))

    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(settings.otlp_endpoint)))

    trace.set_tracer_provider(provider)


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_SDK_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
