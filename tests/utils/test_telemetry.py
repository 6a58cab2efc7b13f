"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from opentelemetry import trace

from qjsmcp.config import TelemetrySettings
from qjsmcp.utils.telemetry import (
    ATTR_EXIT_STATUS,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "qjsmcp"
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("sandbox.run") as span:
            span.set_attribute(ATTR_EXIT_STATUS, 0)


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry(TelemetrySettings(enabled=True))

    def test_otlp_raises_without_exporter(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")
        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(TelemetrySettings(enabled=True, otlp_endpoint="http://localhost:4317"))

    def test_configures_console_exporter(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")
        with patch("qjsmcp.utils.telemetry.trace.set_tracer_provider") as mock_set:
            configure_telemetry(TelemetrySettings(enabled=True, export_to_console=True))
        mock_set.assert_called_once()
