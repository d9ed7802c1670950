"""Tests for the OTLP JSON-lines exporters."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from otelconf.errors import InvalidError
from otelconf.exporters import build_log_record_exporter, build_span_exporter
from otelconf.exporters.file import OtlpJsonLogRecordExporter, OtlpJsonSpanExporter
from otelconf.model import LogRecordExporterSpec, OtlpFileExporterSpec, SpanExporterSpec


def test_spans_written_as_json_lines(tmp_path: Path) -> None:
    """Ensure each export writes one OTLP/JSON line with hex identifiers."""
    target = tmp_path / "spans.jsonl"
    exporter = build_span_exporter(
        SpanExporterSpec(otlp_file=OtlpFileExporterSpec(output_stream=target.as_uri()))
    )
    assert isinstance(exporter, OtlpJsonSpanExporter)
    provider = TracerProvider(shutdown_on_exit=False)
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("tests")
    with tracer.start_as_current_span("first") as span:
        trace_id = format(span.get_span_context().trace_id, "032x")
    with tracer.start_as_current_span("second"):
        pass
    provider.shutdown()

    lines = target.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    document = json.loads(lines[0])
    exported = document["resourceSpans"][0]["scopeSpans"][0]["spans"][0]
    assert exported["name"] == "first"
    assert exported["traceId"] == trace_id


def test_writes_after_shutdown_are_dropped(tmp_path: Path) -> None:
    """Ensure exports after shutdown do not raise."""
    target = tmp_path / "spans.jsonl"
    exporter = OtlpJsonSpanExporter(target.as_uri())
    exporter.shutdown()
    exporter.export([])
    assert target.read_text(encoding="utf-8") == ""


@pytest.mark.parametrize("output_stream", ["stderr", "https://example.com/spans", "file://"])
def test_invalid_output_stream(output_stream: str) -> None:
    """Ensure only stdout and file URIs are accepted."""
    with pytest.raises(InvalidError, match="output_stream"):
        OtlpJsonSpanExporter(output_stream)


def test_unwritable_output_stream(tmp_path: Path) -> None:
    """Ensure a file that cannot be opened is reported."""
    target = tmp_path / "missing" / "spans.jsonl"
    with pytest.raises(InvalidError, match="output_stream"):
        OtlpJsonSpanExporter(target.as_uri())


def test_log_exporter_is_constructible(tmp_path: Path) -> None:
    """Ensure the log record exporter implements the full exporter interface."""
    target = tmp_path / "logs.jsonl"
    exporter = build_log_record_exporter(
        LogRecordExporterSpec(otlp_file=OtlpFileExporterSpec(output_stream=target.as_uri()))
    )
    assert isinstance(exporter, OtlpJsonLogRecordExporter)
    assert exporter.force_flush() is True
    exporter.shutdown()
