"""OTLP JSON-lines exporters writing to stdout or a file."""

from __future__ import annotations

import base64
import logging
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any
from urllib.parse import unquote, urlsplit

from google.protobuf import json_format
from google.protobuf.message import Message
from opentelemetry.exporter.otlp.proto.common._log_encoder import encode_logs
from opentelemetry.exporter.otlp.proto.common.metrics_encoder import encode_metrics
from opentelemetry.exporter.otlp.proto.common.trace_encoder import encode_spans
from opentelemetry.sdk._logs import ReadableLogRecord
from opentelemetry.sdk._logs.export import LogRecordExporter, LogRecordExportResult
from opentelemetry.sdk.metrics._internal.aggregation import Aggregation, AggregationTemporality
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from otelconf.errors import InvalidError
from otelconf.serde import dumps_json

_LOGGER = logging.getLogger(__name__)

STDOUT = "stdout"
_ID_FIELDS = frozenset({"traceId", "spanId", "parentSpanId"})


def _hex_ids(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: base64.b64decode(item).hex() if key in _ID_FIELDS else _hex_ids(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_hex_ids(item) for item in value]
    return value


class JsonLinesWriter:
    """Thread-safe writer of one OTLP/JSON document per line.

    Parameters
    ----------
    output_stream
        ``"stdout"`` (the default) or a ``file://`` URI opened for appending.
    """

    def __init__(self, output_stream: str | None = None) -> None:
        self._lock = threading.Lock()
        self._owned = False
        self._stream = self._open(output_stream or STDOUT)

    def _open(self, output_stream: str) -> IO[bytes]:
        if output_stream == STDOUT:
            return sys.stdout.buffer
        parsed = urlsplit(output_stream)
        if parsed.scheme != "file" or not parsed.path:
            raise InvalidError(
                "output_stream",
                f"expected {STDOUT!r} or a file:// URI, got {output_stream!r}",
            )
        path = Path(unquote(parsed.path))
        try:
            stream = path.open("ab")
        except OSError as exc:
            raise InvalidError("output_stream", f"{path}: {exc.strerror or exc}") from exc
        self._owned = True
        return stream

    def write(self, message: Message) -> None:
        """Write a protobuf export request as a single OTLP/JSON line."""
        payload = _hex_ids(json_format.MessageToDict(message))
        line = dumps_json(payload) + b"\n"
        with self._lock:
            if self._stream.closed:
                return
            self._stream.write(line)
            self._stream.flush()

    def close(self) -> None:
        """Close the stream when this writer opened it."""
        with self._lock:
            if self._owned and not self._stream.closed:
                self._stream.close()


class OtlpJsonSpanExporter(SpanExporter):
    """Span exporter emitting ``ExportTraceServiceRequest`` JSON lines."""

    def __init__(self, output_stream: str | None = None) -> None:
        self._writer = JsonLinesWriter(output_stream)

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        try:
            self._writer.write(encode_spans(spans))
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Failed to write spans: %s", exc)
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._writer.close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        _ = timeout_millis
        return True


class OtlpJsonLogRecordExporter(LogRecordExporter):
    """Log record exporter emitting ``ExportLogsServiceRequest`` JSON lines."""

    def __init__(self, output_stream: str | None = None) -> None:
        self._writer = JsonLinesWriter(output_stream)

    def export(self, batch: Sequence[ReadableLogRecord]) -> LogRecordExportResult:
        try:
            self._writer.write(encode_logs(batch))
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Failed to write log records: %s", exc)
            return LogRecordExportResult.FAILURE
        return LogRecordExportResult.SUCCESS

    def shutdown(self) -> None:
        self._writer.close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        _ = timeout_millis
        return True


class OtlpJsonMetricExporter(MetricExporter):
    """Metric exporter emitting ``ExportMetricsServiceRequest`` JSON lines."""

    def __init__(
        self,
        output_stream: str | None = None,
        *,
        preferred_temporality: dict[type, AggregationTemporality] | None = None,
        preferred_aggregation: dict[type, Aggregation] | None = None,
    ) -> None:
        super().__init__(
            preferred_temporality=preferred_temporality,
            preferred_aggregation=preferred_aggregation,
        )
        self._writer = JsonLinesWriter(output_stream)

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: object,
    ) -> MetricExportResult:
        _ = timeout_millis, kwargs
        try:
            self._writer.write(encode_metrics(metrics_data))
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Failed to write metrics: %s", exc)
            return MetricExportResult.FAILURE
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        _ = timeout_millis
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: object) -> None:
        _ = timeout_millis, kwargs
        self._writer.close()


__all__ = [
    "STDOUT",
    "JsonLinesWriter",
    "OtlpJsonLogRecordExporter",
    "OtlpJsonMetricExporter",
    "OtlpJsonSpanExporter",
]
