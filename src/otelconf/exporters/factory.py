"""Dispatch exporter union nodes to concrete exporters."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from opentelemetry.sdk._logs.export import ConsoleLogRecordExporter, LogRecordExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SpanExporter

from otelconf.errors import InvalidError
from otelconf.exporters.file import (
    OtlpJsonLogRecordExporter,
    OtlpJsonMetricExporter,
    OtlpJsonSpanExporter,
)
from otelconf.exporters.otlp import (
    histogram_aggregation_preference,
    otlp_grpc_log_exporter,
    otlp_grpc_metric_exporter,
    otlp_grpc_span_exporter,
    otlp_http_log_exporter,
    otlp_http_metric_exporter,
    otlp_http_span_exporter,
    resolve_timeout,
    temporality_preference,
)
from otelconf.model import (
    ConsoleMetricExporterSpec,
    LogRecordExporterSpec,
    OtlpFileMetricExporterSpec,
    PushMetricExporterSpec,
    SpanExporterSpec,
    ZipkinSpanExporterSpec,
)

_LOGGER = logging.getLogger(__name__)


def _zipkin_span_exporter(spec: ZipkinSpanExporterSpec) -> SpanExporter:
    from opentelemetry.exporter.zipkin.json import ZipkinExporter

    return ZipkinExporter(endpoint=spec.endpoint, timeout=resolve_timeout(spec.timeout))


def _console_metric_exporter(spec: ConsoleMetricExporterSpec) -> MetricExporter:
    return ConsoleMetricExporter(
        preferred_temporality=temporality_preference(spec.temporality_preference),
        preferred_aggregation=histogram_aggregation_preference(
            spec.default_histogram_aggregation
        ),
    )


def _file_metric_exporter(spec: OtlpFileMetricExporterSpec) -> MetricExporter:
    return OtlpJsonMetricExporter(
        spec.output_stream,
        preferred_temporality=temporality_preference(spec.temporality_preference),
        preferred_aggregation=histogram_aggregation_preference(
            spec.default_histogram_aggregation
        ),
    )


_SPAN_EXPORTERS: Mapping[str, Callable[[Any], SpanExporter]] = {
    "console": lambda _spec: ConsoleSpanExporter(),
    "otlp_http": otlp_http_span_exporter,
    "otlp_grpc": otlp_grpc_span_exporter,
    "otlp_file": lambda spec: OtlpJsonSpanExporter(spec.output_stream),
    "zipkin": _zipkin_span_exporter,
}

_LOG_RECORD_EXPORTERS: Mapping[str, Callable[[Any], LogRecordExporter]] = {
    "console": lambda _spec: ConsoleLogRecordExporter(),
    "otlp_http": otlp_http_log_exporter,
    "otlp_grpc": otlp_grpc_log_exporter,
    "otlp_file": lambda spec: OtlpJsonLogRecordExporter(spec.output_stream),
}

_PUSH_METRIC_EXPORTERS: Mapping[str, Callable[[Any], MetricExporter]] = {
    "console": _console_metric_exporter,
    "otlp_http": otlp_http_metric_exporter,
    "otlp_grpc": otlp_grpc_metric_exporter,
    "otlp_file": _file_metric_exporter,
}


def build_span_exporter(spec: SpanExporterSpec) -> SpanExporter:
    """Build the span exporter selected by ``spec``.

    Returns
    -------
    SpanExporter
        Configured exporter.

    Raises
    ------
    InvalidError
        Raised when no exporter variant is selected.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("no valid span exporter")
    name, value = variant
    _LOGGER.debug("Building %s span exporter", name)
    return _SPAN_EXPORTERS[name](value)


def build_log_record_exporter(spec: LogRecordExporterSpec) -> LogRecordExporter:
    """Build the log record exporter selected by ``spec``.

    Returns
    -------
    LogRecordExporter
        Configured exporter.

    Raises
    ------
    InvalidError
        Raised when no exporter variant is selected.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("no valid log exporter")
    name, value = variant
    _LOGGER.debug("Building %s log record exporter", name)
    return _LOG_RECORD_EXPORTERS[name](value)


def build_push_metric_exporter(spec: PushMetricExporterSpec) -> MetricExporter:
    """Build the push metric exporter selected by ``spec``.

    Returns
    -------
    MetricExporter
        Configured exporter.

    Raises
    ------
    InvalidError
        Raised when no exporter variant is selected.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("no valid metric exporter")
    name, value = variant
    _LOGGER.debug("Building %s metric exporter", name)
    return _PUSH_METRIC_EXPORTERS[name](value)


__all__ = [
    "build_log_record_exporter",
    "build_push_metric_exporter",
    "build_span_exporter",
]
