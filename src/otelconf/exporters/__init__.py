"""Exporter builders for spans, metrics and log records."""

from __future__ import annotations

from otelconf.exporters.factory import (
    build_log_record_exporter,
    build_push_metric_exporter,
    build_span_exporter,
)
from otelconf.exporters.prometheus import PrometheusPullReader, build_prometheus_reader

__all__ = [
    "PrometheusPullReader",
    "build_log_record_exporter",
    "build_prometheus_reader",
    "build_push_metric_exporter",
    "build_span_exporter",
]
