"""Typed configuration model."""

from __future__ import annotations

from otelconf.model.base import ConfigNode, UnionNode, decode_node
from otelconf.model.common import (
    AttributeLimits,
    AttributeNameValue,
    IncludeExclude,
    NameStringValuePair,
)
from otelconf.model.configuration import OpenTelemetryConfiguration
from otelconf.model.exporters import (
    ConsoleExporterSpec,
    ConsoleMetricExporterSpec,
    LogRecordExporterSpec,
    OtlpFileExporterSpec,
    OtlpFileMetricExporterSpec,
    OtlpGrpcExporterSpec,
    OtlpGrpcMetricExporterSpec,
    OtlpHttpExporterSpec,
    OtlpHttpMetricExporterSpec,
    PrometheusMetricExporterSpec,
    PullMetricExporterSpec,
    PushMetricExporterSpec,
    SpanExporterSpec,
    TlsSpec,
    ZipkinSpanExporterSpec,
)
from otelconf.model.logs import (
    BatchLogRecordProcessorSpec,
    LoggerProviderSpec,
    LogRecordLimitsSpec,
    LogRecordProcessorSpec,
    SimpleLogRecordProcessorSpec,
)
from otelconf.model.metrics import (
    AggregationSpec,
    Base2ExponentialBucketHistogramAggregationSpec,
    CardinalityLimitsSpec,
    ExplicitBucketHistogramAggregationSpec,
    MeterProviderSpec,
    MetricProducerSpec,
    MetricReaderSpec,
    PeriodicMetricReaderSpec,
    PullMetricReaderSpec,
    ViewSelectorSpec,
    ViewSpec,
    ViewStreamSpec,
)
from otelconf.model.propagator import PropagatorSpec, TextMapPropagatorEntry
from otelconf.model.resource import ResourceDetectionSpec, ResourceDetectorSpec, ResourceSpec
from otelconf.model.trace import (
    BatchSpanProcessorSpec,
    ParentBasedSamplerSpec,
    SamplerSpec,
    SimpleSpanProcessorSpec,
    SpanLimitsSpec,
    SpanProcessorSpec,
    TraceIdRatioBasedSamplerSpec,
    TracerProviderSpec,
)

__all__ = [
    "AggregationSpec",
    "AttributeLimits",
    "AttributeNameValue",
    "Base2ExponentialBucketHistogramAggregationSpec",
    "BatchLogRecordProcessorSpec",
    "BatchSpanProcessorSpec",
    "CardinalityLimitsSpec",
    "ConfigNode",
    "ConsoleExporterSpec",
    "ConsoleMetricExporterSpec",
    "ExplicitBucketHistogramAggregationSpec",
    "IncludeExclude",
    "LogRecordExporterSpec",
    "LogRecordLimitsSpec",
    "LogRecordProcessorSpec",
    "LoggerProviderSpec",
    "MeterProviderSpec",
    "MetricProducerSpec",
    "MetricReaderSpec",
    "NameStringValuePair",
    "OpenTelemetryConfiguration",
    "OtlpFileExporterSpec",
    "OtlpFileMetricExporterSpec",
    "OtlpGrpcExporterSpec",
    "OtlpGrpcMetricExporterSpec",
    "OtlpHttpExporterSpec",
    "OtlpHttpMetricExporterSpec",
    "ParentBasedSamplerSpec",
    "PeriodicMetricReaderSpec",
    "PrometheusMetricExporterSpec",
    "PropagatorSpec",
    "PullMetricExporterSpec",
    "PullMetricReaderSpec",
    "PushMetricExporterSpec",
    "ResourceDetectionSpec",
    "ResourceDetectorSpec",
    "ResourceSpec",
    "SamplerSpec",
    "SimpleLogRecordProcessorSpec",
    "SimpleSpanProcessorSpec",
    "SpanExporterSpec",
    "SpanLimitsSpec",
    "SpanProcessorSpec",
    "TextMapPropagatorEntry",
    "TlsSpec",
    "TraceIdRatioBasedSamplerSpec",
    "TracerProviderSpec",
    "UnionNode",
    "ViewSelectorSpec",
    "ViewSpec",
    "ViewStreamSpec",
    "ZipkinSpanExporterSpec",
    "decode_node",
]
