"""Exporter nodes of the configuration model."""

from __future__ import annotations

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import (
    ConfigNode,
    UnionNode,
    check_enum,
    check_non_negative,
)
from otelconf.model.common import IncludeExclude, NameStringValuePair

TEMPORALITY_PREFERENCES = ("cumulative", "delta", "low_memory")
HISTOGRAM_AGGREGATIONS = ("explicit_bucket_histogram", "base2_exponential_bucket_histogram")
TRANSLATION_STRATEGIES = (
    "UnderscoreEscapingWithSuffixes",
    "UnderscoreEscapingWithoutSuffixes",
    "NoUTF8EscapingWithSuffixes",
    "NoTranslation",
)


class TlsSpec(ConfigNode, frozen=True):
    """TLS material for OTLP exporters."""

    ca_file: str | None = None
    cert_file: str | None = None
    key_file: str | None = None
    insecure: bool | None = None

    @property
    def has_material(self) -> bool:
        """Return whether any certificate or key path is configured."""
        return any(path for path in (self.ca_file, self.cert_file, self.key_file))


class OtlpExporterSpec(ConfigNode, frozen=True):
    """Fields shared by the OTLP/HTTP and OTLP/gRPC exporters."""

    endpoint: str | None = None
    compression: str | None = None
    timeout: int | None = None
    headers: tuple[NameStringValuePair, ...] = ()
    headers_list: str | None = None
    tls: TlsSpec | None = None

    def check(self) -> list[ConfigError]:
        return check_non_negative("timeout", self.timeout)


def _check_metric_preferences(
    temporality_preference: str | None,
    default_histogram_aggregation: str | None,
) -> list[ConfigError]:
    return [
        *check_enum("temporality_preference", temporality_preference, TEMPORALITY_PREFERENCES),
        *check_enum(
            "default_histogram_aggregation",
            default_histogram_aggregation,
            HISTOGRAM_AGGREGATIONS,
        ),
    ]


class OtlpHttpExporterSpec(OtlpExporterSpec, frozen=True):
    """OTLP over HTTP/protobuf exporter."""


class OtlpGrpcExporterSpec(OtlpExporterSpec, frozen=True):
    """OTLP over gRPC exporter."""


class OtlpHttpMetricExporterSpec(OtlpExporterSpec, frozen=True):
    """OTLP over HTTP/protobuf metric exporter."""

    temporality_preference: str | None = None
    default_histogram_aggregation: str | None = None

    def check(self) -> list[ConfigError]:
        return [
            *super().check(),
            *_check_metric_preferences(
                self.temporality_preference,
                self.default_histogram_aggregation,
            ),
        ]


class OtlpGrpcMetricExporterSpec(OtlpExporterSpec, frozen=True):
    """OTLP over gRPC metric exporter."""

    temporality_preference: str | None = None
    default_histogram_aggregation: str | None = None

    def check(self) -> list[ConfigError]:
        return [
            *super().check(),
            *_check_metric_preferences(
                self.temporality_preference,
                self.default_histogram_aggregation,
            ),
        ]


class OtlpFileExporterSpec(ConfigNode, frozen=True):
    """OTLP JSON-lines exporter writing to stdout or a file URI."""

    output_stream: str | None = None


class OtlpFileMetricExporterSpec(OtlpFileExporterSpec, frozen=True):
    """OTLP JSON-lines metric exporter."""

    temporality_preference: str | None = None
    default_histogram_aggregation: str | None = None

    def check(self) -> list[ConfigError]:
        return _check_metric_preferences(
            self.temporality_preference,
            self.default_histogram_aggregation,
        )


class ConsoleExporterSpec(ConfigNode, frozen=True):
    """Console exporter for spans and log records."""


class ConsoleMetricExporterSpec(ConfigNode, frozen=True):
    """Console metric exporter."""

    temporality_preference: str | None = None
    default_histogram_aggregation: str | None = None

    def check(self) -> list[ConfigError]:
        return _check_metric_preferences(
            self.temporality_preference,
            self.default_histogram_aggregation,
        )


class ZipkinSpanExporterSpec(ConfigNode, frozen=True):
    """Zipkin JSON span exporter."""

    endpoint: str | None = None
    timeout: int | None = None

    def check(self) -> list[ConfigError]:
        return check_non_negative("timeout", self.timeout)


class PrometheusMetricExporterSpec(ConfigNode, frozen=True):
    """Prometheus pull exporter served over HTTP."""

    host: str | None = None
    port: int | None = None
    without_scope_info: bool | None = None
    without_target_info: bool | None = None
    translation_strategy: str | None = None
    with_resource_constant_labels: IncludeExclude | None = None

    def check(self) -> list[ConfigError]:
        return check_enum("translation_strategy", self.translation_strategy, TRANSLATION_STRATEGIES)


class SpanExporterSpec(UnionNode, frozen=True):
    """Exactly one span exporter."""

    union_label = "exporters"

    console: ConsoleExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_http: OtlpHttpExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_grpc: OtlpGrpcExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_file: OtlpFileExporterSpec | None | msgspec.UnsetType = msgspec.field(
        default=msgspec.UNSET,
        name="otlp_file/development",
    )
    zipkin: ZipkinSpanExporterSpec | None | msgspec.UnsetType = msgspec.UNSET


class LogRecordExporterSpec(UnionNode, frozen=True):
    """Exactly one log record exporter."""

    union_label = "exporters"

    console: ConsoleExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_http: OtlpHttpExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_grpc: OtlpGrpcExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_file: OtlpFileExporterSpec | None | msgspec.UnsetType = msgspec.field(
        default=msgspec.UNSET,
        name="otlp_file/development",
    )


class PushMetricExporterSpec(UnionNode, frozen=True):
    """Exactly one push metric exporter for a periodic reader."""

    union_label = "exporters"

    console: ConsoleMetricExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_http: OtlpHttpMetricExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_grpc: OtlpGrpcMetricExporterSpec | None | msgspec.UnsetType = msgspec.UNSET
    otlp_file: OtlpFileMetricExporterSpec | None | msgspec.UnsetType = msgspec.field(
        default=msgspec.UNSET,
        name="otlp_file/development",
    )


class PullMetricExporterSpec(UnionNode, frozen=True):
    """Exactly one pull metric exporter for a pull reader."""

    union_label = "exporters"

    prometheus: PrometheusMetricExporterSpec | None | msgspec.UnsetType = msgspec.field(
        default=msgspec.UNSET,
        name="prometheus/development",
    )


__all__ = [
    "HISTOGRAM_AGGREGATIONS",
    "TEMPORALITY_PREFERENCES",
    "TRANSLATION_STRATEGIES",
    "ConsoleExporterSpec",
    "ConsoleMetricExporterSpec",
    "LogRecordExporterSpec",
    "OtlpExporterSpec",
    "OtlpFileExporterSpec",
    "OtlpFileMetricExporterSpec",
    "OtlpGrpcExporterSpec",
    "OtlpGrpcMetricExporterSpec",
    "OtlpHttpExporterSpec",
    "OtlpHttpMetricExporterSpec",
    "PrometheusMetricExporterSpec",
    "PullMetricExporterSpec",
    "PushMetricExporterSpec",
    "SpanExporterSpec",
    "TlsSpec",
    "ZipkinSpanExporterSpec",
]
