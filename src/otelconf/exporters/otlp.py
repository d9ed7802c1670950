"""OTLP exporter construction over HTTP/protobuf and gRPC."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal
from urllib.parse import urlsplit

from opentelemetry.sdk.metrics._internal.aggregation import (
    Aggregation,
    AggregationTemporality,
    ExplicitBucketHistogramAggregation,
    ExponentialBucketHistogramAggregation,
)

from otelconf.errors import InvalidError
from otelconf.model import (
    OtlpGrpcExporterSpec,
    OtlpGrpcMetricExporterSpec,
    OtlpHttpExporterSpec,
    OtlpHttpMetricExporterSpec,
    TlsSpec,
)
from otelconf.model.common import parse_key_value_list
from otelconf.model.exporters import OtlpExporterSpec

if TYPE_CHECKING:
    import grpc
    from opentelemetry.sdk._logs.export import LogRecordExporter
    from opentelemetry.sdk.metrics.export import MetricExporter
    from opentelemetry.sdk.trace.export import SpanExporter

_LOGGER = logging.getLogger(__name__)

type Transport = Literal["http", "grpc"]

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_TLS = "tls configuration"


@dataclass(frozen=True)
class OtlpEndpoint:
    """Resolved exporter endpoint."""

    url: str | None
    insecure: bool | None


@dataclass(frozen=True)
class TlsMaterial:
    """PEM file locations verified to be readable."""

    ca_file: str | None = None
    cert_file: str | None = None
    key_file: str | None = None


def resolve_endpoint(
    endpoint: str | None,
    *,
    transport: Transport,
    tls: TlsSpec | None,
) -> OtlpEndpoint:
    """Resolve the endpoint and transport security of an OTLP exporter.

    A URL with an ``http`` scheme selects plaintext and ``https`` selects TLS.
    An endpoint without a scheme is used verbatim for gRPC (``host:port`` or
    ``unix:`` sockets); for HTTP it is prefixed with ``https://``, or
    ``http://`` when ``tls.insecure`` is set.

    Parameters
    ----------
    endpoint
        Configured endpoint.
    transport
        ``"http"`` or ``"grpc"``.
    tls
        TLS block of the exporter.

    Returns
    -------
    OtlpEndpoint
        Endpoint to hand to the exporter and the resolved ``insecure`` flag.

    Raises
    ------
    InvalidError
        Raised when the endpoint is malformed, or when TLS material is paired
        with an ``http`` endpoint.
    """
    forced_insecure = True if tls is not None and tls.insecure else None
    if endpoint is None:
        return OtlpEndpoint(url=None, insecure=forced_insecure)
    if not endpoint or any(char.isspace() for char in endpoint):
        raise InvalidError("endpoint parsing failed", repr(endpoint))
    if _SCHEME_RE.match(endpoint) is None:
        if transport == "grpc":
            return OtlpEndpoint(url=endpoint, insecure=forced_insecure)
        scheme = "http" if forced_insecure else "https"
        endpoint = f"{scheme}://{endpoint}"
    try:
        parsed = urlsplit(endpoint)
        _ = parsed.port
    except ValueError as exc:
        raise InvalidError("endpoint parsing failed", str(exc)) from exc
    scheme = parsed.scheme.lower()
    if scheme == "unix":
        return OtlpEndpoint(url=endpoint, insecure=forced_insecure)
    if not parsed.hostname:
        raise InvalidError("endpoint parsing failed", f"missing host in {endpoint!r}")
    if scheme == "http" and tls is not None and tls.has_material:
        raise InvalidError(_TLS, "certificates cannot be used with an http endpoint")
    insecure = forced_insecure if forced_insecure is not None else scheme == "http"
    if transport == "grpc":
        return OtlpEndpoint(url=parsed.netloc, insecure=insecure)
    return OtlpEndpoint(url=endpoint, insecure=insecure)


def resolve_headers(spec: OtlpExporterSpec) -> dict[str, str] | None:
    """Merge ``headers_list`` and ``headers``; ``headers`` wins on collision.

    Returns
    -------
    dict[str, str] | None
        Headers, or ``None`` when none are configured.
    """
    headers: dict[str, str] = {}
    if spec.headers_list:
        headers.update(parse_key_value_list(spec.headers_list, "invalid headers_list"))
    for pair in spec.headers:
        if pair.name is not None and isinstance(pair.value, str):
            headers[pair.name] = pair.value
    return headers or None


def resolve_timeout(timeout_millis: int | None) -> float | None:
    """Convert a millisecond timeout to seconds; ``0`` means unset.

    Returns
    -------
    float | None
        Timeout in seconds, or ``None`` for the exporter default.
    """
    if not timeout_millis:
        return None
    return timeout_millis / 1000


def _check_compression(compression: str | None) -> None:
    if compression is not None and compression not in {"gzip", "none"}:
        raise InvalidError("unsupported compression", repr(compression))


def resolve_tls(tls: TlsSpec | None) -> TlsMaterial | None:
    """Verify that configured TLS files are readable.

    Returns
    -------
    TlsMaterial | None
        File locations, or ``None`` when no material is configured.

    Raises
    ------
    InvalidError
        Raised when a file cannot be read, or when only one of the client
        certificate and key is given.
    """
    if tls is None or not tls.has_material:
        return None
    if bool(tls.cert_file) != bool(tls.key_file):
        raise InvalidError(_TLS, "cert_file and key_file must be set together")
    for path in (tls.ca_file, tls.cert_file, tls.key_file):
        if not path:
            continue
        try:
            with Path(path).open("rb") as handle:
                handle.read(1)
        except OSError as exc:
            raise InvalidError(_TLS, f"{path}: {exc.strerror or exc}") from exc
    return TlsMaterial(
        ca_file=tls.ca_file or None,
        cert_file=tls.cert_file or None,
        key_file=tls.key_file or None,
    )


def grpc_credentials(material: TlsMaterial) -> grpc.ChannelCredentials:
    """Build gRPC channel credentials from PEM files.

    Returns
    -------
    grpc.ChannelCredentials
        SSL channel credentials.

    Raises
    ------
    InvalidError
        Raised when a file cannot be read.
    """
    import grpc

    def _read(path: str | None) -> bytes | None:
        if path is None:
            return None
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise InvalidError(_TLS, f"{path}: {exc.strerror or exc}") from exc

    return grpc.ssl_channel_credentials(
        root_certificates=_read(material.ca_file),
        private_key=_read(material.key_file),
        certificate_chain=_read(material.cert_file),
    )


def temporality_preference(name: str | None) -> dict[type, AggregationTemporality] | None:
    """Map a temporality preference to per-instrument temporalities.

    Returns
    -------
    dict[type, AggregationTemporality] | None
        Temporality per SDK instrument class, or ``None`` for the default.

    Raises
    ------
    InvalidError
        Raised for an unknown preference.
    """
    if name is None:
        return None
    from opentelemetry.sdk.metrics._internal import instrument

    cumulative = AggregationTemporality.CUMULATIVE
    delta = AggregationTemporality.DELTA
    if name == "cumulative":
        return {
            instrument.Counter: cumulative,
            instrument.UpDownCounter: cumulative,
            instrument.Histogram: cumulative,
            instrument.ObservableCounter: cumulative,
            instrument.ObservableUpDownCounter: cumulative,
            instrument.ObservableGauge: cumulative,
            instrument.Gauge: cumulative,
        }
    if name == "delta":
        return {
            instrument.Counter: delta,
            instrument.UpDownCounter: cumulative,
            instrument.Histogram: delta,
            instrument.ObservableCounter: delta,
            instrument.ObservableUpDownCounter: cumulative,
            instrument.ObservableGauge: cumulative,
            instrument.Gauge: cumulative,
        }
    if name == "low_memory":
        return {
            instrument.Counter: delta,
            instrument.UpDownCounter: cumulative,
            instrument.Histogram: delta,
            instrument.ObservableCounter: cumulative,
            instrument.ObservableUpDownCounter: cumulative,
            instrument.ObservableGauge: cumulative,
            instrument.Gauge: cumulative,
        }
    raise InvalidError("unsupported temporality preference", repr(name))


def histogram_aggregation_preference(name: str | None) -> dict[type, Aggregation] | None:
    """Map a default histogram aggregation to the SDK aggregation.

    Returns
    -------
    dict[type, Aggregation] | None
        Aggregation for histograms, or ``None`` for the default.

    Raises
    ------
    InvalidError
        Raised for an unknown aggregation.
    """
    if name is None:
        return None
    from opentelemetry.sdk.metrics._internal import instrument

    if name == "explicit_bucket_histogram":
        return {instrument.Histogram: ExplicitBucketHistogramAggregation()}
    if name == "base2_exponential_bucket_histogram":
        return {instrument.Histogram: ExponentialBucketHistogramAggregation()}
    raise InvalidError("unsupported default histogram aggregation", repr(name))


def _http_kwargs(spec: OtlpExporterSpec) -> dict[str, object]:
    from opentelemetry.exporter.otlp.proto.http import Compression

    _check_compression(spec.compression)
    endpoint = resolve_endpoint(spec.endpoint, transport="http", tls=spec.tls)
    kwargs: dict[str, object] = {
        "endpoint": endpoint.url,
        "headers": resolve_headers(spec),
        "timeout": resolve_timeout(spec.timeout),
    }
    if spec.compression is not None:
        kwargs["compression"] = (
            Compression.Gzip if spec.compression == "gzip" else Compression.NoCompression
        )
    material = None if endpoint.insecure else resolve_tls(spec.tls)
    if material is not None:
        kwargs["certificate_file"] = material.ca_file
        kwargs["client_certificate_file"] = material.cert_file
        kwargs["client_key_file"] = material.key_file
    _LOGGER.debug("OTLP/HTTP exporter endpoint: %s", endpoint.url or "<default>")
    return kwargs


def _grpc_kwargs(spec: OtlpExporterSpec) -> dict[str, object]:
    import grpc

    _check_compression(spec.compression)
    endpoint = resolve_endpoint(spec.endpoint, transport="grpc", tls=spec.tls)
    kwargs: dict[str, object] = {
        "endpoint": endpoint.url,
        "insecure": endpoint.insecure,
        "headers": resolve_headers(spec),
        "timeout": resolve_timeout(spec.timeout),
    }
    if spec.compression is not None:
        kwargs["compression"] = (
            grpc.Compression.Gzip if spec.compression == "gzip" else grpc.Compression.NoCompression
        )
    material = None if endpoint.insecure else resolve_tls(spec.tls)
    if material is not None:
        kwargs["credentials"] = grpc_credentials(material)
    _LOGGER.debug("OTLP/gRPC exporter endpoint: %s", endpoint.url or "<default>")
    return kwargs


def _without_none(kwargs: Mapping[str, object]) -> dict[str, object]:
    return {key: value for key, value in kwargs.items() if value is not None}


def otlp_http_span_exporter(spec: OtlpHttpExporterSpec) -> SpanExporter:
    """Build an OTLP/HTTP span exporter.

    Returns
    -------
    SpanExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter(**_without_none(_http_kwargs(spec)))


def otlp_grpc_span_exporter(spec: OtlpGrpcExporterSpec) -> SpanExporter:
    """Build an OTLP/gRPC span exporter.

    Returns
    -------
    SpanExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter(**_without_none(_grpc_kwargs(spec)))


def otlp_http_log_exporter(spec: OtlpHttpExporterSpec) -> LogRecordExporter:
    """Build an OTLP/HTTP log record exporter.

    Returns
    -------
    LogRecordExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter

    return OTLPLogExporter(**_without_none(_http_kwargs(spec)))


def otlp_grpc_log_exporter(spec: OtlpGrpcExporterSpec) -> LogRecordExporter:
    """Build an OTLP/gRPC log record exporter.

    Returns
    -------
    LogRecordExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

    return OTLPLogExporter(**_without_none(_grpc_kwargs(spec)))


def _metric_preferences(
    spec: OtlpHttpMetricExporterSpec | OtlpGrpcMetricExporterSpec,
) -> dict[str, object]:
    return {
        "preferred_temporality": temporality_preference(spec.temporality_preference),
        "preferred_aggregation": histogram_aggregation_preference(
            spec.default_histogram_aggregation
        ),
    }


def otlp_http_metric_exporter(spec: OtlpHttpMetricExporterSpec) -> MetricExporter:
    """Build an OTLP/HTTP metric exporter.

    Returns
    -------
    MetricExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

    kwargs = {**_http_kwargs(spec), **_metric_preferences(spec)}
    return OTLPMetricExporter(**_without_none(kwargs))


def otlp_grpc_metric_exporter(spec: OtlpGrpcMetricExporterSpec) -> MetricExporter:
    """Build an OTLP/gRPC metric exporter.

    Returns
    -------
    MetricExporter
        Configured exporter.
    """
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

    kwargs = {**_grpc_kwargs(spec), **_metric_preferences(spec)}
    return OTLPMetricExporter(**_without_none(kwargs))


__all__ = [
    "OtlpEndpoint",
    "TlsMaterial",
    "grpc_credentials",
    "histogram_aggregation_preference",
    "otlp_grpc_log_exporter",
    "otlp_grpc_metric_exporter",
    "otlp_grpc_span_exporter",
    "otlp_http_log_exporter",
    "otlp_http_metric_exporter",
    "otlp_http_span_exporter",
    "resolve_endpoint",
    "resolve_headers",
    "resolve_timeout",
    "resolve_tls",
    "temporality_preference",
]
