"""Build metric readers and the meter provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics._internal.exemplar.exemplar_filter import (
    AlwaysOffExemplarFilter,
    AlwaysOnExemplarFilter,
    ExemplarFilter,
    TraceBasedExemplarFilter,
)
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.metrics.view import View
from opentelemetry.sdk.resources import Resource

from otelconf.errors import ConfigError, InvalidError, iter_leaf_errors, raise_joined
from otelconf.exporters import build_prometheus_reader, build_push_metric_exporter
from otelconf.model import (
    CardinalityLimitsSpec,
    MeterProviderSpec,
    MetricReaderSpec,
    PeriodicMetricReaderSpec,
    PullMetricReaderSpec,
)
from otelconf.tracing import positive_or_none
from otelconf.views import build_view

_LOGGER = logging.getLogger(__name__)


class ConfiguredMeterProvider(MeterProvider):
    """MeterProvider subclass that exposes the configured exemplar filter."""

    exemplar_filter: ExemplarFilter | None

    def __init__(
        self,
        metric_readers: Sequence[MetricReader] = (),
        resource: Resource | None = None,
        *,
        exemplar_filter: ExemplarFilter | None = None,
        shutdown_on_exit: bool = True,
        views: Sequence[View] = (),
    ) -> None:
        super().__init__(
            metric_readers=metric_readers,
            resource=resource,
            exemplar_filter=exemplar_filter,
            shutdown_on_exit=shutdown_on_exit,
            views=views,
        )
        self.exemplar_filter = exemplar_filter


@dataclass(frozen=True)
class MeterProviderOptions:
    """Programmatic meter provider settings.

    ``metric_readers`` and ``views`` are added ahead of the configured ones;
    a configured exemplar filter replaces ``exemplar_filter``.
    """

    metric_readers: Sequence[MetricReader] = ()
    views: Sequence[View] = ()
    exemplar_filter: ExemplarFilter | None = None


def build_exemplar_filter(name: str | None) -> ExemplarFilter | None:
    """Map an exemplar filter name to the SDK filter.

    Returns
    -------
    ExemplarFilter | None
        Filter instance, or ``None`` when unset.

    Raises
    ------
    InvalidError
        Raised for an unknown name.
    """
    if name is None:
        return None
    if name == "always_on":
        return AlwaysOnExemplarFilter()
    if name == "always_off":
        return AlwaysOffExemplarFilter()
    if name == "trace_based":
        return TraceBasedExemplarFilter()
    raise InvalidError("exemplar_filter", f"unknown exemplar filter {name!r}")


def _warn_unsupported(
    owner: str,
    *,
    producers: Sequence[object] = (),
    cardinality_limits: CardinalityLimitsSpec | None = None,
) -> None:
    if producers:
        _LOGGER.warning("%s: metric producers are not supported; ignoring.", owner)
    if cardinality_limits is not None:
        _LOGGER.warning("%s: cardinality limits are not supported; ignoring.", owner)


def _periodic_reader(spec: PeriodicMetricReaderSpec) -> MetricReader:
    if spec.exporter is None:
        raise InvalidError("no valid metric exporter")
    _warn_unsupported(
        "periodic reader",
        producers=spec.producer_entries(),
        cardinality_limits=spec.cardinality_limits,
    )
    exporter = build_push_metric_exporter(spec.exporter)
    try:
        return PeriodicExportingMetricReader(
            exporter,
            export_interval_millis=positive_or_none(spec.interval),
            export_timeout_millis=positive_or_none(spec.timeout),
        )
    except ValueError as exc:
        exporter.shutdown()
        raise InvalidError("periodic metric reader", str(exc)) from exc


def _pull_reader(spec: PullMetricReaderSpec) -> MetricReader:
    variant = None if spec.exporter is None else spec.exporter.variant()
    if variant is None:
        raise InvalidError("no valid metric exporter")
    _warn_unsupported(
        "pull reader",
        producers=spec.producer_entries(),
        cardinality_limits=spec.cardinality_limits,
    )
    _, prometheus = variant
    return build_prometheus_reader(prometheus)


def build_metric_reader(spec: MetricReaderSpec) -> MetricReader:
    """Build the metric reader selected by ``spec``.

    Returns
    -------
    MetricReader
        Periodic push reader or Prometheus pull reader.

    Raises
    ------
    InvalidError
        Raised when no reader type is selected.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("no valid metric reader")
    name, value = variant
    if name == "periodic":
        return _periodic_reader(value)
    return _pull_reader(value)


def build_meter_provider(
    spec: MeterProviderSpec,
    resource: Resource,
    *,
    options: MeterProviderOptions | None = None,
) -> ConfiguredMeterProvider:
    """Build the meter provider.

    Reader and view failures are collected and joined; readers that were
    built are shut down before the error is raised.

    Parameters
    ----------
    spec
        Meter provider block.
    resource
        Resource shared by every provider.
    options
        Programmatic settings; their readers and views come first.

    Returns
    -------
    ConfiguredMeterProvider
        Provider with readers and views in declaration order.
    """
    resolved = options or MeterProviderOptions()
    errors: list[BaseException] = []
    readers: list[MetricReader] = []
    for reader_spec in spec.readers:
        try:
            readers.append(build_metric_reader(reader_spec))
        except (ConfigError, OSError, ValueError) as exc:
            errors.extend(iter_leaf_errors(exc))
    views: list[View] = []
    for view_spec in spec.views:
        try:
            views.append(build_view(view_spec))
        except ConfigError as exc:
            errors.append(exc)
    exemplar_filter = resolved.exemplar_filter
    try:
        exemplar_filter = build_exemplar_filter(spec.exemplar_filter) or exemplar_filter
    except ConfigError as exc:
        errors.append(exc)
    if errors:
        for reader in readers:
            reader.shutdown()
        raise_joined(errors)
    _warn_unsupported("meter provider", cardinality_limits=spec.cardinality_limits)
    provider = ConfiguredMeterProvider(
        metric_readers=[*resolved.metric_readers, *readers],
        resource=resource,
        exemplar_filter=exemplar_filter,
        shutdown_on_exit=False,
        views=[*resolved.views, *views],
    )
    _LOGGER.debug("Meter provider built with %d configured readers", len(readers))
    return provider


__all__ = [
    "ConfiguredMeterProvider",
    "MeterProviderOptions",
    "build_exemplar_filter",
    "build_meter_provider",
    "build_metric_reader",
]
