"""Meter provider nodes of the configuration model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import (
    ConfigNode,
    UnionNode,
    check_enum,
    check_non_negative,
    check_positive,
    check_required,
    project_union,
    raw_union_errors,
)
from otelconf.model.common import IncludeExclude
from otelconf.model.exporters import PullMetricExporterSpec, PushMetricExporterSpec

INSTRUMENT_TYPES = (
    "counter",
    "gauge",
    "histogram",
    "observable_counter",
    "observable_gauge",
    "observable_up_down_counter",
    "up_down_counter",
)
EXEMPLAR_FILTERS = ("trace_based", "always_on", "always_off")


class CardinalityLimitsSpec(ConfigNode, frozen=True):
    """Per-instrument-kind cardinality limits."""

    default: int | None = None
    counter: int | None = None
    gauge: int | None = None
    histogram: int | None = None
    observable_counter: int | None = None
    observable_gauge: int | None = None
    observable_up_down_counter: int | None = None
    up_down_counter: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            error
            for name in self.__struct_fields__
            for error in check_positive(name, getattr(self, name))
        ]


class MetricProducerSpec(UnionNode, frozen=True):
    """Exactly one metric producer; unknown producer keys are kept verbatim."""

    union_label = "metric producers"
    extra_fields = frozenset({"additional_properties"})

    opencensus: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    prometheus: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    additional_properties: dict[str, Any] = {}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MetricProducerSpec:
        """Project a raw producer mapping onto known variants and extras.

        Returns
        -------
        MetricProducerSpec
            Producer with unknown keys moved into ``additional_properties``.
        """
        return project_union(cls, raw, "MetricProducer")

    def selected(self) -> list[tuple[str, Any]]:
        return [*super().selected(), *self.additional_properties.items()]


class PeriodicMetricReaderSpec(ConfigNode, frozen=True):
    """Periodic push reader."""

    exporter: PushMetricExporterSpec | None = None
    interval: int | None = None
    timeout: int | None = None
    producers: tuple[dict[str, Any] | None, ...] = ()
    cardinality_limits: CardinalityLimitsSpec | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_required("PeriodicMetricReader", "exporter", self.exporter),
            *check_non_negative("interval", self.interval),
            *check_non_negative("timeout", self.timeout),
            *raw_union_errors(MetricProducerSpec, self.producers, "MetricProducer"),
        ]

    def producer_entries(self) -> tuple[MetricProducerSpec, ...]:
        """Return the configured producers as projected union nodes.

        Returns
        -------
        tuple[MetricProducerSpec, ...]
            Producers in declaration order.
        """
        return tuple(
            MetricProducerSpec.from_mapping(entry) for entry in self.producers if entry is not None
        )


class PullMetricReaderSpec(ConfigNode, frozen=True):
    """Pull reader served by the exporter."""

    exporter: PullMetricExporterSpec | None = None
    producers: tuple[dict[str, Any] | None, ...] = ()
    cardinality_limits: CardinalityLimitsSpec | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_required("PullMetricReader", "exporter", self.exporter),
            *raw_union_errors(MetricProducerSpec, self.producers, "MetricProducer"),
        ]

    def producer_entries(self) -> tuple[MetricProducerSpec, ...]:
        """Return the configured producers as projected union nodes.

        Returns
        -------
        tuple[MetricProducerSpec, ...]
            Producers in declaration order.
        """
        return tuple(
            MetricProducerSpec.from_mapping(entry) for entry in self.producers if entry is not None
        )


class MetricReaderSpec(UnionNode, frozen=True):
    """Exactly one of a periodic or pull reader."""

    union_label = "metric reader type"

    periodic: PeriodicMetricReaderSpec | None | msgspec.UnsetType = msgspec.UNSET
    pull: PullMetricReaderSpec | None | msgspec.UnsetType = msgspec.UNSET


class ExplicitBucketHistogramAggregationSpec(ConfigNode, frozen=True):
    """Explicit bucket histogram aggregation."""

    boundaries: tuple[float, ...] | None = None
    record_min_max: bool | None = None


class Base2ExponentialBucketHistogramAggregationSpec(ConfigNode, frozen=True):
    """Base-2 exponential bucket histogram aggregation."""

    max_scale: int | None = None
    max_size: int | None = None
    record_min_max: bool | None = None

    def check(self) -> list[ConfigError]:
        return check_positive("max_size", self.max_size)


class AggregationSpec(UnionNode, frozen=True):
    """Exactly one stream aggregation."""

    union_label = "aggregations"

    default: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    drop: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    last_value: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    sum: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    explicit_bucket_histogram: ExplicitBucketHistogramAggregationSpec | None | msgspec.UnsetType = (
        msgspec.UNSET
    )
    base2_exponential_bucket_histogram: (
        Base2ExponentialBucketHistogramAggregationSpec | None | msgspec.UnsetType
    ) = msgspec.UNSET


class ViewSelectorSpec(ConfigNode, frozen=True):
    """Instrument selection criteria; unset fields match anything."""

    instrument_name: str | None = None
    instrument_type: str | None = None
    unit: str | None = None
    meter_name: str | None = None
    meter_version: str | None = None
    meter_schema_url: str | None = None

    def check(self) -> list[ConfigError]:
        return check_enum("instrument_type", self.instrument_type, INSTRUMENT_TYPES)

    @property
    def is_empty(self) -> bool:
        """Return whether no selection criteria are set."""
        return all(getattr(self, name) is None for name in self.__struct_fields__)


class ViewStreamSpec(ConfigNode, frozen=True):
    """Stream overrides applied to selected instruments."""

    name: str | None = None
    description: str | None = None
    aggregation: AggregationSpec | None = None
    aggregation_cardinality_limit: int | None = None
    attribute_keys: IncludeExclude | None = None

    def check(self) -> list[ConfigError]:
        return check_positive("aggregation_cardinality_limit", self.aggregation_cardinality_limit)


class ViewSpec(ConfigNode, frozen=True):
    """Selector plus stream override."""

    selector: ViewSelectorSpec | None = None
    stream: ViewStreamSpec | None = None


class MeterProviderSpec(ConfigNode, frozen=True):
    """Meter provider configuration."""

    readers: tuple[MetricReaderSpec, ...] = ()
    views: tuple[ViewSpec, ...] = ()
    exemplar_filter: str | None = None
    cardinality_limits: CardinalityLimitsSpec | None = None

    def check(self) -> list[ConfigError]:
        return check_enum("exemplar_filter", self.exemplar_filter, EXEMPLAR_FILTERS)


__all__ = [
    "EXEMPLAR_FILTERS",
    "INSTRUMENT_TYPES",
    "AggregationSpec",
    "Base2ExponentialBucketHistogramAggregationSpec",
    "CardinalityLimitsSpec",
    "ExplicitBucketHistogramAggregationSpec",
    "MeterProviderSpec",
    "MetricProducerSpec",
    "MetricReaderSpec",
    "PeriodicMetricReaderSpec",
    "PullMetricReaderSpec",
    "ViewSelectorSpec",
    "ViewSpec",
    "ViewStreamSpec",
]
