"""Tracer provider nodes of the configuration model."""

from __future__ import annotations

from typing import Any

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import (
    ConfigNode,
    UnionNode,
    check_non_negative,
    check_positive,
    check_required,
)
from otelconf.model.exporters import SpanExporterSpec


class SpanLimitsSpec(ConfigNode, frozen=True):
    """Span attribute, event and link limits."""

    attribute_value_length_limit: int | None = None
    attribute_count_limit: int | None = None
    event_count_limit: int | None = None
    link_count_limit: int | None = None
    event_attribute_count_limit: int | None = None
    link_attribute_count_limit: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            error
            for name in self.__struct_fields__
            for error in check_non_negative(name, getattr(self, name))
        ]


class TraceIdRatioBasedSamplerSpec(ConfigNode, frozen=True):
    """Trace ID ratio sampler; a missing ratio samples everything."""

    ratio: float | None = None


class ParentBasedSamplerSpec(ConfigNode, frozen=True):
    """Parent-based sampler with a root sampler and four parent-state branches."""

    root: SamplerSpec | None = None
    remote_parent_sampled: SamplerSpec | None = None
    remote_parent_not_sampled: SamplerSpec | None = None
    local_parent_sampled: SamplerSpec | None = None
    local_parent_not_sampled: SamplerSpec | None = None


class SamplerSpec(UnionNode, frozen=True):
    """Exactly one sampler variant."""

    union_label = "samplers"

    always_on: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    always_off: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    trace_id_ratio_based: TraceIdRatioBasedSamplerSpec | None | msgspec.UnsetType = msgspec.UNSET
    parent_based: ParentBasedSamplerSpec | None | msgspec.UnsetType = msgspec.UNSET


class SimpleSpanProcessorSpec(ConfigNode, frozen=True):
    """Synchronous span processor."""

    exporter: SpanExporterSpec | None = None

    def check(self) -> list[ConfigError]:
        return check_required("SimpleSpanProcessor", "exporter", self.exporter)


class BatchSpanProcessorSpec(ConfigNode, frozen=True):
    """Batching span processor; absent bounds leave the SDK defaults."""

    exporter: SpanExporterSpec | None = None
    schedule_delay: int | None = None
    export_timeout: int | None = None
    max_queue_size: int | None = None
    max_export_batch_size: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_required("BatchSpanProcessor", "exporter", self.exporter),
            *check_non_negative("schedule_delay", self.schedule_delay),
            *check_non_negative("export_timeout", self.export_timeout),
            *check_positive("max_queue_size", self.max_queue_size),
            *check_positive("max_export_batch_size", self.max_export_batch_size),
        ]


class SpanProcessorSpec(UnionNode, frozen=True):
    """Exactly one of a simple or batch span processor."""

    union_label = "span processor type"

    batch: BatchSpanProcessorSpec | None | msgspec.UnsetType = msgspec.UNSET
    simple: SimpleSpanProcessorSpec | None | msgspec.UnsetType = msgspec.UNSET


class TracerProviderSpec(ConfigNode, frozen=True):
    """Tracer provider configuration."""

    processors: tuple[SpanProcessorSpec, ...] = ()
    limits: SpanLimitsSpec | None = None
    sampler: SamplerSpec | None = None


__all__ = [
    "BatchSpanProcessorSpec",
    "ParentBasedSamplerSpec",
    "SamplerSpec",
    "SimpleSpanProcessorSpec",
    "SpanLimitsSpec",
    "SpanProcessorSpec",
    "TraceIdRatioBasedSamplerSpec",
    "TracerProviderSpec",
]
