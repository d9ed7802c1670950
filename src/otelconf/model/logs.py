"""Logger provider nodes of the configuration model."""

from __future__ import annotations

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import (
    ConfigNode,
    UnionNode,
    check_non_negative,
    check_positive,
    check_required,
)
from otelconf.model.exporters import LogRecordExporterSpec


class LogRecordLimitsSpec(ConfigNode, frozen=True):
    """Log record attribute limits."""

    attribute_value_length_limit: int | None = None
    attribute_count_limit: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_non_negative("attribute_value_length_limit", self.attribute_value_length_limit),
            *check_non_negative("attribute_count_limit", self.attribute_count_limit),
        ]


class SimpleLogRecordProcessorSpec(ConfigNode, frozen=True):
    """Synchronous log record processor."""

    exporter: LogRecordExporterSpec | None = None

    def check(self) -> list[ConfigError]:
        return check_required("SimpleLogRecordProcessor", "exporter", self.exporter)


class BatchLogRecordProcessorSpec(ConfigNode, frozen=True):
    """Batching log record processor."""

    exporter: LogRecordExporterSpec | None = None
    schedule_delay: int | None = None
    export_timeout: int | None = None
    max_queue_size: int | None = None
    max_export_batch_size: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_required("BatchLogRecordProcessor", "exporter", self.exporter),
            *check_non_negative("schedule_delay", self.schedule_delay),
            *check_non_negative("export_timeout", self.export_timeout),
            *check_positive("max_queue_size", self.max_queue_size),
            *check_positive("max_export_batch_size", self.max_export_batch_size),
        ]


class LogRecordProcessorSpec(UnionNode, frozen=True):
    """Exactly one of a simple or batch log record processor."""

    union_label = "log record processor type"

    batch: BatchLogRecordProcessorSpec | None | msgspec.UnsetType = msgspec.UNSET
    simple: SimpleLogRecordProcessorSpec | None | msgspec.UnsetType = msgspec.UNSET


class LoggerProviderSpec(ConfigNode, frozen=True):
    """Logger provider configuration."""

    processors: tuple[LogRecordProcessorSpec, ...] = ()
    limits: LogRecordLimitsSpec | None = None


__all__ = [
    "BatchLogRecordProcessorSpec",
    "LogRecordLimitsSpec",
    "LogRecordProcessorSpec",
    "LoggerProviderSpec",
    "SimpleLogRecordProcessorSpec",
]
