"""Build log record processors and the logger provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from opentelemetry.sdk._logs import LoggerProvider, LogRecordProcessor
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, SimpleLogRecordProcessor
from opentelemetry.sdk.resources import Resource

from otelconf.errors import ConfigError, InvalidError, raise_joined
from otelconf.exporters import build_log_record_exporter
from otelconf.model import BatchLogRecordProcessorSpec, LoggerProviderSpec, LogRecordProcessorSpec
from otelconf.tracing import positive_or_none

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggerProviderOptions:
    """Programmatic logger provider settings.

    ``log_record_processors`` are added ahead of the configured processors.
    """

    log_record_processors: Sequence[LogRecordProcessor] = ()


def _batch_log_record_processor(spec: BatchLogRecordProcessorSpec) -> LogRecordProcessor:
    if spec.exporter is None:
        raise InvalidError("no valid log exporter")
    exporter = build_log_record_exporter(spec.exporter)
    try:
        return BatchLogRecordProcessor(
            exporter,
            schedule_delay_millis=positive_or_none(spec.schedule_delay),
            max_export_batch_size=spec.max_export_batch_size,
            export_timeout_millis=positive_or_none(spec.export_timeout),
            max_queue_size=spec.max_queue_size,
        )
    except ValueError as exc:
        exporter.shutdown()
        raise InvalidError("batch log record processor", str(exc)) from exc


def build_log_record_processor(spec: LogRecordProcessorSpec) -> LogRecordProcessor:
    """Build the log record processor selected by ``spec``.

    Returns
    -------
    LogRecordProcessor
        Batch or simple processor wrapping its exporter.

    Raises
    ------
    InvalidError
        Raised when no processor type is selected or the SDK rejects the
        batch settings.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("unsupported log processor type, must be one of simple or batch")
    name, value = variant
    if name == "batch":
        return _batch_log_record_processor(value)
    if value.exporter is None:
        raise InvalidError("no valid log exporter")
    return SimpleLogRecordProcessor(build_log_record_exporter(value.exporter))


def build_logger_provider(
    spec: LoggerProviderSpec,
    resource: Resource,
    *,
    options: LoggerProviderOptions | None = None,
) -> LoggerProvider:
    """Build the logger provider.

    Processor failures are collected and joined; processors that were built
    are shut down before the error is raised.

    Parameters
    ----------
    spec
        Logger provider block.
    resource
        Resource shared by every provider.
    options
        Programmatic settings; their processors come first.

    Returns
    -------
    LoggerProvider
        Provider with processors in declaration order.
    """
    resolved = options or LoggerProviderOptions()
    processors: list[LogRecordProcessor] = []
    errors: list[Exception] = []
    for processor_spec in spec.processors:
        try:
            processors.append(build_log_record_processor(processor_spec))
        except (ConfigError, OSError, ValueError) as exc:
            errors.append(exc)
    if errors:
        for processor in processors:
            processor.shutdown()
        raise_joined(errors)
    if spec.limits is not None:
        _LOGGER.warning("Log record limits are not supported by the logger provider; ignoring.")
    provider = LoggerProvider(resource=resource, shutdown_on_exit=False)
    for processor in [*resolved.log_record_processors, *processors]:
        provider.add_log_record_processor(processor)
    _LOGGER.debug("Logger provider built with %d configured processors", len(processors))
    return provider


__all__ = ["LoggerProviderOptions", "build_log_record_processor", "build_logger_provider"]
