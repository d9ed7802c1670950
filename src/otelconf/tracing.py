"""Build span processors and the tracer provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanLimits, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.sdk.trace.sampling import Sampler

from otelconf.errors import ConfigError, InvalidError, iter_leaf_errors, raise_joined
from otelconf.exporters import build_span_exporter
from otelconf.model import (
    AttributeLimits,
    BatchSpanProcessorSpec,
    SpanLimitsSpec,
    SpanProcessorSpec,
    TracerProviderSpec,
)
from otelconf.sampling import build_sampler

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TracerProviderOptions:
    """Programmatic tracer provider settings merged under the configuration.

    ``span_processors`` are added ahead of the configured processors. The
    configured sampler and limits replace ``sampler`` and ``span_limits``.
    """

    span_processors: Sequence[SpanProcessor] = ()
    sampler: Sampler | None = None
    span_limits: SpanLimits | None = None
    id_generator: IdGenerator | None = None


def positive_or_none(value: int | None) -> int | None:
    """Return ``value`` when positive, otherwise ``None`` for the SDK default.

    Returns
    -------
    int | None
        Positive value or ``None``.
    """
    if value is None or value <= 0:
        return None
    return value


def _batch_span_processor(spec: BatchSpanProcessorSpec) -> SpanProcessor:
    if spec.exporter is None:
        raise InvalidError("no valid span exporter")
    exporter = build_span_exporter(spec.exporter)
    try:
        return BatchSpanProcessor(
            exporter,
            max_queue_size=spec.max_queue_size,
            schedule_delay_millis=positive_or_none(spec.schedule_delay),
            max_export_batch_size=spec.max_export_batch_size,
            export_timeout_millis=positive_or_none(spec.export_timeout),
        )
    except ValueError as exc:
        exporter.shutdown()
        raise InvalidError("batch span processor", str(exc)) from exc


def build_span_processor(spec: SpanProcessorSpec) -> SpanProcessor:
    """Build the span processor selected by ``spec``.

    Returns
    -------
    SpanProcessor
        Batch or simple processor wrapping its exporter.

    Raises
    ------
    InvalidError
        Raised when no processor type is selected or the SDK rejects the
        batch settings.
    """
    variant = spec.variant()
    if variant is None:
        raise InvalidError("unsupported span processor type, must be one of simple or batch")
    name, value = variant
    if name == "batch":
        return _batch_span_processor(value)
    if value.exporter is None:
        raise InvalidError("no valid span exporter")
    return SimpleSpanProcessor(build_span_exporter(value.exporter))


def build_span_processors(specs: Sequence[SpanProcessorSpec]) -> list[SpanProcessor]:
    """Build every span processor, joining sibling failures.

    Processors that were built are shut down when any sibling fails.

    Returns
    -------
    list[SpanProcessor]
        Processors in declaration order.
    """
    processors: list[SpanProcessor] = []
    errors: list[Exception] = []
    for spec in specs:
        try:
            processors.append(build_span_processor(spec))
        except (ConfigError, OSError, ValueError) as exc:
            errors.append(exc)
    if errors:
        for processor in processors:
            processor.shutdown()
        raise_joined(errors)
    return processors


def build_span_limits(
    spec: SpanLimitsSpec | None,
    attribute_limits: AttributeLimits | None,
) -> SpanLimits | None:
    """Combine span limits with the general attribute limits.

    Returns
    -------
    SpanLimits | None
        SDK span limits, or ``None`` when neither block is present.
    """
    if spec is None and attribute_limits is None:
        return None
    spec = spec or SpanLimitsSpec()
    general = attribute_limits or AttributeLimits()
    return SpanLimits(
        max_span_attributes=spec.attribute_count_limit,
        max_span_attribute_length=spec.attribute_value_length_limit,
        max_events=spec.event_count_limit,
        max_links=spec.link_count_limit,
        max_event_attributes=spec.event_attribute_count_limit,
        max_link_attributes=spec.link_attribute_count_limit,
        max_attributes=general.attribute_count_limit,
        max_attribute_length=general.attribute_value_length_limit,
    )


def build_tracer_provider(
    spec: TracerProviderSpec,
    resource: Resource,
    *,
    attribute_limits: AttributeLimits | None = None,
    options: TracerProviderOptions | None = None,
) -> TracerProvider:
    """Build the tracer provider.

    Parameters
    ----------
    spec
        Tracer provider block.
    resource
        Resource shared by every provider.
    attribute_limits
        General attribute limits of the document.
    options
        Programmatic settings; their processors come first.

    Returns
    -------
    TracerProvider
        Provider with processors in declaration order.
    """
    resolved = options or TracerProviderOptions()
    errors: list[BaseException] = []
    sampler = resolved.sampler
    if spec.sampler is not None:
        try:
            sampler = build_sampler(spec.sampler)
        except ConfigError as exc:
            errors.extend(iter_leaf_errors(exc))
    processors: list[SpanProcessor] = []
    try:
        processors = build_span_processors(spec.processors)
    except (ConfigError, ExceptionGroup, OSError, ValueError) as exc:
        errors.extend(iter_leaf_errors(exc))
    if errors:
        for processor in processors:
            processor.shutdown()
        raise_joined(errors)
    limits = build_span_limits(spec.limits, attribute_limits) or resolved.span_limits
    provider = TracerProvider(
        sampler=sampler,
        resource=resource,
        shutdown_on_exit=False,
        id_generator=resolved.id_generator,
        span_limits=limits,
    )
    for processor in [*resolved.span_processors, *processors]:
        provider.add_span_processor(processor)
    _LOGGER.debug("Tracer provider built with %d configured processors", len(processors))
    return provider


__all__ = [
    "TracerProviderOptions",
    "build_span_limits",
    "build_span_processor",
    "build_span_processors",
    "build_tracer_provider",
    "positive_or_none",
]
