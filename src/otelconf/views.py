"""Build metric views from view blocks."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from opentelemetry.sdk.metrics._internal import instrument
from opentelemetry.sdk.metrics.view import (
    Aggregation,
    DefaultAggregation,
    DropAggregation,
    ExplicitBucketHistogramAggregation,
    ExponentialBucketHistogramAggregation,
    LastValueAggregation,
    SumAggregation,
    View,
)

from otelconf.errors import InvalidError
from otelconf.model import (
    AggregationSpec,
    Base2ExponentialBucketHistogramAggregationSpec,
    ExplicitBucketHistogramAggregationSpec,
    IncludeExclude,
    ViewSelectorSpec,
    ViewSpec,
)

_LOGGER = logging.getLogger(__name__)

INSTRUMENT_CLASSES: dict[str, type] = {
    "counter": instrument.Counter,
    "gauge": instrument.Gauge,
    "histogram": instrument.Histogram,
    "observable_counter": instrument.ObservableCounter,
    "observable_gauge": instrument.ObservableGauge,
    "observable_up_down_counter": instrument.ObservableUpDownCounter,
    "up_down_counter": instrument.UpDownCounter,
}


class IncludeExcludeFilter:
    """Attribute-key container that answers ``in`` with include/exclude rules.

    The SDK only tests membership on a view's ``attribute_keys``, so this
    stands in for the key set.
    """

    def __init__(self, keys: IncludeExclude) -> None:
        self._keys = keys

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._keys.accepts(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys.included)

    def __repr__(self) -> str:
        return (
            f"IncludeExcludeFilter(included={list(self._keys.included)!r}, "
            f"excluded={list(self._keys.excluded)!r})"
        )


def attribute_filter(keys: IncludeExclude | None) -> IncludeExcludeFilter | None:
    """Return a key filter, or ``None`` when every key is kept.

    Returns
    -------
    IncludeExcludeFilter | None
        Filter for the view's ``attribute_keys``.
    """
    if keys is None or (not keys.included and not keys.excluded):
        return None
    return IncludeExcludeFilter(keys)


def _explicit_histogram(spec: ExplicitBucketHistogramAggregationSpec) -> Aggregation:
    record_min_max = True if spec.record_min_max is None else spec.record_min_max
    if spec.boundaries is None:
        return ExplicitBucketHistogramAggregation(record_min_max=record_min_max)
    return ExplicitBucketHistogramAggregation(
        boundaries=spec.boundaries,
        record_min_max=record_min_max,
    )


def _exponential_histogram(spec: Base2ExponentialBucketHistogramAggregationSpec) -> Aggregation:
    if spec.record_min_max is False:
        _LOGGER.warning("base2_exponential_bucket_histogram always records min and max.")
    kwargs = {
        key: value
        for key, value in (("max_size", spec.max_size), ("max_scale", spec.max_scale))
        if value is not None
    }
    try:
        return ExponentialBucketHistogramAggregation(**kwargs)
    except ValueError as exc:
        raise InvalidError("base2_exponential_bucket_histogram", str(exc)) from exc


def build_aggregation(spec: AggregationSpec | None) -> Aggregation | None:
    """Map an aggregation block to the SDK aggregation.

    Returns
    -------
    Aggregation | None
        SDK aggregation, or ``None`` when no variant is selected.
    """
    variant = None if spec is None else spec.variant()
    if variant is None:
        return None
    name, value = variant
    if name == "drop":
        return DropAggregation()
    if name == "last_value":
        return LastValueAggregation()
    if name == "sum":
        return SumAggregation()
    if name == "explicit_bucket_histogram":
        return _explicit_histogram(value)
    if name == "base2_exponential_bucket_histogram":
        return _exponential_histogram(value)
    return DefaultAggregation()


def _instrument_type(name: str | None) -> type | None:
    if name is None:
        return None
    try:
        return INSTRUMENT_CLASSES[name]
    except KeyError:
        raise InvalidError("instrument_type", f"unknown instrument type {name!r}") from None


def _check_selector(selector: ViewSelectorSpec | None, stream_name: str | None) -> ViewSelectorSpec:
    if selector is None or selector.is_empty:
        raise InvalidError("view selector", "empty selector is not supported")
    pattern = selector.instrument_name
    if stream_name is not None and pattern is not None and ("*" in pattern or "?" in pattern):
        raise InvalidError("view stream name", "selector may match more than one instrument")
    return selector


def build_view(spec: ViewSpec) -> View:
    """Build an SDK view.

    Unset selector fields match every instrument; the unit is a selector only.

    Parameters
    ----------
    spec
        View block.

    Returns
    -------
    View
        Configured view.

    Raises
    ------
    InvalidError
        Raised when the selector is empty or names an unknown instrument type.
    """
    stream = spec.stream
    selector = _check_selector(spec.selector, None if stream is None else stream.name)
    if stream is not None and stream.aggregation_cardinality_limit is not None:
        _LOGGER.warning("View aggregation_cardinality_limit is not supported and is ignored.")
    return View(
        instrument_type=_instrument_type(selector.instrument_type),
        instrument_name=selector.instrument_name,
        instrument_unit=selector.unit,
        meter_name=selector.meter_name,
        meter_version=selector.meter_version,
        meter_schema_url=selector.meter_schema_url,
        name=None if stream is None else stream.name,
        description=None if stream is None else stream.description,
        attribute_keys=None if stream is None else attribute_filter(stream.attribute_keys),
        aggregation=None if stream is None else build_aggregation(stream.aggregation),
    )


__all__ = [
    "INSTRUMENT_CLASSES",
    "IncludeExcludeFilter",
    "attribute_filter",
    "build_aggregation",
    "build_view",
]
