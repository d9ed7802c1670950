"""Tests for metric view construction."""

from __future__ import annotations

import logging

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import HistogramDataPoint, InMemoryMetricReader
from opentelemetry.sdk.metrics.view import (
    DefaultAggregation,
    DropAggregation,
    ExplicitBucketHistogramAggregation,
    ExponentialBucketHistogramAggregation,
    LastValueAggregation,
    SumAggregation,
)

from otelconf.errors import InvalidError
from otelconf.model import (
    AggregationSpec,
    Base2ExponentialBucketHistogramAggregationSpec,
    ExplicitBucketHistogramAggregationSpec,
    IncludeExclude,
    ViewSelectorSpec,
    ViewSpec,
    ViewStreamSpec,
)
from otelconf.views import IncludeExcludeFilter, attribute_filter, build_aggregation, build_view


def _collect_points(view: ViewSpec, record: dict[str, object]) -> list[object]:
    reader = InMemoryMetricReader()
    provider = MeterProvider(
        metric_readers=[reader],
        views=[build_view(view)],
        shutdown_on_exit=False,
    )
    try:
        histogram = provider.get_meter("tests").create_histogram("latency", unit="ms")
        histogram.record(12, attributes=record)
        data = reader.get_metrics_data()
    finally:
        provider.shutdown()
    assert data is not None
    metrics = data.resource_metrics[0].scope_metrics[0].metrics
    return [metric for metric in metrics if metric.name in {"latency", "renamed"}]


def test_include_exclude_filter_membership() -> None:
    """Ensure the filter answers membership with include and exclude rules."""
    keys = IncludeExcludeFilter(IncludeExclude(included=("a", "b"), excluded=("b",)))
    assert "a" in keys
    assert "b" not in keys
    assert "c" not in keys
    assert 1 not in keys
    open_filter = IncludeExcludeFilter(IncludeExclude(excluded=("secret",)))
    assert "anything" in open_filter
    assert "secret" not in open_filter


def test_attribute_filter_without_rules() -> None:
    """Ensure empty key rules keep every attribute."""
    assert attribute_filter(None) is None
    assert attribute_filter(IncludeExclude()) is None


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        (AggregationSpec(default=None), DefaultAggregation),
        (AggregationSpec(drop={}), DropAggregation),
        (AggregationSpec(last_value=None), LastValueAggregation),
        (AggregationSpec(sum=None), SumAggregation),
        (AggregationSpec(explicit_bucket_histogram=None), ExplicitBucketHistogramAggregation),
        (
            AggregationSpec(
                base2_exponential_bucket_histogram=Base2ExponentialBucketHistogramAggregationSpec(
                    max_size=80,
                    max_scale=10,
                )
            ),
            ExponentialBucketHistogramAggregation,
        ),
    ],
)
def test_aggregations(spec: AggregationSpec, expected: type) -> None:
    """Ensure each aggregation variant maps to its SDK aggregation."""
    assert isinstance(build_aggregation(spec), expected)


def test_missing_aggregation() -> None:
    """Ensure an unset aggregation leaves the SDK default."""
    assert build_aggregation(None) is None
    assert build_aggregation(AggregationSpec()) is None


def test_exponential_min_max_warning(caplog: pytest.LogCaptureFixture) -> None:
    """Ensure disabling min/max on exponential histograms is reported."""
    spec = AggregationSpec(
        base2_exponential_bucket_histogram=Base2ExponentialBucketHistogramAggregationSpec(
            record_min_max=False
        )
    )
    with caplog.at_level(logging.WARNING, logger="otelconf.views"):
        build_aggregation(spec)
    assert "always records min and max" in caplog.text


@pytest.mark.parametrize("selector", [None, ViewSelectorSpec()])
def test_empty_selector_is_invalid(selector: ViewSelectorSpec | None) -> None:
    """Ensure a view must select something."""
    with pytest.raises(InvalidError, match="view selector"):
        build_view(ViewSpec(selector=selector))


def test_wildcard_selector_cannot_rename() -> None:
    """Ensure a stream name needs a selector matching a single instrument."""
    spec = ViewSpec(
        selector=ViewSelectorSpec(instrument_name="http.*"),
        stream=ViewStreamSpec(name="renamed"),
    )
    with pytest.raises(InvalidError, match="view stream name"):
        build_view(spec)


def test_view_renames_and_filters_attributes() -> None:
    """Ensure stream overrides apply to the selected instrument."""
    spec = ViewSpec(
        selector=ViewSelectorSpec(instrument_name="latency", instrument_type="histogram"),
        stream=ViewStreamSpec(
            name="renamed",
            description="filtered latency",
            attribute_keys=IncludeExclude(included=("route",)),
            aggregation=AggregationSpec(
                explicit_bucket_histogram=ExplicitBucketHistogramAggregationSpec(
                    boundaries=(10.0, 100.0),
                    record_min_max=False,
                )
            ),
        ),
    )
    metrics = _collect_points(spec, {"route": "/home", "user": "u-1"})
    assert [metric.name for metric in metrics] == ["renamed"]
    point = metrics[0].data.data_points[0]
    assert isinstance(point, HistogramDataPoint)
    assert dict(point.attributes) == {"route": "/home"}
    assert tuple(point.explicit_bounds) == (10.0, 100.0)


def test_unit_is_a_selector() -> None:
    """Ensure a unit mismatch leaves the instrument untouched."""
    spec = ViewSpec(
        selector=ViewSelectorSpec(instrument_name="latency", unit="s"),
        stream=ViewStreamSpec(name="renamed"),
    )
    metrics = _collect_points(spec, {"route": "/home"})
    assert [metric.name for metric in metrics] == ["latency"]
