"""Tests for building the composite propagator."""

from __future__ import annotations

import pytest
from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from otelconf.errors import ConfigErrorGroup, InvalidError, errors_matching
from otelconf.model import PropagatorSpec
from otelconf.propagator import build_propagator, propagator_names, resolve_propagator

_W3C_FIELDS = {"traceparent", "tracestate", "baggage"}


def test_composite_list_fields() -> None:
    """Ensure the union of fields covers every listed propagator."""
    propagator = build_propagator(PropagatorSpec(composite_list="tracecontext,baggage,b3"))
    assert propagator.fields == {
        "traceparent",
        "tracestate",
        "baggage",
        "x-b3-traceid",
        "x-b3-spanid",
        "x-b3-sampled",
        "x-b3-flags",
    }


@pytest.mark.parametrize(
    "spec",
    [
        None,
        PropagatorSpec(),
        PropagatorSpec(composite=({},)),
        PropagatorSpec(composite=(None,)),
        PropagatorSpec(composite_list=" , "),
    ],
)
def test_default_propagator(spec: PropagatorSpec | None) -> None:
    """Ensure an absent or empty block yields trace-context plus baggage."""
    assert build_propagator(spec).fields == _W3C_FIELDS


def test_composite_entries_in_order() -> None:
    """Ensure composite entries resolve in declaration order."""
    spec = PropagatorSpec(composite=({"b3multi": None}, {"tracecontext": {}}, {"xray": None}))
    assert propagator_names(spec) == ("b3multi", "tracecontext", "xray")
    fields = build_propagator(spec).fields
    assert "x-b3-flags" in fields
    assert "traceparent" in fields
    assert "X-Amzn-Trace-Id" in fields


def test_composite_list_wins_when_non_empty() -> None:
    """Ensure composite_list is preferred over composite entries."""
    spec = PropagatorSpec(composite=({"b3": None},), composite_list="jaeger")
    assert propagator_names(spec) == ("jaeger",)
    assert build_propagator(spec).fields == {"uber-trace-id"}


def test_blank_composite_list_defers_to_entries() -> None:
    """Ensure a blank composite_list falls back to composite entries."""
    spec = PropagatorSpec(composite=({"ottrace": None},), composite_list=" ")
    assert propagator_names(spec) == ("ottrace",)


def test_none_contributes_nothing() -> None:
    """Ensure the none propagator yields an empty composite."""
    assert build_propagator(PropagatorSpec(composite_list="none")).fields == set()
    assert resolve_propagator("none") is None


def test_unknown_propagators_are_joined() -> None:
    """Ensure every unknown name is reported."""
    with pytest.raises(ConfigErrorGroup) as excinfo:
        build_propagator(PropagatorSpec(composite_list="tracecontext,nope,missing"))
    errors = errors_matching(excinfo.value, InvalidError)
    assert [error.detail for error in errors] == ["nope", "missing"]
    assert all(error.identifier == "unknown propagator" for error in errors)


def test_single_unknown_propagator() -> None:
    """Ensure a single unknown name raises the error directly."""
    with pytest.raises(InvalidError, match="unknown propagator"):
        build_propagator(PropagatorSpec(composite=({"custom": None},)))


def test_b3_injects_multi_headers() -> None:
    """Ensure b3 injects the multi-header form."""
    context = trace.set_span_in_context(
        NonRecordingSpan(
            SpanContext(
                trace_id=0x4BF92F3577B34DA6A3CE929D0E0E4736,
                span_id=0x00F067AA0BA902B7,
                is_remote=False,
                trace_flags=TraceFlags(TraceFlags.SAMPLED),
            )
        )
    )
    carrier: dict[str, str] = {}
    build_propagator(PropagatorSpec(composite_list="b3")).inject(carrier, context=context)
    assert carrier["x-b3-traceid"] == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert carrier["x-b3-spanid"] == "00f067aa0ba902b7"
    assert carrier["x-b3-sampled"] == "1"
