"""Build the composite text-map propagator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.jaeger import JaegerPropagator
from opentelemetry.propagators.ot_trace import OTTracePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from otelconf.errors import ConfigError, InvalidError, raise_joined
from otelconf.model import PropagatorSpec
from otelconf.plugins import PROPAGATOR_GROUP, load_plugin

_LOGGER = logging.getLogger(__name__)

_NONE = "none"


class B3MultiHeaderPropagator(B3MultiFormat):
    """B3 multi-header propagator that also advertises the debug flag header."""

    @property
    def fields(self) -> set[str]:
        return {*super().fields, self.FLAGS_KEY}


_BUILTIN_PROPAGATORS: Mapping[str, Callable[[], TextMapPropagator]] = {
    "tracecontext": TraceContextTextMapPropagator,
    "baggage": W3CBaggagePropagator,
    "b3": B3MultiHeaderPropagator,
    "b3multi": B3MultiHeaderPropagator,
    "jaeger": JaegerPropagator,
    "ottrace": OTTracePropagator,
    "xray": AwsXRayPropagator,
}


def default_propagator() -> TextMapPropagator:
    """Return the W3C trace-context plus baggage propagator.

    Returns
    -------
    TextMapPropagator
        Composite of trace-context and baggage.
    """
    return CompositePropagator([TraceContextTextMapPropagator(), W3CBaggagePropagator()])


def propagator_names(spec: PropagatorSpec | None) -> tuple[str, ...]:
    """Return the propagator names selected by the propagator block.

    ``composite_list`` is used when it is non-empty or when ``composite`` has
    no entries; otherwise the names of the ``composite`` entries are used.

    Returns
    -------
    tuple[str, ...]
        Names in declaration order.
    """
    if spec is None:
        return ()
    entries = spec.entries()
    if spec.composite_list is not None and (spec.composite_list.strip() or not entries):
        return spec.list_names()
    return tuple(variant[0] for entry in entries if (variant := entry.variant()) is not None)


def resolve_propagator(name: str) -> TextMapPropagator | None:
    """Resolve a single propagator by name.

    Built-in names take precedence over the ``opentelemetry_propagator``
    entry-point group.

    Returns
    -------
    TextMapPropagator | None
        The propagator, or ``None`` for ``"none"``.

    Raises
    ------
    InvalidError
        Raised when the name is neither built in nor installed.
    """
    if name == _NONE:
        return None
    factory = _BUILTIN_PROPAGATORS.get(name)
    if factory is not None:
        return factory()
    try:
        plugin = load_plugin(PROPAGATOR_GROUP, name)
    except (AttributeError, ImportError, RuntimeError, TypeError) as exc:
        raise InvalidError("unknown propagator", name) from exc
    if not isinstance(plugin, TextMapPropagator):
        raise InvalidError("unknown propagator", name)
    return plugin


def build_propagator(spec: PropagatorSpec | None) -> TextMapPropagator:
    """Build the composite propagator.

    Parameters
    ----------
    spec
        Propagator block, or ``None`` when the document has none.

    Returns
    -------
    TextMapPropagator
        Composite whose fields are those of every selected propagator, or the
        trace-context plus baggage default when nothing is selected.

    Raises
    ------
    ConfigError
        Raised when any name is unknown; every unknown name is reported.
    """
    names = propagator_names(spec)
    if not names:
        return default_propagator()
    propagators: list[TextMapPropagator] = []
    errors: list[ConfigError] = []
    for name in names:
        try:
            propagator = resolve_propagator(name)
        except InvalidError as exc:
            errors.append(exc)
            continue
        if propagator is not None:
            propagators.append(propagator)
    raise_joined(errors)
    _LOGGER.debug("Configured propagators: %s", ", ".join(names))
    return CompositePropagator(propagators)


__all__ = [
    "B3MultiHeaderPropagator",
    "build_propagator",
    "default_propagator",
    "propagator_names",
    "resolve_propagator",
]
