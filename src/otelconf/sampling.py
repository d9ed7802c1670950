"""Build trace samplers from the sampler block."""

from __future__ import annotations

from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

from otelconf.errors import ConfigError, InvalidError, raise_joined
from otelconf.model import ParentBasedSamplerSpec, SamplerSpec, TraceIdRatioBasedSamplerSpec

_PARENT_BRANCHES = (
    "remote_parent_sampled",
    "remote_parent_not_sampled",
    "local_parent_sampled",
    "local_parent_not_sampled",
)


def _ratio_sampler(spec: TraceIdRatioBasedSamplerSpec) -> Sampler:
    ratio = 1.0 if spec.ratio is None else spec.ratio
    try:
        return TraceIdRatioBased(ratio)
    except ValueError as exc:
        raise InvalidError("trace_id_ratio_based", str(exc)) from exc


def _parent_based_sampler(spec: ParentBasedSamplerSpec) -> Sampler:
    errors: list[ConfigError] = []

    def _nested(nested: SamplerSpec | None) -> Sampler | None:
        if nested is None:
            return None
        try:
            return build_sampler(nested)
        except ConfigError as exc:
            errors.append(exc)
            return None

    root = _nested(spec.root)
    branches = {name: _nested(getattr(spec, name)) for name in _PARENT_BRANCHES}
    raise_joined(errors)
    # Unset branches keep the ParentBased defaults.
    branches = {name: sampler for name, sampler in branches.items() if sampler is not None}
    return ParentBased(ALWAYS_ON if root is None else root, **branches)


def build_sampler(spec: SamplerSpec | None) -> Sampler:
    """Build the sampler selected by ``spec``.

    Parameters
    ----------
    spec
        Sampler block, or ``None`` for the SDK default.

    Returns
    -------
    Sampler
        ``ParentBased(ALWAYS_ON)`` when ``spec`` is ``None``, otherwise the
        selected sampler with nested samplers resolved recursively.

    Raises
    ------
    ConfigError
        Raised when no variant is selected or a nested sampler fails; errors of
        every parent-based branch are joined.
    """
    if spec is None:
        return ParentBased(ALWAYS_ON)
    variant = spec.variant()
    if variant is None:
        raise InvalidError("no valid sampler")
    name, value = variant
    if name == "always_on":
        return ALWAYS_ON
    if name == "always_off":
        return ALWAYS_OFF
    if name == "trace_id_ratio_based":
        return _ratio_sampler(value)
    return _parent_based_sampler(value)


__all__ = ["build_sampler"]
