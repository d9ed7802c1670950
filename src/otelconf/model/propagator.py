"""Propagator nodes of the configuration model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import ConfigNode, UnionNode, project_union, raw_union_errors


class TextMapPropagatorEntry(UnionNode, frozen=True):
    """One composite propagator entry; unknown names are kept verbatim."""

    union_label = "propagators"
    extra_fields = frozenset({"additional_properties"})

    tracecontext: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    baggage: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    b3: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    b3multi: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    jaeger: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    ottrace: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    additional_properties: dict[str, Any] = {}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TextMapPropagatorEntry:
        """Project a raw entry mapping onto known propagators and extras.

        Returns
        -------
        TextMapPropagatorEntry
            Entry with unknown names moved into ``additional_properties``.
        """
        return project_union(cls, raw, "TextMapPropagator")

    def selected(self) -> list[tuple[str, Any]]:
        return [*super().selected(), *self.additional_properties.items()]


class PropagatorSpec(ConfigNode, frozen=True):
    """Composite propagator given as entries or as a comma separated list."""

    composite: tuple[dict[str, Any] | None, ...] = ()
    composite_list: str | None = None

    def check(self) -> list[ConfigError]:
        return raw_union_errors(TextMapPropagatorEntry, self.composite, "TextMapPropagator")

    def entries(self) -> tuple[TextMapPropagatorEntry, ...]:
        """Return the composite entries as projected union nodes.

        Returns
        -------
        tuple[TextMapPropagatorEntry, ...]
            Entries in declaration order; null entries are skipped.
        """
        return tuple(
            TextMapPropagatorEntry.from_mapping(raw) for raw in self.composite if raw is not None
        )

    def list_names(self) -> tuple[str, ...]:
        """Return the non-blank names of ``composite_list`` with whitespace trimmed.

        Returns
        -------
        tuple[str, ...]
            Names in declaration order.
        """
        if self.composite_list is None:
            return ()
        names = (name.strip() for name in self.composite_list.split(","))
        return tuple(name for name in names if name)


__all__ = ["PropagatorSpec", "TextMapPropagatorEntry"]
