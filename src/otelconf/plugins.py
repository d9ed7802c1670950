"""Entry-point lookup for pluggable OpenTelemetry components."""

from __future__ import annotations

import logging
from importlib.metadata import EntryPoint, entry_points

_LOGGER = logging.getLogger(__name__)

PROPAGATOR_GROUP = "opentelemetry_propagator"
RESOURCE_DETECTOR_GROUP = "opentelemetry_resource_detector"


def entry_points_for(group: str) -> list[EntryPoint]:
    """Return the installed entry points of ``group``.

    Returns
    -------
    list[EntryPoint]
        Entry points in discovery order.
    """
    return list(entry_points(group=group))


def load_plugin(group: str, name: str) -> object | None:
    """Load and instantiate the entry point ``name`` of ``group``.

    Classes are instantiated without arguments; other objects are returned
    as loaded.

    Parameters
    ----------
    group
        Entry-point group.
    name
        Entry-point name.

    Returns
    -------
    object | None
        The plugin instance, or ``None`` when no entry point has that name.
    """
    for entry in entry_points_for(group):
        if entry.name != name:
            continue
        plugin = entry.load()
        _LOGGER.debug("Loaded %s entry point %s from %s", group, name, entry.value)
        return plugin() if isinstance(plugin, type) else plugin
    return None


__all__ = ["PROPAGATOR_GROUP", "RESOURCE_DETECTOR_GROUP", "entry_points_for", "load_plugin"]
