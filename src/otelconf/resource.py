"""Build the SDK resource from the resource block."""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path

from opentelemetry.sdk.resources import (
    SERVICE_INSTANCE_ID,
    SERVICE_NAME,
    Resource,
    ResourceDetector,
    get_aggregated_resources,
)

from otelconf.core_types import AttributeValue
from otelconf.env_utils import env_value
from otelconf.errors import InvalidError
from otelconf.model import AttributeNameValue, IncludeExclude, ResourceDetectionSpec, ResourceSpec
from otelconf.model.common import parse_key_value_list
from otelconf.plugins import RESOURCE_DETECTOR_GROUP, load_plugin

_LOGGER = logging.getLogger(__name__)

_DETECTOR_ENTRY_POINTS: Mapping[str, tuple[str, ...]] = {
    "container": ("container",),
    "host": ("host",),
    "process": ("process",),
}


class ServiceResourceDetector(ResourceDetector):
    """Detect ``service.name`` and a per-process ``service.instance.id``."""

    def detect(self) -> Resource:
        name = env_value("OTEL_SERVICE_NAME")
        if name is None:
            name = f"unknown_service:{Path(sys.argv[0]).name if sys.argv else 'python'}"
        return Resource({SERVICE_NAME: name, SERVICE_INSTANCE_ID: str(uuid.uuid4())})


def _scalar(value: object, type_name: str) -> AttributeValue:
    if type_name == "bool":
        return bool(value)
    if type_name == "int":
        return int(value)  # type: ignore[call-overload]
    if type_name == "double":
        return float(value)  # type: ignore[arg-type]
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_attribute(entry: AttributeNameValue) -> AttributeValue:
    """Convert a typed attribute entry to an SDK attribute value.

    A missing ``type`` means ``string``; arrays become tuples.

    Parameters
    ----------
    entry
        Validated attribute entry.

    Returns
    -------
    AttributeValue
        Attribute value accepted by the SDK.

    Raises
    ------
    InvalidError
        Raised when the value cannot be converted to the declared type.
    """
    type_name = entry.type or "string"
    try:
        if type_name.endswith("_array"):
            item_type = type_name.removesuffix("_array")
            items = tuple(_scalar(item, item_type) for item in entry.value)
            return items  # type: ignore[return-value]
        return _scalar(entry.value, type_name)
    except (TypeError, ValueError) as exc:
        detail = f"value of {entry.name!r} is not a valid {type_name}"
        raise InvalidError("attribute value", detail) from exc


def _detectors(names: Iterable[str]) -> list[ResourceDetector]:
    detectors: list[ResourceDetector] = []
    for name in names:
        if name == "service":
            detectors.append(ServiceResourceDetector())
            continue
        for entry_name in _DETECTOR_ENTRY_POINTS.get(name, (name,)):
            try:
                detector = load_plugin(RESOURCE_DETECTOR_GROUP, entry_name)
            except (AttributeError, ImportError, RuntimeError, TypeError) as exc:
                _LOGGER.warning("Failed to load resource detector %s: %s", entry_name, exc)
                continue
            if detector is None:
                _LOGGER.warning("Resource detector %s is not installed.", entry_name)
            elif isinstance(detector, ResourceDetector):
                detectors.append(detector)
            else:
                _LOGGER.warning("Resource detector %s has incompatible type.", entry_name)
    return detectors


def _filtered(
    attributes: Mapping[str, AttributeValue],
    keys: IncludeExclude | None,
) -> dict[str, AttributeValue]:
    if keys is None:
        return dict(attributes)
    return {key: value for key, value in attributes.items() if keys.accepts(key)}


def detect_attributes(detection: ResourceDetectionSpec | None) -> dict[str, AttributeValue]:
    """Run the configured detectors and filter their attributes.

    Returns
    -------
    dict[str, AttributeValue]
        Detected attributes that pass the include/exclude filter.
    """
    if detection is None or not detection.detectors:
        return {}
    names = [variant[0] for spec in detection.detectors if (variant := spec.variant())]
    detectors = _detectors(names)
    if not detectors:
        return {}
    detected = get_aggregated_resources(detectors, initial_resource=Resource.get_empty())
    return _filtered(detected.attributes, detection.attributes)


def build_resource(spec: ResourceSpec | None) -> Resource:
    """Build the SDK resource.

    Detected attributes have the lowest precedence, then ``attributes_list``,
    then the typed ``attributes`` entries.

    Parameters
    ----------
    spec
        Resource block, or ``None`` when the document has none.

    Returns
    -------
    Resource
        Resource carrying the configured attributes and schema URL, or the
        SDK default resource when ``spec`` is ``None``.
    """
    if spec is None:
        return Resource.create()
    attributes = detect_attributes(spec.detection)
    if spec.attributes_list:
        attributes.update(parse_key_value_list(spec.attributes_list, "invalid attributes_list"))
    for entry in spec.attributes:
        if entry.name is not None:
            attributes[entry.name] = coerce_attribute(entry)
    _LOGGER.debug("Resource built with %d attributes", len(attributes))
    return Resource.create(attributes, schema_url=spec.schema_url)


__all__ = [
    "ServiceResourceDetector",
    "build_resource",
    "coerce_attribute",
    "detect_attributes",
]
