"""Resource nodes of the configuration model."""

from __future__ import annotations

from typing import Any

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import ConfigNode, UnionNode
from otelconf.model.common import AttributeNameValue, IncludeExclude, parse_key_value_list


class ResourceDetectorSpec(UnionNode, frozen=True):
    """Exactly one resource detector."""

    union_label = "resource detectors"

    container: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    host: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    process: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET
    service: dict[str, Any] | None | msgspec.UnsetType = msgspec.UNSET


class ResourceDetectionSpec(ConfigNode, frozen=True):
    """Resource detectors and a filter over the attributes they detect."""

    attributes: IncludeExclude | None = None
    detectors: tuple[ResourceDetectorSpec, ...] = ()


class ResourceSpec(ConfigNode, frozen=True):
    """Resource attributes and schema URL."""

    attributes: tuple[AttributeNameValue, ...] = ()
    attributes_list: str | None = None
    schema_url: str | None = None
    detection: ResourceDetectionSpec | None = msgspec.field(
        default=None,
        name="detection/development",
    )

    def check(self) -> list[ConfigError]:
        if self.attributes_list is None:
            return []
        try:
            parse_key_value_list(self.attributes_list, "invalid attributes_list")
        except ConfigError as exc:
            return [exc]
        return []


__all__ = [
    "ResourceDetectionSpec",
    "ResourceDetectorSpec",
    "ResourceSpec",
]
