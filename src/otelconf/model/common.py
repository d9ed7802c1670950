"""Value types shared across configuration nodes."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import unquote

import msgspec

from otelconf.errors import ConfigError, InvalidError, RequiredError
from otelconf.model.base import (
    ConfigNode,
    check_enum,
    check_non_negative,
    check_required,
)

ATTRIBUTE_TYPES = (
    "string",
    "bool",
    "int",
    "double",
    "string_array",
    "bool_array",
    "int_array",
    "double_array",
)

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _is_integral_float(value: object) -> bool:
    return isinstance(value, float) and value.is_integer()


class NameStringValuePair(ConfigNode, frozen=True):
    """Name/value pair, used for exporter headers."""

    name: str | None = None
    value: str | None | msgspec.UnsetType = msgspec.UNSET

    def check(self) -> list[ConfigError]:
        errors = check_required("NameStringValuePair", "name", self.name)
        # value may be null but the key must be present.
        if self.value is msgspec.UNSET:
            errors.append(RequiredError("NameStringValuePair", "value"))
        return errors


class IncludeExclude(ConfigNode, frozen=True):
    """Include/exclude filter over attribute keys.

    Excluded keys always fail. An empty ``included`` list accepts every key
    that is not excluded.
    """

    included: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()

    def check(self) -> list[ConfigError]:
        excluded = set(self.excluded)
        return [
            InvalidError("attribute cannot be in both include and exclude list", key)
            for key in dict.fromkeys(self.included)
            if key in excluded
        ]

    def accepts(self, key: str) -> bool:
        """Return whether ``key`` passes the filter.

        Returns
        -------
        bool
            ``True`` when the key is kept.
        """
        if key in self.excluded:
            return False
        if not self.included:
            return True
        return key in self.included


class AttributeNameValue(ConfigNode, frozen=True):
    """Typed attribute entry.

    Values declared as ``int`` or ``int_array`` are re-cast from the floating
    representation some JSON decoders produce.
    """

    name: str | None = None
    value: Any = msgspec.UNSET
    type: str | None = None

    def __post_init__(self) -> None:
        if self.type == "int" and _is_integral_float(self.value):
            msgspec.structs.force_setattr(self, "value", int(self.value))
        elif self.type == "int_array" and isinstance(self.value, (list, tuple)):
            coerced = [int(item) if _is_integral_float(item) else item for item in self.value]
            msgspec.structs.force_setattr(self, "value", coerced)

    def check(self) -> list[ConfigError]:
        errors = [
            *check_required("AttributeNameValue", "name", self.name),
            *check_required("AttributeNameValue", "value", self.value),
            *check_enum("attribute type", self.type, ATTRIBUTE_TYPES),
        ]
        if errors:
            return errors
        if not _value_matches_type(self.value, self.type):
            detail = f"value of {self.name!r} is not a valid {self.type or 'string'}"
            return [InvalidError("attribute value", detail)]
        return []


def _scalar_matches(value: object, type_name: str) -> bool:
    if type_name == "bool":
        return isinstance(value, bool)
    if type_name == "int":
        return isinstance(value, int) and not isinstance(value, bool)
    if type_name == "double":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)


def _value_matches_type(value: object, type_name: str | None) -> bool:
    if type_name is None:
        return not isinstance(value, (list, tuple, dict))
    if type_name.endswith("_array"):
        if not isinstance(value, (list, tuple)):
            return False
        item_type = type_name.removesuffix("_array")
        return all(_scalar_matches(item, item_type) for item in value)
    return _scalar_matches(value, type_name)


class AttributeLimits(ConfigNode, frozen=True):
    """General attribute limits applied to every signal."""

    attribute_value_length_limit: int | None = None
    attribute_count_limit: int | None = None

    def check(self) -> list[ConfigError]:
        return [
            *check_non_negative("attribute_value_length_limit", self.attribute_value_length_limit),
            *check_non_negative("attribute_count_limit", self.attribute_count_limit),
        ]


def parse_key_value_list(raw: str, identifier: str) -> dict[str, str]:
    """Parse a W3C-baggage style ``key=value,key2=value2`` list.

    Values are percent-decoded and member properties after ``;`` are dropped.

    Parameters
    ----------
    raw
        Text to parse.
    identifier
        Identifier reported when the text is malformed.

    Returns
    -------
    dict[str, str]
        Parsed members in encounter order.

    Raises
    ------
    InvalidError
        Raised when a member is malformed.
    """
    members: dict[str, str] = {}
    for member in raw.split(","):
        text = member.strip()
        if not text:
            continue
        key, sep, value = text.partition("=")
        key = key.strip()
        if not sep or _TOKEN_RE.match(key) is None:
            raise InvalidError(identifier, f"malformed member {text!r}")
        value = value.split(";", 1)[0].strip()
        members[key] = unquote(value)
    return members


__all__ = [
    "ATTRIBUTE_TYPES",
    "AttributeLimits",
    "AttributeNameValue",
    "IncludeExclude",
    "NameStringValuePair",
    "parse_key_value_list",
]
