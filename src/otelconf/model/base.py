"""Base struct and validation helpers for the configuration model."""

from __future__ import annotations

import functools
import typing
from collections.abc import Iterable, Mapping
from typing import Any

import msgspec

from otelconf.errors import (
    BoundError,
    ConfigError,
    InvalidError,
    RequiredError,
    UnmarshalError,
    raise_joined,
)
from otelconf.serde import StructBaseCompat, validation_error_payload


class ConfigNode(StructBaseCompat, frozen=True):
    """Base struct for configuration model nodes.

    ``check`` validates the node's own fields; ``validate`` runs ``check`` and
    then recurses into every child node so that failures from sibling nodes are
    collected rather than short-circuited.
    """

    def check(self) -> list[ConfigError]:
        """Return validation errors for this node's own fields.

        Returns
        -------
        list[ConfigError]
            Errors found on this node, excluding children.
        """
        return []

    def validate(self) -> list[ConfigError]:
        """Return validation errors for this node and all of its children.

        Returns
        -------
        list[ConfigError]
            Errors in document order.
        """
        errors = self.check()
        for name in self.__struct_fields__:
            errors.extend(child_errors(getattr(self, name)))
        return errors


class UnionNode(ConfigNode, frozen=True):
    """Configuration node holding at most one of several variant keys.

    Variant fields default to ``msgspec.UNSET`` so that a key present with a
    null value (``console:``) is distinguishable from an absent key.
    """

    union_label = "variants"
    extra_fields = frozenset()

    def selected(self) -> list[tuple[str, Any]]:
        """Return the ``(field, value)`` pairs of every present variant.

        Returns
        -------
        list[tuple[str, Any]]
            Present variants in declaration order.
        """
        return [
            (name, getattr(self, name))
            for name in self.__struct_fields__
            if name not in self.extra_fields and getattr(self, name) is not msgspec.UNSET
        ]

    def variant(self) -> tuple[str, Any] | None:
        """Return the single selected variant with null values defaulted.

        Returns
        -------
        tuple[str, Any] | None
            The variant field name and its value, or ``None`` when no variant
            is present.
        """
        selected = self.selected()
        if not selected:
            return None
        name, value = selected[0]
        if value is None:
            value = default_variant(type(self), name)
        return name, value

    def check(self) -> list[ConfigError]:
        if len(self.selected()) > 1:
            return [InvalidError(f"must not specify multiple {self.union_label}")]
        return []

    def validate(self) -> list[ConfigError]:
        errors = self.check()
        for name, value in self.selected():
            if value is None:
                value = default_variant(type(self), name)
            errors.extend(child_errors(value))
        return errors


@functools.cache
def _variant_type(node_type: type[UnionNode], name: str) -> type[ConfigNode] | None:
    hints = typing.get_type_hints(node_type)
    for arg in typing.get_args(hints.get(name)):
        if isinstance(arg, type) and issubclass(arg, ConfigNode):
            return arg
    return None


def default_variant(node_type: type[UnionNode], name: str) -> Any:
    """Return the default value of a variant written as a bare key.

    Returns
    -------
    Any
        A default-constructed node for struct variants, or an empty mapping
        for free-form variants.
    """
    variant_type = _variant_type(node_type, name)
    if variant_type is None:
        return {}
    return variant_type()


def project_union[TNode: UnionNode](
    node_type: type[TNode],
    raw: Mapping[str, Any],
    owner: str,
) -> TNode:
    """Project a raw mapping onto a union node, keeping unknown keys.

    Keys that are not variant fields of ``node_type`` are moved into its
    ``additional_properties`` field.

    Returns
    -------
    TNode
        Projected union node.

    Raises
    ------
    UnmarshalError
        Raised when a known variant carries a value of the wrong shape.
    """
    known = set(node_type.__struct_fields__) - node_type.extra_fields
    payload: dict[str, Any] = {key: value for key, value in raw.items() if key in known}
    extras = {key: value for key, value in raw.items() if key not in known}
    if extras:
        payload["additional_properties"] = extras
    try:
        return msgspec.convert(payload, type=node_type, strict=True)
    except msgspec.ValidationError as exc:
        raise UnmarshalError(owner, str(exc)) from exc


def raw_union_errors(
    node_type: type[UnionNode],
    entries: Iterable[Mapping[str, Any] | None],
    owner: str,
) -> list[ConfigError]:
    """Return validation errors of raw union entries.

    Returns
    -------
    list[ConfigError]
        Errors of every entry, in declaration order.
    """
    errors: list[ConfigError] = []
    for entry in entries:
        if entry is None:
            continue
        try:
            node = project_union(node_type, entry, owner)
        except UnmarshalError as exc:
            errors.append(exc)
            continue
        errors.extend(node.validate())
    return errors


def child_errors(value: object) -> list[ConfigError]:
    """Return validation errors of a child node or sequence of nodes.

    Returns
    -------
    list[ConfigError]
        Errors of every nested ``ConfigNode``.
    """
    if isinstance(value, ConfigNode):
        return value.validate()
    if isinstance(value, tuple):
        errors: list[ConfigError] = []
        for item in value:
            errors.extend(child_errors(item))
        return errors
    return []


def check_positive(field: str, value: int | None) -> list[ConfigError]:
    """Return a bound error when ``value`` is set and not greater than zero.

    Returns
    -------
    list[ConfigError]
        Empty or a single ``BoundError``.
    """
    if value is not None and value <= 0:
        return [BoundError(field, ">", 0)]
    return []


def check_non_negative(field: str, value: int | None) -> list[ConfigError]:
    """Return a bound error when ``value`` is set and negative.

    Returns
    -------
    list[ConfigError]
        Empty or a single ``BoundError``.
    """
    if value is not None and value < 0:
        return [BoundError(field, ">=", 0)]
    return []


def check_required(owner: str, field: str, value: object) -> list[ConfigError]:
    """Return a required-field error when ``value`` is absent.

    Returns
    -------
    list[ConfigError]
        Empty or a single ``RequiredError``.
    """
    if value is None or value is msgspec.UNSET:
        return [RequiredError(owner, field)]
    return []


def check_enum(identifier: str, value: str | None, allowed: Iterable[str]) -> list[ConfigError]:
    """Return an invalid-value error when ``value`` is outside ``allowed``.

    Returns
    -------
    list[ConfigError]
        Empty or a single ``InvalidError``.
    """
    options = tuple(allowed)
    if value is not None and value not in options:
        detail = f"unexpected value {value!r}, expected one of {', '.join(options)}"
        return [InvalidError(identifier, detail)]
    return []


def decode_node[T: ConfigNode](raw: object, node_type: type[T]) -> T:
    """Decode builtin objects into a validated configuration node.

    Parameters
    ----------
    raw
        Builtin objects produced by a YAML or JSON parser.
    node_type
        Target node type.

    Returns
    -------
    T
        Decoded and validated node.

    Raises
    ------
    UnmarshalError
        Raised when ``raw`` does not have the shape of ``node_type``.
    """
    if not isinstance(raw, Mapping):
        detail = f"expected a mapping, got {type(raw).__name__}"
        raise UnmarshalError(node_type.__name__, detail)
    try:
        node = msgspec.convert(raw, type=node_type, strict=True)
    except msgspec.ValidationError as exc:
        payload = validation_error_payload(exc)
        owner = payload.get("path", node_type.__name__)
        raise UnmarshalError(owner, payload.get("summary")) from exc
    raise_joined(node.validate())
    return node


__all__ = [
    "ConfigNode",
    "UnionNode",
    "check_enum",
    "check_non_negative",
    "check_positive",
    "check_required",
    "child_errors",
    "decode_node",
    "default_variant",
    "project_union",
    "raw_union_errors",
]
