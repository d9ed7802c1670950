"""PyYAML loader resolving plain scalars with the YAML 1.2 core schema.

PyYAML implements YAML 1.1, where ``yes``/``off`` are booleans, ``1:30`` is a
base-60 integer and dates become ``datetime`` objects. Configuration documents
follow the core schema instead, so those scalars stay strings here.
"""

from __future__ import annotations

import re

import yaml

_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"

# Tags whose YAML 1.1 implicit resolvers are replaced or dropped.
_YAML11_TAGS = frozenset(
    {
        _BOOL_TAG,
        _INT_TAG,
        _FLOAT_TAG,
        "tag:yaml.org,2002:timestamp",
        "tag:yaml.org,2002:value",
    }
)

_CORE_BOOL_RE = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")
_CORE_INT_RE = re.compile(r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$")
_CORE_FLOAT_RE = re.compile(
    r"""^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?
    |[-+]?\.(?:inf|Inf|INF)
    |\.(?:nan|NaN|NAN))$""",
    re.VERBOSE,
)


class CoreSchemaLoader(yaml.SafeLoader):
    """Safe loader with YAML 1.2 core schema scalar resolution."""


CoreSchemaLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _YAML11_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
CoreSchemaLoader.add_implicit_resolver(_BOOL_TAG, _CORE_BOOL_RE, list("tTfF"))
CoreSchemaLoader.add_implicit_resolver(_INT_TAG, _CORE_INT_RE, list("-+0123456789"))
CoreSchemaLoader.add_implicit_resolver(_FLOAT_TAG, _CORE_FLOAT_RE, list("-+0123456789."))


class CoreSchemaDumper(yaml.SafeDumper):
    """Safe dumper that quotes plain scalars by the YAML 1.2 core schema."""


CoreSchemaDumper.yaml_implicit_resolvers = CoreSchemaLoader.yaml_implicit_resolvers


def _construct_core_bool(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> bool:
    value = loader.construct_scalar(node)
    if _CORE_BOOL_RE.match(value) is None:
        msg = f"invalid boolean {value!r}"
        raise yaml.constructor.ConstructorError(None, None, msg, node.start_mark)
    return value.lower() == "true"


def _construct_core_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> int:
    value = loader.construct_scalar(node)
    if _CORE_INT_RE.match(value) is None:
        msg = f"invalid integer {value!r}"
        raise yaml.constructor.ConstructorError(None, None, msg, node.start_mark)
    if value.startswith("0x"):
        return int(value[2:], 16)
    if value.startswith("0o"):
        return int(value[2:], 8)
    # Leading zeros are decimal in the core schema.
    return int(value, 10)


CoreSchemaLoader.add_constructor(_BOOL_TAG, _construct_core_bool)
CoreSchemaLoader.add_constructor(_INT_TAG, _construct_core_int)


__all__ = ["CoreSchemaDumper", "CoreSchemaLoader"]
