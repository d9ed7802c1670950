"""Environment variable substitution for configuration documents.

Substitution runs on the composed YAML node graph rather than on raw text,
so a substituted value can never introduce new mapping keys. Only scalar
values are rewritten; mapping keys are left untouched.

Reference grammar::

    $...${NAME}            odd dollar count: substitute
    $...${NAME:-default}   default used when NAME is unset or empty
    $...${env:NAME}        ``env:`` prefix is ignored
    $$${...}               even dollar count: literal, half the dollars kept
"""

from __future__ import annotations

import io
import logging
import re

import yaml

from otelconf.env_utils import env_text
from otelconf.errors import InvalidError
from otelconf.yaml_loader import CoreSchemaDumper, CoreSchemaLoader

_LOGGER = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_DOUBLE_DOLLAR_RE = re.compile(r"\$\$([^{$])")
_REFERENCE_RE = re.compile(r"([$]+)\{([a-zA-Z_][a-zA-Z0-9_]*-?[^}]*)\}")

_ENV_PREFIX = "env:"
_DEFAULT_SEPARATOR = ":-"
_STR_TAG = "tag:yaml.org,2002:str"
_UNTYPED_STYLES = frozenset({'"', "'", ">"})
_SERIALIZE_WIDTH = 1 << 16


def _split_reference(body: str) -> tuple[str, str | None]:
    body = body.removeprefix(_ENV_PREFIX)
    name, sep, default = body.partition(_DEFAULT_SEPARATOR)
    if not sep:
        return body, None
    return name, default


def _resolve_reference(body: str) -> str:
    name, default = _split_reference(body)
    if ":" in name or _NAME_RE.match(name) is None:
        msg = f"invalid environment variable name: {name}"
        raise InvalidError("environment variable substitution", msg)
    value = env_text(name, strip=False, allow_empty=True) or ""
    if not value and default is not None:
        value = default.replace("$$", "$")
    return value


def _substitute_reference(match: re.Match[str]) -> str:
    dollars, body = match.group(1), match.group(2)
    prefix = "$" * (len(dollars) // 2)
    if len(dollars) % 2 == 1:
        return prefix + _resolve_reference(body)
    _, default = _split_reference(body)
    if default is None or "$" not in default:
        return f"{prefix}{{{body}}}"
    # The closing brace of the escaped reference belongs to the nested default.
    return prefix + "{" + replace_value_env_vars(body + "}")


def replace_value_env_vars(value: str) -> str:
    """Substitute environment variable references in a single scalar value.

    Parameters
    ----------
    value
        Scalar text as it appears in the document.

    Returns
    -------
    str
        Text with every odd-dollar reference replaced.

    Raises
    ------
    InvalidError
        Raised when a reference names an invalid variable or uses an
        unsupported operator such as ``:?``.
    """
    collapsed = _DOUBLE_DOLLAR_RE.sub(lambda match: "$" + match.group(1), value)
    return _REFERENCE_RE.sub(_substitute_reference, collapsed)


def _retype_scalar(node: yaml.ScalarNode) -> None:
    value = node.value
    if ": " in value or "\n" in value:
        node.tag = _STR_TAG
        return
    loader = CoreSchemaLoader(f"key: {value}")
    try:
        composed = loader.get_single_node()
        # Constructing catches tagged values whose payload does not parse.
        loader.construct_document(composed)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        msg = f"could not retype value {value!r}: {exc}"
        raise InvalidError("environment variable substitution", msg) from exc
    finally:
        loader.dispose()
    if not isinstance(composed, yaml.MappingNode) or len(composed.value) != 1:
        msg = "could not retype value: unexpected node structure"
        raise InvalidError("environment variable substitution", msg)
    retyped = composed.value[0][1]
    if not isinstance(retyped, yaml.ScalarNode) or retyped.value != value:
        node.tag = _STR_TAG
        return
    node.tag = retyped.tag


def _substitute_scalar(node: yaml.ScalarNode) -> None:
    replaced = replace_value_env_vars(node.value)
    if replaced == node.value:
        return
    node.value = replaced
    if node.style in _UNTYPED_STYLES:
        return
    _retype_scalar(node)


def _walk(node: yaml.Node, seen: set[int]) -> None:
    if id(node) in seen:
        return
    seen.add(id(node))
    if isinstance(node, yaml.ScalarNode):
        try:
            _substitute_scalar(node)
        except InvalidError as exc:
            mark = node.start_mark
            msg = f"error on line {mark.line + 1}:{mark.column + 1}: {exc.detail}"
            raise InvalidError("environment variable substitution", msg) from exc
        return
    if isinstance(node, yaml.MappingNode):
        for _key, value in node.value:
            _walk(value, seen)
        return
    if isinstance(node, yaml.SequenceNode):
        for item in node.value:
            _walk(item, seen)


def replace_env_vars(data: bytes | str) -> bytes:
    """Substitute environment variable references throughout a YAML document.

    Parameters
    ----------
    data
        Raw YAML or JSON document.

    Returns
    -------
    bytes
        Re-serialized YAML document without a trailing newline.

    Raises
    ------
    InvalidError
        Raised when the document does not parse or a substitution fails.
    """
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    try:
        root = yaml.compose(text, Loader=CoreSchemaLoader)
    except yaml.YAMLError as exc:
        msg = f"could not parse document: {exc}"
        raise InvalidError("environment variable substitution", msg) from exc
    if root is None:
        return b""
    _walk(root, set())
    stream = io.StringIO()
    yaml.serialize(
        root,
        stream,
        Dumper=CoreSchemaDumper,
        allow_unicode=True,
        width=_SERIALIZE_WIDTH,
    )
    result = stream.getvalue()
    result = result.removesuffix("\n").removesuffix("\n...")
    _LOGGER.debug("Substituted environment variables in configuration document")
    return result.encode("utf-8")


__all__ = ["replace_env_vars", "replace_value_env_vars"]
