"""Tests for environment variable substitution in configuration documents."""

from __future__ import annotations

import pytest
import yaml

from otelconf.envsubst import replace_env_vars, replace_value_env_vars
from otelconf.errors import InvalidError
from otelconf.yaml_loader import CoreSchemaLoader


def _load(data: bytes) -> object:
    return yaml.load(data, Loader=CoreSchemaLoader)  # noqa: S506


def test_substitution_retypes_plain_scalars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure an unquoted substituted value takes the type of its new text."""
    monkeypatch.setenv("FOO", "true")
    assert _load(replace_env_vars(b"key: ${FOO}")) == {"key": True}


def test_escaped_reference_stays_literal(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure an even dollar count leaves the reference as a string."""
    monkeypatch.delenv("FOO", raising=False)
    assert _load(replace_env_vars(b"key: $${FOO}")) == {"key": "${FOO}"}


def test_defaults_are_not_expanded(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a default value is used verbatim without a second expansion."""
    monkeypatch.delenv("UNDEFINED", raising=False)
    monkeypatch.setenv("FALLBACK", "bar")
    result = replace_env_vars(b"key: ${UNDEFINED:-${FALLBACK}}")
    assert _load(result) == {"key": "${FALLBACK}"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("${FOO}", "x"),
        ("$${FOO}", "${FOO}"),
        ("$$${FOO}", "$x"),
        ("$$$${FOO}", "$${FOO}"),
        ("$$$$${FOO}", "$$x"),
        ("a$$b", "a$b"),
        ("${env:FOO}", "x"),
        ("pre-${FOO}-post", "pre-x-post"),
    ],
)
def test_dollar_count_rules(monkeypatch: pytest.MonkeyPatch, value: str, expected: str) -> None:
    """Ensure odd dollar counts substitute and half the dollars survive."""
    monkeypatch.setenv("FOO", "x")
    assert replace_value_env_vars(value) == expected


def test_unset_without_default_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure an unset variable with no default becomes an empty string."""
    monkeypatch.delenv("MISSING", raising=False)
    assert replace_value_env_vars("a${MISSING}b") == "ab"


def test_default_applies_to_empty_value(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the default is used when the variable is set but empty."""
    monkeypatch.setenv("EMPTY", "")
    assert replace_value_env_vars("${EMPTY:-7}") == "7"


def test_default_retypes_to_int(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a numeric default is re-inferred as an integer."""
    monkeypatch.delenv("MISSING", raising=False)
    assert _load(replace_env_vars(b"key: ${MISSING:-7}")) == {"key": 7}


def test_quoted_scalars_stay_strings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure quoted values keep the string type after substitution."""
    monkeypatch.setenv("FOO", "1")
    assert _load(replace_env_vars(b'key: "${FOO}"')) == {"key": "1"}
    assert _load(replace_env_vars(b"key: ${FOO}")) == {"key": 1}


def test_mapping_keys_are_not_substituted(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure only scalar values are rewritten."""
    monkeypatch.setenv("FOO", "x")
    assert _load(replace_env_vars(b"${FOO}: ${FOO}")) == {"${FOO}": "x"}


def test_values_cannot_inject_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a value containing YAML syntax stays a single string."""
    monkeypatch.setenv("FOO", "a: b\nc: d")
    assert _load(replace_env_vars(b"key: ${FOO}")) == {"key": "a: b\nc: d"}


def test_sequences_are_substituted(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure scalars inside sequences are visited."""
    monkeypatch.setenv("FOO", "0x10")
    assert _load(replace_env_vars(b"items:\n  - ${FOO}\n  - plain")) == {"items": [16, "plain"]}


@pytest.mark.parametrize(
    "value",
    ["${FOO:?error}", "${FOO:=x}", "${FOO BAR}"],
)
def test_unsupported_references_are_rejected(value: str) -> None:
    """Ensure invalid names and unsupported operators fail."""
    with pytest.raises(InvalidError, match="environment variable substitution"):
        replace_env_vars(f"key: {value}".encode())


def test_unparseable_replacement_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a replacement that cannot be constructed fails."""
    monkeypatch.setenv("FOO", "!!int NaN")
    with pytest.raises(InvalidError, match="line 1"):
        replace_env_vars(b"key: ${FOO}")


def test_empty_document() -> None:
    """Ensure an empty document stays empty."""
    assert replace_env_vars(b"") == b""


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("yes", "yes"),
        ("off", "off"),
        ("On", "On"),
        ("1:30", "1:30"),
        ("2024-01-01", "2024-01-01"),
        ("017", 17),
        ("0o17", 15),
        ("FALSE", False),
        ("1e3", 1000.0),
    ],
)
def test_substitution_uses_core_schema(
    monkeypatch: pytest.MonkeyPatch,
    value: str,
    expected: object,
) -> None:
    """Ensure substituted plain scalars resolve with YAML 1.2 core schema types."""
    monkeypatch.setenv("FOO", value)
    substituted = replace_env_vars(b"key: ${FOO}")
    assert _load(substituted) == {"key": expected}


def test_yaml11_words_serialize_plain(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure core-schema strings are emitted without added quoting."""
    monkeypatch.setenv("FOO", "yes")
    assert replace_env_vars(b"key: ${FOO}") == b"key: yes"
