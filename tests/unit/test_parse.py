"""Tests for loading configuration files."""

from __future__ import annotations

from pathlib import Path

import pytest

from otelconf.errors import InvalidError, UnmarshalError
from otelconf.parse import load_config_file, parse_json, parse_yaml


def test_load_yaml_file_substitutes_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Ensure YAML files go through environment substitution."""
    monkeypatch.setenv("OTEL_TEST_DISABLED", "true")
    path = tmp_path / "otel.yaml"
    path.write_text("file_format: '1.0'\ndisabled: ${OTEL_TEST_DISABLED}\n", encoding="utf-8")
    config = load_config_file(path)
    assert config.disabled is True


def test_load_json_file(tmp_path: Path) -> None:
    """Ensure files with a .json suffix are parsed as JSON."""
    path = tmp_path / "otel.json"
    path.write_text('{"file_format": "1.0", "log_level": "warn"}', encoding="utf-8")
    config = load_config_file(str(path))
    assert config.log_level == "warn"


def test_missing_file_is_invalid(tmp_path: Path) -> None:
    """Ensure a missing file raises an invalid config error."""
    with pytest.raises(InvalidError, match="config file"):
        load_config_file(tmp_path / "absent.yaml")


def test_invalid_json_is_unmarshal_error() -> None:
    """Ensure malformed JSON surfaces as an unmarshal error."""
    with pytest.raises(UnmarshalError, match="OpenTelemetryConfiguration"):
        parse_json(b'{"file_format": ')


def test_invalid_yaml_is_rejected() -> None:
    """Ensure malformed YAML is rejected before decoding."""
    with pytest.raises(InvalidError, match="could not parse document"):
        parse_yaml(b"file_format: [1.0\n")


def test_empty_yaml_requires_file_format() -> None:
    """Ensure an empty YAML document is treated as an empty mapping."""
    with pytest.raises(ValueError, match="file_format"):
        parse_yaml(b"")
