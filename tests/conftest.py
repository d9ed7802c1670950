"""Shared pytest fixtures for configuration and SDK tests."""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Iterator

import pytest

from otelconf import bootstrap
from otelconf.model import OpenTelemetryConfiguration
from otelconf.parse import parse_yaml


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep configuration files from the developer environment out of tests."""
    monkeypatch.delenv(bootstrap.CONFIG_FILE_ENV, raising=False)
    yield
    bootstrap.shutdown()


@pytest.fixture
def yaml_config() -> Callable[[str], OpenTelemetryConfiguration]:
    """Return a parser for indented inline YAML documents.

    Returns
    -------
    Callable[[str], OpenTelemetryConfiguration]
        Parser that dedents its input before parsing.
    """

    def _parse(text: str) -> OpenTelemetryConfiguration:
        return parse_yaml(textwrap.dedent(text))

    return _parse
