"""Declarative configuration for the OpenTelemetry SDK."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from otelconf.bootstrap import (
        SdkOptions,
        configure_from_environment,
        new_sdk,
        shutdown,
    )
    from otelconf.errors import (
        BoundError,
        ConfigError,
        ConfigErrorGroup,
        InvalidError,
        RequiredError,
        UnmarshalError,
        error_matches,
        errors_matching,
        join_errors,
    )
    from otelconf.lifecycle import Sdk, ShutdownTimeoutError, noop_sdk
    from otelconf.logs import LoggerProviderOptions
    from otelconf.metrics import MeterProviderOptions
    from otelconf.model import OpenTelemetryConfiguration
    from otelconf.parse import encode_json, encode_yaml, load_config_file, parse_json, parse_yaml
    from otelconf.tracing import TracerProviderOptions

__all__ = [
    "BoundError",
    "ConfigError",
    "ConfigErrorGroup",
    "InvalidError",
    "LoggerProviderOptions",
    "MeterProviderOptions",
    "OpenTelemetryConfiguration",
    "RequiredError",
    "Sdk",
    "SdkOptions",
    "ShutdownTimeoutError",
    "TracerProviderOptions",
    "UnmarshalError",
    "configure_from_environment",
    "encode_json",
    "encode_yaml",
    "error_matches",
    "errors_matching",
    "join_errors",
    "load_config_file",
    "new_sdk",
    "noop_sdk",
    "parse_json",
    "parse_yaml",
    "shutdown",
]

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "BoundError": ("otelconf.errors", "BoundError"),
    "ConfigError": ("otelconf.errors", "ConfigError"),
    "ConfigErrorGroup": ("otelconf.errors", "ConfigErrorGroup"),
    "InvalidError": ("otelconf.errors", "InvalidError"),
    "RequiredError": ("otelconf.errors", "RequiredError"),
    "UnmarshalError": ("otelconf.errors", "UnmarshalError"),
    "error_matches": ("otelconf.errors", "error_matches"),
    "errors_matching": ("otelconf.errors", "errors_matching"),
    "join_errors": ("otelconf.errors", "join_errors"),
    "LoggerProviderOptions": ("otelconf.logs", "LoggerProviderOptions"),
    "MeterProviderOptions": ("otelconf.metrics", "MeterProviderOptions"),
    "TracerProviderOptions": ("otelconf.tracing", "TracerProviderOptions"),
    "OpenTelemetryConfiguration": ("otelconf.model", "OpenTelemetryConfiguration"),
    "Sdk": ("otelconf.lifecycle", "Sdk"),
    "ShutdownTimeoutError": ("otelconf.lifecycle", "ShutdownTimeoutError"),
    "noop_sdk": ("otelconf.lifecycle", "noop_sdk"),
    "SdkOptions": ("otelconf.bootstrap", "SdkOptions"),
    "configure_from_environment": ("otelconf.bootstrap", "configure_from_environment"),
    "new_sdk": ("otelconf.bootstrap", "new_sdk"),
    "shutdown": ("otelconf.bootstrap", "shutdown"),
    "encode_json": ("otelconf.parse", "encode_json"),
    "encode_yaml": ("otelconf.parse", "encode_yaml"),
    "load_config_file": ("otelconf.parse", "load_config_file"),
    "parse_json": ("otelconf.parse", "parse_json"),
    "parse_yaml": ("otelconf.parse", "parse_yaml"),
}


def __getattr__(name: str) -> object:
    target = _EXPORT_MAP.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr_name = target
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(list(globals()) + __all__)
