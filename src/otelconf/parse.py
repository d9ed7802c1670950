"""Parse configuration documents into the typed model."""

from __future__ import annotations

import logging

import msgspec
import yaml

from otelconf.core_types import PathLike, ensure_path
from otelconf.envsubst import replace_env_vars
from otelconf.errors import InvalidError, UnmarshalError
from otelconf.model import OpenTelemetryConfiguration
from otelconf.serde import dumps_json, loads_json_builtins, to_builtins
from otelconf.yaml_loader import CoreSchemaDumper, CoreSchemaLoader

_LOGGER = logging.getLogger(__name__)

_OWNER = "OpenTelemetryConfiguration"


def parse_yaml(data: bytes | str) -> OpenTelemetryConfiguration:
    """Parse a YAML document, substituting environment variables first.

    Parameters
    ----------
    data
        Raw YAML document.

    Returns
    -------
    OpenTelemetryConfiguration
        Validated configuration.

    Raises
    ------
    UnmarshalError
        Raised when the substituted document is not valid YAML.
    """
    substituted = replace_env_vars(data)
    try:
        raw = yaml.load(substituted, Loader=CoreSchemaLoader)  # noqa: S506
    except yaml.YAMLError as exc:
        raise UnmarshalError(_OWNER, str(exc)) from exc
    return OpenTelemetryConfiguration.from_mapping({} if raw is None else raw)


def parse_json(data: bytes | str) -> OpenTelemetryConfiguration:
    """Parse a JSON document.

    Parameters
    ----------
    data
        Raw JSON document.

    Returns
    -------
    OpenTelemetryConfiguration
        Validated configuration.

    Raises
    ------
    UnmarshalError
        Raised when the document is not valid JSON.
    """
    try:
        raw = loads_json_builtins(data)
    except msgspec.DecodeError as exc:
        raise UnmarshalError(_OWNER, str(exc)) from exc
    return OpenTelemetryConfiguration.from_mapping(raw)


def load_config_file(path: PathLike) -> OpenTelemetryConfiguration:
    """Read and parse a configuration file.

    Files ending in ``.json`` are parsed as JSON; anything else as YAML.

    Parameters
    ----------
    path
        Configuration file location.

    Returns
    -------
    OpenTelemetryConfiguration
        Validated configuration.

    Raises
    ------
    InvalidError
        Raised when the file cannot be read.
    """
    resolved = ensure_path(path)
    try:
        data = resolved.read_bytes()
    except OSError as exc:
        raise InvalidError("config file", f"{resolved}: {exc.strerror or exc}") from exc
    _LOGGER.debug("Loaded OpenTelemetry configuration from %s", resolved)
    if resolved.suffix.lower() == ".json":
        return parse_json(data)
    return parse_yaml(data)


def encode_json(config: OpenTelemetryConfiguration, *, pretty: bool = False) -> bytes:
    """Encode a configuration as JSON.

    Returns
    -------
    bytes
        JSON document that decodes back to an equal configuration.
    """
    return dumps_json(config, pretty=pretty)


def encode_yaml(config: OpenTelemetryConfiguration) -> str:
    """Encode a configuration as YAML.

    Returns
    -------
    str
        YAML document that decodes back to an equal configuration.
    """
    return yaml.dump(
        to_builtins(config),
        Dumper=CoreSchemaDumper,
        sort_keys=False,
        allow_unicode=True,
    )


__all__ = ["encode_json", "encode_yaml", "load_config_file", "parse_json", "parse_yaml"]
