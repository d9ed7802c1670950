"""Top-level configuration document."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import msgspec

from otelconf.errors import ConfigError
from otelconf.model.base import ConfigNode, check_enum, check_required, decode_node
from otelconf.model.common import AttributeLimits
from otelconf.model.logs import LoggerProviderSpec
from otelconf.model.metrics import MeterProviderSpec
from otelconf.model.propagator import PropagatorSpec
from otelconf.model.resource import ResourceSpec
from otelconf.model.trace import TracerProviderSpec

SEVERITY_LEVELS = tuple(
    f"{base}{suffix}"
    for base in ("trace", "debug", "info", "warn", "error", "fatal")
    for suffix in ("", "2", "3", "4")
)

DEFAULT_LOG_LEVEL = "info"


class OpenTelemetryConfiguration(ConfigNode, frozen=True):
    """Declarative SDK configuration document.

    ``disabled`` and ``log_level`` fall back to ``False`` and ``"info"`` when
    they are absent or null.
    """

    file_format: str | None = None
    disabled: bool | None = False
    log_level: str | None = DEFAULT_LOG_LEVEL
    attribute_limits: AttributeLimits | None = None
    resource: ResourceSpec | None = None
    propagator: PropagatorSpec | None = None
    tracer_provider: TracerProviderSpec | None = None
    meter_provider: MeterProviderSpec | None = None
    logger_provider: LoggerProviderSpec | None = None
    instrumentation: dict[str, Any] | None = msgspec.field(
        default=None,
        name="instrumentation/development",
    )

    def __post_init__(self) -> None:
        if self.disabled is None:
            msgspec.structs.force_setattr(self, "disabled", False)
        if self.log_level is None:
            msgspec.structs.force_setattr(self, "log_level", DEFAULT_LOG_LEVEL)

    def check(self) -> list[ConfigError]:
        return [
            *check_required("OpenTelemetryConfiguration", "file_format", self.file_format),
            *check_enum("log_level", self.log_level, SEVERITY_LEVELS),
        ]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OpenTelemetryConfiguration:
        """Decode and validate a configuration from builtin objects.

        Parameters
        ----------
        raw
            Mapping produced by a YAML or JSON parser.

        Returns
        -------
        OpenTelemetryConfiguration
            Validated configuration.
        """
        return decode_node(raw, cls)


__all__ = ["DEFAULT_LOG_LEVEL", "SEVERITY_LEVELS", "OpenTelemetryConfiguration"]
