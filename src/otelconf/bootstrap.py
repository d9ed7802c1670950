"""Assemble configured OpenTelemetry SDK providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from opentelemetry._logs import NoOpLoggerProvider
from opentelemetry.metrics import NoOpMeterProvider
from opentelemetry.trace import NoOpTracerProvider

from otelconf.env_utils import env_path
from otelconf.errors import ConfigError, iter_leaf_errors, join_errors
from otelconf.lifecycle import DEFAULT_SHUTDOWN_TIMEOUT_MILLIS, Sdk, ShutdownRegistry, noop_sdk
from otelconf.logs import LoggerProviderOptions, build_logger_provider
from otelconf.metrics import MeterProviderOptions, build_meter_provider
from otelconf.model import OpenTelemetryConfiguration
from otelconf.parse import load_config_file
from otelconf.propagator import build_propagator, default_propagator
from otelconf.resource import build_resource
from otelconf.tracing import TracerProviderOptions, build_tracer_provider

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE_ENV = "OTEL_EXPERIMENTAL_CONFIG_FILE"

_LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

_STATE: dict[str, Sdk | None] = {"sdk": None}

# Collected and joined across blocks; any other exception aborts assembly.
_BUILD_ERRORS = (ConfigError, ExceptionGroup, OSError, ValueError)


@dataclass(frozen=True)
class SdkOptions:
    """Programmatic options for ``new_sdk``.

    Provider options append processors, readers and views ahead of the
    configured ones. ``config_file`` is read when no configuration object is
    passed and ``OTEL_EXPERIMENTAL_CONFIG_FILE`` is unset.
    """

    tracer_provider_options: TracerProviderOptions = field(default_factory=TracerProviderOptions)
    meter_provider_options: MeterProviderOptions = field(default_factory=MeterProviderOptions)
    logger_provider_options: LoggerProviderOptions = field(default_factory=LoggerProviderOptions)
    config_file: Path | None = None


def log_level_for(name: str | None) -> int | None:
    """Map a configuration severity such as ``warn2`` to a ``logging`` level.

    Returns
    -------
    int | None
        Logging level, or ``None`` for an unknown name.
    """
    if name is None:
        return None
    return _LOG_LEVELS.get(name.rstrip("234"))


def _configure_otel_log_level(level: int | None) -> None:
    if level is None:
        return
    logging.getLogger("opentelemetry").setLevel(level)
    logging.getLogger("otelconf").setLevel(level)


def _resolve_config(
    config: OpenTelemetryConfiguration | None,
    options: SdkOptions,
) -> OpenTelemetryConfiguration | None:
    env_file = env_path(CONFIG_FILE_ENV)
    if env_file is not None:
        if config is not None:
            _LOGGER.info("%s is set; ignoring the programmatic configuration.", CONFIG_FILE_ENV)
        return load_config_file(env_file)
    if config is None and options.config_file is not None:
        return load_config_file(options.config_file)
    return config


def _compensate(registry: ShutdownRegistry) -> None:
    try:
        registry.shutdown()
    except Exception as exc:
        _LOGGER.warning("Shutdown after failed configuration also failed: %s", exc)


def _assemble(config: OpenTelemetryConfiguration, options: SdkOptions) -> Sdk:
    registry = ShutdownRegistry()
    try:
        return _build_sdk(config, options, registry)
    except Exception:
        _compensate(registry)
        raise


def _build_sdk(
    config: OpenTelemetryConfiguration,
    options: SdkOptions,
    registry: ShutdownRegistry,
) -> Sdk:
    errors: list[BaseException] = []
    propagator = default_propagator()
    try:
        resource = build_resource(config.resource)
    except _BUILD_ERRORS as exc:
        errors.extend(iter_leaf_errors(exc))
        resource = build_resource(None)
    try:
        propagator = build_propagator(config.propagator)
    except _BUILD_ERRORS as exc:
        errors.extend(iter_leaf_errors(exc))

    tracer_provider = NoOpTracerProvider()
    if config.tracer_provider is not None:
        try:
            tracer_provider = build_tracer_provider(
                config.tracer_provider,
                resource,
                attribute_limits=config.attribute_limits,
                options=options.tracer_provider_options,
            )
        except _BUILD_ERRORS as exc:
            errors.extend(iter_leaf_errors(exc))
        else:
            registry.register("tracer provider", tracer_provider.shutdown)

    meter_provider = NoOpMeterProvider()
    if config.meter_provider is not None:
        try:
            meter_provider = build_meter_provider(
                config.meter_provider,
                resource,
                options=options.meter_provider_options,
            )
        except _BUILD_ERRORS as exc:
            errors.extend(iter_leaf_errors(exc))
        else:
            registry.register("meter provider", meter_provider.shutdown)

    logger_provider = NoOpLoggerProvider()
    if config.logger_provider is not None:
        try:
            logger_provider = build_logger_provider(
                config.logger_provider,
                resource,
                options=options.logger_provider_options,
            )
        except _BUILD_ERRORS as exc:
            errors.extend(iter_leaf_errors(exc))
        else:
            registry.register("logger provider", logger_provider.shutdown)

    joined = join_errors(errors)
    if joined is not None:
        raise joined
    return Sdk(
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        logger_provider=logger_provider,
        propagator=propagator,
        registry=registry,
    )


def new_sdk(
    config: OpenTelemetryConfiguration | None = None,
    *,
    options: SdkOptions | None = None,
) -> Sdk:
    """Build providers and a propagator from a configuration document.

    Parameters
    ----------
    config
        Parsed configuration. ``OTEL_EXPERIMENTAL_CONFIG_FILE`` supersedes it.
    options
        Programmatic provider options and an optional configuration file.

    Returns
    -------
    Sdk
        Configured SDK, or a no-op SDK when no configuration is given or the
        configuration is disabled.

    Raises
    ------
    Exception
        The joined construction errors. Components that were already started
        are shut down first, and the raised error carries a no-op SDK as
        ``.sdk`` so callers can shut down unconditionally.
    """
    resolved = options or SdkOptions()
    try:
        config = _resolve_config(config, resolved)
        if config is None or config.disabled:
            _LOGGER.debug("No enabled configuration; returning a no-op SDK.")
            return noop_sdk()
        _configure_otel_log_level(log_level_for(config.log_level))
        sdk = _assemble(config, resolved)
    except Exception as exc:
        exc.sdk = noop_sdk()
        raise
    _LOGGER.info("OpenTelemetry SDK configured (file_format=%s)", config.file_format)
    return sdk


def configure_from_environment(*, options: SdkOptions | None = None) -> Sdk:
    """Configure the global providers from ``OTEL_EXPERIMENTAL_CONFIG_FILE``.

    The SDK is built once per process and kept for ``shutdown``.

    Returns
    -------
    Sdk
        The active SDK.
    """
    current = _STATE["sdk"]
    if current is not None:
        return current
    sdk = new_sdk(options=options)
    sdk.activate_global()
    _STATE["sdk"] = sdk
    return sdk


def shutdown(timeout_millis: int = DEFAULT_SHUTDOWN_TIMEOUT_MILLIS) -> None:
    """Shut down the SDK installed by ``configure_from_environment``."""
    sdk = _STATE["sdk"]
    _STATE["sdk"] = None
    if sdk is not None:
        sdk.shutdown(timeout_millis)


__all__ = [
    "CONFIG_FILE_ENV",
    "LoggerProviderOptions",
    "MeterProviderOptions",
    "SdkOptions",
    "TracerProviderOptions",
    "configure_from_environment",
    "log_level_for",
    "new_sdk",
    "shutdown",
]
