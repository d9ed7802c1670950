"""Shutdown coordination for the configured SDK."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from opentelemetry import metrics, trace
from opentelemetry._logs import LoggerProvider, NoOpLoggerProvider, set_logger_provider
from opentelemetry.metrics import MeterProvider, NoOpMeterProvider
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace import NoOpTracerProvider, TracerProvider

from otelconf.errors import join_errors

_LOGGER = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT_MILLIS = 30_000

type ShutdownFunc = Callable[[], object]


class ShutdownTimeoutError(TimeoutError):
    """Raised for a component that did not shut down before the deadline."""

    def __init__(self, component: str, timeout_millis: int) -> None:
        self.component = component
        self.timeout_millis = timeout_millis
        super().__init__(f"{component} did not shut down within {timeout_millis}ms")


class ShutdownRegistry:
    """Ordered set of component shutdown functions run once, in parallel."""

    def __init__(self) -> None:
        self._entries: list[tuple[str, ShutdownFunc]] = []
        self._lock = threading.Lock()
        self._done = False

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, component: str, func: ShutdownFunc) -> None:
        """Register ``func`` as the shutdown of ``component``."""
        with self._lock:
            self._entries.append((component, func))

    def shutdown(self, timeout_millis: int = DEFAULT_SHUTDOWN_TIMEOUT_MILLIS) -> None:
        """Shut every registered component down.

        Components are shut down concurrently and every one is waited for up
        to ``timeout_millis``. Calls after the first are no-ops.

        Parameters
        ----------
        timeout_millis
            Deadline shared by all components.

        Raises
        ------
        Exception
            The joined failures of every component, with components that
            missed the deadline reported as ``ShutdownTimeoutError``.
        """
        with self._lock:
            if self._done:
                return
            self._done = True
            entries = list(self._entries)
        if not entries:
            return
        executor = ThreadPoolExecutor(
            max_workers=len(entries),
            thread_name_prefix="otelconf-shutdown",
        )
        try:
            futures = {executor.submit(func): component for component, func in entries}
            _, pending = wait(futures, timeout=timeout_millis / 1000)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        errors: list[Exception] = []
        for future, component in futures.items():
            if future in pending:
                _LOGGER.warning("Shutdown of %s timed out after %dms", component, timeout_millis)
                errors.append(ShutdownTimeoutError(component, timeout_millis))
                continue
            error = future.exception()
            if error is None:
                continue
            if not isinstance(error, Exception):
                raise error
            _LOGGER.warning("Shutdown of %s failed: %s", component, error)
            errors.append(error)
        joined = join_errors(errors, "shutdown failed")
        if joined is not None:
            raise joined


@dataclass(frozen=True)
class Sdk:
    """Configured providers and propagator plus their shutdown."""

    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    logger_provider: LoggerProvider
    propagator: TextMapPropagator
    registry: ShutdownRegistry = field(default_factory=ShutdownRegistry, repr=False)
    configured: bool = True

    def shutdown(self, timeout_millis: int = DEFAULT_SHUTDOWN_TIMEOUT_MILLIS) -> None:
        """Shut every configured component down; see ``ShutdownRegistry.shutdown``."""
        self.registry.shutdown(timeout_millis)

    def activate_global(self) -> None:
        """Install the configured providers and propagator as global defaults."""
        if not isinstance(self.tracer_provider, NoOpTracerProvider):
            trace.set_tracer_provider(self.tracer_provider)
        if not isinstance(self.meter_provider, NoOpMeterProvider):
            metrics.set_meter_provider(self.meter_provider)
        if not isinstance(self.logger_provider, NoOpLoggerProvider):
            set_logger_provider(self.logger_provider)
        if self.configured:
            set_global_textmap(self.propagator)


def noop_sdk() -> Sdk:
    """Return an SDK whose providers do nothing and whose shutdown succeeds.

    Returns
    -------
    Sdk
        No-op providers, an empty composite propagator, and no components.
    """
    return Sdk(
        tracer_provider=NoOpTracerProvider(),
        meter_provider=NoOpMeterProvider(),
        logger_provider=NoOpLoggerProvider(),
        propagator=CompositePropagator([]),
        configured=False,
    )


__all__ = [
    "DEFAULT_SHUTDOWN_TIMEOUT_MILLIS",
    "Sdk",
    "ShutdownRegistry",
    "ShutdownTimeoutError",
    "noop_sdk",
]
