"""Prometheus pull reader serving ``/metrics`` over HTTP."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from opentelemetry.exporter.prometheus import PrometheusMetricReader
from prometheus_client import start_http_server

from otelconf.errors import InvalidError
from otelconf.model import PrometheusMetricExporterSpec

if TYPE_CHECKING:
    from wsgiref.simple_server import WSGIServer

_LOGGER = logging.getLogger(__name__)

_DEFAULT_TRANSLATION_STRATEGY = "UnderscoreEscapingWithSuffixes"


def format_address(host: str, port: int) -> str:
    """Return ``host:port`` with IPv6 hosts bracketed.

    Returns
    -------
    str
        Listener address.
    """
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class PrometheusPullReader(PrometheusMetricReader):
    """Prometheus reader that owns the HTTP server exposing its metrics.

    Parameters
    ----------
    host
        Listen host; IPv6 literals are accepted without brackets.
    port
        Listen port; ``0`` binds an ephemeral port.
    disable_target_info
        Whether to omit the ``target_info`` metric.
    """

    def __init__(self, host: str, port: int, *, disable_target_info: bool = False) -> None:
        super().__init__(disable_target_info=disable_target_info)
        self._host = host.strip("[]")
        self._stopped = False
        self._stop_lock = threading.Lock()
        try:
            server, thread = start_http_server(port, addr=self._host)
        except OSError as exc:
            super().shutdown()
            raise InvalidError("prometheus listener", f"{host}:{port}: {exc}") from exc
        self._server: WSGIServer = server
        self._thread = thread
        _LOGGER.info("Prometheus metrics served on http://%s/metrics", self.address)

    @property
    def port(self) -> int:
        """Return the bound port."""
        return int(self._server.server_address[1])

    @property
    def address(self) -> str:
        """Return the bound ``host:port`` address."""
        return format_address(self._host, self.port)

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: object) -> None:
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=timeout_millis / 1000)
        super().shutdown(timeout_millis=timeout_millis, **kwargs)


def _warn_unsupported(spec: PrometheusMetricExporterSpec) -> None:
    if spec.without_scope_info:
        _LOGGER.warning("Prometheus exporter ignores without_scope_info; scope labels are kept.")
    if spec.translation_strategy not in {None, _DEFAULT_TRANSLATION_STRATEGY}:
        _LOGGER.warning(
            "Prometheus exporter ignores translation_strategy %s; using %s.",
            spec.translation_strategy,
            _DEFAULT_TRANSLATION_STRATEGY,
        )
    labels = spec.with_resource_constant_labels
    if labels is not None and (labels.included or labels.excluded):
        _LOGGER.warning("Prometheus exporter ignores with_resource_constant_labels.")


def build_prometheus_reader(spec: PrometheusMetricExporterSpec) -> PrometheusPullReader:
    """Build a Prometheus pull reader and start its HTTP server.

    Parameters
    ----------
    spec
        Prometheus exporter block.

    Returns
    -------
    PrometheusPullReader
        Reader whose ``shutdown`` also stops the server.

    Raises
    ------
    InvalidError
        Raised when ``host`` or ``port`` is missing or the listener cannot bind.
    """
    if not spec.host:
        raise InvalidError("host must be specified")
    if spec.port is None:
        raise InvalidError("port must be specified")
    _warn_unsupported(spec)
    return PrometheusPullReader(
        spec.host,
        spec.port,
        disable_target_info=bool(spec.without_target_info),
    )


__all__ = ["PrometheusPullReader", "build_prometheus_reader", "format_address"]
