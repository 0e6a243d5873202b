"""Metrics server bootstrap.

Binds a producer manager into a prometheus `CollectorRegistry` and starts
the HTTP exposition endpoint.

Public API:
  setup_metrics_server(...) -> (collector_registry, shutdown_callable)

Idempotent per process: a second call returns the existing registry (and
warns when asked for a different host/port) unless `reset=True`.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from prometheus_client import CollectorRegistry, start_http_server

from .producer import ProducerManager, bind_manager, global_manager

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_state: dict[str, object] = {}


def _shutdown_current() -> None:
    server = _state.get("server")
    if server is not None:
        server.shutdown()  # type: ignore[attr-defined]
        server.server_close()  # type: ignore[attr-defined]
        logger.info("Metrics server on %s:%s stopped", _state.get("host"), _state.get("port"))
    _state.clear()


def setup_metrics_server(port: int = 9108, host: str = "0.0.0.0", *,
                         manager: ProducerManager | None = None,
                         registry: CollectorRegistry | None = None,
                         reset: bool = False) -> tuple[CollectorRegistry, Callable[[], None]]:
    """Start the metrics HTTP endpoint serving every producer of `manager`.

    Returns the exposition registry and a shutdown callable.
    """
    def shutdown() -> None:
        with _lock:
            _shutdown_current()

    with _lock:
        existing = _state.get("registry")
        if existing is not None and not reset:
            if (port, host) != (_state.get("port"), _state.get("host")):
                logger.warning(
                    "setup_metrics_server called again with different host/port (%s:%s) != (%s:%s); reusing existing server",
                    host, port, _state.get("host"), _state.get("port"),
                )
            return existing, shutdown  # type: ignore[return-value]
        if existing is not None:
            _shutdown_current()

        reg = registry if registry is not None else CollectorRegistry()
        bind_manager(manager or global_manager(), reg)
        server, _thread = start_http_server(port, addr=host, registry=reg)
        _state.update(registry=reg, server=server, port=port, host=host)
    logger.info("Metrics server started on %s:%s", host, port)
    logger.info("Metrics available at http://%s:%s/metrics", host, port)
    return reg, shutdown


__all__ = ["setup_metrics_server"]
