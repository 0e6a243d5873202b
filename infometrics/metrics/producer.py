"""Producer manager: the set of registries included in every export scrape.

A producer is anything with a prometheus-style ``collect()`` method (a
`MetricRegistry`, a `ViewManager`, ...). The process-wide manager is created
atomically on first use and published through `global_manager()`; the
`ProducerBridge` collector plugs a manager into a prometheus
`CollectorRegistry` so the HTTP exposition sees whatever producers are
attached at scrape time.
"""
from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Iterable
from typing import Protocol

from prometheus_client import CollectorRegistry
from prometheus_client.core import Metric
from prometheus_client.registry import Collector

logger = logging.getLogger(__name__)


class Producer(Protocol):  # pragma: no cover - structural only
    def collect(self) -> Iterable[Metric]: ...


class ProducerManager:
    """Identity-deduplicated, thread-safe list of producers."""

    def __init__(self) -> None:
        self._producers: list[Producer] = []
        self._lock = threading.Lock()

    def add_producer(self, producer: Producer) -> None:
        with self._lock:
            if any(p is producer for p in self._producers):
                return
            self._producers.append(producer)
        logger.debug("producer added: %r", producer)

    def delete_producer(self, producer: Producer) -> None:
        with self._lock:
            self._producers = [p for p in self._producers if p is not producer]

    def get_all(self) -> list[Producer]:
        with self._lock:
            return list(self._producers)

    def __contains__(self, producer: object) -> bool:
        with self._lock:
            return any(p is producer for p in self._producers)


_GLOBAL_MANAGER: ProducerManager | None = None
_MANAGER_LOCK = threading.Lock()


def global_manager() -> ProducerManager:
    """Return the process-wide manager, creating it under the lock if absent."""
    global _GLOBAL_MANAGER  # noqa: PLW0603
    if _GLOBAL_MANAGER is not None:
        return _GLOBAL_MANAGER
    with _MANAGER_LOCK:
        if _GLOBAL_MANAGER is None:
            _GLOBAL_MANAGER = ProducerManager()
        return _GLOBAL_MANAGER


def clear_global_manager() -> None:
    """Drop the process-wide manager; the next `global_manager()` builds a new one."""
    global _GLOBAL_MANAGER  # noqa: PLW0603
    with _MANAGER_LOCK:
        _GLOBAL_MANAGER = None


class ProducerBridge(Collector):
    """Prometheus collector yielding the metric families of every producer."""

    def __init__(self, manager: ProducerManager):
        self.manager = manager

    def describe(self) -> Iterable[Metric]:
        # names change as producers come and go; skip registry-level dedupe
        return []

    def collect(self) -> Iterable[Metric]:
        for producer in self.manager.get_all():
            try:
                yield from producer.collect()
            except Exception:  # noqa: BLE001 - one failing producer must not empty the scrape
                logger.error("producer %r failed during collect", producer, exc_info=True)


_bridges: weakref.WeakKeyDictionary[CollectorRegistry, ProducerBridge] = weakref.WeakKeyDictionary()
_bound_lock = threading.Lock()


def bind_manager(manager: ProducerManager, registry: CollectorRegistry) -> ProducerBridge:
    """Register a bridge for `manager` into `registry` once; return the bridge."""
    with _bound_lock:
        bridge = _bridges.get(registry)
        if bridge is not None and bridge.manager is manager:
            return bridge
        if bridge is not None:
            registry.unregister(bridge)
        bridge = ProducerBridge(manager)
        registry.register(bridge)
        _bridges[registry] = bridge
    return bridge


__all__ = [
    "Producer",
    "ProducerManager",
    "ProducerBridge",
    "global_manager",
    "clear_global_manager",
    "bind_manager",
]
