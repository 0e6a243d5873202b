"""Metric registry primitive backing the info metrics.

Thin layer over a private `prometheus_client.CollectorRegistry` that exposes
the two metric shapes the reporter needs:

  * `Int64Gauge`: stored integer value per label tuple (`get_entry(...).set(v)`)
  * `Int64DerivedGauge`: callback per label tuple, evaluated at read time

Creating a metric whose name already exists raises `DuplicateMetricError`
instead of prometheus' bare ValueError so callers can tell registration
failures apart from other problems.
"""
from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Iterable, Sequence

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from ..errors import (
    DuplicateMetricError,
    ErrorCategory,
    InvalidLabelError,
    LabelCardinalityError,
    MetricsErrorHandler,
    RegistrationError,
    get_error_handler,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_LABEL_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

__all__ = [
    "INT64_MIN",
    "INT64_MAX",
    "GaugeEntry",
    "Int64Gauge",
    "Int64DerivedGauge",
    "MetricRegistry",
]


def _check_int64(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"int64 metric value must be int, got {type(value).__name__}")
    if value < INT64_MIN or value > INT64_MAX:
        raise ValueError(f"value {value} out of int64 range")
    return value


def _validate_label_keys(label_keys: Sequence[str]) -> tuple[str, ...]:
    keys = tuple(label_keys)
    for k in keys:
        if not isinstance(k, str) or not _LABEL_RE.match(k) or k.startswith("__"):
            raise InvalidLabelError(f"invalid label key: {k!r}")
    if len(set(keys)) != len(keys):
        raise InvalidLabelError(f"duplicate label keys: {keys!r}")
    return keys


def _check_cardinality(name: str, keys: tuple[str, ...], values: Sequence[str]) -> tuple[str, ...]:
    if len(values) != len(keys):
        raise LabelCardinalityError(
            f"{name}: expected {len(keys)} label values {keys!r}, got {len(values)}"
        )
    return tuple(str(v) for v in values)


class GaugeEntry:
    """Single time series of an `Int64Gauge` (one label tuple)."""

    def __init__(self, label_values: tuple[str, ...], lock: threading.Lock):
        self.label_values = label_values
        self._lock = lock
        self._value = 0

    def set(self, value: int) -> None:
        _check_int64(value)
        with self._lock:
            self._value = value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class Int64Gauge(Collector):
    """Integer gauge keyed by label values; one entry per unique tuple.

    Values are exported as the ints that were set, so checksums beyond 2**53
    read back exactly.
    """

    def __init__(self, name: str, description: str, label_keys: tuple[str, ...]):
        self.name = name
        self.description = description
        self.label_keys = label_keys
        self._entries: dict[tuple[str, ...], GaugeEntry] = {}
        self._lock = threading.Lock()

    def get_entry(self, *label_values: str) -> GaugeEntry:
        """Return the entry for `label_values`, creating it if absent."""
        values = _check_cardinality(self.name, self.label_keys, label_values)
        with self._lock:
            entry = self._entries.get(values)
            if entry is None:
                entry = GaugeEntry(values, self._lock)
                self._entries[values] = entry
            return entry

    def entries(self) -> dict[tuple[str, ...], GaugeEntry]:
        with self._lock:
            return dict(self._entries)

    def describe(self) -> Iterable[Metric]:
        return [GaugeMetricFamily(self.name, self.description, labels=self.label_keys)]

    def collect(self) -> Iterable[Metric]:
        family = GaugeMetricFamily(self.name, self.description, labels=self.label_keys)
        with self._lock:
            snapshot = [(values, entry._value) for values, entry in self._entries.items()]
        for values, value in snapshot:
            family.add_metric(list(values), value)
        yield family


class Int64DerivedGauge(Collector):
    """Gauge whose values come from callbacks invoked on every read.

    Registered directly as a prometheus collector. A callback that raises is
    reported to the error handler and its series is left out of that read.
    """

    def __init__(self, name: str, description: str, label_keys: tuple[str, ...],
                 error_handler: MetricsErrorHandler | None = None):
        self.name = name
        self.description = description
        self.label_keys = label_keys
        self._callbacks: dict[tuple[str, ...], Callable[[], int]] = {}
        self._lock = threading.Lock()
        self._error_handler = error_handler

    def upsert_entry(self, fn: Callable[[], int], *label_values: str) -> None:
        """Set (or replace) the callback for `label_values`."""
        if not callable(fn):
            raise TypeError("derived gauge callback must be callable")
        values = _check_cardinality(self.name, self.label_keys, label_values)
        with self._lock:
            self._callbacks[values] = fn

    def delete_entry(self, *label_values: str) -> None:
        values = _check_cardinality(self.name, self.label_keys, label_values)
        with self._lock:
            self._callbacks.pop(values, None)

    def describe(self) -> Iterable[Metric]:
        return [GaugeMetricFamily(self.name, self.description, labels=self.label_keys)]

    def collect(self) -> Iterable[Metric]:
        family = GaugeMetricFamily(self.name, self.description, labels=self.label_keys)
        with self._lock:
            callbacks = list(self._callbacks.items())
        for values, fn in callbacks:
            try:
                family.add_metric(list(values), _check_int64(fn()))
            except Exception as e:  # noqa: BLE001 - a broken callback must not break the scrape
                handler = self._error_handler or get_error_handler()
                handler.handle_error(
                    e, ErrorCategory.CALLBACK, component=self.name,
                    message="derived gauge callback failed",
                    context={"labels": dict(zip(self.label_keys, values, strict=True))},
                )
        yield family


class MetricRegistry(Collector):
    """Named set of int64 gauges and derived gauges.

    The registry itself is a prometheus collector, so it can be handed to a
    `ProducerManager` (or registered into any `CollectorRegistry`).
    """

    def __init__(self, namespace: str = "", error_handler: MetricsErrorHandler | None = None):
        self.namespace = namespace
        self._registry = CollectorRegistry(auto_describe=True)
        self._metrics: dict[str, Int64Gauge | Int64DerivedGauge] = {}
        self._lock = threading.Lock()
        self._error_handler = error_handler

    def _full_name(self, name: str) -> str:
        full = f"{self.namespace}_{name}" if self.namespace else name
        if not _NAME_RE.match(full):
            raise RegistrationError(f"invalid metric name: {full!r}")
        return full

    def add_int64_gauge(self, name: str, description: str = "", label_keys: Sequence[str] = ()) -> Int64Gauge:
        keys = _validate_label_keys(label_keys)
        full = self._full_name(name)
        with self._lock:
            if full in self._metrics:
                raise DuplicateMetricError(f"metric {full!r} already registered")
            metric = Int64Gauge(full, description or full, keys)
            try:
                self._registry.register(metric)
            except ValueError as e:
                raise DuplicateMetricError(str(e)) from e
            self._metrics[full] = metric
        logger.debug("registered int64 gauge %s labels=%s", full, keys)
        return metric

    def add_int64_derived_gauge(self, name: str, description: str = "",
                                label_keys: Sequence[str] = ()) -> Int64DerivedGauge:
        keys = _validate_label_keys(label_keys)
        full = self._full_name(name)
        with self._lock:
            if full in self._metrics:
                raise DuplicateMetricError(f"metric {full!r} already registered")
            metric = Int64DerivedGauge(full, description or full, keys, self._error_handler)
            try:
                self._registry.register(metric)
            except ValueError as e:
                raise DuplicateMetricError(str(e)) from e
            self._metrics[full] = metric
        logger.debug("registered int64 derived gauge %s labels=%s", full, keys)
        return metric

    def get(self, name: str) -> Int64Gauge | Int64DerivedGauge | None:
        with self._lock:
            return self._metrics.get(self._full_name(name))

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def collect(self) -> Iterable[Metric]:
        return self._registry.collect()

    def read(self) -> list[Metric]:
        """Snapshot of every metric family, evaluating derived callbacks."""
        return list(self.collect())

    def sample_value(self, name: str, labels: dict[str, str] | None = None) -> int | float | None:
        return self._registry.get_sample_value(self._full_name(name), labels or {})
