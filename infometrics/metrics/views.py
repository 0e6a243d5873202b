"""Measures, views and the view manager.

A view tells the export side how to present a measure: which tag keys become
labels and how recorded values are aggregated. Only "last value" aggregation
is supported, which is all the reload metrics need:

    reload_ts = Int64Measure("config_last_reload_success_timestamp", "...", "seconds")
    view = View(reload_ts.name, reload_ts.description, reload_ts, ("service",), LastValue())
    manager.register_views(view)
    manager.record([reload_ts.m(int(time.time()))], tags={"service": "proxy"})

Measurements on a measure without a registered view are dropped. Tags that a
view lists but a recording omits are exported as an empty label value.
"""
from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from ..errors import TagError, ViewError
from .registry import _check_int64

logger = logging.getLogger(__name__)

_TAG_KEY_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
MAX_TAG_VALUE_LEN = 255

__all__ = [
    "Int64Measure",
    "Measurement",
    "LastValue",
    "View",
    "Row",
    "ViewManager",
]


@dataclass(frozen=True)
class Int64Measure:
    name: str
    description: str = ""
    unit: str = "1"

    def m(self, value: int) -> Measurement:
        return Measurement(self, value)


@dataclass(frozen=True)
class Measurement:
    measure: Int64Measure
    value: int


@dataclass(frozen=True)
class LastValue:
    """Keep only the most recently recorded value per tag tuple."""


@dataclass(frozen=True)
class View:
    name: str
    description: str
    measure: Int64Measure
    tag_keys: tuple[str, ...] = ()
    aggregation: LastValue = field(default_factory=LastValue)


@dataclass(frozen=True)
class Row:
    tags: tuple[tuple[str, str], ...]
    value: int

    def tag(self, key: str) -> str | None:
        return dict(self.tags).get(key)


def _validate_tags(tags: Mapping[str, str]) -> dict[str, str]:
    clean: dict[str, str] = {}
    for k, v in tags.items():
        if not isinstance(k, str) or not _TAG_KEY_RE.match(k):
            raise TagError(f"invalid tag key: {k!r}")
        if not isinstance(v, str):
            raise TagError(f"tag {k!r} value must be str, got {type(v).__name__}")
        if len(v) > MAX_TAG_VALUE_LEN or not v.isprintable():
            raise TagError(f"invalid value for tag {k!r}")
        clean[k] = v
    return clean


class ViewManager(Collector):
    """Registered views plus their aggregated rows.

    Also a prometheus collector: each view is exported as a gauge family named
    after the view with its tag keys as labels.
    """

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self._views: dict[str, View] = {}
        self._rows: dict[str, dict[tuple[str, ...], int]] = {}
        self._lock = threading.Lock()

    def register_views(self, *views: View) -> None:
        with self._lock:
            for v in views:
                if not isinstance(v.aggregation, LastValue):
                    raise ViewError(f"view {v.name!r}: unsupported aggregation {v.aggregation!r}")
                for k in v.tag_keys:
                    if not _TAG_KEY_RE.match(k):
                        raise ViewError(f"view {v.name!r}: invalid tag key {k!r}")
                existing = self._views.get(v.name)
                if existing is not None:
                    if existing != v:
                        raise ViewError(f"a different view named {v.name!r} is already registered")
                    continue
                self._views[v.name] = v
                self._rows[v.name] = {}
                logger.debug("registered view %s", v.name)

    def unregister_views(self, *views: View) -> None:
        """Forget views and their collected rows. Unknown views are ignored."""
        with self._lock:
            for v in views:
                if self._views.get(v.name) == v:
                    del self._views[v.name]
                    self._rows.pop(v.name, None)

    def registered(self) -> list[View]:
        with self._lock:
            return list(self._views.values())

    def record(self, measurements: Sequence[Measurement], tags: Mapping[str, str] | None = None) -> None:
        """Record measurements under `tags`.

        Raises TagError for malformed tags and TypeError/ValueError for values
        outside int64; nothing is recorded in that case.
        """
        clean = _validate_tags(tags or {})
        for ms in measurements:
            _check_int64(ms.value)
        with self._lock:
            for ms in measurements:
                for view in self._views.values():
                    if view.measure != ms.measure:
                        continue
                    key = tuple(clean.get(k, "") for k in view.tag_keys)
                    self._rows[view.name][key] = ms.value

    def retrieve_data(self, view_name: str) -> list[Row]:
        with self._lock:
            view = self._views.get(view_name)
            if view is None:
                raise ViewError(f"no view named {view_name!r} is registered")
            return [
                Row(tuple(zip(view.tag_keys, key, strict=True)), value)
                for key, value in self._rows[view_name].items()
            ]

    def describe(self) -> Iterable[Metric]:
        return []

    def collect(self) -> Iterable[Metric]:
        with self._lock:
            snapshot = [(v, dict(self._rows[v.name])) for v in self._views.values()]
        for view, rows in snapshot:
            name = f"{self.namespace}_{view.name}" if self.namespace else view.name
            family = GaugeMetricFamily(name, view.description or name, labels=view.tag_keys)
            for key, value in rows.items():
                family.add_metric(list(key), value)
            yield family
