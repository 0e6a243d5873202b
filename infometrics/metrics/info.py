"""Process-level info metrics: build info, config reload status, config
checksum and policy count.

Gauges live in a `MetricRegistry` that the host attaches to the export
pipeline with `register_info_metrics()`; the reload status/timestamp are
view based and need `register_views()` before anything recorded becomes
visible. Metric failures never reach the caller: they are handed to the
error handler (logged at ERROR) and the operation is abandoned, leaving the
previous metric state untouched.

Typical host usage:

    info = InfoMetrics()
    info.register_views()
    info.register_info_metrics()
    info.set_build_info("proxy")
    # on every config reload
    info.set_config_checksum("proxy", checksum)
    info.add_policy_count_callback("proxy", lambda: len(policies))
    info.set_config_info("proxy", True, hex_checksum)

Module level functions with the same names act on a default process-wide
`InfoMetrics` (see `get_info_metrics`).
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from ..errors import ErrorCategory, MetricsErrorHandler, get_error_handler
from ..utils.build_info import runtime_version
from ..version import full_version, get_git_commit
from .producer import ProducerManager, global_manager
from .registry import Int64DerivedGauge, Int64Gauge, MetricRegistry
from .views import Int64Measure, LastValue, View, ViewManager

logger = logging.getLogger(__name__)

KEY_SERVICE = "service"

BUILD_INFO = "build_info"
CONFIG_CHECKSUM = "config_checksum_int64"
POLICY_COUNT = "policy_count_total"

config_last_reload = Int64Measure(
    "config_last_reload_success_timestamp", "Timestamp of last successful config reload", "seconds")
config_last_reload_success = Int64Measure(
    "config_last_reload_success", "Returns 1 if last reload was successful", "1")

# Timestamp of the last successful configuration reload, labeled by service
CONFIG_LAST_RELOAD_VIEW = View(
    name=config_last_reload.name,
    description=config_last_reload.description,
    measure=config_last_reload,
    tag_keys=(KEY_SERVICE,),
    aggregation=LastValue(),
)

# Result of the last configuration reload, labeled by service
CONFIG_LAST_RELOAD_SUCCESS_VIEW = View(
    name=config_last_reload_success.name,
    description=config_last_reload_success.description,
    measure=config_last_reload_success,
    tag_keys=(KEY_SERVICE,),
    aggregation=LastValue(),
)

INFO_VIEWS = (CONFIG_LAST_RELOAD_VIEW, CONFIG_LAST_RELOAD_SUCCESS_VIEW)


def default_build_labels() -> tuple[str, str, str]:
    """(version, revision, runtime) for the running process."""
    return full_version(), get_git_commit(), runtime_version()


class InfoMetrics:
    """Owner of the info metric registry, views and lazily created gauges."""

    def __init__(self, registry: MetricRegistry | None = None, views: ViewManager | None = None,
                 error_handler: MetricsErrorHandler | None = None, *, namespace: str = "",
                 build_labels: Callable[[], tuple[str, str, str]] = default_build_labels,
                 clock: Callable[[], float] = time.time):
        self.error_handler = error_handler or get_error_handler()
        self.registry = registry or MetricRegistry(namespace, error_handler=self.error_handler)
        self.views = views or ViewManager(namespace)
        self._build_labels = build_labels
        self._clock = clock
        self._init_lock = threading.Lock()
        self.build_info: Int64Gauge | None = None
        self.config_checksum: Int64Gauge | None = None
        self.policy_count: Int64DerivedGauge | None = None

    def _report(self, exc: Exception, category: ErrorCategory, component: str, message: str,
                **context: Any) -> None:
        self.error_handler.handle_error(exc, category, component=component, message=message, context=context)

    def _ensure(self, attr: str, create: Callable[[], Any], component: str, what: str) -> Any:
        metric = getattr(self, attr)
        if metric is not None:
            return metric
        with self._init_lock:
            metric = getattr(self, attr)
            if metric is None:
                try:
                    metric = create()
                except Exception as e:  # noqa: BLE001 - metrics must not break the host
                    self._report(e, ErrorCategory.REGISTRATION, component,
                                 f"failed to register {what} metric")
                    return None
                setattr(self, attr, metric)
                logger.debug("%s metric registered", what)
            return metric

    def set_build_info(self, service: str) -> None:
        """Record the build info for `service`. Requires register_info_metrics() for export."""
        gauge = self._ensure(
            "build_info",
            lambda: self.registry.add_int64_gauge(
                BUILD_INFO, "Build Metadata", (KEY_SERVICE, "version", "revision", "pyversion")),
            "set_build_info", "build info",
        )
        if gauge is None:
            return
        try:
            version, revision, runtime = self._build_labels()
            gauge.get_entry(service, version, revision, runtime).set(1)
        except Exception as e:  # noqa: BLE001
            self._report(e, ErrorCategory.ENTRY_LOOKUP, "set_build_info",
                         "failed to add build info metric", service=service)

    def set_config_info(self, service: str, success: bool, checksum: str) -> None:
        """Record status and timestamp of a configuration reload.

        The info views (or the matching config views) must be registered first.
        On failure the success flag is recorded without the service tag.
        """
        if success:
            tags = {KEY_SERVICE: service}
            try:
                self.views.record([config_last_reload.m(int(self._clock()))], tags)
            except Exception as e:  # noqa: BLE001
                self._report(e, ErrorCategory.RECORDING, "set_config_info",
                             "failed to record config checksum timestamp", service=service)
            try:
                self.views.record([config_last_reload_success.m(1)], tags)
            except Exception as e:  # noqa: BLE001
                self._report(e, ErrorCategory.RECORDING, "set_config_info",
                             "failed to record config reload", service=service)
        else:
            try:
                self.views.record([config_last_reload_success.m(0)])
            except Exception as e:  # noqa: BLE001
                self._report(e, ErrorCategory.RECORDING, "set_config_info",
                             "failed to record config reload", service=service)

    def set_config_checksum(self, service: str, checksum: int) -> None:
        """Record the config checksum for `service`. Requires register_info_metrics() for export."""
        gauge = self._ensure(
            "config_checksum",
            lambda: self.registry.add_int64_gauge(
                CONFIG_CHECKSUM, "Config checksum represented in int64 notation", (KEY_SERVICE,)),
            "set_config_checksum", "config checksum",
        )
        if gauge is None:
            return
        try:
            gauge.get_entry(service).set(checksum)
        except Exception as e:  # noqa: BLE001
            self._report(e, ErrorCategory.ENTRY_LOOKUP, "set_config_checksum",
                         "failed to add config checksum metric", service=service)

    def add_policy_count_callback(self, service: str, fn: Callable[[], int]) -> None:
        """Set the function called on export to report the policy count for `service`.

        Replaces any callback previously set for the same service.
        """
        gauge = self._ensure(
            "policy_count",
            lambda: self.registry.add_int64_derived_gauge(
                POLICY_COUNT, "Total number of policies loaded", (KEY_SERVICE,)),
            "add_policy_count_callback", "policy count",
        )
        if gauge is None:
            return
        try:
            gauge.upsert_entry(fn, service)
        except Exception as e:  # noqa: BLE001
            self._report(e, ErrorCategory.ENTRY_LOOKUP, "add_policy_count_callback",
                         "failed to add policy count metric", service=service)

    def register_info_metrics(self, manager: ProducerManager | None = None) -> None:
        """Attach the gauge registry to the producer manager for export."""
        (manager or global_manager()).add_producer(self.registry)

    def unregister_info_metrics(self, manager: ProducerManager | None = None) -> None:
        (manager or global_manager()).delete_producer(self.registry)

    def register_views(self) -> None:
        try:
            self.views.register_views(*INFO_VIEWS)
        except Exception as e:  # noqa: BLE001
            self._report(e, ErrorCategory.REGISTRATION, "register_views", "failed to register info views")

    def unregister_views(self) -> None:
        self.views.unregister_views(*INFO_VIEWS)

    def register_view_exporter(self, manager: ProducerManager | None = None) -> None:
        """Attach the view manager to the producer manager so view rows are scraped."""
        (manager or global_manager()).add_producer(self.views)


_DEFAULT: InfoMetrics | None = None
_DEFAULT_LOCK = threading.Lock()


def get_info_metrics() -> InfoMetrics:
    """Return the process-wide InfoMetrics, creating it atomically on first use."""
    global _DEFAULT  # noqa: PLW0603
    if _DEFAULT is not None:
        return _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = InfoMetrics()
        return _DEFAULT


def set_info_metrics(info: InfoMetrics | None) -> InfoMetrics | None:
    """Replace the process-wide InfoMetrics (None clears it); returns the previous one."""
    global _DEFAULT  # noqa: PLW0603
    with _DEFAULT_LOCK:
        prev, _DEFAULT = _DEFAULT, info
    return prev


def set_build_info(service: str) -> None:
    get_info_metrics().set_build_info(service)


def set_config_info(service: str, success: bool, checksum: str) -> None:
    get_info_metrics().set_config_info(service, success, checksum)


def set_config_checksum(service: str, checksum: int) -> None:
    get_info_metrics().set_config_checksum(service, checksum)


def add_policy_count_callback(service: str, fn: Callable[[], int]) -> None:
    get_info_metrics().add_policy_count_callback(service, fn)


def register_info_metrics(manager: ProducerManager | None = None) -> None:
    get_info_metrics().register_info_metrics(manager)


__all__ = [
    "KEY_SERVICE",
    "BUILD_INFO",
    "CONFIG_CHECKSUM",
    "POLICY_COUNT",
    "config_last_reload",
    "config_last_reload_success",
    "CONFIG_LAST_RELOAD_VIEW",
    "CONFIG_LAST_RELOAD_SUCCESS_VIEW",
    "INFO_VIEWS",
    "InfoMetrics",
    "default_build_labels",
    "get_info_metrics",
    "set_info_metrics",
    "set_build_info",
    "set_config_info",
    "set_config_checksum",
    "add_policy_count_callback",
    "register_info_metrics",
]
