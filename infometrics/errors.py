"""
Error types and the error sink used by the info metrics reporter.

Metrics must never break the host process: every failure raised while
registering a metric, looking up an entry or recording a measurement is
handed to a `MetricsErrorHandler`, logged at ERROR and kept in a bounded
in-memory list so callers (and tests) can inspect what went wrong.
"""
from __future__ import annotations

import logging
import threading
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class InfoMetricsError(Exception):
    """Base class for all infometrics errors."""


class RegistrationError(InfoMetricsError):
    """A metric could not be created in the registry."""


class DuplicateMetricError(RegistrationError):
    """A metric with the same name already exists in the registry."""


class InvalidLabelError(RegistrationError):
    """A label key is empty or not a valid metric label name."""


class LabelCardinalityError(InfoMetricsError):
    """Number of label values does not match the number of label keys."""


class RecordingError(InfoMetricsError):
    """A measurement could not be recorded."""


class TagError(RecordingError):
    """A tag key or value passed to a recording call is invalid."""


class ViewError(RecordingError):
    """A view could not be registered."""


class ErrorCategory(Enum):
    """Which stage of the metric lifecycle failed."""

    REGISTRATION = "registration"
    ENTRY_LOOKUP = "entry_lookup"
    RECORDING = "recording"
    CALLBACK = "callback"


@dataclass
class ErrorInfo:
    """Captured details of a single handled error."""

    exception: Exception
    category: ErrorCategory
    component: str = ""
    message: str = ""
    traceback_str: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    thread_id: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exception_type": type(self.exception).__name__,
            "exception_message": str(self.exception),
            "category": self.category.value,
            "component": self.component,
            "message": self.message,
            "traceback": self.traceback_str,
            "timestamp": self.timestamp.isoformat(),
            "thread_id": self.thread_id,
            "context": self.context,
        }


class MetricsErrorHandler:
    """Error sink: logs and remembers errors, never re-raises."""

    def __init__(self, logger_name: str = "infometrics.errors", max_errors: int = 1000):
        self.logger = logging.getLogger(logger_name)
        self.errors: list[ErrorInfo] = []
        self.max_errors = max_errors
        self._lock = threading.Lock()
        self.category_counts: dict[ErrorCategory, int] = {}

    def handle_error(
        self,
        exception: Exception,
        category: ErrorCategory,
        component: str = "",
        message: str = "",
        context: dict[str, Any] | None = None,
    ) -> ErrorInfo:
        """Record an error and log it at ERROR severity.

        Args:
            exception: The exception that occurred
            category: Lifecycle stage that failed
            component: Reporter operation that failed (e.g. ``set_build_info``)
            message: Human readable summary; defaults to ``str(exception)``
            context: Extra key/value data (metric name, service, ...)

        Returns:
            The stored ErrorInfo
        """
        error_info = ErrorInfo(
            exception=exception,
            category=category,
            component=component,
            message=message or str(exception),
            traceback_str=traceback.format_exc(),
            thread_id=str(threading.current_thread().ident),
            context=context or {},
        )
        with self._lock:
            self.errors.append(error_info)
            if len(self.errors) > self.max_errors:
                self.errors.pop(0)
            self.category_counts[category] = self.category_counts.get(category, 0) + 1

        log_msg = f"[{category.value.upper()}] {component}: {error_info.message}: {exception}"
        if error_info.context:
            log_msg += f" | Context: {error_info.context}"
        self.logger.error(log_msg)
        return error_info

    def get_recent_errors(self, count: int = 50) -> list[ErrorInfo]:
        with self._lock:
            return self.errors[-count:] if self.errors else []

    def get_error_summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                "total_errors": len(self.errors),
                "by_category": {cat.value: n for cat, n in self.category_counts.items()},
            }

    def clear(self) -> None:
        with self._lock:
            self.errors.clear()
            self.category_counts.clear()


_default_handler: MetricsErrorHandler | None = None
_handler_lock = threading.Lock()


def get_error_handler() -> MetricsErrorHandler:
    """Return the process-wide default error handler, creating it on first use."""
    global _default_handler  # noqa: PLW0603
    if _default_handler is not None:
        return _default_handler
    with _handler_lock:
        if _default_handler is None:
            _default_handler = MetricsErrorHandler()
        return _default_handler


__all__ = [
    "InfoMetricsError",
    "RegistrationError",
    "DuplicateMetricError",
    "InvalidLabelError",
    "LabelCardinalityError",
    "RecordingError",
    "TagError",
    "ViewError",
    "ErrorCategory",
    "ErrorInfo",
    "MetricsErrorHandler",
    "get_error_handler",
]
