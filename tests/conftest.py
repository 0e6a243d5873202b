"""Pytest configuration for infometrics.

Each test gets its own InfoMetrics context, error handler and producer
manager, so no global state needs resetting between tests.
"""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from infometrics.errors import MetricsErrorHandler  # noqa: E402
from infometrics.metrics import InfoMetrics, ProducerManager, clear_global_manager, set_info_metrics  # noqa: E402

BUILD_LABELS = ("v0.0.1+deadbeef", "deadbeef", "cpython3.12.0")


@pytest.fixture()
def error_handler():
    return MetricsErrorHandler()


@pytest.fixture()
def info(error_handler):
    ctx = InfoMetrics(error_handler=error_handler, build_labels=lambda: BUILD_LABELS)
    ctx.register_views()
    return ctx


@pytest.fixture()
def manager():
    return ProducerManager()


@pytest.fixture()
def default_info(info):
    """Install `info` as the process-wide context for facade function tests."""
    prev = set_info_metrics(info)
    yield info
    set_info_metrics(prev)


@pytest.fixture()
def fresh_global_manager():
    clear_global_manager()
    yield
    clear_global_manager()
