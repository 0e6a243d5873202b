"""Info metrics facade.

Import from here rather than the submodules:

    from infometrics.metrics import InfoMetrics, register_info_metrics
"""
from __future__ import annotations

from .info import (
    BUILD_INFO,
    CONFIG_CHECKSUM,
    CONFIG_LAST_RELOAD_SUCCESS_VIEW,
    CONFIG_LAST_RELOAD_VIEW,
    INFO_VIEWS,
    KEY_SERVICE,
    POLICY_COUNT,
    InfoMetrics,
    add_policy_count_callback,
    get_info_metrics,
    register_info_metrics,
    set_build_info,
    set_config_checksum,
    set_config_info,
    set_info_metrics,
)
from .producer import ProducerBridge, ProducerManager, bind_manager, clear_global_manager, global_manager
from .registry import GaugeEntry, Int64DerivedGauge, Int64Gauge, MetricRegistry
from .server import setup_metrics_server
from .views import Int64Measure, LastValue, Measurement, Row, View, ViewManager

__all__ = [
    "BUILD_INFO",
    "CONFIG_CHECKSUM",
    "CONFIG_LAST_RELOAD_SUCCESS_VIEW",
    "CONFIG_LAST_RELOAD_VIEW",
    "INFO_VIEWS",
    "KEY_SERVICE",
    "POLICY_COUNT",
    "InfoMetrics",
    "add_policy_count_callback",
    "get_info_metrics",
    "register_info_metrics",
    "set_build_info",
    "set_config_checksum",
    "set_config_info",
    "set_info_metrics",
    "ProducerBridge",
    "ProducerManager",
    "bind_manager",
    "clear_global_manager",
    "global_manager",
    "GaugeEntry",
    "Int64DerivedGauge",
    "Int64Gauge",
    "MetricRegistry",
    "setup_metrics_server",
    "Int64Measure",
    "LastValue",
    "Measurement",
    "Row",
    "View",
    "ViewManager",
]
