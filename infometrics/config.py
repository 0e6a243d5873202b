"""Runtime configuration for infometrics host processes.

All settings come from environment variables (optionally seeded from a .env
file by the CLI):

  INFOMETRICS_SERVICE          service label used by the bootstrap (default infometrics)
  INFOMETRICS_NAMESPACE        metric name prefix (default none)
  INFOMETRICS_METRICS_HOST     exposition bind address (default 0.0.0.0)
  INFOMETRICS_METRICS_PORT     exposition port (default 9108)
  INFOMETRICS_CONFIG_FILE      watched JSON config (default config/config.json)
  INFOMETRICS_RELOAD_INTERVAL  seconds between reload checks (default 30)
  INFOMETRICS_LOG_LEVEL        root log level (default INFO)
  INFOMETRICS_LOG_FILE         optional log file path
  INFOMETRICS_JSON_LOGS        JSON console logs when truthy
"""
from __future__ import annotations

from dataclasses import dataclass

from .utils.env_flags import get_float, get_int, get_str, is_truthy_env


@dataclass(frozen=True)
class InfoMetricsConfig:
    service: str = "infometrics"
    namespace: str = ""
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9108
    config_file: str = "config/config.json"
    reload_interval: float = 30.0
    log_level: str = "INFO"
    log_file: str | None = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> InfoMetricsConfig:
        return cls(
            service=get_str("INFOMETRICS_SERVICE", cls.service),
            namespace=get_str("INFOMETRICS_NAMESPACE", cls.namespace),
            metrics_host=get_str("INFOMETRICS_METRICS_HOST", cls.metrics_host),
            metrics_port=get_int("INFOMETRICS_METRICS_PORT", cls.metrics_port),
            config_file=get_str("INFOMETRICS_CONFIG_FILE", cls.config_file),
            reload_interval=get_float("INFOMETRICS_RELOAD_INTERVAL", cls.reload_interval),
            log_level=get_str("INFOMETRICS_LOG_LEVEL", cls.log_level).upper(),
            log_file=get_str("INFOMETRICS_LOG_FILE") or None,
            json_logs=is_truthy_env("INFOMETRICS_JSON_LOGS"),
        )


__all__ = ["InfoMetricsConfig"]
