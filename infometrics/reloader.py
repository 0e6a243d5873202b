"""Config reload driver feeding the info metrics.

Reads a JSON config file of the shape

    {"policies": [{...}, {...}], ...}

and on every successful (re)load updates the config checksum gauge, swaps the
policy count callback and records a successful reload. A missing or
unparseable file records a failed reload and keeps the previously loaded
config (and its metrics) in place.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from .metrics.info import InfoMetrics
from .utils.build_info import compute_config_checksum, config_checksum_hex

logger = logging.getLogger(__name__)

_UNSET = object()


class ConfigLoadError(Exception):
    """The config file could not be read or parsed."""


def load_config(path: str | os.PathLike[str]) -> dict[str, Any]:
    try:
        with open(path, encoding='utf-8') as fh:
            cfg = json.load(fh)
    except (OSError, ValueError) as e:
        raise ConfigLoadError(f"failed to load config {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigLoadError(f"config {path} must contain a JSON object")
    policies = cfg.get('policies', [])
    if not isinstance(policies, list):
        raise ConfigLoadError(f"config {path}: 'policies' must be a list")
    return cfg


class ConfigReloader:
    """Loads `path` and reports each (re)load to `info` under `service`."""

    def __init__(self, info: InfoMetrics, service: str, path: str | os.PathLike[str]):
        self.info = info
        self.service = service
        self.path = Path(path)
        self.config: dict[str, Any] | None = None
        self._policies: list[Any] = []
        self._mtime: object = _UNSET
        self._lock = threading.Lock()

    def policy_count(self) -> int:
        with self._lock:
            return len(self._policies)

    def reload(self) -> bool:
        """Load the config now; returns True on success."""
        try:
            cfg = load_config(self.path)
        except ConfigLoadError as e:
            logger.error("config reload failed for %s: %s", self.service, e)
            self.info.set_config_info(self.service, False, "")
            return False

        checksum = compute_config_checksum(cfg)
        with self._lock:
            self.config = cfg
            self._policies = list(cfg.get('policies', []))
        self.info.set_config_checksum(self.service, checksum)
        self.info.add_policy_count_callback(self.service, self.policy_count)
        self.info.set_config_info(self.service, True, config_checksum_hex(cfg))
        logger.info("config reloaded for %s: %d policies checksum=%d",
                    self.service, self.policy_count(), checksum)
        return True

    def poll(self) -> bool | None:
        """Reload when the file modification time changed.

        Returns None when nothing changed, otherwise the reload result.
        """
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            mtime = None
        if mtime == self._mtime:
            return None
        self._mtime = mtime
        return self.reload()

    def run(self, interval: float, stop: threading.Event) -> None:
        while not stop.is_set():
            self.poll()
            stop.wait(interval)


__all__ = ["ConfigLoadError", "load_config", "ConfigReloader"]
