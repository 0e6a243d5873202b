"""Environment flag helpers.

Interprets environment variables as boolean feature flags using the
canonical truthy set {"1","true","yes","on"} (case-insensitive), plus typed
getters with defaults for the config layer.
"""
from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

TRUTHY_SET: set[str] = {"1", "true", "yes", "on"}


def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET


def is_truthy_env(name: str, default: str | None = None) -> bool:
    return is_truthy(os.getenv(name, default or ''))


def get_str(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("env %s=%r is not an integer; using default %s", name, raw, default)
        return default


def get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("env %s=%r is not a number; using default %s", name, raw, default)
        return default


__all__ = [
    'TRUTHY_SET',
    'is_truthy',
    'is_truthy_env',
    'get_str',
    'get_int',
    'get_float',
]
