"""Helpers for build and config metadata fed into the info metrics.

 - runtime_version(): interpreter version used as the build info runtime label.
 - compute_config_checksum(): deterministic signed int64 derived from the
   canonical JSON form of a config mapping (sorted keys, compact separators),
   suitable for the int64 config checksum gauge.
"""
from __future__ import annotations

import hashlib
import json
import platform
from typing import Any


def runtime_version() -> str:
    return f"{platform.python_implementation().lower()}{platform.python_version()}"


def canonical_config_bytes(config: Any) -> bytes:
    return json.dumps(config, sort_keys=True, separators=(',', ':'), default=str).encode('utf-8')


def compute_config_checksum(config: Any) -> int:
    """Return the first 8 bytes of sha256(canonical JSON) as a signed int64."""
    digest = hashlib.sha256(canonical_config_bytes(config)).digest()
    return int.from_bytes(digest[:8], 'big', signed=True)


def config_checksum_hex(config: Any) -> str:
    return hashlib.sha256(canonical_config_bytes(config)).hexdigest()[:16]


__all__ = ['runtime_version', 'canonical_config_bytes', 'compute_config_checksum', 'config_checksum_hex']
