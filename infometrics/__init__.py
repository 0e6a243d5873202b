"""infometrics: process-level info metrics (build info, config reload status,
config checksum, policy count) exported through prometheus_client."""
from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
