"""Testing helpers for reading info metrics back.

    samples = find_samples(info.registry, "config_checksum_int64")
    assert samples == [({"service": "svc"}, 42.0)]
"""
from __future__ import annotations

from collections.abc import Iterable

from prometheus_client import CollectorRegistry, generate_latest

from .producer import ProducerManager, bind_manager


def find_samples(producer, name: str) -> list[tuple[dict[str, str], float]]:
    """Return (labels, value) for every sample called `name` in one collect pass."""
    out: list[tuple[dict[str, str], float]] = []
    for family in producer.collect():
        for sample in family.samples:
            if sample.name == name:
                out.append((dict(sample.labels), sample.value))
    return out


def sample_value(producer, name: str, labels: dict[str, str]) -> float | None:
    for got, value in find_samples(producer, name):
        if got == labels:
            return value
    return None


def exposition_lines(manager: ProducerManager, prefixes: Iterable[str] = ()) -> list[str]:
    """Render `manager` through a throwaway registry as prometheus text lines."""
    reg = CollectorRegistry()
    bind_manager(manager, reg)
    text = generate_latest(reg).decode("utf-8")
    wanted = tuple(prefixes)
    return [
        line for line in text.splitlines()
        if line and not line.startswith("#") and (not wanted or line.startswith(wanted))
    ]


__all__ = ["find_samples", "sample_value", "exposition_lines"]
