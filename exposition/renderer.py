"""Serialize metric families into the Prometheus text exposition format."""

from __future__ import annotations

from typing import Iterable, Iterator

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import Metric

CONTENT_TYPE = CONTENT_TYPE_LATEST


class SnapshotCollector:
    """Collector that replays a fixed list of families."""

    def __init__(self, families: Iterable[Metric]) -> None:
        self._families = list(families)

    def collect(self) -> Iterator[Metric]:
        return iter(self._families)


def render(families: Iterable[Metric]) -> bytes:
    """Encode ``families`` in order.

    A throwaway registry is used per call, so nothing leaks into the
    process-global default registry and identical input gives identical bytes.
    """
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SnapshotCollector(families))
    return generate_latest(registry)
