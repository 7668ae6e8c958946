"""Prometheus metric registry and helpers for node state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from prometheus_client import CollectorRegistry, Gauge


@dataclass(slots=True)
class NodeMetrics:
    latest_block_height: Gauge
    latest_block_age: Gauge
    peers_count: Gauge


@runtime_checkable
class MetricsStoreProtocol(Protocol):
    registry: CollectorRegistry
    node: NodeMetrics


@dataclass(slots=True)
class MetricsBundle(MetricsStoreProtocol):
    registry: CollectorRegistry
    node: NodeMetrics


def create_metrics(registry: CollectorRegistry | None = None) -> MetricsBundle:
    registry = registry or CollectorRegistry()

    node = NodeMetrics(
        latest_block_height=Gauge(
            "latest_block_height",
            "Latest block Height",
            registry=registry,
        ),
        latest_block_age=Gauge(
            "latest_block_age",
            "Latest block in seconds",
            registry=registry,
        ),
        peers_count=Gauge(
            "peers_count",
            "Number of peers",
            registry=registry,
        ),
    )

    return MetricsBundle(registry=registry, node=node)


_METRICS: MetricsStoreProtocol = create_metrics()


def get_metrics() -> MetricsStoreProtocol:
    return _METRICS


def set_metrics(bundle: MetricsStoreProtocol) -> None:
    global _METRICS
    _METRICS = bundle


def reset_metrics_state(registry: CollectorRegistry | None = None) -> MetricsStoreProtocol:
    """Rebuild the metrics bundle on a fresh registry."""

    bundle = create_metrics(registry)
    set_metrics(bundle)

    return bundle


def record_block_height(height: int, metrics: MetricsStoreProtocol | None = None) -> float:
    value = float(height)
    (metrics or get_metrics()).node.latest_block_height.set(value)
    return value


def record_block_age(age_seconds: float, metrics: MetricsStoreProtocol | None = None) -> float:
    (metrics or get_metrics()).node.latest_block_age.set(age_seconds)
    return age_seconds


def record_peers_count(peers: int, metrics: MetricsStoreProtocol | None = None) -> float:
    value = float(peers)
    (metrics or get_metrics()).node.peers_count.set(value)
    return value


__all__ = [
    "MetricsBundle",
    "MetricsStoreProtocol",
    "NodeMetrics",
    "create_metrics",
    "get_metrics",
    "record_block_age",
    "record_block_height",
    "record_peers_count",
    "reset_metrics_state",
    "set_metrics",
]
