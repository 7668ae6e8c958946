"""Polling package for node metrics."""

from .collect import CollectionResult, collect_node_metrics_sync, compute_block_age
from .control import collect_node_metrics, poll_node

__all__ = [
    "CollectionResult",
    "collect_node_metrics",
    "collect_node_metrics_sync",
    "compute_block_age",
    "poll_node",
]
