"""Synchronous metric collection routines invoked by the poller."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from ..exceptions import FetchError
from ..logging import build_log_extra, get_logger
from ..metrics import (
    MetricsStoreProtocol,
    get_metrics,
    record_block_age,
    record_block_height,
    record_peers_count,
)
from ..models import NetInfoSnapshot, NodeStatusSnapshot
from ..rpc import NET_INFO_ENDPOINT, STATUS_ENDPOINT, NodeRpcClientProtocol

LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class CollectionResult:
    """Outcome of one polling cycle."""

    status_ok: bool = False
    net_info_ok: bool = False

    @property
    def success(self) -> bool:
        return self.status_ok and self.net_info_ok


def compute_block_age(latest_block_time: datetime, now: datetime) -> float:
    """Return seconds elapsed since `latest_block_time`. Negative if it lies in the future."""

    return (now - latest_block_time).total_seconds()


def _fetch_status(rpc_client: NodeRpcClientProtocol) -> NodeStatusSnapshot | None:
    try:
        return rpc_client.get_status()
    except FetchError as exc:
        LOGGER.error(
            "Failed to fetch node status: %s",
            exc.message,
            extra=build_log_extra(endpoint=STATUS_ENDPOINT, additional=exc.context),
        )
        return None


def _fetch_net_info(rpc_client: NodeRpcClientProtocol) -> NetInfoSnapshot | None:
    try:
        return rpc_client.get_net_info()
    except FetchError as exc:
        LOGGER.error(
            "Failed to fetch node net_info: %s",
            exc.message,
            extra=build_log_extra(endpoint=NET_INFO_ENDPOINT, additional=exc.context),
        )
        return None


def record_status_metrics(
    snapshot: NodeStatusSnapshot,
    metrics: MetricsStoreProtocol,
    now: datetime,
) -> None:
    height = record_block_height(snapshot.latest_block_height, metrics)
    LOGGER.debug(
        "latest_block_height=%s",
        height,
        extra=build_log_extra(additional={"latest_block_height": height}),
    )

    age = record_block_age(compute_block_age(snapshot.latest_block_time, now), metrics)
    LOGGER.debug(
        "latest_block_age=%s",
        age,
        extra=build_log_extra(additional={"latest_block_age": age}),
    )


def record_net_info_metrics(snapshot: NetInfoSnapshot, metrics: MetricsStoreProtocol) -> None:
    peers = record_peers_count(snapshot.n_peers, metrics)
    LOGGER.debug(
        "peers_count=%s",
        peers,
        extra=build_log_extra(additional={"peers_count": peers}),
    )


def collect_node_metrics_sync(
    rpc_client: NodeRpcClientProtocol,
    metrics: MetricsStoreProtocol | None = None,
    clock: Clock = utc_now,
) -> CollectionResult:
    """Fetch both endpoints and publish whatever could be decoded.

    A failure on one endpoint leaves its gauges at their previous values and
    does not stop the other endpoint from being fetched.
    """

    metrics_bundle = metrics or get_metrics()
    result = CollectionResult()

    status = _fetch_status(rpc_client)
    net_info = _fetch_net_info(rpc_client)

    if status is not None:
        record_status_metrics(status, metrics_bundle, clock())
        result.status_ok = True

    if net_info is not None:
        record_net_info_metrics(net_info, metrics_bundle)
        result.net_info_ok = True

    return result


__all__ = [
    "CollectionResult",
    "collect_node_metrics_sync",
    "compute_block_age",
    "record_net_info_metrics",
    "record_status_metrics",
    "utc_now",
]
