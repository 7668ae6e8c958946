"""Async control loop for node polling."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Awaitable, Callable

from ..context import ApplicationContext, get_application_context
from ..logging import build_log_extra, get_logger, log_duration
from ..metrics import MetricsStoreProtocol
from ..rpc import NodeRpcClientProtocol
from .collect import Clock, CollectionResult, collect_node_metrics_sync, utc_now

LOGGER = get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


async def poll_node(
    *,
    context: ApplicationContext | None = None,
    sleep: Sleeper = asyncio.sleep,
    clock: Clock = utc_now,
    max_cycles: int | None = None,
) -> None:
    """Continuously collect node metrics at the configured interval.

    Runs until cancelled, or for `max_cycles` iterations when given. Failures
    never stop the loop; the gauges simply keep their last good values.

    Args:
        context: Optional application context (defaults to global context).
        sleep: Awaitable sleep used between cycles.
        clock: Wall clock used to compute the block age.
        max_cycles: Stop after this many cycles (None runs forever).
    """

    context_obj = context or get_application_context()
    interval_seconds = context_obj.poll_interval_seconds
    rpc_client = context_obj.create_rpc_client()

    LOGGER.info(
        "Polling %s every %s seconds.",
        rpc_client.base_url,
        interval_seconds,
        extra=build_log_extra(url=rpc_client.base_url),
    )

    cycles = 0

    try:
        while max_cycles is None or cycles < max_cycles:
            start_time = time.monotonic()

            try:
                with log_duration(LOGGER, "poller_iteration"):
                    await collect_node_metrics(
                        rpc_client,
                        metrics=context_obj.metrics,
                        clock=clock,
                    )
            except asyncio.CancelledError:
                LOGGER.debug("Polling task cancelled.")
                raise
            except Exception as exc:  # noqa: BLE001
                # Fetch errors are handled per endpoint; anything reaching here is a bug.
                LOGGER.exception(
                    "Unexpected error while polling node %s.",
                    rpc_client.base_url,
                    exc_info=exc,
                    extra=build_log_extra(url=rpc_client.base_url),
                )

            cycles += 1

            if max_cycles is not None and cycles >= max_cycles:
                break

            elapsed = time.monotonic() - start_time
            sleep_duration = max(interval_seconds - elapsed, 0)

            await sleep(sleep_duration)
    finally:
        close = getattr(rpc_client, "close", None)

        if callable(close):
            close()


async def collect_node_metrics(
    rpc_client: NodeRpcClientProtocol,
    *,
    metrics: MetricsStoreProtocol | None = None,
    clock: Clock = utc_now,
) -> CollectionResult:
    """Execute one metrics collection cycle on a daemon worker thread.

    The worker is never joined: if the node hangs, cancelling the caller
    returns immediately and interpreter shutdown does not wait for the fetch.
    """

    loop = asyncio.get_running_loop()
    future: asyncio.Future[CollectionResult] = loop.create_future()

    def _deliver(result: CollectionResult | None, error: BaseException | None) -> None:
        if future.done():
            return

        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _worker() -> None:
        try:
            result = collect_node_metrics_sync(rpc_client, metrics, clock)
        except Exception as exc:  # noqa: BLE001
            outcome: tuple[CollectionResult | None, BaseException | None] = (None, exc)
        else:
            outcome = (result, None)

        try:
            loop.call_soon_threadsafe(_deliver, *outcome)
        except RuntimeError:
            # The loop closed while the fetch was still blocked.
            LOGGER.debug("Discarding collection result after event loop shutdown.")

    threading.Thread(target=_worker, name="node-collector", daemon=True).start()

    return await future


__all__ = ["collect_node_metrics", "poll_node"]
