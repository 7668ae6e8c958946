"""Runtime dependency container for wiring metrics, settings, and RPC factories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .metrics import MetricsStoreProtocol, get_metrics
from .rpc import NODE_RPC_BASE_URL, NodeRpcClient, NodeRpcClientProtocol
from .settings import AppSettings, get_settings


@dataclass(slots=True)
class ApplicationContext:
    """Bundle of services shared by the poller and the metrics endpoint."""

    metrics: MetricsStoreProtocol

    settings: AppSettings

    rpc_factory: Callable[[AppSettings], NodeRpcClientProtocol]

    def create_rpc_client(self) -> NodeRpcClientProtocol:
        """Construct an RPC client for the configured node."""

        return self.rpc_factory(self.settings)

    @property
    def poll_interval_seconds(self) -> float:
        return self.settings.poller.interval_seconds


def default_rpc_factory(settings: AppSettings) -> NodeRpcClientProtocol:
    """Create a `NodeRpcClient` for the local node."""

    return NodeRpcClient(
        NODE_RPC_BASE_URL,
        timeout_seconds=settings.poller.rpc_request_timeout_seconds,
    )


def create_default_context(settings: AppSettings | None = None) -> ApplicationContext:
    """Build an application context from the environment settings and global metrics."""

    return ApplicationContext(
        metrics=get_metrics(),
        settings=settings or get_settings(),
        rpc_factory=default_rpc_factory,
    )


_APPLICATION_CONTEXT: ApplicationContext | None = None


def get_application_context() -> ApplicationContext:
    """Return the current application context, creating one when absent."""

    global _APPLICATION_CONTEXT

    if _APPLICATION_CONTEXT is None:
        _APPLICATION_CONTEXT = create_default_context()

    return _APPLICATION_CONTEXT


def set_application_context(context: ApplicationContext | None) -> None:
    """Replace the globally cached application context."""

    global _APPLICATION_CONTEXT

    _APPLICATION_CONTEXT = context


def reset_application_context() -> None:
    """Clear the cached context so the next access rebuilds dependencies."""

    set_application_context(None)


__all__ = [
    "ApplicationContext",
    "create_default_context",
    "default_rpc_factory",
    "get_application_context",
    "reset_application_context",
    "set_application_context",
]
