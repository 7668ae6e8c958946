"""HTTP API surface for the Tendermint exporter."""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .context import ApplicationContext, get_application_context


def _resolve_context(request: Request) -> ApplicationContext:
    context = getattr(request.app.state, "context", None)
    return context if context is not None else get_application_context()


def register_metrics_routes(app: FastAPI) -> None:
    """Register the Prometheus scrape endpoint.

    Registers:
    - GET /metrics: current gauge values (always returns 200, whatever the node's health)
    """
    @app.get("/metrics", response_class=Response)
    async def metrics(request: Request) -> Response:
        registry = _resolve_context(request).metrics.registry
        metric_data = generate_latest(registry)

        return Response(content=metric_data, media_type=CONTENT_TYPE_LATEST)


__all__ = ["register_metrics_routes"]
