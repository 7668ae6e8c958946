import asyncio
import logging
import logging.config
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .api import register_metrics_routes
from .context import (
    ApplicationContext,
    get_application_context,
    set_application_context,
)
from .logging import (
    JsonFormatter,
    StructuredTextFormatter,
    build_log_extra,
    get_logger,
    resolve_log_level,
)
from .poller import control as poller_control
from .settings import AppSettings

LOGGER = get_logger(__name__)

APP_TITLE = "Tendermint Prometheus Exporter"
APP_DESCRIPTION = "Exposes Prometheus metrics for a Tendermint node's status and peers."
POLLER_SHUTDOWN_TIMEOUT_SECONDS = 2.0


def _configure_logging(settings: AppSettings) -> None:
    """Configure logging based on application settings."""
    log_level = resolve_log_level(settings.logging.level) or "INFO"
    log_format = settings.logging.format

    if log_format == "json":
        formatter_config = {
            "()": JsonFormatter,
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        }
    else:
        formatter_config = {
            "()": StructuredTextFormatter,
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            "color_enabled": settings.logging.color_enabled,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": formatter_config},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                }
            },
            "root": {"level": log_level, "handlers": ["default"]},
            "loggers": {
                "uvicorn": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
                "uvicorn.error": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
            },
        }
    )


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the background poll task on startup and cancel it on shutdown.

    The poll task writes into the context's metrics bundle, which the
    `/metrics` route reads on every scrape.
    """

    context: ApplicationContext = getattr(app.state, "context", None) or get_application_context()
    app.state.context = context

    polling_task = asyncio.create_task(poller_control.poll_node(context=context))
    app.state.polling_task = polling_task

    try:
        yield
    finally:
        if not polling_task.done():
            polling_task.cancel()

        try:
            await asyncio.wait_for(
                asyncio.gather(polling_task, return_exceptions=True),
                timeout=POLLER_SHUTDOWN_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Polling task did not stop within %.1f seconds",
                POLLER_SHUTDOWN_TIMEOUT_SECONDS,
                extra=build_log_extra(additional={"timeout_seconds": POLLER_SHUTDOWN_TIMEOUT_SECONDS}),
            )

        app.state.polling_task = None


def create_app(
    *,
    context: ApplicationContext | None = None,
) -> FastAPI:
    """Create a FastAPI instance serving the exporter's metrics.

    Args:
        context: Optional application context for dependency injection (defaults to global context).

    Returns:
        FastAPI application instance with the metrics route registered.
    """

    if context is not None:
        set_application_context(context)

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        lifespan=_lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.context = context

    register_metrics_routes(app)

    return app
