import asyncio
import signal
import socket
import sys

import uvicorn
from fastapi import FastAPI

from .app import _configure_logging, create_app
from .cli import parse_startup_settings
from .context import create_default_context
from .exceptions import ServerBindError, StartupConfigError
from .logging import build_log_extra, get_logger
from .settings import get_settings

LOGGER = get_logger(__name__)


def bind_metrics_socket(host: str, port: int) -> socket.socket:
    """Bind the metrics listener socket up front so bind failures surface before serving."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise ServerBindError(
            f"Unable to bind metrics listener: {exc.strerror or exc}",
            host=host,
            port=port,
        ) from exc

    sock.set_inheritable(True)
    return sock


async def run_server(app: FastAPI, sock: socket.socket) -> None:
    """Serve the metrics app with Uvicorn on an already bound socket.

    The FastAPI lifespan starts the poll task alongside the server and cancels
    it once Uvicorn shuts down.
    """
    config = uvicorn.Config(app, log_config=None)
    server = uvicorn.Server(config)

    await server.serve(sockets=[sock])


def _fail(exc: Exception) -> None:
    """Log a fatal startup error and terminate the process."""

    LOGGER.error(
        "%s",
        exc,
        extra=build_log_extra(additional=getattr(exc, "context", None)),
    )
    sys.exit(1)


def run(argv: list[str] | None = None) -> None:
    """Parse options, bind the metrics port and serve until a termination signal.

    Invalid options and bind failures exit with status 1 before anything is
    served. SIGTERM and SIGINT shut down gracefully with status 0.
    """
    env_settings = get_settings()

    try:
        settings = parse_startup_settings(argv, env_settings)
    except StartupConfigError as exc:
        _configure_logging(env_settings)
        _fail(exc)
        return

    _configure_logging(settings)

    try:
        sock = bind_metrics_socket(settings.server.host, settings.server.metrics_port)
    except ServerBindError as exc:
        _fail(exc)
        return

    LOGGER.info(
        "Serving metrics on %s:%s",
        settings.server.host,
        sock.getsockname()[1],
        extra=build_log_extra(additional={"port": sock.getsockname()[1]}),
    )

    app = create_app(context=create_default_context(settings))

    def _signal_handler(signum: int, frame: object) -> None:
        """Handle termination signals by raising KeyboardInterrupt."""
        raise KeyboardInterrupt(f"Received signal {signum}")

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    try:
        asyncio.run(run_server(app, sock))
    except KeyboardInterrupt:
        # Gracefully handle termination signals without showing traceback.
        sys.exit(0)
    finally:
        sock.close()


if __name__ == "__main__":
    run()
