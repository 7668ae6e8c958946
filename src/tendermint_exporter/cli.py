"""Command-line option parsing and validation."""

from __future__ import annotations

import argparse
from dataclasses import replace

from .exceptions import StartupConfigError
from .logging import resolve_log_level
from .settings import AppSettings, get_settings

MIN_PORT = 0
MAX_PORT = 65535
MIN_INTERVAL_MS = 100


def _build_parser(settings: AppSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tendermint-exporter",
        description="Export Tendermint node status and peer count as Prometheus metrics.",
    )
    parser.add_argument(
        "-p",
        "--port",
        dest="port",
        type=int,
        default=settings.server.metrics_port,
        help="Network port to bind to (defaults to METRICS_PORT or 2112).",
    )
    parser.add_argument(
        "-i",
        "--interval",
        dest="interval",
        type=int,
        default=settings.poller.interval_ms,
        help="Scrape interval in milliseconds (defaults to POLL_INTERVAL_MS or 1000).",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        dest="log_level",
        default=settings.logging.level,
        help="Log level (defaults to LOG_LEVEL or info).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("text", "json"),
        default=settings.logging.format if settings.logging.format in ("text", "json") else "text",
        help="Log output format (defaults to LOG_FORMAT or text).",
    )
    return parser


def validate_port(port: int) -> int:
    if port < MIN_PORT or port > MAX_PORT:
        raise StartupConfigError(
            f"Network port MUST be between {MIN_PORT} and {MAX_PORT}",
            option="-p",
            value=port,
        )
    return port


def validate_interval(interval_ms: int) -> int:
    if interval_ms < MIN_INTERVAL_MS:
        raise StartupConfigError(
            f"Scraping interval MUST be at least {MIN_INTERVAL_MS} milliseconds",
            option="-i",
            value=interval_ms,
        )
    return interval_ms


def validate_log_level(level: str) -> str:
    resolved = resolve_log_level(level)

    if resolved is None:
        raise StartupConfigError(
            f"Invalid log level: {level!r}",
            option="-l",
            value=level,
        )
    return resolved


def parse_startup_settings(
    argv: list[str] | None = None,
    settings: AppSettings | None = None,
) -> AppSettings:
    """Merge command-line options over environment settings and validate the result.

    Raises:
        StartupConfigError: If the port, interval, or log level is invalid.
        SystemExit: If argparse rejects the arguments (e.g. a non-integer port).
    """

    base = settings or get_settings()
    args = _build_parser(base).parse_args(argv)

    port = validate_port(args.port)
    interval_ms = validate_interval(args.interval)
    log_level = validate_log_level(args.log_level)

    return replace(
        base,
        logging=replace(base.logging, level=log_level, format=args.log_format),
        poller=replace(base.poller, interval_ms=interval_ms),
        server=replace(base.server, metrics_port=port),
    )


__all__ = [
    "MAX_PORT",
    "MIN_INTERVAL_MS",
    "MIN_PORT",
    "parse_startup_settings",
    "validate_interval",
    "validate_log_level",
    "validate_port",
]
