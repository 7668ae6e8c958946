"""Logging helpers: level names, structured `extra` context and formatters."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from time import monotonic
from typing import Any, Dict, Iterator

_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
# uvicorn attaches an ANSI copy of its message; the plain one is enough.
_IGNORED_EXTRA_KEYS = frozenset({"color_message"})

LEVEL_COLORS = {
    "DEBUG": "\033[90m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
TIMESTAMP_COLOR = "\033[36m"
RESET = "\033[0m"

# Level names accepted on the command line. Aliases cover the names used by
# Go's logrus so existing deployment manifests keep working.
LOG_LEVEL_ALIASES = {
    "trace": "DEBUG",
    "warn": "WARNING",
    "fatal": "CRITICAL",
    "panic": "CRITICAL",
}


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def resolve_log_level(name: str) -> str | None:
    """Map a user supplied level name to a `logging` level name, or None if unknown."""

    normalized = name.strip().lower()

    if normalized in LOG_LEVEL_ALIASES:
        return LOG_LEVEL_ALIASES[normalized]

    candidate = normalized.upper()

    if candidate in logging._nameToLevel and candidate != "NOTSET":
        return candidate

    return None


def extract_log_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the attributes a caller attached to `record` through `extra`."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES and key not in _IGNORED_EXTRA_KEYS and not key.startswith("_")
    }


def build_log_extra(
    *,
    endpoint: str | None = None,
    url: str | None = None,
    additional: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Build the `extra` mapping for a node request log line.

    `endpoint` and `url` identify the RPC call; `additional` is merged last so
    an exception's context can be logged as-is.
    """
    extra: Dict[str, Any] = {}

    if endpoint is not None:
        extra["endpoint"] = endpoint

    if url is not None:
        extra["url"] = url

    extra.update(additional or {})

    return extra


@contextmanager
def log_duration(
    logger: logging.Logger,
    message: str,
    *,
    level: int = logging.DEBUG,
    extra: Dict[str, Any] | None = None,
) -> Iterator[None]:
    """Log `message` with `elapsed_seconds` once the block exits, even on error."""

    start = monotonic()
    try:
        yield
    finally:
        log_extra = dict(extra or {})
        log_extra["elapsed_seconds"] = round(monotonic() - start, 3)
        logger.log(level, message, extra=log_extra)


class JsonFormatter(logging.Formatter):
    """One JSON object per line with the record's context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        payload.update(extract_log_context(record))

        return json.dumps(payload, default=str)


class StructuredTextFormatter(logging.Formatter):
    """Plain text lines followed by ` | key=value` pairs from the record's context."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        *,
        color_enabled: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt, style)
        self.color_enabled = color_enabled

    def _paint(self, text: str, color: str) -> str:
        if not self.color_enabled or not color:
            return text
        return f"{color}{text}{RESET}"

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return self._paint(super().formatTime(record, datefmt), TIMESTAMP_COLOR)

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        levelname = record.levelname
        record.levelname = self._paint(levelname, LEVEL_COLORS.get(levelname, ""))

        try:
            return super().formatMessage(record)
        finally:
            record.levelname = levelname

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = extract_log_context(record)

        if not context:
            return line

        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} | {pairs}"


__all__ = [
    "JsonFormatter",
    "LOG_LEVEL_ALIASES",
    "StructuredTextFormatter",
    "build_log_extra",
    "extract_log_context",
    "get_logger",
    "log_duration",
    "resolve_log_level",
]
