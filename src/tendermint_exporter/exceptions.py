"""Custom exception hierarchy for the Tendermint exporter."""

from __future__ import annotations


class NodeExporterError(Exception):
    """Base exception for all exporter errors.

    Carries a human readable message plus an optional context dictionary that
    is rendered by ``__str__`` and attached to structured log records.
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: The error message.
            context: Optional context dictionary with additional error information.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class FetchError(NodeExporterError):
    """Base exception for failures while fetching a node RPC endpoint.

    Raised by the fetcher and handled by the poller, which logs it and keeps
    the previous gauge values.
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        url: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize the fetch error with context.

        Args:
            message: The error message.
            endpoint: The RPC endpoint path (e.g. ``status``).
            url: The full URL that was requested.
            context: Optional additional context.
        """
        fetch_context: dict[str, object] = {}
        if endpoint:
            fetch_context["endpoint"] = endpoint
        if url:
            fetch_context["url"] = url
        if context:
            fetch_context.update(context)

        super().__init__(message, context=fetch_context)
        self.endpoint = endpoint
        self.url = url


class FetchNetworkError(FetchError):
    """Raised when the HTTP request to the node fails."""

    pass


class FetchDecodeError(FetchError):
    """Raised when a response body is not valid JSON or has an unexpected shape."""

    def __init__(
        self,
        message: str,
        *,
        rpc_error_code: int | None = None,
        rpc_error_message: str | None = None,
        **kwargs: object,
    ) -> None:
        """Initialize the decode error.

        Args:
            message: The error message.
            rpc_error_code: JSON-RPC error code when the node returned an error envelope.
            rpc_error_message: JSON-RPC error message when the node returned an error envelope.
            **kwargs: Additional arguments passed to FetchError.
        """
        context = kwargs.pop("context", {}) or {}
        if rpc_error_code is not None:
            context["rpc_error_code"] = rpc_error_code
        if rpc_error_message:
            context["rpc_error_message"] = rpc_error_message
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.rpc_error_code = rpc_error_code
        self.rpc_error_message = rpc_error_message


class StartupConfigError(NodeExporterError):
    """Raised when a command-line option or setting holds an invalid value."""

    def __init__(
        self,
        message: str,
        *,
        option: str | None = None,
        value: object | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        config_context: dict[str, object] = {}
        if option:
            config_context["option"] = option
        if value is not None:
            config_context["value"] = value
        if context:
            config_context.update(context)

        super().__init__(message, context=config_context)
        self.option = option
        self.value = value


class ServerBindError(NodeExporterError):
    """Raised when the metrics HTTP listener cannot bind its port."""

    def __init__(
        self,
        message: str,
        *,
        host: str | None = None,
        port: int | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        bind_context: dict[str, object] = {}
        if host:
            bind_context["host"] = host
        if port is not None:
            bind_context["port"] = port
        if context:
            bind_context.update(context)

        super().__init__(message, context=bind_context)
        self.host = host
        self.port = port


__all__ = [
    "FetchDecodeError",
    "FetchError",
    "FetchNetworkError",
    "NodeExporterError",
    "ServerBindError",
    "StartupConfigError",
]
