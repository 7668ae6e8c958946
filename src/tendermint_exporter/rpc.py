"""HTTP client for the node's Tendermint RPC endpoints."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Protocol, TypeVar, runtime_checkable

import requests

from .exceptions import FetchDecodeError, FetchNetworkError
from .logging import build_log_extra, get_logger, log_duration
from .models import NetInfoSnapshot, NodeStatusSnapshot

LOGGER = get_logger(__name__)

NODE_RPC_BASE_URL = "http://localhost:26657"
STATUS_ENDPOINT = "status"
NET_INFO_ENDPOINT = "net_info"

SnapshotT = TypeVar("SnapshotT")


@runtime_checkable
class NodeRpcClientProtocol(Protocol):
    @property
    def base_url(self) -> str: ...

    def get_status(self) -> NodeStatusSnapshot: ...

    def get_net_info(self) -> NetInfoSnapshot: ...


def decode_envelope(body: bytes | str, *, endpoint: str, url: str) -> Mapping[str, Any]:
    """Decode a JSON-RPC envelope and return its `result` object.

    Raises:
        FetchDecodeError: If the body is not JSON, carries an `error` object, or has no `result`.
    """
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise FetchDecodeError(
            f"Response from '{endpoint}' is not valid JSON: {exc}",
            endpoint=endpoint,
            url=url,
        ) from exc

    if not isinstance(payload, dict):
        raise FetchDecodeError(
            f"Response from '{endpoint}' is not a JSON-RPC envelope.",
            endpoint=endpoint,
            url=url,
        )

    error = payload.get("error")

    if error:
        error_data = error if isinstance(error, dict) else {"message": str(error)}
        raise FetchDecodeError(
            f"Node returned an error for '{endpoint}'.",
            endpoint=endpoint,
            url=url,
            rpc_error_code=error_data.get("code"),
            rpc_error_message=error_data.get("message"),
        )

    result = payload.get("result")

    if not isinstance(result, dict):
        raise FetchDecodeError(
            f"Response from '{endpoint}' has no 'result' object.",
            endpoint=endpoint,
            url=url,
        )

    return result


class NodeRpcClient:
    """Blocking client that fetches and decodes node RPC responses.

    Errors are raised to the caller as `FetchNetworkError` or `FetchDecodeError`;
    nothing is retried here.
    """

    def __init__(
        self,
        base_url: str = NODE_RPC_BASE_URL,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint}"

    def fetch(
        self,
        endpoint: str,
        parser: Callable[[Mapping[str, Any]], SnapshotT],
    ) -> SnapshotT:
        """GET `endpoint`, read the whole body and decode it with `parser`."""

        url = self.url_for(endpoint)

        with log_duration(
            LOGGER,
            "rpc_fetch_completed",
            extra=build_log_extra(endpoint=endpoint, url=url),
        ):
            try:
                response = self._session.get(url, timeout=self._timeout_seconds)
                body = response.content
            except requests.RequestException as exc:
                raise FetchNetworkError(
                    f"Request to '{endpoint}' failed: {exc}",
                    endpoint=endpoint,
                    url=url,
                    context={"original_exception": type(exc).__name__},
                ) from exc

        result = decode_envelope(body, endpoint=endpoint, url=url)

        try:
            return parser(result)
        except (KeyError, TypeError, ValueError) as exc:
            raise FetchDecodeError(
                f"Response from '{endpoint}' has an unexpected shape: {exc!s}",
                endpoint=endpoint,
                url=url,
                context={"original_exception": type(exc).__name__},
            ) from exc

    def get_status(self) -> NodeStatusSnapshot:
        return self.fetch(STATUS_ENDPOINT, NodeStatusSnapshot.from_result)

    def get_net_info(self) -> NetInfoSnapshot:
        return self.fetch(NET_INFO_ENDPOINT, NetInfoSnapshot.from_result)

    def close(self) -> None:
        self._session.close()


__all__ = [
    "NET_INFO_ENDPOINT",
    "NODE_RPC_BASE_URL",
    "NodeRpcClient",
    "NodeRpcClientProtocol",
    "STATUS_ENDPOINT",
    "decode_envelope",
]
