"""Typed snapshots decoded from the node's RPC responses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

# RFC 3339 as emitted by Tendermint: nanosecond fractions and a trailing "Z".
RFC3339_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp into a timezone-aware datetime.

    Fractions beyond microseconds are truncated since `datetime` cannot hold them.
    """
    if not isinstance(value, str):
        raise TypeError(f"expected timestamp string, got {type(value).__name__}")

    match = RFC3339_PATTERN.match(value.strip())

    if not match:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}")

    date_part, time_part, fraction, offset = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    offset = "+00:00" if offset in ("Z", "z") else offset

    return datetime.fromisoformat(f"{date_part}T{time_part}.{micros}{offset}")


def parse_uint(value: Any) -> int:
    """Parse an unsigned integer that the node encodes as a decimal string.

    Bare JSON numbers and padded strings are rejected, like the node's own
    quoted-integer encoding.
    """
    if not isinstance(value, str):
        raise TypeError(f"expected numeric string, got {type(value).__name__}")

    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"invalid unsigned integer: {value!r}")

    return int(value)


def parse_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected boolean for '{key}', got {type(value).__name__}")

    return value


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key, {})

    if value is None:
        return {}

    if not isinstance(value, Mapping):
        raise TypeError(f"expected object for '{key}', got {type(value).__name__}")

    return value


@dataclass(slots=True)
class ProtocolVersion:
    p2p: str = ""
    block: str = ""
    app: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProtocolVersion:
        return cls(
            p2p=str(payload.get("p2p", "")),
            block=str(payload.get("block", "")),
            app=str(payload.get("app", "")),
        )


@dataclass(slots=True)
class NodeInfo:
    """Identity of a node as reported in `status` and for each `net_info` peer."""

    id: str = ""
    listen_addr: str = ""
    network: str = ""
    version: str = ""
    moniker: str = ""
    protocol_version: ProtocolVersion = field(default_factory=ProtocolVersion)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> NodeInfo:
        return cls(
            id=str(payload.get("id", "")),
            listen_addr=str(payload.get("listen_addr", "")),
            network=str(payload.get("network", "")),
            version=str(payload.get("version", "")),
            moniker=str(payload.get("moniker", "")),
            protocol_version=ProtocolVersion.from_payload(_section(payload, "protocol_version")),
        )


@dataclass(slots=True)
class ValidatorInfo:
    address: str = ""
    voting_power: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ValidatorInfo:
        return cls(
            address=str(payload.get("address", "")),
            voting_power=str(payload.get("voting_power", "")),
        )


@dataclass(slots=True)
class NodeStatusSnapshot:
    """Decoded `result` of the `status` endpoint.

    Only `latest_block_height` and `latest_block_time` feed metrics; the
    remaining fields are kept so the response is decoded as a whole.
    """

    latest_block_height: int
    latest_block_time: datetime
    latest_block_hash: str = ""
    latest_app_hash: str = ""
    earliest_block_height: int | None = None
    earliest_block_time: datetime | None = None
    catching_up: bool = False
    node_info: NodeInfo = field(default_factory=NodeInfo)
    validator_info: ValidatorInfo = field(default_factory=ValidatorInfo)

    @classmethod
    def from_result(cls, result: Mapping[str, Any]) -> NodeStatusSnapshot:
        sync_info = result["sync_info"]

        if not isinstance(sync_info, Mapping):
            raise TypeError("expected object for 'sync_info'")

        earliest_height = sync_info.get("earliest_block_height")
        earliest_time = sync_info.get("earliest_block_time")

        return cls(
            latest_block_height=parse_uint(sync_info["latest_block_height"]),
            latest_block_time=parse_rfc3339(sync_info["latest_block_time"]),
            latest_block_hash=str(sync_info.get("latest_block_hash", "")),
            latest_app_hash=str(sync_info.get("latest_app_hash", "")),
            earliest_block_height=parse_uint(earliest_height) if earliest_height is not None else None,
            earliest_block_time=parse_rfc3339(earliest_time) if earliest_time else None,
            catching_up=parse_bool(sync_info.get("catching_up", False), "catching_up"),
            node_info=NodeInfo.from_payload(_section(result, "node_info")),
            validator_info=ValidatorInfo.from_payload(_section(result, "validator_info")),
        )


@dataclass(slots=True)
class PeerInfo:
    node_info: NodeInfo
    is_outbound: bool
    remote_ip: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PeerInfo:
        return cls(
            node_info=NodeInfo.from_payload(_section(payload, "node_info")),
            is_outbound=parse_bool(payload.get("is_outbound", False), "is_outbound"),
            remote_ip=str(payload.get("remote_ip", "")),
        )


@dataclass(slots=True)
class NetInfoSnapshot:
    """Decoded `result` of the `net_info` endpoint."""

    n_peers: int
    listening: bool = False
    listeners: list[str] = field(default_factory=list)
    peers: list[PeerInfo] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: Mapping[str, Any]) -> NetInfoSnapshot:
        peers = result.get("peers") or []

        if not isinstance(peers, list):
            raise TypeError("expected array for 'peers'")

        return cls(
            n_peers=parse_uint(result["n_peers"]),
            listening=parse_bool(result.get("listening", False), "listening"),
            listeners=[str(item) for item in result.get("listeners") or []],
            peers=[PeerInfo.from_payload(peer) for peer in peers if isinstance(peer, Mapping)],
        )


__all__ = [
    "NetInfoSnapshot",
    "NodeInfo",
    "NodeStatusSnapshot",
    "PeerInfo",
    "ProtocolVersion",
    "ValidatorInfo",
    "parse_rfc3339",
    "parse_bool",
    "parse_uint",
]
