from __future__ import annotations

from typing import Any

import pytest

from tendermint_exporter.context import reset_application_context
from tendermint_exporter.metrics import reset_metrics_state
from tendermint_exporter.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def reset_exporter_state() -> None:
    reset_metrics_state()
    reset_application_context()
    reset_settings_cache()
    yield
    reset_metrics_state()
    reset_application_context()
    reset_settings_cache()


def build_status_payload(
    height: str = "123",
    block_time: str = "2024-05-01T12:00:00.123456789Z",
) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "node_info": {
                "protocol_version": {"p2p": "8", "block": "11", "app": "0"},
                "id": "4f3a0c9b",
                "listen_addr": "tcp://0.0.0.0:26656",
                "network": "cosmoshub-4",
                "version": "0.37.4",
                "channels": "40202122233038606100",
                "moniker": "validator-1",
                "other": {"tx_index": "on", "rpc_address": "tcp://127.0.0.1:26657"},
            },
            "sync_info": {
                "latest_block_hash": "ABCDEF",
                "latest_app_hash": "123456",
                "latest_block_height": height,
                "latest_block_time": block_time,
                "earliest_block_hash": "000000",
                "earliest_app_hash": "000000",
                "earliest_block_height": "1",
                "earliest_block_time": "2019-12-11T16:11:34.000000000Z",
                "catching_up": False,
            },
            "validator_info": {
                "address": "B00A6323737F321EB0B8D59C6FD497A14B60938A",
                "pub_key": {"type": "tendermint/PubKeyEd25519", "value": "cOQZvh/h9ZioSeUMZB/1Vy1Xo5x2sjrVjlE/qHnYifM="},
                "voting_power": "0",
            },
        },
    }


def build_net_info_payload(n_peers: str = "5") -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "listening": True,
            "listeners": ["Listener(@)"],
            "n_peers": n_peers,
            "peers": [
                {
                    "node_info": {
                        "protocol_version": {"p2p": "8", "block": "11", "app": "0"},
                        "id": "peer-1",
                        "listen_addr": "tcp://0.0.0.0:26656",
                        "network": "cosmoshub-4",
                        "version": "0.37.4",
                        "moniker": "peer-one",
                    },
                    "is_outbound": True,
                    "connection_status": {"Duration": "1000", "Channels": []},
                    "remote_ip": "10.0.0.2",
                }
            ],
        },
    }


@pytest.fixture
def status_payload() -> dict[str, Any]:
    return build_status_payload()


@pytest.fixture
def net_info_payload() -> dict[str, Any]:
    return build_net_info_payload()


@pytest.fixture
def make_status_payload():
    return build_status_payload


@pytest.fixture
def make_net_info_payload():
    return build_net_info_payload
