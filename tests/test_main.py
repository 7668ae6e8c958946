from __future__ import annotations

import os
import signal
import socket
import threading
import time
from datetime import datetime, timezone
from typing import Any, Iterator

import pytest
from fastapi import FastAPI

import tendermint_exporter.main as main_module
from tendermint_exporter.context import ApplicationContext
from tendermint_exporter.exceptions import ServerBindError
from tendermint_exporter.metrics import create_metrics
from tendermint_exporter.models import NetInfoSnapshot, NodeStatusSnapshot
from tendermint_exporter.settings import AppSettings


@pytest.fixture(autouse=True)
def no_logging_reconfiguration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main_module, "_configure_logging", lambda _settings: None)


def test_bind_metrics_socket_binds_ephemeral_port() -> None:
    sock = main_module.bind_metrics_socket("127.0.0.1", 0)

    try:
        host, port = sock.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
    finally:
        sock.close()


def test_bind_metrics_socket_raises_when_port_in_use() -> None:
    occupied = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    occupied.bind(("127.0.0.1", 0))
    occupied.listen(1)

    try:
        port = occupied.getsockname()[1]

        with pytest.raises(ServerBindError) as exc_info:
            main_module.bind_metrics_socket("127.0.0.1", port)

        assert exc_info.value.port == port
        assert exc_info.value.host == "127.0.0.1"
    finally:
        occupied.close()


@pytest.mark.parametrize("argv", [["-p", "70000"], ["-i", "50"], ["-l", "chatty"]])
def test_run_exits_before_binding_on_invalid_options(
    monkeypatch: pytest.MonkeyPatch,
    argv: list[str],
) -> None:
    bind_calls: list[tuple[str, int]] = []

    def _fake_bind(host: str, port: int) -> socket.socket:
        bind_calls.append((host, port))
        raise AssertionError("bind must not be attempted")

    monkeypatch.setattr(main_module, "bind_metrics_socket", _fake_bind)

    with pytest.raises(SystemExit) as exc_info:
        main_module.run(argv)

    assert exc_info.value.code == 1
    assert bind_calls == []


def test_run_exits_when_bind_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    served: list[Any] = []

    def _failing_bind(host: str, port: int) -> socket.socket:
        raise ServerBindError("address already in use", host=host, port=port)

    async def _fake_run_server(app: FastAPI, sock: socket.socket) -> None:
        served.append(app)

    monkeypatch.setattr(main_module, "bind_metrics_socket", _failing_bind)
    monkeypatch.setattr(main_module, "run_server", _fake_run_server)

    with pytest.raises(SystemExit) as exc_info:
        main_module.run(["-p", "2112"])

    assert exc_info.value.code == 1
    assert served == []


def test_run_serves_on_bound_socket(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))

    def _fake_bind(host: str, port: int) -> socket.socket:
        captured["bind"] = (host, port)
        return sock

    async def _fake_run_server(app: FastAPI, bound: socket.socket) -> None:
        captured["app"] = app
        captured["sock"] = bound

    monkeypatch.setattr(main_module, "bind_metrics_socket", _fake_bind)
    monkeypatch.setattr(main_module, "run_server", _fake_run_server)
    monkeypatch.setattr(main_module.signal, "signal", lambda *_args: None)

    main_module.run(["-p", "9311", "-i", "200"])

    assert captured["bind"] == ("0.0.0.0", 9311)
    assert captured["sock"] is sock
    context = captured["app"].state.context
    assert context.settings.poller.interval_ms == 200
    assert context.settings.server.metrics_port == 9311
    assert sock.fileno() == -1


def test_run_exits_cleanly_on_termination_signal(monkeypatch: pytest.MonkeyPatch) -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

    async def _interrupted(app: FastAPI, bound: socket.socket) -> None:
        raise KeyboardInterrupt("Received signal 15")

    monkeypatch.setattr(main_module, "bind_metrics_socket", lambda host, port: sock)
    monkeypatch.setattr(main_module, "run_server", _interrupted)
    monkeypatch.setattr(main_module.signal, "signal", lambda *_args: None)

    with pytest.raises(SystemExit) as exc_info:
        main_module.run([])

    assert exc_info.value.code == 0


class HungNodeRpc:
    base_url = "http://hung.local:26657"

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_status(self) -> NodeStatusSnapshot:
        self.entered.set()
        self.release.wait()
        return NodeStatusSnapshot(
            latest_block_height=1,
            latest_block_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    def get_net_info(self) -> NetInfoSnapshot:
        return NetInfoSnapshot(n_peers=0)


@pytest.fixture
def restore_signal_handlers() -> Iterator[None]:
    previous = {signum: signal.getsignal(signum) for signum in (signal.SIGTERM, signal.SIGINT)}
    yield
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def test_run_stops_on_sigterm_while_fetch_is_hung(
    monkeypatch: pytest.MonkeyPatch,
    restore_signal_handlers: None,
) -> None:
    rpc = HungNodeRpc()

    def _context_with_hung_node(settings: AppSettings) -> ApplicationContext:
        return ApplicationContext(
            metrics=create_metrics(),
            settings=settings,
            rpc_factory=lambda _settings: rpc,
        )

    monkeypatch.setattr(main_module, "create_default_context", _context_with_hung_node)

    def _terminate_once_blocked() -> None:
        if rpc.entered.wait(timeout=10):
            os.kill(os.getpid(), signal.SIGTERM)

    killer = threading.Thread(target=_terminate_once_blocked, daemon=True)
    killer.start()

    started = time.monotonic()

    try:
        main_module.run(["-p", "0", "-i", "100"])
    except SystemExit as exc:
        assert exc.code == 0
    finally:
        rpc.release.set()

    assert rpc.entered.is_set()
    assert time.monotonic() - started < 8.0
