"""Tests for the keepalive and idle watchdog policies."""

from __future__ import annotations

import pytest

from lineclient.core.session import ConnectionState, DropReason
from lineclient.endpoints import Endpoint
from lineclient.keepalive import IdleWatchdog, KeepaliveProtocol, ProtocolWrapper


class StubClient:
    def __init__(self) -> None:
        self.sent: list[bytes] = []
        self.state = ConnectionState.CONNECTED
        self.endpoint = Endpoint("bbs", 23)
        self.last_data_received: float | None = 0.0
        self.drops = 0

    def send_data(self, data: bytes) -> None:
        self.sent.append(data)

    def drop_connection(self) -> None:
        self.drops += 1


class Spy(ProtocolWrapper):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def on_tick(self, client, now):
        self.calls.append("tick")

    def on_connected(self, client, now):
        self.calls.append("connected")

    def on_dropped(self, client, reason, now):
        self.calls.append(f"dropped:{reason.value}")

    def on_line(self, client, line, now):
        self.calls.append(f"line:{line.decode()}")


def test_keepalive_configure_enabled() -> None:
    """Test configuring keepalive with interval."""
    keepalive = KeepaliveProtocol(interval_s=None)
    result = keepalive.configure(1.0, b"\r\n")

    assert result == "ok"
    status = keepalive.status()
    assert status["interval_s"] == 1.0
    assert status["payload"] == b"\r\n"
    assert status["running"] is False


def test_keepalive_configure_disabled() -> None:
    """Test disabling keepalive with a non-positive interval."""
    keepalive = KeepaliveProtocol()
    assert keepalive.configure(0) == "ok"

    assert keepalive.status()["interval_s"] is None


def test_keepalive_running_follows_connection() -> None:
    client = StubClient()
    keepalive = KeepaliveProtocol(interval_s=30.0)

    keepalive.on_connected(client, 0.0)
    assert keepalive.status()["running"] is True

    keepalive.on_dropped(client, DropReason.PEER_CLOSED, 1.0)
    assert keepalive.status()["running"] is False


def test_keepalive_sends_payload_on_interval() -> None:
    client = StubClient()
    keepalive = KeepaliveProtocol(interval_s=10.0, payload=b"NOOP\n")
    keepalive.on_connected(client, 100.0)

    keepalive.on_tick(client, 105.0)
    assert client.sent == []

    keepalive.on_tick(client, 110.0)
    keepalive.on_tick(client, 115.0)
    keepalive.on_tick(client, 120.0)
    assert client.sent == [b"NOOP\n", b"NOOP\n"]


def test_keepalive_silent_while_disconnected() -> None:
    client = StubClient()
    keepalive = KeepaliveProtocol(interval_s=1.0)

    keepalive.on_tick(client, 50.0)
    keepalive.on_connected(client, 50.0)
    keepalive.on_dropped(client, DropReason.RESET, 51.0)
    keepalive.on_tick(client, 60.0)

    assert client.sent == []


def test_keepalive_forwards_every_hook() -> None:
    client = StubClient()
    spy = Spy()
    keepalive = KeepaliveProtocol(spy, interval_s=None)

    keepalive.on_connected(client, 0.0)
    keepalive.on_line(client, b"hi", 0.1)
    keepalive.on_tick(client, 0.2)
    keepalive.on_dropped(client, DropReason.LOCAL, 0.3)

    assert spy.calls == ["connected", "line:hi", "tick", "dropped:local"]


def test_idle_watchdog_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError, match="timeout_s"):
        IdleWatchdog(timeout_s=0)


def test_idle_watchdog_drops_quiet_connection_once() -> None:
    client = StubClient()
    watchdog = IdleWatchdog(timeout_s=5.0)
    watchdog.on_connected(client, 0.0)

    watchdog.on_tick(client, 4.0)
    assert client.drops == 0

    watchdog.on_tick(client, 5.0)
    watchdog.on_tick(client, 6.0)
    assert client.drops == 1


def test_idle_watchdog_rearms_on_reconnect() -> None:
    client = StubClient()
    watchdog = IdleWatchdog(timeout_s=1.0)
    watchdog.on_connected(client, 0.0)
    watchdog.on_tick(client, 2.0)

    client.last_data_received = 10.0
    watchdog.on_connected(client, 10.0)
    watchdog.on_tick(client, 11.5)

    assert client.drops == 2


def test_idle_watchdog_ignores_fresh_data_and_other_states() -> None:
    client = StubClient()
    watchdog = IdleWatchdog(timeout_s=1.0)
    watchdog.on_connected(client, 0.0)

    client.last_data_received = 9.5
    watchdog.on_tick(client, 10.0)
    client.state = ConnectionState.CONNECTING
    watchdog.on_tick(client, 20.0)

    assert client.drops == 0
