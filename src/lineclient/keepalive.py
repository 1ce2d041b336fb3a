from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from lineclient.core.protocol import BaseLineProtocol, LineProtocol
from lineclient.core.session import ConnectionState
from lineclient.logging import get_logger

if TYPE_CHECKING:
    from lineclient.core.client import LineClient
    from lineclient.core.session import DropReason

log = get_logger(__name__)


class ProtocolWrapper(BaseLineProtocol):
    """Forwards every hook to ``inner``; subclasses add tick-driven policy."""

    def __init__(self, inner: LineProtocol | None = None) -> None:
        self.inner: LineProtocol = inner if inner is not None else BaseLineProtocol()

    def on_tick(self, client: LineClient, now: float) -> None:
        self.inner.on_tick(client, now)

    def on_connected(self, client: LineClient, now: float) -> None:
        self.inner.on_connected(client, now)

    def on_dropped(self, client: LineClient, reason: DropReason, now: float) -> None:
        self.inner.on_dropped(client, reason, now)

    def on_line(self, client: LineClient, line: bytes, now: float) -> None:
        self.inner.on_line(client, line, now)


class KeepaliveStatus(BaseModel):
    interval_s: float | None
    payload: bytes
    running: bool


class KeepaliveProtocol(ProtocolWrapper):
    """Sends ``payload`` every ``interval_s`` seconds while connected."""

    def __init__(
        self,
        inner: LineProtocol | None = None,
        *,
        interval_s: float | None = 30.0,
        payload: bytes = b"\n",
    ) -> None:
        super().__init__(inner)
        self._interval_s: float | None = None
        self._payload = payload
        self._connected = False
        self._last_sent = 0.0
        self.configure(interval_s, payload)

    def configure(self, interval_s: float | None, payload: bytes | None = None) -> str:
        if interval_s is not None and interval_s <= 0:
            self._interval_s = None
        else:
            self._interval_s = interval_s
        if payload is not None:
            self._payload = payload
        return "ok"

    def status(self) -> dict[str, Any]:
        running = self._connected and self._interval_s is not None
        return KeepaliveStatus(interval_s=self._interval_s, payload=self._payload, running=running).model_dump()

    def on_connected(self, client: LineClient, now: float) -> None:
        self._connected = True
        self._last_sent = now
        super().on_connected(client, now)

    def on_dropped(self, client: LineClient, reason: DropReason, now: float) -> None:
        self._connected = False
        super().on_dropped(client, reason, now)

    def on_tick(self, client: LineClient, now: float) -> None:
        if self._connected and self._interval_s and now - self._last_sent >= self._interval_s:
            client.send_data(self._payload)
            self._last_sent = now
        super().on_tick(client, now)


class IdleWatchdog(ProtocolWrapper):
    """Drops a connection that has received nothing for ``timeout_s`` seconds."""

    def __init__(self, inner: LineProtocol | None = None, *, timeout_s: float) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        super().__init__(inner)
        self.timeout_s = timeout_s
        self._tripped = False

    def on_connected(self, client: LineClient, now: float) -> None:
        self._tripped = False
        super().on_connected(client, now)

    def on_tick(self, client: LineClient, now: float) -> None:
        last = client.last_data_received
        if (
            not self._tripped
            and client.state is ConnectionState.CONNECTED
            and last is not None
            and now - last >= self.timeout_s
        ):
            log.warning("idle_timeout", endpoint=str(client.endpoint), idle_s=round(now - last, 3))
            self._tripped = True
            client.drop_connection()
        super().on_tick(client, now)
