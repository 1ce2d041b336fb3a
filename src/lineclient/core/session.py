# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Connection session state owned by the loop driver."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum

from lineclient.endpoints import Endpoint
from lineclient.transport.base import SocketLike


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class DropReason(str, Enum):
    """Why a session transitioned into DISCONNECTED."""

    CONNECT_FAILED = "connect_failed"
    CONNECT_TIMEOUT = "connect_timeout"
    PEER_CLOSED = "peer_closed"
    RESET = "reset"
    SOCKET_ERROR = "socket_error"
    OVERFLOW = "overflow"
    LOCAL = "local"
    STOPPED = "stopped"


class OutputBuffer:
    """Bytes queued for transmission.

    Appends may come from any thread; the loop thread is the only consumer.
    Between ``begin_handshake()`` and ``end_handshake()`` only the thread that
    opened the handshake writes to the buffer; other threads' appends are held
    back and queued behind the handshake bytes when it ends.
    """

    def __init__(self) -> None:
        self._buf = bytearray()
        self._held = bytearray()
        self._handshake_owner: int | None = None
        self._lock = threading.Lock()

    def append(self, data: bytes) -> None:
        with self._lock:
            owner = self._handshake_owner
            if owner is not None and owner != threading.get_ident():
                self._held.extend(data)
            else:
                self._buf.extend(data)

    def begin_handshake(self) -> int:
        """Discard queued bytes and reserve the buffer for the calling thread.

        Returns the number of bytes discarded.
        """
        with self._lock:
            dropped = len(self._buf) + len(self._held)
            self._buf.clear()
            self._held.clear()
            self._handshake_owner = threading.get_ident()
        return dropped

    def end_handshake(self) -> None:
        with self._lock:
            self._buf.extend(self._held)
            self._held.clear()
            self._handshake_owner = None

    def peek(self, limit: int | None = None) -> bytes:
        with self._lock:
            if limit is None:
                return bytes(self._buf)
            return bytes(self._buf[:limit])

    def consume(self, count: int) -> None:
        with self._lock:
            del self._buf[:count]

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._buf) + len(self._held)
            self._buf.clear()
            self._held.clear()
        return dropped

    def __len__(self) -> int:
        return len(self._buf)

    def __bool__(self) -> bool:
        return bool(self._buf)


@dataclass(slots=True)
class ConnectionSession:
    """One connect attempt and, if it succeeds, the connection it becomes.

    A fresh session is created for every attempt; its socket is never reused
    once closed.
    """

    endpoint: Endpoint
    sock: SocketLike | None
    started_at: float
    state: ConnectionState = ConnectionState.CONNECTING
    pending: Future[SocketLike] | None = None
    connected_at: float | None = None
    input: bytearray = field(default_factory=bytearray)
    bytes_in: int = 0
    bytes_out: int = 0

    def close(self) -> bool:
        """Close the socket; return True if one was open.

        A socket still being opened in the background is closed as soon as it
        arrives.
        """
        pending, self.pending = self.pending, None
        if pending is not None and not pending.cancel():
            pending.add_done_callback(_close_late_socket)
        sock, self.sock = self.sock, None
        if sock is None:
            return False
        sock.close()
        return True


def _close_late_socket(future: Future[SocketLike]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()
