# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Seams between the loop driver and the operating system."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future
from typing import Protocol

from lineclient.endpoints import Endpoint


class SocketLike(Protocol):
    """The subset of ``socket.socket`` the loop driver uses.

    Implementations must be non-blocking: ``recv`` and ``send`` raise
    ``BlockingIOError`` instead of waiting.
    """

    def fileno(self) -> int: ...
    def recv(self, bufsize: int) -> bytes: ...
    def send(self, data: bytes | memoryview) -> int: ...
    def getsockopt(self, level: int, optname: int) -> int: ...
    def close(self) -> None: ...


BlockingSocketFactory = Callable[[Endpoint], SocketLike]
"""Opens a non-blocking socket and starts an asynchronous connect to an endpoint.

May block while the host name resolves. Raises ``OSError`` when the attempt
fails before it is in progress.
"""

SocketFactory = Callable[[Endpoint], SocketLike | Future[SocketLike]]
"""What the loop driver calls to start a connect attempt.

Returning a ``Future`` lets the blocking part run off the loop thread; the
attempt stays CONNECTING (and under the connect timeout) until it resolves.
"""


class Poller(Protocol):
    """Readiness wait over at most one socket."""

    def wait(
        self,
        sock: SocketLike | None,
        want_read: bool,
        want_write: bool,
        timeout: float,
    ) -> tuple[bool, bool]:
        """Block up to ``timeout`` seconds; return ``(readable, writable)``."""
        ...

    def forget(self, sock: SocketLike) -> None:
        """Drop any registration held for ``sock`` before it is closed."""
        ...

    def close(self) -> None: ...
