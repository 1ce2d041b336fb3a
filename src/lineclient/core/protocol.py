# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Protocol hook interface for line-oriented clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from lineclient.core.client import LineClient
    from lineclient.core.session import DropReason


class LineProtocol(Protocol):
    """Protocol-specific behaviour driven by a :class:`LineClient`.

    All hooks run on the loop thread. ``now`` is the client's monotonic clock
    in seconds. The client's own bookkeeping (buffer resets, timestamps, closing
    the socket) happens outside these hooks and always runs.
    """

    def on_tick(self, client: LineClient, now: float) -> None:
        """Called once per tick interval, connected or not."""
        ...

    def on_connected(self, client: LineClient, now: float) -> None:
        """Called once per CONNECTING -> CONNECTED transition.

        Buffers are already reset; anything passed to ``client.send_data``
        here is the first output on the new connection.
        """
        ...

    def on_dropped(self, client: LineClient, reason: DropReason, now: float) -> None:
        """Called once per transition into DISCONNECTED.

        The socket is already closed; do not attempt I/O on it.
        """
        ...

    def on_line(self, client: LineClient, line: bytes, now: float) -> None:
        """Called once per framed line, terminator stripped."""
        ...


class BaseLineProtocol:
    """No-op implementation of every :class:`LineProtocol` hook."""

    def on_tick(self, client: LineClient, now: float) -> None:
        return None

    def on_connected(self, client: LineClient, now: float) -> None:
        return None

    def on_dropped(self, client: LineClient, reason: DropReason, now: float) -> None:
        return None

    def on_line(self, client: LineClient, line: bytes, now: float) -> None:
        return None
