# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport layer for line client connections."""

from __future__ import annotations

from lineclient.transport.base import BlockingSocketFactory, Poller, SocketFactory, SocketLike
from lineclient.transport.chaos import ChaosSocket, chaos_factory
from lineclient.transport.tcp import SelectorPoller, ThreadedOpener, open_nonblocking

__all__ = [
    "BlockingSocketFactory",
    "ChaosSocket",
    "Poller",
    "SelectorPoller",
    "SocketFactory",
    "SocketLike",
    "ThreadedOpener",
    "chaos_factory",
    "open_nonblocking",
]
