# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Core loop driver, framing and session state."""

from __future__ import annotations

from lineclient.core.client import ClientStatus, LineClient, run_loop_async
from lineclient.core.framing import Framer, LineFramer
from lineclient.core.protocol import BaseLineProtocol, LineProtocol
from lineclient.core.session import ConnectionSession, ConnectionState, DropReason, OutputBuffer

__all__ = [
    "BaseLineProtocol",
    "ClientStatus",
    "ConnectionSession",
    "ConnectionState",
    "DropReason",
    "Framer",
    "LineClient",
    "LineFramer",
    "LineProtocol",
    "OutputBuffer",
    "run_loop_async",
]
