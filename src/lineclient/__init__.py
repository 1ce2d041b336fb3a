# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Reconnecting client base for line-oriented TCP protocols."""

from __future__ import annotations

from lineclient.core import (
    BaseLineProtocol,
    ConnectionState,
    DropReason,
    LineClient,
    LineFramer,
    LineProtocol,
    run_loop_async,
)
from lineclient.endpoints import Endpoint, EndpointPool, parse_endpoint
from lineclient.errors import (
    ConnectionReset,
    ConnectTimeoutExceeded,
    FatalSocketError,
    InvalidEndpoint,
    LineClientError,
    LineTooLong,
    LoopAlreadyRunning,
    NoEndpointsConfigured,
    PeerClosed,
)
from lineclient.keepalive import IdleWatchdog, KeepaliveProtocol
from lineclient.settings import ClientSettings

__all__ = [
    "BaseLineProtocol",
    "ClientSettings",
    "ConnectTimeoutExceeded",
    "ConnectionReset",
    "ConnectionState",
    "DropReason",
    "Endpoint",
    "EndpointPool",
    "FatalSocketError",
    "IdleWatchdog",
    "InvalidEndpoint",
    "KeepaliveProtocol",
    "LineClient",
    "LineClientError",
    "LineFramer",
    "LineProtocol",
    "LineTooLong",
    "LoopAlreadyRunning",
    "NoEndpointsConfigured",
    "PeerClosed",
    "parse_endpoint",
    "run_loop_async",
]
