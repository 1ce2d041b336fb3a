# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy for lineclient."""


class LineClientError(Exception):
    """Base exception for lineclient."""

    pass


class InvalidEndpoint(LineClientError, ValueError):
    """Endpoint string is not a valid ``host:port``."""

    pass


class NoEndpointsConfigured(LineClientError):
    """A connect attempt was made with an empty endpoint pool."""

    pass


class ConnectTimeoutExceeded(LineClientError):
    """A connect attempt stayed in CONNECTING longer than the connect timeout."""

    pass


class PeerClosed(LineClientError):
    """The remote end closed the connection."""

    pass


class ConnectionReset(LineClientError):
    """The connection was reset by the peer."""

    pass


class LineTooLong(LineClientError):
    """Buffered input exceeded the configured cap without a terminator."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Input buffer holds {size} bytes without a terminator (limit {limit})")
        self.size = size
        self.limit = limit


class FatalSocketError(LineClientError):
    """Unrecoverable OS-level socket failure (e.g. resource exhaustion)."""

    pass


class LoopAlreadyRunning(LineClientError):
    """``run_loop`` was entered while another call is driving the same client."""

    pass
