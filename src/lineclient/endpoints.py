# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Candidate server endpoints and round-robin selection."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass

from lineclient.errors import InvalidEndpoint, NoEndpointsConfigured


@dataclass(frozen=True, slots=True)
class Endpoint:
    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def parse_endpoint(spec: str) -> Endpoint:
    """Parse ``host:port`` or ``[ipv6]:port`` into an Endpoint.

    Raises:
        InvalidEndpoint: If the host is empty or the port is missing or out of range.
    """
    text = spec.strip()
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise InvalidEndpoint(f"Invalid endpoint {spec!r}: expected [host]:port")
        port_text = rest[1:]
    else:
        host, sep, port_text = text.rpartition(":")
        if not sep:
            raise InvalidEndpoint(f"Invalid endpoint {spec!r}: expected host:port")
        if ":" in host:
            raise InvalidEndpoint(f"Invalid endpoint {spec!r}: IPv6 hosts must be bracketed")

    if not host:
        raise InvalidEndpoint(f"Invalid endpoint {spec!r}: empty host")
    try:
        port = int(port_text)
    except ValueError as e:
        raise InvalidEndpoint(f"Invalid endpoint {spec!r}: port is not a number") from e
    if not 0 < port < 65536:
        raise InvalidEndpoint(f"Invalid endpoint {spec!r}: port out of range")
    return Endpoint(host=host, port=port)


class EndpointPool:
    """Ordered endpoint list with a rotating cursor.

    Insertion order is preserved and duplicates are kept. Every call to
    :meth:`next` returns the endpoint under the cursor and advances it,
    wrapping modulo the pool length, so N consecutive attempts over N
    endpoints visit each exactly once.
    """

    def __init__(self, endpoints: list[Endpoint] | None = None) -> None:
        self._endpoints: list[Endpoint] = list(endpoints or [])
        self._cursor = 0
        self._lock = threading.Lock()

    def add(self, endpoint: Endpoint | str) -> Endpoint:
        if isinstance(endpoint, str):
            endpoint = parse_endpoint(endpoint)
        with self._lock:
            self._endpoints.append(endpoint)
        return endpoint

    def next(self) -> Endpoint:
        with self._lock:
            if not self._endpoints:
                raise NoEndpointsConfigured("No endpoints configured")
            endpoint = self._endpoints[self._cursor % len(self._endpoints)]
            self._cursor = (self._cursor + 1) % len(self._endpoints)
        return endpoint

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        with self._lock:
            return iter(list(self._endpoints))
