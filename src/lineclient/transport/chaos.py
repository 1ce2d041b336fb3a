"""Fault-injection socket wrapper (deterministic).

This is used for resilience testing. It wraps a real socket and caps how many
bytes each send/recv may move, and injects resets at deterministic intervals,
so partial writes and fragmented reads are repeatable in tests.
"""

from __future__ import annotations

import random
from typing import Any

from lineclient.endpoints import Endpoint
from lineclient.transport.base import BlockingSocketFactory, SocketLike


class ChaosSocket:
    def __init__(
        self,
        inner: SocketLike,
        *,
        seed: int = 1,
        max_send_bytes: int = 0,
        max_recv_bytes: int = 0,
        reset_every_n_receives: int = 0,
        label: str = "chaos",
    ) -> None:
        self._inner = inner
        self._rng = random.Random(int(seed))
        self._max_send = int(max_send_bytes or 0)
        self._max_recv = int(max_recv_bytes or 0)
        self._reset_n = int(reset_every_n_receives or 0)
        self._label = str(label or "chaos")
        self._rx_count = 0

    def fileno(self) -> int:
        return self._inner.fileno()

    def recv(self, bufsize: int) -> bytes:
        self._rx_count += 1
        if self._reset_n > 0 and (self._rx_count % self._reset_n) == 0:
            raise ConnectionResetError(f"{self._label}: injected reset on receive #{self._rx_count}")
        if self._max_recv > 0:
            bufsize = min(bufsize, self._rng.randint(1, self._max_recv))
        return self._inner.recv(bufsize)

    def send(self, data: bytes | memoryview) -> int:
        if self._max_send > 0 and len(data) > 0:
            data = data[: self._rng.randint(1, self._max_send)]
        return self._inner.send(data)

    def getsockopt(self, level: int, optname: int) -> int:
        return self._inner.getsockopt(level, optname)

    def close(self) -> None:
        self._inner.close()


def chaos_factory(factory: BlockingSocketFactory, **options: Any) -> BlockingSocketFactory:
    """Wrap ``factory`` so every socket it opens is a :class:`ChaosSocket`."""

    def _open(endpoint: Endpoint) -> SocketLike:
        return ChaosSocket(factory(endpoint), **options)

    return _open
