# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Non-blocking TCP sockets and selector-based readiness polling."""

from __future__ import annotations

import errno
import selectors
import socket
import time
from concurrent.futures import Future, ThreadPoolExecutor

from lineclient.endpoints import Endpoint
from lineclient.logging import get_logger
from lineclient.transport.base import BlockingSocketFactory, SocketLike

log = get_logger(__name__)

_IN_PROGRESS = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY}


def open_nonblocking(endpoint: Endpoint) -> socket.socket:
    """Open a non-blocking socket and start connecting it to ``endpoint``.

    Only the first resolved address is tried; failover happens at the
    endpoint-pool level.

    Raises:
        OSError: If resolution fails or the connect is refused immediately.
    """
    infos = socket.getaddrinfo(endpoint.host, endpoint.port, type=socket.SOCK_STREAM)
    family, socktype, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setblocking(False)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        err = sock.connect_ex(sockaddr)
        if err not in _IN_PROGRESS:
            raise OSError(err, f"connect to {endpoint} failed: {errno.errorcode.get(err, err)}")
    except OSError:
        sock.close()
        raise
    return sock


class ThreadedOpener:
    """Runs a blocking socket factory in worker threads and hands back futures.

    Name resolution in ``open_nonblocking`` can block for as long as the
    system resolver likes; running it here keeps the loop thread inside its
    bounded poll wait. Attempts abandoned by the loop still occupy a worker
    until the resolver returns, hence more than one worker.
    """

    def __init__(self, factory: BlockingSocketFactory = open_nonblocking, *, max_workers: int = 4) -> None:
        self._factory = factory
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lineclient-open")

    def __call__(self, endpoint: Endpoint) -> Future[SocketLike]:
        return self._executor.submit(self._factory, endpoint)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class SelectorPoller:
    """Wait for readiness on one socket with ``selectors.DefaultSelector``."""

    def __init__(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._registered: SocketLike | None = None
        self._mask = 0

    def wait(
        self,
        sock: SocketLike | None,
        want_read: bool,
        want_write: bool,
        timeout: float,
    ) -> tuple[bool, bool]:
        mask = (selectors.EVENT_READ if want_read else 0) | (selectors.EVENT_WRITE if want_write else 0)
        if sock is not self._registered:
            self._unregister()
        if sock is None or mask == 0:
            self._unregister()
            time.sleep(max(0.0, timeout))
            return False, False

        if self._registered is None:
            self._selector.register(sock, mask)
        elif mask != self._mask:
            self._selector.modify(sock, mask)
        self._registered = sock
        self._mask = mask

        readable = writable = False
        for _, events in self._selector.select(max(0.0, timeout)):
            readable = readable or bool(events & selectors.EVENT_READ)
            writable = writable or bool(events & selectors.EVENT_WRITE)
        return readable, writable

    def forget(self, sock: SocketLike) -> None:
        if self._registered is sock:
            self._unregister()

    def close(self) -> None:
        self._unregister()
        self._selector.close()

    def _unregister(self) -> None:
        if self._registered is None:
            return
        try:
            self._selector.unregister(self._registered)
        except (KeyError, ValueError):
            log.debug("selector_unregister_stale")
        self._registered = None
        self._mask = 0
