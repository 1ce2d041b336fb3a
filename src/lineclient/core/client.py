# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single-threaded reconnecting client loop for line-oriented TCP protocols."""

from __future__ import annotations

import asyncio
import errno
import os
import socket
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, Protocol

from pydantic import BaseModel

from lineclient.constants import DEBUG_IO, DEBUG_LIFECYCLE
from lineclient.core.framing import Framer, LineFramer
from lineclient.core.protocol import BaseLineProtocol, LineProtocol
from lineclient.core.session import ConnectionSession, ConnectionState, DropReason, OutputBuffer
from lineclient.endpoints import Endpoint, EndpointPool, parse_endpoint
from lineclient.errors import (
    ConnectionReset,
    ConnectTimeoutExceeded,
    FatalSocketError,
    LineTooLong,
    LoopAlreadyRunning,
    NoEndpointsConfigured,
    PeerClosed,
)
from lineclient.logging import get_logger
from lineclient.settings import ClientSettings
from lineclient.transport.base import Poller, SocketFactory
from lineclient.transport.tcp import SelectorPoller, ThreadedOpener

logger = get_logger(__name__)

# Errors that mean the process, not the connection, is in trouble.
_FATAL_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.ENOMEM})

_SEND_CHUNK = 64 * 1024


class StopFlag(Protocol):
    def is_set(self) -> bool: ...


class ClientStatus(BaseModel):
    state: ConnectionState
    endpoint: str | None
    host_count: int
    pending_output: int
    bytes_in: int
    bytes_out: int
    last_data_received: float | None
    last_error: str | None
    running: bool


class LineClient:
    """Keeps one connection alive across a pool of endpoints and frames its input.

    ``run_loop`` drives everything from one thread: connecting (round-robin
    over the configured endpoints, with a connect timeout), reading and framing
    input into lines, draining queued output, and firing a periodic tick.
    Protocol behaviour is supplied by a :class:`LineProtocol`.

    ``send_data``, ``drop_connection``, ``request_stop`` and ``add_host`` may be
    called from any thread. Everything else belongs to the loop thread.

    Queued output does not survive a connection: it is discarded when a
    connection drops and when the next one is established, before
    ``on_connected`` runs. Bytes other threads send while ``on_connected`` is
    running are queued behind whatever the hook sends.

    With no ``socket_factory``, sockets are opened (and host names resolved)
    on a :class:`ThreadedOpener` so the loop thread never blocks in the
    resolver; the connect timeout covers resolution too.
    """

    def __init__(
        self,
        protocol: LineProtocol | None = None,
        *,
        settings: ClientSettings | None = None,
        framer: Framer | None = None,
        socket_factory: SocketFactory | None = None,
        poller: Poller | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings if settings is not None else ClientSettings()
        self.protocol: LineProtocol = protocol if protocol is not None else BaseLineProtocol()
        self.framer: Framer = (
            framer
            if framer is not None
            else LineFramer(eol=self.settings.eol_bytes, max_bytes=self.settings.max_input_bytes)
        )
        self._owned_opener: ThreadedOpener | None = None
        if socket_factory is None:
            socket_factory = self._owned_opener = ThreadedOpener()
        self._open: SocketFactory = socket_factory
        self._poller: Poller = poller if poller is not None else SelectorPoller()
        self._clock = clock

        self._endpoints = EndpointPool([parse_endpoint(spec) for spec in self.settings.hosts])
        self._output = OutputBuffer()
        self._session: ConnectionSession | None = None
        self._last_data_received: float | None = None
        self._last_tick: float | None = None
        self._last_error: BaseException | None = None
        self._bytes_in = 0
        self._bytes_out = 0

        self._debug = self.settings.debug
        self._warned_no_endpoints = False
        self._stop = threading.Event()
        self._drop_requested = threading.Event()
        self._running = threading.Lock()

    # -- configuration -----------------------------------------------------

    def add_host(self, spec: str | Endpoint) -> Endpoint:
        """Append an endpoint (``"host:port"``) to the pool. Duplicates are kept."""
        endpoint = self._endpoints.add(spec)
        self._warned_no_endpoints = False
        self._trace(DEBUG_LIFECYCLE, "endpoint_added", endpoint=str(endpoint), host_count=len(self._endpoints))
        return endpoint

    @property
    def host_count(self) -> int:
        return len(self._endpoints)

    @property
    def endpoints(self) -> EndpointPool:
        return self._endpoints

    def set_debug(self, level: int) -> None:
        """Set diagnostic verbosity (0 off, 1 lifecycle, 2 per-read/write I/O)."""
        self._debug = max(0, int(level))

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        session = self._session
        return session.state if session is not None else ConnectionState.DISCONNECTED

    @property
    def endpoint(self) -> Endpoint | None:
        session = self._session
        return session.endpoint if session is not None else None

    @property
    def last_data_received(self) -> float | None:
        return self._last_data_received

    @property
    def last_error(self) -> BaseException | None:
        """Why the most recent connection or attempt ended (None for local drops and stops)."""
        return self._last_error

    @property
    def wants_read(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def wants_write(self) -> bool:
        session = self._session
        return bool(self._output) and session is not None and session.sock is not None

    @property
    def pending_output(self) -> int:
        return len(self._output)

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    def status(self) -> dict[str, Any]:
        endpoint = self.endpoint
        return ClientStatus(
            state=self.state,
            endpoint=str(endpoint) if endpoint is not None else None,
            host_count=self.host_count,
            pending_output=self.pending_output,
            bytes_in=self._bytes_in,
            bytes_out=self._bytes_out,
            last_data_received=self._last_data_received,
            last_error=str(self._last_error) if self._last_error is not None else None,
            running=self.is_running,
        ).model_dump()

    # -- requests from any thread -----------------------------------------

    def send_data(self, data: bytes | str) -> None:
        """Queue bytes for transmission. ``str`` is encoded with the configured encoding."""
        if isinstance(data, str):
            data = data.encode(self.settings.encoding)
        if not data:
            return
        self._output.append(data)
        self._trace(DEBUG_IO, "send_queued", bytes=len(data), pending=len(self._output))

    def drop_connection(self) -> None:
        """Ask the loop to drop the current connection on its next iteration."""
        self._drop_requested.set()

    def request_stop(self) -> None:
        """Ask the running (or next) ``run_loop`` to return, whatever stop flag it was given."""
        self._stop.set()

    # -- loop ----------------------------------------------------------------

    def run_loop(self, stop: StopFlag | None = None) -> None:
        """Run until ``stop.is_set()`` or ``request_stop()``, then close and return.

        Both are checked once per iteration and an iteration never waits longer
        than ``max_poll_wait_s``. A ``request_stop()`` is consumed when the loop
        returns, so the next ``run_loop`` starts fresh.

        Raises:
            LoopAlreadyRunning: If another thread is already running this client.
            FatalSocketError: On resource exhaustion.
        """
        if not self._running.acquire(blocking=False):
            raise LoopAlreadyRunning("run_loop is already running for this client")
        logger.info("loop_started", host_count=self.host_count)
        try:
            while not self._stop.is_set() and not (stop is not None and stop.is_set()):
                self.run_once()
        except BaseException:
            self._abandon()
            raise
        else:
            self._drop(DropReason.STOPPED, self._clock())
        finally:
            self._stop.clear()
            self._running.release()
            logger.info("loop_stopped")

    def run_once(self) -> None:
        """Run a single loop iteration."""
        now = self._clock()
        if self._last_tick is None:
            self._last_tick = now

        if self._drop_requested.is_set():
            self._drop_requested.clear()
            self._drop(DropReason.LOCAL, now)

        if self._session is None:
            self._begin_connect(now)

        session = self._session
        if session is not None and session.pending is not None and session.pending.done():
            self._adopt_socket(session, now)

        session = self._session
        sock = session.sock if session is not None else None
        connecting = session is not None and session.state is ConnectionState.CONNECTING
        readable, writable = self._poller.wait(
            sock,
            self.wants_read,
            self.wants_write or connecting,
            self._poll_timeout(now),
        )
        now = self._clock()

        if readable and session is not None and self._session is session:
            if session.state is ConnectionState.CONNECTED:
                self._handle_read(session, now)

        if writable and session is not None and self._session is session:
            if session.state is ConnectionState.CONNECTING:
                self._finish_connect(session, now)
            if self._session is session and session.state is ConnectionState.CONNECTED and self._output:
                self._flush(session)

        session = self._session
        if (
            session is not None
            and session.state is ConnectionState.CONNECTING
            and now - session.started_at >= self.settings.connect_timeout_s
        ):
            logger.warning(
                "connect_timeout",
                endpoint=str(session.endpoint),
                timeout_s=self.settings.connect_timeout_s,
            )
            self._drop(
                DropReason.CONNECT_TIMEOUT,
                now,
                ConnectTimeoutExceeded(f"Connect to {session.endpoint} exceeded {self.settings.connect_timeout_s}s"),
            )

        if now - self._last_tick >= self.settings.tick_interval_s:
            self._last_tick = now
            self.protocol.on_tick(self, now)

    def close(self) -> None:
        """Release the socket, poller and opener threads. Only valid while the loop is not running."""
        self._abandon()
        self._poller.close()
        if self._owned_opener is not None:
            self._owned_opener.close()

    def __enter__(self) -> LineClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- internals -------------------------------------------------------------

    def _poll_timeout(self, now: float) -> float:
        timeout = self.settings.max_poll_wait_s
        if self._last_tick is not None:
            until_tick = self._last_tick + self.settings.tick_interval_s - now
            timeout = min(timeout, max(0.0, until_tick))
        return timeout

    def _begin_connect(self, now: float) -> None:
        try:
            endpoint = self._endpoints.next()
        except NoEndpointsConfigured:
            if not self._warned_no_endpoints:
                logger.warning("no_endpoints_configured")
                self._warned_no_endpoints = True
            return

        self._trace(DEBUG_LIFECYCLE, "connect_started", endpoint=str(endpoint))
        session = ConnectionSession(endpoint=endpoint, sock=None, started_at=now)
        try:
            opened = self._open(endpoint)
        except OSError as e:
            self._open_failed(session, now, e)
            return
        if isinstance(opened, Future):
            session.pending = opened
        else:
            session.sock = opened
        self._session = session

    def _adopt_socket(self, session: ConnectionSession, now: float) -> None:
        future, session.pending = session.pending, None
        assert future is not None
        try:
            session.sock = future.result()
        except OSError as e:
            self._open_failed(session, now, e)

    def _open_failed(self, session: ConnectionSession, now: float, error: OSError) -> None:
        self._raise_if_fatal(error)
        self._trace(DEBUG_LIFECYCLE, "connect_failed", endpoint=str(session.endpoint), error=str(error))
        self._session = session
        self._drop(DropReason.CONNECT_FAILED, now, error)

    def _finish_connect(self, session: ConnectionSession, now: float) -> None:
        assert session.sock is not None
        err = session.sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err:
            self._trace(
                DEBUG_LIFECYCLE,
                "connect_failed",
                endpoint=str(session.endpoint),
                error=os.strerror(err),
            )
            self._drop(DropReason.CONNECT_FAILED, now, OSError(err, os.strerror(err)))
            return

        session.state = ConnectionState.CONNECTED
        session.connected_at = now
        session.input.clear()
        self._last_data_received = now
        logger.info("connection_established", endpoint=str(session.endpoint))
        discarded = self._output.begin_handshake()
        try:
            if discarded:
                self._trace(DEBUG_LIFECYCLE, "stale_output_discarded", bytes=discarded)
            self.protocol.on_connected(self, now)
        finally:
            self._output.end_handshake()

    def _handle_read(self, session: ConnectionSession, now: float) -> None:
        assert session.sock is not None
        try:
            data = session.sock.recv(self.settings.recv_size)
        except (BlockingIOError, InterruptedError):
            return
        except ConnectionResetError as e:
            self._trace(DEBUG_LIFECYCLE, "connection_reset", endpoint=str(session.endpoint), error=str(e))
            self._drop(DropReason.RESET, now, ConnectionReset(str(e)))
            return
        except OSError as e:
            self._raise_if_fatal(e)
            self._trace(DEBUG_LIFECYCLE, "read_failed", endpoint=str(session.endpoint), error=str(e))
            self._drop(DropReason.SOCKET_ERROR, now, e)
            return

        if not data:
            self._drop(DropReason.PEER_CLOSED, now, PeerClosed(f"{session.endpoint} closed the connection"))
            return

        session.input.extend(data)
        session.bytes_in += len(data)
        self._bytes_in += len(data)
        self._last_data_received = now
        self._trace(DEBUG_IO, "read", bytes=len(data), buffered=len(session.input))
        self._process_input(session, now)

    def _process_input(self, session: ConnectionSession, now: float) -> None:
        while True:
            try:
                line = self.framer.decode_from_buffer(session.input)
            except LineTooLong as e:
                logger.warning("input_overflow", endpoint=str(session.endpoint), size=e.size, limit=e.limit)
                self._drop(DropReason.OVERFLOW, now, e)
                return
            if line is None:
                return
            self._trace(DEBUG_IO, "line_received", line=line)
            self.protocol.on_line(self, line, now)

    def _flush(self, session: ConnectionSession) -> None:
        assert session.sock is not None
        while self._output:
            chunk = self._output.peek(_SEND_CHUNK)
            try:
                sent = session.sock.send(chunk)
            except (BlockingIOError, InterruptedError):
                return
            except (BrokenPipeError, ConnectionResetError) as e:
                self._trace(DEBUG_LIFECYCLE, "connection_reset", endpoint=str(session.endpoint), error=str(e))
                self._drop(DropReason.RESET, self._clock(), ConnectionReset(str(e)))
                return
            except OSError as e:
                self._raise_if_fatal(e)
                self._trace(DEBUG_LIFECYCLE, "write_failed", endpoint=str(session.endpoint), error=str(e))
                self._drop(DropReason.SOCKET_ERROR, self._clock(), e)
                return

            if sent <= 0:
                return
            self._output.consume(sent)
            session.bytes_out += sent
            self._bytes_out += sent
            self._trace(DEBUG_IO, "write", bytes=sent, pending=len(self._output))
            if sent < len(chunk):
                return

    def _drop(self, reason: DropReason, now: float, error: BaseException | None = None) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        self._last_error = error
        was_connected = session.state is ConnectionState.CONNECTED
        if session.sock is not None:
            self._poller.forget(session.sock)
        session.close()
        session.state = ConnectionState.DISCONNECTED
        discarded = self._output.clear()

        if was_connected:
            logger.info(
                "connection_dropped",
                endpoint=str(session.endpoint),
                reason=reason.value,
                bytes_in=session.bytes_in,
                bytes_out=session.bytes_out,
                discarded_output=discarded,
            )
        else:
            self._trace(DEBUG_LIFECYCLE, "connect_abandoned", endpoint=str(session.endpoint), reason=reason.value)
        self.protocol.on_dropped(self, reason, now)

    def _abandon(self) -> None:
        """Close any socket without running hooks (error and teardown paths)."""
        session = self._session
        if session is None:
            return
        self._session = None
        if session.sock is not None:
            self._poller.forget(session.sock)
        session.close()
        session.state = ConnectionState.DISCONNECTED

    def _raise_if_fatal(self, error: OSError) -> None:
        if error.errno in _FATAL_ERRNOS:
            logger.error("fatal_socket_error", error=str(error))
            raise FatalSocketError(str(error)) from error

    def _trace(self, level: int, event: str, **kwargs: Any) -> None:
        if self._debug >= level:
            logger.info(event, **kwargs)
        else:
            logger.debug(event, **kwargs)


async def run_loop_async(client: LineClient) -> None:
    """Run ``client.run_loop`` in a worker thread until this task is cancelled.

    Cancellation stops the loop in an orderly way (the socket is closed and
    ``on_dropped`` fires) before the ``CancelledError`` is re-raised.
    """
    stop = threading.Event()
    task = asyncio.ensure_future(asyncio.to_thread(client.run_loop, stop))
    try:
        await asyncio.shield(task)
    except asyncio.CancelledError:
        stop.set()
        await task
        raise
