"""Threaded line server for integration tests."""

from __future__ import annotations

import socket
import threading
import time
from typing import Any


class LineServer:
    """Blocking TCP server on 127.0.0.1 that replays scripted chunks per connection.

    ``scripts[i]`` is the list of chunks written to the i-th accepted
    connection (with ``delay_s`` between chunks); after the script the server
    keeps reading until the client closes, unless ``close_after_script`` is set.
    """

    def __init__(
        self,
        scripts: list[list[bytes]] | None = None,
        *,
        delay_s: float = 0.05,
        close_after_script: bool = False,
    ) -> None:
        self.scripts = scripts or [[]]
        self.delay_s = delay_s
        self.close_after_script = close_after_script
        self.received: list[bytearray] = []
        self.accepted = 0
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self._sock.settimeout(0.1)
        self.port: int = self._sock.getsockname()[1]
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    def start(self) -> None:
        thread = threading.Thread(target=self._accept_loop, daemon=True)
        thread.start()
        self._threads.append(thread)

    def stop(self) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=2.0)
        self._sock.close()

    def wait_for_bytes(self, count: int, timeout: float = 5.0, connection: int = 0) -> bytes:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if len(self.received) > connection and len(self.received[connection]) >= count:
                break
            time.sleep(0.01)
        return bytes(self.received[connection]) if len(self.received) > connection else b""

    def _accept_loop(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            index = self.accepted
            self.accepted += 1
            self.received.append(bytearray())
            script = self.scripts[index] if index < len(self.scripts) else []
            thread = threading.Thread(target=self._serve, args=(conn, index, script), daemon=True)
            thread.start()
            self._threads.append(thread)

    def _serve(self, conn: socket.socket, index: int, script: list[bytes]) -> None:
        conn.settimeout(0.1)
        with conn:
            for chunk in script:
                time.sleep(self.delay_s)
                conn.sendall(chunk)
            if self.close_after_script:
                return
            while not self._stop.is_set():
                try:
                    data = conn.recv(4096)
                except TimeoutError:
                    continue
                except OSError:
                    return
                if not data:
                    return
                self.received[index].extend(data)

    def __enter__(self) -> LineServer:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()


def refused_address() -> str:
    """Return a 127.0.0.1 address with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"127.0.0.1:{port}"
