from __future__ import annotations

import codecs
import threading
from typing import Any

import click
from pydantic import ValidationError

from lineclient.core.client import LineClient
from lineclient.core.protocol import BaseLineProtocol, LineProtocol
from lineclient.core.session import DropReason
from lineclient.errors import InvalidEndpoint
from lineclient.keepalive import IdleWatchdog, KeepaliveProtocol
from lineclient.logging import configure_logging
from lineclient.settings import ClientSettings


class EchoLines(BaseLineProtocol):
    """Prints each received line; optionally sends greeting lines on connect."""

    def __init__(
        self,
        greetings: tuple[str, ...] = (),
        *,
        eol: str = "\n",
        max_lines: int | None = None,
        stop: threading.Event | None = None,
    ) -> None:
        self.greetings = greetings
        self.eol = eol
        self.max_lines = max_lines
        self.stop = stop
        self.count = 0

    def on_connected(self, client: LineClient, now: float) -> None:
        click.echo(f"# connected to {client.endpoint}", err=True)
        for text in self.greetings:
            client.send_data(text + self.eol)

    def on_dropped(self, client: LineClient, reason: DropReason, now: float) -> None:
        if reason in (DropReason.CONNECT_FAILED, DropReason.CONNECT_TIMEOUT):
            return
        click.echo(f"# disconnected ({reason.value})", err=True)

    def on_line(self, client: LineClient, line: bytes, now: float) -> None:
        click.echo(line.decode(client.settings.encoding, errors="replace"))
        self.count += 1
        if self.max_lines is not None and self.count >= self.max_lines and self.stop is not None:
            self.stop.set()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """lineclient command line interface."""


@cli.command("tail")
@click.argument("hosts", nargs=-1)
@click.option("--eol", default=None, help="Line terminator; backslash escapes allowed (e.g. '\\r\\n').")
@click.option("--tick", "tick_interval_s", type=float, default=None, help="Tick interval in seconds.")
@click.option("--connect-timeout", "connect_timeout_s", type=float, default=None, help="Connect timeout in seconds.")
@click.option("--send", "greetings", multiple=True, help="Line to send on every connect (repeatable).")
@click.option(
    "--idle-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Drop the connection after this many idle seconds.",
)
@click.option("--keepalive", type=float, default=None, help="Send a keepalive line every N seconds.")
@click.option("--keepalive-payload", default="", show_default=True, help="Keepalive line content.")
@click.option("--max-lines", type=int, default=None, help="Exit after printing this many lines.")
@click.option("--debug", type=int, default=None, help="Diagnostic verbosity (0-2).")
@click.option("--log-level", default=None, help="Log level (default from LINECLIENT_LOG_LEVEL).")
def tail(
    hosts: tuple[str, ...],
    eol: str | None,
    tick_interval_s: float | None,
    connect_timeout_s: float | None,
    greetings: tuple[str, ...],
    idle_timeout: float | None,
    keepalive: float | None,
    keepalive_payload: str,
    max_lines: int | None,
    debug: int | None,
    log_level: str | None,
) -> None:
    """Connect to HOST:PORT (failing over across all given) and print every line received.

    Examples:
        lineclient tail localhost:4000
        lineclient tail primary:4000 backup:4000 --send "HELLO" --idle-timeout 30
    """
    overrides: dict[str, Any] = {
        "hosts": list(hosts) or None,
        "eol": codecs.decode(eol, "unicode_escape") if eol is not None else None,
        "tick_interval_s": tick_interval_s,
        "connect_timeout_s": connect_timeout_s,
        "debug": debug,
        "log_level": log_level,
    }
    try:
        settings = ClientSettings(**{k: v for k, v in overrides.items() if v is not None})
    except (ValidationError, InvalidEndpoint) as e:
        raise click.BadParameter(str(e)) from e
    if not settings.hosts:
        raise click.UsageError("No HOST:PORT given (and LINECLIENT_HOSTS is empty).")

    configure_logging(settings)

    stop = threading.Event()
    protocol: LineProtocol = EchoLines(greetings, eol=settings.eol, max_lines=max_lines, stop=stop)
    if keepalive is not None:
        protocol = KeepaliveProtocol(
            protocol,
            interval_s=keepalive,
            payload=(keepalive_payload + settings.eol).encode(settings.encoding),
        )
    if idle_timeout is not None:
        protocol = IdleWatchdog(protocol, timeout_s=idle_timeout)

    with LineClient(protocol, settings=settings) as client:
        try:
            client.run_loop(stop)
        except KeyboardInterrupt:
            click.echo("# interrupted", err=True)


def main() -> None:
    cli.main()


if __name__ == "__main__":
    main()
