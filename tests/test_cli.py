"""Tests for the lineclient command line."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from lineclient.cli import cli
from tests.line_server import LineServer


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.delenv("LINECLIENT_HOSTS", raising=False)
    return CliRunner()


def test_tail_requires_hosts(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["tail"])

    assert result.exit_code == 2
    assert "No HOST:PORT given" in result.output


def test_tail_rejects_bad_host(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["tail", "no-port-here"])

    assert result.exit_code == 2
    assert "Invalid endpoint" in result.output


def test_tail_rejects_non_positive_idle_timeout(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["tail", "localhost:4000", "--idle-timeout", "0"])

    assert result.exit_code == 2


def test_tail_prints_lines_and_sends_greeting(runner: CliRunner) -> None:
    with LineServer([[b"one\r\ntwo\r\n", b"three\r\n"]]) as server:
        result = runner.invoke(
            cli,
            ["tail", server.address, "--eol", "\\r\\n", "--send", "HELLO", "--max-lines", "2"],
        )
        greeting = server.wait_for_bytes(len(b"HELLO\r\n"))

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert "one" in lines
    assert "two" in lines
    assert "three" not in lines
    assert f"# connected to {server.address}" in lines
    assert greeting == b"HELLO\r\n"
