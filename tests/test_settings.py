"""Tests for environment-driven client settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lineclient.constants import DEFAULT_CONNECT_TIMEOUT_S, DEFAULT_MAX_INPUT_BYTES, DEFAULT_TICK_INTERVAL_S
from lineclient.settings import ClientSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOSTS", "TICK_INTERVAL_S", "EOL", "DEBUG", "LOG_LEVEL", "CONNECT_TIMEOUT_S"):
        monkeypatch.delenv(f"LINECLIENT_{name}", raising=False)


def test_defaults() -> None:
    settings = ClientSettings()

    assert settings.hosts == []
    assert settings.tick_interval_s == DEFAULT_TICK_INTERVAL_S
    assert settings.connect_timeout_s == DEFAULT_CONNECT_TIMEOUT_S
    assert settings.max_input_bytes == DEFAULT_MAX_INPUT_BYTES
    assert settings.eol_bytes == b"\n"
    assert settings.debug == 0


def test_env_var_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that LINECLIENT_* environment variables are picked up."""
    monkeypatch.setenv("LINECLIENT_TICK_INTERVAL_S", "0.5")
    monkeypatch.setenv("LINECLIENT_HOSTS", '["a:1", "[::1]:2"]')
    monkeypatch.setenv("LINECLIENT_DEBUG", "2")

    settings = ClientSettings()

    assert settings.tick_interval_s == 0.5
    assert settings.hosts == ["a:1", "[::1]:2"]
    assert settings.debug == 2


def test_explicit_values_beat_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINECLIENT_CONNECT_TIMEOUT_S", "9")

    assert ClientSettings(connect_timeout_s=2.0).connect_timeout_s == 2.0


def test_eol_bytes_uses_encoding() -> None:
    assert ClientSettings(eol="\r\n").eol_bytes == b"\r\n"


@pytest.mark.parametrize(
    "field,value",
    [
        ("eol", ""),
        ("tick_interval_s", 0),
        ("connect_timeout_s", -1),
        ("max_input_bytes", 0),
        ("debug", -1),
    ],
)
def test_invalid_values_rejected(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        ClientSettings(**{field: value})


def test_bad_host_rejected() -> None:
    with pytest.raises(ValidationError, match="port"):
        ClientSettings(hosts=["example.org:notaport"])
