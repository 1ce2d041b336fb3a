# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client settings."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lineclient.constants import (
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_ENCODING,
    DEFAULT_MAX_INPUT_BYTES,
    DEFAULT_MAX_POLL_WAIT_S,
    DEFAULT_RECV_SIZE,
    DEFAULT_TICK_INTERVAL_S,
)
from lineclient.endpoints import parse_endpoint


class ClientSettings(BaseSettings):
    hosts: list[str] = Field(default_factory=list)
    tick_interval_s: float = Field(default=DEFAULT_TICK_INTERVAL_S, gt=0)
    max_poll_wait_s: float = Field(default=DEFAULT_MAX_POLL_WAIT_S, gt=0)
    connect_timeout_s: float = Field(default=DEFAULT_CONNECT_TIMEOUT_S, gt=0)
    eol: str = "\n"
    encoding: str = DEFAULT_ENCODING
    recv_size: int = Field(default=DEFAULT_RECV_SIZE, gt=0)
    max_input_bytes: int = Field(default=DEFAULT_MAX_INPUT_BYTES, gt=0)
    debug: int = Field(default=0, ge=0)
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="LINECLIENT_",
        extra="ignore",
    )

    @field_validator("eol")
    @classmethod
    def _eol_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("eol must not be empty")
        return value

    @field_validator("hosts")
    @classmethod
    def _hosts_parse(cls, value: list[str]) -> list[str]:
        for spec in value:
            parse_endpoint(spec)
        return value

    @property
    def eol_bytes(self) -> bytes:
        return self.eol.encode(self.encoding)
