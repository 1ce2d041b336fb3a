# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
import structlog

from lineclient.core.client import LineClient
from lineclient.settings import ClientSettings
from tests.fakes import FakeClock, FakeNetwork, FakePoller, Recorder


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any configure_logging() a test performed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def poller(clock: FakeClock) -> FakePoller:
    return FakePoller(clock)


@pytest.fixture
def recorder(network: FakeNetwork) -> Recorder:
    return Recorder(network)


@pytest.fixture
def settings() -> ClientSettings:
    """Binary-exact timings so FakeClock arithmetic has no rounding."""
    return ClientSettings(tick_interval_s=0.25, max_poll_wait_s=0.25, connect_timeout_s=1.0)


@pytest.fixture
def make_client(
    network: FakeNetwork,
    poller: FakePoller,
    clock: FakeClock,
    recorder: Recorder,
    settings: ClientSettings,
) -> Callable[..., LineClient]:
    def _make(*hosts: str, **overrides: Any) -> LineClient:
        client_settings = settings.model_copy(update=overrides) if overrides else settings
        client = LineClient(
            recorder,
            settings=client_settings,
            socket_factory=network,
            poller=poller,
            clock=clock,
        )
        for host in hosts:
            client.add_host(host)
        return client

    return _make
