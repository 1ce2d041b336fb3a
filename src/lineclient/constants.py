# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shared constants for lineclient."""

from __future__ import annotations

# Framing
DEFAULT_EOL = b"\n"
DEFAULT_ENCODING = "utf-8"

# Loop timing (seconds)
DEFAULT_TICK_INTERVAL_S = 0.01
DEFAULT_MAX_POLL_WAIT_S = 0.01
DEFAULT_CONNECT_TIMEOUT_S = 5.0

# I/O sizes
DEFAULT_RECV_SIZE = 4096
DEFAULT_MAX_INPUT_BYTES = 1024 * 1024

# set_debug() levels
DEBUG_OFF = 0
DEBUG_LIFECYCLE = 1
DEBUG_IO = 2
