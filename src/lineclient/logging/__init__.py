# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging layer for lineclient."""

from __future__ import annotations

from lineclient.logging.config import configure_logging, effective_level, get_logger

__all__ = ["configure_logging", "effective_level", "get_logger"]
