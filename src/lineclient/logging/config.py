# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Centralized logging configuration for lineclient.

The library only ever calls ``get_logger``; programs embedding it (and the
``lineclient`` CLI) call ``configure_logging`` once at startup. Output goes to
stderr so stdout stays free for received lines.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

from lineclient.constants import DEBUG_OFF

if TYPE_CHECKING:
    from lineclient.settings import ClientSettings

__all__ = ["get_logger", "configure_logging", "effective_level"]


def effective_level(settings: ClientSettings) -> int:
    """Numeric level to filter at.

    Client diagnostics (``debug`` >= 1) are emitted at INFO, so a non-zero
    ``debug`` lowers a stricter ``log_level`` to INFO; otherwise
    ``set_debug`` would have nothing to show.
    """
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    if settings.debug > DEBUG_OFF:
        level = min(level, logging.INFO)
    return level


def configure_logging(settings: ClientSettings | None = None, *, stream: TextIO | None = None) -> None:
    """Configure structlog for lineclient.

    Args:
        settings: Settings instance (will be created if None)
        stream: Where to write (default: stderr). Colors are used only on a TTY.
    """
    if settings is None:
        from lineclient.settings import ClientSettings

        settings = ClientSettings()
    out = stream if stream is not None else sys.stderr

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=out.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(effective_level(settings)),
        logger_factory=structlog.PrintLoggerFactory(file=out),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
