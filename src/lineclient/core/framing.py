# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Input framing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from lineclient.constants import DEFAULT_EOL, DEFAULT_MAX_INPUT_BYTES
from lineclient.errors import LineTooLong


class Framer(Protocol):
    """
    Framing is responsible only for extracting complete records from the
    accumulated input buffer. It consumes what it returns and leaves any
    partial record in place.
    """

    def decode_from_buffer(self, buffer: bytearray) -> bytes | None: ...


@dataclass(frozen=True, slots=True)
class LineFramer:
    """
    Delimiter framing.

    A record is every byte before the first occurrence of ``eol``; the record
    and its terminator are removed from the buffer. Matching is an exact byte
    comparison. If no terminator is present and the buffer holds more than
    ``max_bytes``, the peer is misbehaving and ``LineTooLong`` is raised.
    """

    eol: bytes = DEFAULT_EOL
    max_bytes: int = DEFAULT_MAX_INPUT_BYTES

    def __post_init__(self) -> None:
        if not self.eol:
            raise ValueError("eol must not be empty")

    def decode_from_buffer(self, buffer: bytearray) -> bytes | None:
        idx = buffer.find(self.eol)
        if idx < 0:
            if len(buffer) > self.max_bytes:
                raise LineTooLong(len(buffer), self.max_bytes)
            return None
        line = bytes(buffer[:idx])
        del buffer[: idx + len(self.eol)]
        return line
