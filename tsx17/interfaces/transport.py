# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.interfaces.transport

Abstract serial transport.

A transport opens the physical line with given SerialSettings, writes
(and drains) raw bytes, and reports arrival and failure events through
two observer attributes:

- on_data(bytes): called on the event loop for every received chunk
- on_error(Exception): called on the event loop when the port fails

The link layer swaps these observers whenever it installs a new
receive buffer, so ownership of incoming bytes follows the session.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..core.config import SerialSettings

logger = logging.getLogger(__name__)


class SerialTransport(ABC):
    """
    Abstract base class for asynchronous serial transports.

    Attributes:
        on_data: Callback for received bytes
        on_error: Callback for port failures
    """

    def __init__(self):
        self.on_data: Optional[Callable[[bytes], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None
        self.settings: Optional[SerialSettings] = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the line is open"""

    @abstractmethod
    async def open(self, settings: SerialSettings) -> None:
        """
        Open the line.

        Args:
            settings: Baud rate and framing parameters

        Raises:
            TransportError: If the port cannot be opened
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the line. Closing a closed transport is a no-op."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write bytes and wait until they are drained to the line.

        Raises:
            TransportError: If the port is closed or the write fails
        """

    def _handle_data(self, data: bytes) -> None:
        """Deliver received bytes to the current observer"""
        logger.debug(f"Read {len(data)} bytes from serial: {data.hex(' ')}")
        if self.on_data:
            self.on_data(data)

    def _handle_error(self, error: Exception) -> None:
        """Internal error handling"""
        logger.error(f"Transport error: {error}")
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")

    def __repr__(self) -> str:
        baud = self.settings.baudrate if self.settings else None
        return f"{self.__class__.__name__}(open={self.is_open}, baudrate={baud})"
