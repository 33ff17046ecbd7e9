# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.interfaces.serial_port

pyserial backed transport.

Blocking pyserial calls (open, write+flush, close) run in a worker
thread. A daemon receiver thread reads whatever is available and hands
it to the event loop with call_soon_threadsafe, so on_data/on_error
observers always run on the loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

import serial

from .transport import SerialTransport
from ..core.config import SerialSettings
from ..exceptions import TransportError
from ..utils.async_thread import run_in_thread

logger = logging.getLogger(__name__)


class PySerialTransport(SerialTransport):
    """
    Serial port transport

    Args:
        port: Device name ("/dev/ttyUSB0", "COM3", ...)
        read_timeout: Receiver thread poll interval in seconds
    """

    def __init__(self, port: str, read_timeout: float = 0.1):
        super().__init__()
        self.port = port
        self.read_timeout = read_timeout
        self._serial: Optional[serial.Serial] = None
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._running = False

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    async def open(self, settings: SerialSettings) -> None:
        if self.is_open:
            await self.close()

        logger.info(f"Open serial port {self.port} bauds={settings.baudrate}")
        try:
            self._serial = await run_in_thread(
                serial.Serial,
                port=self.port,
                baudrate=settings.baudrate,
                bytesize=settings.bytesize,
                parity=settings.parity,
                stopbits=settings.stopbits,
                rtscts=settings.rtscts,
                timeout=self.read_timeout,
            )
        except (serial.SerialException, ValueError) as e:
            raise TransportError(f"Serial open failed: {e}") from e

        self.settings = settings
        self._loop = asyncio.get_running_loop()
        self._running = True
        self._thread = threading.Thread(
            target=self._receive_loop,
            name="TSX17-Receiver",
            daemon=True
        )
        self._thread.start()

    async def close(self) -> None:
        if self._serial is None:
            return

        self._running = False
        thread, self._thread = self._thread, None
        if thread:
            await run_in_thread(thread.join, 1.0)

        port, self._serial = self._serial, None
        try:
            await run_in_thread(port.close)
        except serial.SerialException as e:
            raise TransportError(f"Serial close failed: {e}") from e
        finally:
            logger.info(f"Closed serial port {self.port}")

    async def write(self, data: bytes) -> None:
        if not self.is_open:
            raise TransportError("Serial port is not opened")

        logger.debug(f"Write {data.hex(' ')}")
        try:
            await run_in_thread(self._write_and_drain, bytes(data))
        except serial.SerialException as e:
            raise TransportError(f"Serial write failed: {e}") from e

    def _write_and_drain(self, data: bytes) -> None:
        self._serial.write(data)
        self._serial.flush()

    def _receive_loop(self) -> None:
        """Main receive loop (runs in thread)"""
        port = self._serial
        loop = self._loop
        while self._running:
            try:
                data = port.read(port.in_waiting or 1)
            except (serial.SerialException, OSError) as e:
                if self._running:
                    loop.call_soon_threadsafe(
                        self._handle_error,
                        TransportError(f"Serial read failed: {e}"))
                break
            if data:
                loop.call_soon_threadsafe(self._handle_data, data)
