# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.negotiation

Baud rate negotiation.

The PLC's line speed is unknown, so the link is probed with a Polling
frame (DLE ENQ) at each rate of DriverConfig.baud_sequence in turn:

- ACK or EOT back: the rate works, the port is left open
- other bytes: poll again, up to max_polling_retries times
- nothing within baud_attempt_timeout: TIMEOUT, try the next rate
- a step flagged reset_remote sends the Reset-Bauds sequence instead of
  accepting the rate, then reports RESET_BAUDS so the sweep continues

A failed sweep is repeated (negotiation_passes in total) before the
negotiation gives up with ConnectionFailedError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import async_timeout

from .config import BaudStep, DriverConfig, SerialSettings, DEFAULT_DRIVER_CONFIG
from .framing import ACK, EOT, POLLING_FRAME, RESET_BAUDS_FRAME
from .stream import ByteStream
from ..exceptions import (
    ConnectionFailedError,
    InvalidCommunicationError,
    LinkTimeoutError,
    ResetBaudsSignal,
    TSX17Error,
)
from ..interfaces.transport import SerialTransport

logger = logging.getLogger(__name__)

# Failures that only mean "this rate did not work"
ADVANCE_ERRORS = (LinkTimeoutError, InvalidCommunicationError, ResetBaudsSignal)


class BaudNegotiator:
    """
    Finds a working baud rate on ``transport``.

    Args:
        transport: Serial transport to (re)open at each rate
        config: Timeouts, retry budgets and the rate sequence
    """

    def __init__(self, transport: SerialTransport,
                 config: DriverConfig = DEFAULT_DRIVER_CONFIG):
        self.transport = transport
        self.config = config
        self.baudrate: Optional[int] = None

    async def reset_bauds(self) -> None:
        """Send the Reset-Bauds magic sequence on the open line"""
        logger.info("Sending reset bauds sequence")
        await self.transport.write(RESET_BAUDS_FRAME)

    async def try_baud(self, baudrate: int, reset_remote: bool = False) -> None:
        """
        Run one self-contained negotiation attempt.

        On success the transport is left open at ``baudrate``. On any
        failure it is closed and the failure re-raised.

        Raises:
            LinkTimeoutError: No reply within baud_attempt_timeout
            InvalidCommunicationError: Polling retries exhausted
            ResetBaudsSignal: Remote was told to reset its rate
            TransportError: Port open/write failure
        """
        logger.debug(f"Try bauds={baudrate} reset={reset_remote}")

        stream = ByteStream(self.config.max_buffer_size)
        self.transport.on_data = stream.write
        self.transport.on_error = stream.fail

        try:
            await self.transport.open(SerialSettings(baudrate=baudrate))
            await self._probe(stream, baudrate, reset_remote)
        except BaseException as e:
            await self._teardown(e)
            raise
        finally:
            self.transport.on_data = None
            self.transport.on_error = None

        self.baudrate = baudrate

    async def _probe(self, stream: ByteStream, baudrate: int,
                     reset_remote: bool) -> None:
        await self.transport.write(POLLING_FRAME)

        polling_retry = 0
        while True:
            try:
                async with async_timeout.timeout(self.config.baud_attempt_timeout):
                    b = await stream.read_byte()
            except asyncio.TimeoutError:
                raise LinkTimeoutError(f"Timeout, bauds={baudrate}") from None

            if b == ACK or b == EOT:
                if reset_remote:
                    await self.reset_bauds()
                    raise ResetBaudsSignal(f"Reset bauds sent at {baudrate}")
                logger.info(f"Link answered at {baudrate} bauds")
                return

            # Rest of this chunk is the same garbage
            stream.clear()

            if polling_retry < self.config.max_polling_retries:
                polling_retry += 1
                logger.debug(f"Retry polling #{polling_retry} (got 0x{b:02X})")
                await self.transport.write(POLLING_FRAME)
                continue

            if not reset_remote:
                raise InvalidCommunicationError(
                    f"No valid reply after {polling_retry} polls at {baudrate}")

            await self.reset_bauds()
            raise ResetBaudsSignal(f"Reset bauds sent at {baudrate}")

    async def _teardown(self, error: BaseException) -> None:
        """Close the rejected attempt and let the line settle."""
        try:
            await self.transport.close()
        except TSX17Error as e:
            logger.error(f"Close after {error!r} failed: {e}")
        if isinstance(error, ADVANCE_ERRORS) and self.config.close_settle_delay > 0:
            await asyncio.sleep(self.config.close_settle_delay)

    async def _sweep(self) -> BaudStep:
        for step in self.config.baud_sequence:
            try:
                await self.try_baud(step.baudrate, step.reset_remote)
                return step
            except ADVANCE_ERRORS as e:
                logger.debug(f"Try {step.baudrate} returns {e.code}: {e}")
        raise ConnectionFailedError("Can not connect")

    async def negotiate(self) -> BaudStep:
        """
        Sweep the baud sequence until the PLC answers.

        Returns:
            The BaudStep that succeeded; the transport is open at its rate

        Raises:
            ConnectionFailedError: Every pass failed
        """
        last_error: Optional[TSX17Error] = None
        for attempt in range(1, self.config.negotiation_passes + 1):
            try:
                step = await self._sweep()
            except TSX17Error as e:
                logger.warning(f"Negotiation pass #{attempt} failed: {e}")
                last_error = e
                continue
            logger.info(f"Connected at {step.baudrate} bauds")
            return step

        raise ConnectionFailedError(
            f"Can not connect after {self.config.negotiation_passes} passes"
        ) from last_error
