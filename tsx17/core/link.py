# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.link

TSX17 link session.

Owns the serial transport and the session's receive buffer:
- open(): negotiate a baud rate, install a fresh buffer, settle the line
- close() / reset(): tear down (and rebuild) the session
- send_packet(), send_polling_and_wait(), wait_result(): the primitives
  the command engine is built from

States: CLOSED -> NEGOTIATING -> OPEN, and OPEN -> RESETTING -> OPEN
when the command engine asks for a reconnect.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Union

import async_timeout

from .config import DriverConfig, LinkConfig, DEFAULT_DRIVER_CONFIG
from .framing import ACK, POLLING_FRAME, ControlCode, Frame, FrameParser, build_frame
from .negotiation import BaudNegotiator
from .stream import ByteStream
from ..exceptions import LinkTimeoutError, TransportError
from ..interfaces.transport import SerialTransport

logger = logging.getLogger(__name__)

Result = Union[ControlCode, Frame]


class LinkState(Enum):
    """Link session states"""
    CLOSED = 0
    NEGOTIATING = 1
    OPEN = 2
    RESETTING = 3


class TSX17Link:
    """
    Serial session with one TSX17 station.

    Args:
        transport: Serial transport (e.g. PySerialTransport)
        config: Timeouts, retry budgets and baud sequence

    Example:
        async with TSX17Link(PySerialTransport("/dev/ttyUSB0")) as link:
            result = await link.send_polling_and_wait()
    """

    def __init__(self, transport: SerialTransport,
                 config: DriverConfig = DEFAULT_DRIVER_CONFIG):
        self.transport = transport
        self.config = config
        self.negotiator = BaudNegotiator(transport, config)

        self.state = LinkState.CLOSED
        self.baudrate: Optional[int] = None
        self.stream: Optional[ByteStream] = None
        self._parser: Optional[FrameParser] = None

        self.on_state_change: Optional[Callable[[LinkState], None]] = None

    def _change_state(self, new_state: LinkState) -> None:
        """Update state with callback"""
        old_state = self.state
        if old_state is new_state:
            return
        self.state = new_state
        logger.debug(f"State change: {old_state} -> {new_state}")
        if self.on_state_change:
            try:
                self.on_state_change(new_state)
            except Exception as e:
                logger.error(f"State callback failed: {e}")

    @property
    def is_open(self) -> bool:
        return self.state is LinkState.OPEN

    def _install_session(self) -> None:
        """Attach a fresh receive buffer to the transport"""
        self.stream = ByteStream(self.config.max_buffer_size)
        self._parser = FrameParser(self.stream)
        self.transport.on_data = self.stream.write
        self.transport.on_error = self._on_transport_error

    def _drop_session(self) -> None:
        self.transport.on_data = None
        self.transport.on_error = None
        self.stream = None
        self._parser = None

    def _on_transport_error(self, error: Exception) -> None:
        if self.stream is not None:
            self.stream.fail(error)

    async def open(self) -> None:
        """
        Negotiate a baud rate and make the link ready for commands.

        Raises:
            ConnectionFailedError: No baud rate worked
            LinkTimeoutError: Settle polling got no answer
        """
        if self.is_open:
            return
        if self.state is not LinkState.RESETTING:
            self._change_state(LinkState.NEGOTIATING)

        try:
            step = await self.negotiator.negotiate()
            self._install_session()
            for _ in range(self.config.settle_polls):
                await self.send_polling_and_wait()
        except BaseException:
            self._drop_session()
            try:
                await self.transport.close()
            except TransportError as e:
                logger.error(f"Close after failed open: {e}")
            self._change_state(LinkState.CLOSED)
            raise

        self.baudrate = step.baudrate
        self._change_state(LinkState.OPEN)
        logger.info(f"Link open at {self.baudrate} bauds")

    async def close(self) -> None:
        """Close the link. Closing a closed link is a no-op."""
        self._drop_session()
        try:
            await self.transport.close()
        finally:
            self.baudrate = None
            self._change_state(LinkState.CLOSED)

    async def reset(self) -> None:
        """Close the port and run baud negotiation again."""
        logger.warning("Resetting link")
        self._change_state(LinkState.RESETTING)
        self._drop_session()
        try:
            await self.transport.close()
        except TransportError as e:
            logger.error(f"Close during reset failed: {e}")
        await self.open()

    async def write(self, data: bytes) -> None:
        if not self.transport.is_open:
            raise TransportError("Serial port is not opened")
        await self.transport.write(bytes(data))

    async def send_packet(self, config: LinkConfig, payload: bytes) -> None:
        """Frame ``payload`` with ``config`` addressing and transmit it."""
        frame = build_frame(config, payload)
        logger.debug(f"Command ready, write serial {frame.hex(' ')}")
        await self.write(frame)

    async def wait_result(self, timeout: Optional[float] = None) -> Result:
        """
        Wait for the next control code or frame.

        Args:
            timeout: Seconds, default DriverConfig.response_timeout

        Raises:
            LinkTimeoutError: Nothing complete arrived in time
            FrameFormatError: Malformed escape sequence
        """
        if self._parser is None:
            raise TransportError("Serial port is not opened")
        if timeout is None:
            timeout = self.config.response_timeout

        logger.debug(f"Wait result, bufferSize={self.stream.buffer_size}")
        try:
            async with async_timeout.timeout(timeout):
                return await self._parser.parse_next()
        except asyncio.TimeoutError:
            # A frame cut short by the deadline is never completed
            self._parser.reset()
            raise LinkTimeoutError(f"WaitResult Timeout ({timeout}s)") from None

    async def send_polling_and_wait(self) -> Result:
        """
        Poll the station and wait for its answer.

        A received frame is acknowledged with ACK before returning.
        """
        logger.debug("Send polling")
        await self.write(POLLING_FRAME)
        result = await self.wait_result()
        logger.debug(f"Wait result={result!r}")

        if isinstance(result, Frame):
            await self.write(bytes([ACK]))
        return result

    async def __aenter__(self) -> 'TSX17Link':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"TSX17Link(state={self.state.name}, baudrate={self.baudrate})"
