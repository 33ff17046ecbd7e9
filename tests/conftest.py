# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/conftest.py

Shared fixtures: a simulated TSX17 station behind a serial transport and
a driver configuration with short timeouts.
"""

import asyncio
import logging
import struct
from typing import Dict, Generator, List, Optional

import pytest

from tsx17.core.config import DriverConfig, LinkConfig
from tsx17.core.framing import (
    ACK,
    DLE,
    EOT,
    NACK,
    POLLING_FRAME,
    RESET_BAUDS_FRAME,
    STX,
    Frame,
    decode_frame,
)
from tsx17.core.link import TSX17Link
from tsx17.exceptions import TransportError
from tsx17.interfaces.transport import SerialTransport
from tsx17.protocol import TSX17Protocol


class FakePLCTransport(SerialTransport):
    """
    Simulated TSX17 station.

    Replies are delivered on the next loop iteration, like real
    arrival events.

    Attributes:
        accepted_bauds: Rates at which the station understands the host
        baud_after_reset: Rate the station switches to on Reset-Bauds
        wrong_baud_reply: Bytes sent back at a wrong rate (None = silence)
        nack_commands: Number of upcoming commands answered with NACK
        drop_commands: Number of upcoming commands left unanswered
        busy_polls: EOT replies before a pending response is delivered
        nack_polls: NACK replies to polls before the response is delivered
        truncate_responses: Polls answered with only the start of the response
        read_marker: First byte of read responses
        write_status: First byte of write responses
    """

    def __init__(self):
        super().__init__()
        self.accepted_bauds = {9600}
        self.baud_after_reset: Optional[int] = None
        self.wrong_baud_reply: Optional[bytes] = None
        self.nack_commands = 0
        self.drop_commands = 0
        self.busy_polls = 0
        self.nack_polls = 0
        self.truncate_responses = 0
        self.read_marker = 0x66
        self.write_status = 0xFE
        self.station = LinkConfig()

        # Words with a DLE high byte exercise escaping on every read
        self.memory: Dict[int, int] = {i: 0x1000 + i for i in range(512)}

        self.opened: List[int] = []
        self.writes: List[bytes] = []
        self.commands: List[Frame] = []
        self.reset_bauds_received = 0
        self.acks_received = 0
        self._pending: List[bytes] = []
        self._busy_left = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self, settings) -> None:
        self.settings = settings
        self.opened.append(settings.baudrate)
        self._pending = []
        self._open = True

    async def close(self) -> None:
        self._open = False

    def _reply(self, data: bytes) -> None:
        asyncio.get_running_loop().call_soon(self._handle_data, data)

    async def write(self, data: bytes) -> None:
        if not self._open:
            raise TransportError("Serial port is not opened")
        data = bytes(data)
        self.writes.append(data)

        if self.settings.baudrate not in self.accepted_bauds:
            if self.wrong_baud_reply:
                self._reply(self.wrong_baud_reply)
            return

        if data == POLLING_FRAME:
            self._on_poll()
        elif data == bytes([ACK]):
            self.acks_received += 1
        elif data == RESET_BAUDS_FRAME:
            self.reset_bauds_received += 1
            if self.baud_after_reset is not None:
                self.accepted_bauds = {self.baud_after_reset}
        elif data[:2] == bytes([DLE, STX]):
            self._on_command(decode_frame(data))

    def _on_poll(self) -> None:
        if not self._pending:
            self._reply(bytes([EOT]))
        elif self._busy_left > 0:
            self._busy_left -= 1
            self._reply(bytes([EOT]))
        elif self.nack_polls > 0:
            self.nack_polls -= 1
            self._reply(bytes([NACK]))
        elif self.truncate_responses > 0:
            self.truncate_responses -= 1
            self._reply(self._pending[0][:6])
        else:
            self._reply(self._pending.pop(0))

    def _on_command(self, frame: Frame) -> None:
        self.commands.append(frame)
        if self.drop_commands > 0:
            self.drop_commands -= 1
            return
        if self.nack_commands > 0:
            self.nack_commands -= 1
            self._reply(bytes([NACK]))
            return

        response = Frame(self.station.network, self.station.station,
                         self.station.gate, self.station.module,
                         self.station.channel, data=self._execute(frame.data))
        self._pending.append(response.encode())
        self._busy_left = self.busy_polls
        self._reply(bytes([ACK]))

    def _execute(self, command: bytes) -> bytes:
        opcode = command[0]
        if opcode == 0x36:
            offset, count = struct.unpack_from('<HH', command, 4)
            words = [self.memory.get(offset + i, 0) for i in range(count)]
            return bytes([self.read_marker, 0x00]) + struct.pack(f'<{count}H', *words)
        if opcode == 0x37:
            offset, count = struct.unpack_from('<HH', command, 4)
            for i, value in enumerate(struct.unpack_from(f'<{count}H', command, 8)):
                self.memory[offset + i] = value
            return bytes([self.write_status])
        if opcode == 0x14:
            offset, value = struct.unpack_from('<HH', command, 2)
            self.memory[offset] = value
            return bytes([self.write_status])
        # Station information
        return bytes([0x32, 0x17, 0x01, 0x05])

    def command_counts(self) -> List[int]:
        """Word count field of every READ/WRITE_DATAS command received"""
        return [struct.unpack_from('<H', f.data, 6)[0] for f in self.commands
                if f.data[0] in (0x36, 0x37)]

    def command_offsets(self) -> List[int]:
        return [struct.unpack_from('<H', f.data, 4)[0] for f in self.commands
                if f.data[0] in (0x36, 0x37)]


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> Generator[None, None, None]:
    """Configure logging for all tests"""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    yield


@pytest.fixture
def fake() -> FakePLCTransport:
    return FakePLCTransport()


@pytest.fixture
def fast_config() -> DriverConfig:
    """Driver configuration with millisecond timeouts"""
    return DriverConfig(
        response_timeout=0.05,
        baud_attempt_timeout=0.05,
        close_settle_delay=0,
    )


@pytest.fixture
def make_protocol(fake, fast_config):
    """Factory opening a link on the fake station and wrapping it"""
    async def _make(config: DriverConfig = None, **kwargs) -> TSX17Protocol:
        link = TSX17Link(fake, config or fast_config)
        await link.open()
        return TSX17Protocol(link, **kwargs)
    return _make
