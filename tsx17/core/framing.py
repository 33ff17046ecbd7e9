# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.framing

TSX17 frame encoding and incremental decoding.

Frame layout on the wire::

    +-----+-----+--------+---------------------------+---------+-----+
    | DLE | STX | Length | Network Station Gate      | Payload | BCC |
    |     |     |        | Module Channel (5 bytes)  |         |     |
    +-----+-----+--------+---------------------------+---------+-----+

- Length = payload length + 5 (header bytes), independent of escaping
- Every DLE (0x10) in length, header or payload is sent twice
- BCC = sum of every transmitted byte (escapes included) modulo 256,
  sent as a raw trailing byte

Outside a frame the station answers with single control bytes
(ACK, NACK, EOT) which the parser returns as ControlCode values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

from .config import LinkConfig
from .stream import ByteStream
from ..exceptions import FrameFormatError, InvalidResponseError

logger = logging.getLogger(__name__)

# Wire constants
EOT = 0x04   # No message available
ACK = 0x06   # Acknowledge
NACK = 0x15  # Negative acknowledge
DLE = 0x10   # Data link escape / frame introducer
STX = 0x02   # Start of request
ENQ = 0x05   # Polling

HEADER_SIZE = 5
MAX_PAYLOAD = 0xFF - HEADER_SIZE

POLLING_FRAME = bytes([DLE, ENQ])
RESET_BAUDS_FRAME = bytes([0x06, 0x10, 0x02, 0x06, 0x30, 0xFE,
                           0x01, 0xFE, 0x00, 0x05, 0x4A])


class ControlCode(IntEnum):
    """Single-byte replies received outside a frame"""
    EOT = 0x04
    ACK = 0x06
    NACK = 0x15


_CONTROL_CODES = frozenset(int(c) for c in ControlCode)


@dataclass
class Frame:
    """A decoded (or to be encoded) TSX17 frame."""

    network: int
    station: int
    gate: int
    module: int
    channel: int
    data: bytes = b''
    checksum: int = 0

    @classmethod
    def from_payload(cls, payload: bytes, checksum: int) -> 'Frame':
        """Split an unescaped length-prefixed body into header and data"""
        if len(payload) < HEADER_SIZE:
            raise InvalidResponseError(
                f"Frame body of {len(payload)} bytes has no full header")
        return cls(
            network=payload[0],
            station=payload[1],
            gate=payload[2],
            module=payload[3],
            channel=payload[4],
            data=bytes(payload[HEADER_SIZE:]),
            checksum=checksum,
        )

    @property
    def header(self) -> bytes:
        return bytes([self.network, self.station, self.gate,
                      self.module, self.channel])

    @property
    def length(self) -> int:
        """Value of the length field"""
        return len(self.data) + HEADER_SIZE

    def encode(self) -> bytes:
        """Wire bytes for this frame's header and data"""
        return _encode(self.header, self.data)

    def expected_checksum(self) -> int:
        """BCC an encoder would produce for this header and data"""
        return self.encode()[-1]

    def checksum_ok(self) -> bool:
        return self.checksum == self.expected_checksum()

    def __repr__(self) -> str:
        return (f"Frame(network=0x{self.network:02X}, "
                f"station=0x{self.station:02X}, gate=0x{self.gate:02X}, "
                f"module=0x{self.module:02X}, channel=0x{self.channel:02X}, "
                f"data={self.data.hex(' ') if self.data else '(empty)'}, "
                f"bcc=0x{self.checksum:02X})")


def _encode(header: bytes, payload: bytes) -> bytes:
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Payload too long: {len(payload)} > {MAX_PAYLOAD}")

    out = bytearray([DLE])
    bcc = DLE

    def write(c: int) -> None:
        nonlocal bcc
        if c == DLE:
            out.append(c)
            bcc += c
        out.append(c)
        bcc += c

    write(STX)
    write(len(payload) + HEADER_SIZE)
    for c in header:
        write(c)
    for c in payload:
        write(c)

    out.append(bcc & 0xFF)
    return bytes(out)


def build_frame(config: LinkConfig, payload: bytes) -> bytes:
    """
    Encode a command payload addressed with ``config``.

    Args:
        config: Link addressing (network/station/gate/module/channel)
        payload: Command bytes

    Returns:
        DLE/STX framed, escaped and checksummed bytes
    """
    return _encode(config.header, bytes(payload))


class ParseState(Enum):
    """Position of the parser inside the incoming byte stream"""
    SCAN = 0       # Looking for a control code or DLE
    STX = 1        # DLE seen, STX expected
    LENGTH = 2     # Reading escaped length byte
    PAYLOAD = 3    # Reading escaped body bytes
    CHECKSUM = 4   # Reading raw BCC


class FrameParser:
    """
    Incremental decoder over a ByteStream.

    step() consumes as much as is buffered and returns a ControlCode,
    a Frame, or None when more bytes are needed. parse_next() wraps it
    and suspends on the stream until a result is complete. Partially
    read frames are kept across suspensions; reset() drops them when
    the caller gives up waiting.

    Checksums are not verified here; see Frame.checksum_ok().
    """

    def __init__(self, stream: ByteStream):
        self.stream = stream
        self.state = ParseState.SCAN
        self._length = 0
        self._payload = bytearray()
        self._needed = 1

    def reset(self) -> None:
        """Drop any partially decoded frame"""
        self.state = ParseState.SCAN
        self._length = 0
        self._payload = bytearray()
        self._needed = 1

    def _take_escaped(self) -> int:
        """Read one DLE-unescaped byte, -1 if more input is needed."""
        stream = self.stream
        b = stream.peek(0)
        if b < 0:
            self._needed = 1
            return -1
        if b != DLE:
            stream.skip(1)
            return b

        b2 = stream.peek(1)
        if b2 < 0:
            self._needed = 2
            return -1
        stream.skip(2)
        if b2 == DLE:
            return DLE

        self.reset()
        raise FrameFormatError(f"Invalid DLE format (DLE followed by 0x{b2:02X})",
                               FrameFormatError.INVALID_DLE_FORMAT)

    def _take_raw(self) -> int:
        data = self.stream.read(1)
        if data is None:
            self._needed = 1
            return -1
        return data[0]

    def step(self) -> Optional[Union[ControlCode, Frame]]:
        """Advance over buffered bytes; None means "wait for more"."""
        while True:
            if self.state is ParseState.SCAN:
                b = self._take_raw()
                if b < 0:
                    return None
                if b in _CONTROL_CODES:
                    return ControlCode(b)
                if b == DLE:
                    self.state = ParseState.STX
                    continue
                logger.debug(f"Unknown code 0x{b:02X}, waiting for another")
                continue

            if self.state is ParseState.STX:
                b = self._take_raw()
                if b < 0:
                    return None
                if b != STX:
                    self.reset()
                    raise FrameFormatError(
                        f"INVALID DLE/STX protocol (got 0x{b:02X})",
                        FrameFormatError.INVALID_DLE_STX)
                self.state = ParseState.LENGTH
                continue

            if self.state is ParseState.LENGTH:
                b = self._take_escaped()
                if b < 0:
                    return None
                self._length = b
                self._payload = bytearray()
                self.state = ParseState.PAYLOAD
                continue

            if self.state is ParseState.PAYLOAD:
                while len(self._payload) < self._length:
                    b = self._take_escaped()
                    if b < 0:
                        return None
                    self._payload.append(b)
                self.state = ParseState.CHECKSUM
                continue

            # ParseState.CHECKSUM
            bcc = self._take_raw()
            if bcc < 0:
                return None
            payload = bytes(self._payload)
            self.reset()
            frame = Frame.from_payload(payload, bcc)
            logger.debug(f"Received {frame!r}")
            return frame

    async def parse_next(self) -> Union[ControlCode, Frame]:
        """Wait for the next control code or complete frame."""
        while True:
            result = self.step()
            if result is not None:
                return result
            await self.stream.wait_readable(self._needed)


def decode_frame(data: bytes) -> Union[ControlCode, Frame]:
    """
    Decode the first control code or frame in a complete buffer.

    Raises:
        FrameFormatError: On malformed or truncated input
        InvalidResponseError: Frame body shorter than the header
    """
    stream = ByteStream()
    stream.write(bytes(data))
    result = FrameParser(stream).step()
    if result is None:
        raise FrameFormatError("Truncated frame",
                               FrameFormatError.INVALID_DLE_FORMAT)
    return result
