# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.config

Configuration objects for the TSX17 driver.

- LinkConfig: address/category bytes placed in every outgoing frame
- SerialSettings: line parameters for one open of the serial port
- BaudStep: one entry of the baud negotiation sequence
- DriverConfig: timeouts, retry budgets and limits
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import serial


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


@dataclass(frozen=True)
class LinkConfig:
    """
    Address fields identifying the PLC link.

    network, station, gate, module and channel form the five header
    bytes of every frame. category and segment are used by the word
    read/write commands.
    """

    network: int = 0xF0
    station: int = 0xFE
    gate: int = 0x01
    module: int = 0xFE
    channel: int = 0x00
    category: int = 0x03
    segment: int = 0x07

    def __post_init__(self) -> None:
        for name in ("network", "station", "gate", "module",
                     "channel", "category", "segment"):
            _check_byte(name, getattr(self, name))

    @property
    def header(self) -> bytes:
        """Five header bytes in wire order"""
        return bytes([self.network, self.station, self.gate,
                      self.module, self.channel])


@dataclass(frozen=True)
class SerialSettings:
    """Line parameters: 8 data bits, odd parity, 1 stop bit, no RTS/CTS"""

    baudrate: int = 9600
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_ODD
    stopbits: float = serial.STOPBITS_ONE
    rtscts: bool = False


@dataclass(frozen=True)
class BaudStep:
    """One negotiation attempt"""

    baudrate: int
    reset_remote: bool = False


DEFAULT_BAUD_SEQUENCE: Tuple[BaudStep, ...] = (
    BaudStep(9600),
    BaudStep(19200),
    BaudStep(9600),
    BaudStep(300, reset_remote=True),
    BaudStep(9600),
)


@dataclass(frozen=True)
class DriverConfig:
    """
    Timing and retry parameters.

    Attributes:
        response_timeout: Seconds to wait for ACK/NACK/EOT or a frame
        baud_attempt_timeout: Seconds to wait for a reply while probing a rate
        close_settle_delay: Pause after closing a rejected baud attempt
        max_command_tries: Send attempts per command before giving up
        max_polling_retries: Polling resends per baud attempt
        negotiation_passes: Full sweeps of the baud sequence
        settle_polls: Polling round-trips performed once connected
        max_words_per_request: Word count limit of one wire request
        max_poll_timeouts: Response-wait timeouts tolerated per command,
            None for no limit
        max_buffer_size: Receive buffer limit in bytes, None for no limit
        baud_sequence: Rates tried during negotiation, in order
    """

    response_timeout: float = 5.0
    baud_attempt_timeout: float = 2.0
    close_settle_delay: float = 1.0
    max_command_tries: int = 5
    max_polling_retries: int = 5
    negotiation_passes: int = 2
    settle_polls: int = 2
    max_words_per_request: int = 15
    max_poll_timeouts: Optional[int] = None
    max_buffer_size: Optional[int] = 65536
    baud_sequence: Tuple[BaudStep, ...] = field(
        default_factory=lambda: DEFAULT_BAUD_SEQUENCE)

    def __post_init__(self) -> None:
        if self.max_command_tries < 1:
            raise ValueError("max_command_tries must be >= 1")
        if not 1 <= self.max_words_per_request <= 15:
            raise ValueError("max_words_per_request must be 1-15")
        if not self.baud_sequence:
            raise ValueError("baud_sequence must not be empty")


DEFAULT_LINK_CONFIG = LinkConfig()
DEFAULT_DRIVER_CONFIG = DriverConfig()
