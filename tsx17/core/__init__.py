# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyTSX17 Core Module

Contains:
- Receive byte stream
- Frame encoding and incremental decoding
- Baud rate negotiation
- Link session (polling, result wait, reset)
- Command payload builders
"""

from .config import (
    LinkConfig,
    SerialSettings,
    BaudStep,
    DriverConfig,
    DEFAULT_LINK_CONFIG,
    DEFAULT_DRIVER_CONFIG,
    DEFAULT_BAUD_SEQUENCE
)
from .stream import ByteStream
from .framing import (
    ControlCode,
    Frame,
    FrameParser,
    build_frame,
    decode_frame,
    POLLING_FRAME,
    RESET_BAUDS_FRAME
)
from .negotiation import BaudNegotiator
from .link import TSX17Link, LinkState

__all__ = [
    # Configuration
    'LinkConfig',
    'SerialSettings',
    'BaudStep',
    'DriverConfig',
    'DEFAULT_LINK_CONFIG',
    'DEFAULT_DRIVER_CONFIG',
    'DEFAULT_BAUD_SEQUENCE',

    # Framing
    'ByteStream',
    'ControlCode',
    'Frame',
    'FrameParser',
    'build_frame',
    'decode_frame',
    'POLLING_FRAME',
    'RESET_BAUDS_FRAME',

    # Link
    'BaudNegotiator',
    'TSX17Link',
    'LinkState'
]
