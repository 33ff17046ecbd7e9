# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyTSX17 - Asyncio driver for the TSX17 PLC serial protocol

Provides:
- Baud rate negotiation with remote baud reset
- DLE/STX frame encoding/decoding
- Serialized, retried command engine
- Word read/write operations
"""

__version__ = "0.1.0"

# Core
from .core.config import (
    LinkConfig,
    DriverConfig,
    BaudStep,
    SerialSettings
)
from .core.framing import (
    ControlCode,
    Frame,
    build_frame,
    decode_frame
)
from .core.link import TSX17Link, LinkState

# Operations
from .protocol import TSX17Protocol

# Transport interfaces
from .interfaces import (
    SerialTransport,
    PySerialTransport
)

# Exceptions
from .exceptions import (
    TSX17Error,
    TransportError,
    LinkTimeoutError,
    InvalidCommunicationError,
    ResetBaudsSignal,
    ConnectionFailedError,
    FrameFormatError,
    InvalidResponseError,
    MaxRetriesExceededError,
    BufferOverflowError,
    InternalConsistencyError
)

# Utilities
from .utils import configure_logging

__all__ = [
    # Core
    'LinkConfig',
    'DriverConfig',
    'BaudStep',
    'SerialSettings',
    'ControlCode',
    'Frame',
    'build_frame',
    'decode_frame',
    'TSX17Link',
    'LinkState',
    'TSX17Protocol',

    # Interfaces
    'SerialTransport',
    'PySerialTransport',

    # Exceptions
    'TSX17Error',
    'TransportError',
    'LinkTimeoutError',
    'InvalidCommunicationError',
    'ResetBaudsSignal',
    'ConnectionFailedError',
    'FrameFormatError',
    'InvalidResponseError',
    'MaxRetriesExceededError',
    'BufferOverflowError',
    'InternalConsistencyError',

    # Utilities
    'configure_logging',
    'get_version',

    # Metadata
    '__version__'
]


def get_version() -> str:
    """Return the package version."""
    return __version__
