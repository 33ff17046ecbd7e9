# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyTSX17 Transport Interfaces

Provides:
- SerialTransport base class (observer based byte delivery)
- PySerialTransport for real serial ports
"""

from .transport import SerialTransport
from .serial_port import PySerialTransport

__all__ = [
    'SerialTransport',
    'PySerialTransport'
]
