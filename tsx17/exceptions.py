# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.exceptions

Exception hierarchy for the TSX17 driver.

Every exception carries a short ``code`` string so callers can branch
on the failure kind the same way regardless of which layer raised it.
"""

from __future__ import annotations


class TSX17Error(Exception):
    """Base exception for all TSX17 driver errors"""

    code = "TSX17"


class TransportError(TSX17Error):
    """Serial port open/write/close failure"""

    code = "TRANSPORT"


class LinkTimeoutError(TSX17Error):
    """No response received within the wait window"""

    code = "TIMEOUT"


class InvalidCommunicationError(TSX17Error):
    """Polling retries exhausted without a usable reply"""

    code = "INVALID_COMMUNICATION"


class ResetBaudsSignal(TSX17Error):
    """
    Remote station was told to reset its baud rate.

    Not a real failure: the negotiator moves on to the next rate.
    """

    code = "RESET_BAUDS"


class ConnectionFailedError(TSX17Error):
    """Every baud rate negotiation pass failed"""

    code = "CONNECTION_FAILED"


class FrameFormatError(TSX17Error):
    """Malformed DLE escape sequence in the incoming byte stream"""

    INVALID_DLE_STX = "INVALID_DLE/STX"
    INVALID_DLE_FORMAT = "INVALID_DLE_FORMAT"

    def __init__(self, message: str, code: str = INVALID_DLE_FORMAT):
        super().__init__(message)
        self.code = code


class InvalidResponseError(TSX17Error):
    """Well-formed frame with the wrong marker or length for the request"""

    code = "INVALID_RESPONSE"


class MaxRetriesExceededError(TSX17Error):
    """Command retry budget exhausted"""

    code = "MAX_RETRIES_EXCEEDED"


class BufferOverflowError(TSX17Error):
    """Receive buffer grew past its configured limit"""

    code = "BUFFER_OVERFLOW"


class InternalConsistencyError(TSX17Error):
    """Driver bookkeeping violated (e.g. token released twice)"""

    code = "INTERNAL"


__all__ = [
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
]
