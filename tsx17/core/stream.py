# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.stream

Append-only receive buffer shared by the serial transport (producer)
and the frame parser (consumer).

The producer calls write() from transport data events. The consumer
peeks/skips/reads synchronously and suspends in wait_readable() when
it needs more bytes than are buffered.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from ..exceptions import BufferOverflowError

logger = logging.getLogger(__name__)


class ByteStream:
    """
    Ordered byte queue with a monotonically increasing read cursor.

    Args:
        max_size: Maximum number of unread bytes, None for no limit.
            Overflow poisons the stream with BufferOverflowError.
    """

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size
        self._buffer = bytearray()
        self._consumed = 0
        self._error: Optional[BaseException] = None
        self._waiters: List[Tuple[int, asyncio.Future]] = []

    @property
    def buffer_size(self) -> int:
        """Number of unread bytes"""
        return len(self._buffer)

    @property
    def position(self) -> int:
        """Total bytes consumed since creation"""
        return self._consumed

    def write(self, data: bytes) -> None:
        """Append received bytes and wake any reader they satisfy."""
        if self._error is not None or not data:
            return
        self._buffer += data
        if self.max_size is not None and len(self._buffer) > self.max_size:
            self.fail(BufferOverflowError(
                f"Receive buffer exceeded {self.max_size} bytes"))
            return

        size = len(self._buffer)
        pending = []
        for count, fut in self._waiters:
            if fut.done():
                continue
            if count <= size:
                fut.set_result(None)
            else:
                pending.append((count, fut))
        self._waiters = pending

    def fail(self, error: BaseException) -> None:
        """Poison the stream: pending and future waits raise ``error``."""
        if self._error is not None:
            return
        logger.error(f"Stream failed: {error}")
        self._error = error
        for _, fut in self._waiters:
            if not fut.done():
                fut.set_exception(error)
        self._waiters = []

    def read(self, count: int) -> Optional[bytes]:
        """
        Remove and return exactly ``count`` bytes.

        Returns:
            The bytes, or None if fewer than ``count`` are buffered
        """
        if len(self._buffer) < count:
            return None
        data = bytes(self._buffer[:count])
        del self._buffer[:count]
        self._consumed += count
        return data

    def peek(self, offset: int = 0) -> int:
        """Byte at ``offset`` from the cursor, or -1 if not yet received"""
        if offset >= len(self._buffer):
            return -1
        return self._buffer[offset]

    def skip(self, count: int) -> None:
        """Advance the cursor by ``count`` bytes without returning them."""
        count = min(count, len(self._buffer))
        del self._buffer[:count]
        self._consumed += count

    def clear(self) -> None:
        """Discard every unread byte"""
        self.skip(len(self._buffer))

    async def wait_readable(self, count: int = 1) -> None:
        """Suspend until at least ``count`` bytes are buffered."""
        if self._error is not None:
            raise self._error
        if len(self._buffer) >= count:
            return
        fut = asyncio.get_running_loop().create_future()
        waiter = (count, fut)
        self._waiters.append(waiter)
        try:
            await fut
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def read_byte(self) -> int:
        """Wait for and consume a single byte"""
        await self.wait_readable(1)
        return self.read(1)[0]

    def __repr__(self) -> str:
        return (f"ByteStream(buffered={len(self._buffer)}, "
                f"consumed={self._consumed})")
