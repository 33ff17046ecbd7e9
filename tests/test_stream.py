# tests/test_stream.py
"""
ByteStream Tests

Covers:
- Synchronous read/peek/skip
- Waking readers on write
- Failure and overflow

License: LGPLv3.0
Copyright (C) 2025-2026 Kris Kirby, KE4AHR
"""

import asyncio

import pytest

from tsx17.core.stream import ByteStream
from tsx17.exceptions import BufferOverflowError, TransportError


class TestByteStream:
    def test_read_peek_skip(self):
        stream = ByteStream()
        stream.write(b"\x01\x02\x03")
        assert stream.buffer_size == 3
        assert stream.peek(0) == 1
        assert stream.peek(2) == 3
        assert stream.peek(3) == -1
        assert stream.read(4) is None
        assert stream.read(2) == b"\x01\x02"
        stream.skip(5)
        assert stream.buffer_size == 0
        assert stream.position == 3

    def test_clear(self):
        stream = ByteStream()
        stream.write(b"abc")
        stream.clear()
        assert stream.buffer_size == 0
        assert stream.position == 3

    @pytest.mark.asyncio
    async def test_wait_readable_wakes_on_count(self):
        stream = ByteStream()
        task = asyncio.ensure_future(stream.wait_readable(3))
        await asyncio.sleep(0)

        stream.write(b"\x01\x02")
        await asyncio.sleep(0)
        assert not task.done()

        stream.write(b"\x03")
        await asyncio.wait_for(task, 1.0)

    @pytest.mark.asyncio
    async def test_read_byte(self):
        stream = ByteStream()
        task = asyncio.ensure_future(stream.read_byte())
        await asyncio.sleep(0)
        stream.write(b"\x06\x04")
        assert await asyncio.wait_for(task, 1.0) == 0x06
        assert stream.buffer_size == 1

    @pytest.mark.asyncio
    async def test_fail_wakes_waiters(self):
        stream = ByteStream()
        task = asyncio.ensure_future(stream.wait_readable())
        await asyncio.sleep(0)
        stream.fail(TransportError("gone"))
        with pytest.raises(TransportError):
            await task
        with pytest.raises(TransportError):
            await stream.wait_readable()

    @pytest.mark.asyncio
    async def test_overflow(self):
        stream = ByteStream(max_size=4)
        stream.write(b"\x00" * 5)
        with pytest.raises(BufferOverflowError):
            await stream.wait_readable()

    @pytest.mark.asyncio
    async def test_timed_out_wait_leaves_no_waiter(self):
        stream = ByteStream()
        for _ in range(3):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(stream.wait_readable(), 0.01)
        assert stream._waiters == []

        stream.write(b"\x04")
        assert await stream.read_byte() == 0x04
