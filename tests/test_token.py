# tests/test_token.py
"""
Serialization Token Tests

License: LGPLv3.0
Copyright (C) 2025-2026 Kris Kirby, KE4AHR
"""

import asyncio

import pytest

from tsx17.exceptions import InternalConsistencyError
from tsx17.utils.token import SerializationToken

pytestmark = pytest.mark.asyncio


async def test_fifo_order():
    token = SerializationToken()
    order = []

    async def user(name):
        async with token.hold():
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(user("a"), user("b"), user("c"))
    assert order == ["a-in", "a-out", "b-in", "b-out", "c-in", "c-out"]
    assert not token.locked


async def test_leave_twice():
    token = SerializationToken("test")
    leave = await token.take()
    assert token.locked
    leave()
    with pytest.raises(InternalConsistencyError):
        leave()
    assert not token.locked


async def test_released_on_exception():
    token = SerializationToken()
    with pytest.raises(RuntimeError):
        async with token.hold():
            raise RuntimeError("boom")
    assert not token.locked
    assert "locked=False" in repr(token)
