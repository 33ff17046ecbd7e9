# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Serialization Token

Provides:
- SerializationToken: capacity-1 FIFO mutex guarding the command slot

Only one command may be on the wire at a time. Waiters are served in
the order they called take().
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from ..exceptions import InternalConsistencyError

logger = logging.getLogger(__name__)


class SerializationToken:
    """
    Binary mutex with single-shot release handles.

    Example:
        async with token.hold():
            ...  # exclusive use of the link
    """

    def __init__(self, name: str = "command"):
        self.name = name
        self._lock = asyncio.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def take(self) -> Callable[[], None]:
        """
        Wait for the token.

        Returns:
            A leave() function that must be called exactly once

        Raises:
            InternalConsistencyError: From leave() when called twice
        """
        await self._lock.acquire()
        logger.debug(f"Token {self.name} taken")
        left = False

        def leave() -> None:
            nonlocal left
            if left:
                raise InternalConsistencyError(
                    f"Token {self.name} already left")
            left = True
            self._lock.release()
            logger.debug(f"Token {self.name} left")

        return leave

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        """Hold the token for the body of an ``async with`` block"""
        leave = await self.take()
        try:
            yield
        finally:
            leave()

    def __repr__(self) -> str:
        return f"SerializationToken(name={self.name!r}, locked={self.locked})"
