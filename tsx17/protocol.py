# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.protocol

Reliable request/response operations on top of a TSX17Link.

Command cycle (at most DriverConfig.max_command_tries sends):

1. send the command frame
2. wait for ACK / NACK / other
   - ACK: poll (DLE ENQ) until the response frame arrives, EOT meaning
     "not ready yet"
   - NACK or anything unexpected: send again
   - TIMEOUT: reset the link (close + renegotiate) and send again

Every public operation holds the serialization token for its whole
duration, so chunked reads and writes are never interleaved on the wire.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .core.commands import (
    DataType,
    build_read_datas,
    build_read_infos,
    build_set_word,
    build_set_words,
    check_write_confirm,
    parse_read_words,
)
from .core.config import LinkConfig, DEFAULT_LINK_CONFIG
from .core.framing import ControlCode
from .core.link import Result, TSX17Link
from .exceptions import LinkTimeoutError, MaxRetriesExceededError
from .utils.token import SerializationToken

logger = logging.getLogger(__name__)


class TSX17Protocol:
    """
    Word level access to a TSX17 PLC.

    Args:
        link: Link session used for all traffic
        config: Addressing and category/segment of the target memory
    """

    def __init__(self, link: TSX17Link, config: LinkConfig = DEFAULT_LINK_CONFIG):
        self.link = link
        self.config = config
        self._token = SerializationToken()

    @property
    def driver_config(self):
        return self.link.config

    async def open(self) -> None:
        await self.link.open()

    async def close(self) -> None:
        async with self._token.hold():
            await self.link.close()

    async def reset(self) -> None:
        async with self._token.hold():
            await self.link.reset()

    async def _wait_response(self) -> Result:
        """Poll until the station delivers its response."""
        timeouts = 0
        limit = self.driver_config.max_poll_timeouts
        while True:
            try:
                ret = await self.link.send_polling_and_wait()
            except LinkTimeoutError as e:
                timeouts += 1
                if limit is not None and timeouts > limit:
                    raise
                logger.warning(f"Polling timeout #{timeouts}, polling again: {e}")
                continue

            if ret == ControlCode.EOT:
                continue

            if ret == ControlCode.NACK:
                logger.warning("Got NACK while waiting for response")

            return ret

    async def _send_command(self, command: bytes) -> Result:
        """
        Run one command cycle. The caller must hold the token.

        Raises:
            MaxRetriesExceededError: No ACK after max_command_tries sends
            ConnectionFailedError: Reconnect after a timeout failed
            FrameFormatError, TransportError: Propagated from the link
        """
        max_tries = self.driver_config.max_command_tries
        try_count = 0
        while True:
            try_count += 1
            if try_count > max_tries:
                raise MaxRetriesExceededError(
                    f"Max try reached ({max_tries}) for command {command.hex(' ')}")

            logger.debug(f"Send command #{try_count} {command.hex(' ')}")
            await self.link.send_packet(self.config, command)

            try:
                response = await self.link.wait_result()
            except LinkTimeoutError as e:
                logger.warning(f"Command timeout, resetting link: {e}")
                await self.link.reset()
                continue

            if response == ControlCode.ACK:
                return await self._wait_response()

            if response == ControlCode.NACK:
                logger.warning(f"NACK on try #{try_count}, sending again")
                continue

            logger.warning(f"Unknown return code {response!r}, sending again")

    async def read_infos(self) -> Result:
        """Request station information; returns the raw response."""
        async with self._token.hold():
            return await self._send_command(build_read_infos())

    async def _read_datas(self, data_type: int, offset: int, count: int) -> Result:
        return await self._send_command(
            build_read_datas(self.config, data_type, offset, count))

    async def read_words(self, offset: int, count: int) -> List[int]:
        """
        Read ``count`` consecutive words starting at ``offset``.

        Large reads are split into requests of at most 15 words.

        Raises:
            InvalidResponseError: A chunk response was malformed
        """
        if count < 0:
            raise ValueError(f"Count must be >= 0, got {count}")
        if count == 0:
            return []
        if offset < 0 or offset + count - 1 > 0xFFFF:
            raise ValueError(
                f"Words {offset}-{offset + count - 1} outside 0-65535")

        async with self._token.hold():
            return await self._read_words(offset, count)

    async def _read_words(self, offset: int, count: int) -> List[int]:
        limit = self.driver_config.max_words_per_request
        words: List[int] = []
        while len(words) < count:
            cnt = min(count - len(words), limit)
            ret = await self._read_datas(DataType.WORD, offset + len(words), cnt)
            words.extend(parse_read_words(ret, cnt))
        logger.debug(f"Read {count} words at {offset}")
        return words

    async def set_word(self, value: int, offset: int) -> bool:
        """
        Write one word.

        Raises:
            InvalidResponseError: The station did not confirm with 0xFE
        """
        command = build_set_word(self.config, value, offset)
        async with self._token.hold():
            ret = await self._send_command(command)
            check_write_confirm(ret)
        return True

    async def set_words(self, words: Sequence[int], offset: int,
                        count: Optional[int] = None) -> bool:
        """
        Write ``count`` words (default: all of ``words``) starting at ``offset``.

        Each chunk of at most 15 words must be confirmed before the next
        one is sent.

        Raises:
            InvalidResponseError: A chunk was not confirmed
        """
        if count is None:
            count = len(words)
        if not 0 <= count <= len(words):
            raise ValueError(f"Count must be 0-{len(words)}, got {count}")
        if count == 0:
            return True

        limit = self.driver_config.max_words_per_request
        commands = [
            build_set_words(self.config, words[pos:min(pos + limit, count)], offset + pos)
            for pos in range(0, count, limit)
        ]

        async with self._token.hold():
            for command in commands:
                ret = await self._send_command(command)
                check_write_confirm(ret)
        logger.debug(f"Set {count} words at {offset}")
        return True
