# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tsx17.core.commands

Request payload builders and response decoders for TSX17 commands.

Request layouts (all multi-byte fields little-endian)::

    read infos   02 03 00 00
    read datas   36 category type segment offset(2) count(2)
    set word     14 category offset(2) value(2)
    set words    37 category 68 segment offset(2) count(2) word0(2) ...

Read responses start with marker 0x66; words follow from byte 2.
Write responses start with 0xFE on success.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import List, Sequence, Union

from .config import LinkConfig
from .framing import ControlCode, Frame
from ..exceptions import InvalidResponseError

READ_INFOS_COMMAND = bytes([0x02, 0x03, 0x00, 0x00])

READ_RESPONSE_MARKER = 0x66
WRITE_CONFIRM = 0xFE
MAX_WORDS_PER_REQUEST = 15


class Opcode(IntEnum):
    """Request codes"""
    READ_INFOS = 0x02
    SET_WORD = 0x14
    READ_DATAS = 0x36
    WRITE_DATAS = 0x37


class DataType(IntEnum):
    """Object types for READ_DATAS / WRITE_DATAS"""
    WORD = 0x68


def _check_offset(offset: int) -> None:
    if not 0 <= offset <= 0xFFFF:
        raise ValueError(f"Offset must be 0-65535, got {offset}")


def _word(value: int) -> bytes:
    if not -0x8000 <= value <= 0xFFFF:
        raise ValueError(f"Word value out of range: {value}")
    return struct.pack('<H', value & 0xFFFF)


def build_read_infos() -> bytes:
    """Build the station information request"""
    return READ_INFOS_COMMAND


def build_read_datas(config: LinkConfig, data_type: int,
                     offset: int, count: int) -> bytes:
    """
    Build a READ_DATAS request.

    Args:
        config: Supplies category and segment
        data_type: Object type (DataType.WORD)
        offset: First object index
        count: Number of objects (1-15)
    """
    _check_offset(offset)
    if not 1 <= count <= MAX_WORDS_PER_REQUEST:
        raise ValueError(f"Count must be 1-{MAX_WORDS_PER_REQUEST}, got {count}")
    return struct.pack('<BBBBHH', Opcode.READ_DATAS, config.category,
                       data_type, config.segment, offset, count)


def build_set_word(config: LinkConfig, value: int, offset: int) -> bytes:
    """Build a single word write request"""
    _check_offset(offset)
    return (bytes([Opcode.SET_WORD, config.category])
            + struct.pack('<H', offset) + _word(value))


def build_set_words(config: LinkConfig, words: Sequence[int], offset: int) -> bytes:
    """Build a WRITE_DATAS request for up to 15 consecutive words"""
    _check_offset(offset)
    if not 1 <= len(words) <= MAX_WORDS_PER_REQUEST:
        raise ValueError(
            f"Word count must be 1-{MAX_WORDS_PER_REQUEST}, got {len(words)}")
    header = struct.pack('<BBBBHH', Opcode.WRITE_DATAS, config.category,
                         DataType.WORD, config.segment, offset, len(words))
    return header + b''.join(_word(w) for w in words)


def _response_data(result: Union[ControlCode, Frame]) -> bytes:
    if not isinstance(result, Frame):
        raise InvalidResponseError(f"Invalid packet return: {result!r}")
    return result.data


def parse_read_words(result: Union[ControlCode, Frame], count: int) -> List[int]:
    """
    Decode ``count`` words from a READ_DATAS response.

    Raises:
        InvalidResponseError: Not a frame, wrong marker or too short
    """
    data = _response_data(result)
    if len(data) < 4 or data[0] != READ_RESPONSE_MARKER:
        raise InvalidResponseError(f"Invalid packet return: {data.hex(' ')}")
    if len(data) < 2 + 2 * count:
        raise InvalidResponseError(
            f"Expected {count} words, got {(len(data) - 2) // 2}")
    return list(struct.unpack_from(f'<{count}H', data, 2))


def check_write_confirm(result: Union[ControlCode, Frame]) -> None:
    """
    Check a write response.

    Raises:
        InvalidResponseError: Not a frame or first byte is not 0xFE
    """
    data = _response_data(result)
    if not data:
        raise InvalidResponseError("Invalid packet return: empty data")
    if data[0] != WRITE_CONFIRM:
        raise InvalidResponseError(f"Invalid return code 0x{data[0]:02X}")
