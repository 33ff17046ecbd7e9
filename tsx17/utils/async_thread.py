# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Asynchronous Thread Utilities

Provides:
- run_in_thread: Execute blocking serial calls without blocking the event loop
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable

logger = logging.getLogger(__name__)

# One worker keeps blocking port calls (open/write/close) in submission order
_DEFAULT_EXECUTOR = ThreadPoolExecutor(
    max_workers=1,
    thread_name_prefix='TSX17SerialIO'
)


async def run_in_thread(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Run blocking function in thread pool executor.

    Args:
        func: Blocking callable to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    loop = asyncio.get_running_loop()
    wrapped = partial(func, *args, **kwargs)
    name = getattr(func, '__name__', repr(func))
    logger.debug(f"Executing {name} in thread pool")
    try:
        result = await loop.run_in_executor(_DEFAULT_EXECUTOR, wrapped)
    except Exception as e:
        logger.error(f"Thread execution of {name} failed: {e}")
        raise
    return result
