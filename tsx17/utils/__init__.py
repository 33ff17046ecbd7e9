# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyTSX17 Utilities Module

Provides the serialization token, thread offloading for blocking serial
calls, and logging setup for scripts.
"""

from typing import List

__all__: List[str] = [
    'SerializationToken',
    'run_in_thread',
    'configure_logging'
]


def __getattr__(name: str):
    """Lazy import helper for better startup performance"""
    if name == 'SerializationToken':
        from .token import SerializationToken
        return SerializationToken
    if name == 'run_in_thread':
        from .async_thread import run_in_thread
        return run_in_thread
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure package-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    import logging
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )
