# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
examples/read_words.py

Poll a range of PLC words over a TSX17 serial link.

This example demonstrates:
- Listing available serial ports
- Opening a link (automatic baud rate negotiation)
- Reading words, optionally in a loop
- Writing words

Run with:
    python examples/read_words.py --list
    python examples/read_words.py --port /dev/ttyUSB0 --offset 0 --count 20
    python examples/read_words.py --port COM3 --offset 100 --set 1,2,3
"""

import argparse
import asyncio
import logging

from serial.tools import list_ports

from tsx17 import PySerialTransport, TSX17Link, TSX17Protocol, TSX17Error
from tsx17.utils import configure_logging

logger = logging.getLogger("read_words")


def list_serial_ports() -> None:
    """Print every serial port pyserial can see."""
    for port in list_ports.comports():
        print(f"  Port name='{port.device}' hwid='{port.hwid}' "
              f"manufacturer='{port.manufacturer}'")
    print("End of list")


async def run(args: argparse.Namespace) -> None:
    async with TSX17Link(PySerialTransport(args.port)) as link:
        plc = TSX17Protocol(link)
        print(f"Connected at {link.baudrate} bauds")

        if args.set:
            words = [int(v, 0) for v in args.set.split(",")]
            await plc.set_words(words, args.offset)
            print(f"Wrote {len(words)} words at {args.offset}")
            return

        while True:
            words = await plc.read_words(args.offset, args.count)
            for i, value in enumerate(words):
                print(f"%MW{args.offset + i} = {value} (0x{value:04X})")
            if not args.interval:
                break
            await asyncio.sleep(args.interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="TSX17 word poller")
    parser.add_argument('--port', default='/dev/ttyUSB0',
                        help='Serial device (def: /dev/ttyUSB0)')
    parser.add_argument('--list', action='store_true',
                        help='List serial ports and exit')
    parser.add_argument('--offset', type=int, default=0,
                        help='First word index (def: 0)')
    parser.add_argument('--count', type=int, default=15,
                        help='Number of words to read (def: 15)')
    parser.add_argument('--interval', type=float, default=0,
                        help='Poll again every N seconds (def: read once)')
    parser.add_argument('--set', metavar='w1[,w2...]', default=None,
                        help='Write these words at --offset instead of reading')
    parser.add_argument('--log-level', default='WARNING',
                        help='Logging level (def: WARNING)')
    args = parser.parse_args()

    configure_logging(args.log_level)

    if args.list:
        list_serial_ports()
        return

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except TSX17Error as e:
        logger.error(f"{e.code}: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
