# tests/test_negotiation.py
"""
Baud Rate Negotiation Tests

Covers:
- Single baud attempts (accept, timeout, garbage, remote reset)
- Sweeping the default sequence
- Giving up after every pass failed

License: LGPLv3.0
Copyright (C) 2025-2026 Kris Kirby, KE4AHR
"""

import pytest

from tsx17.core.config import BaudStep, DriverConfig
from tsx17.core.framing import POLLING_FRAME, RESET_BAUDS_FRAME
from tsx17.core.negotiation import BaudNegotiator
from tsx17.exceptions import (
    ConnectionFailedError,
    InvalidCommunicationError,
    LinkTimeoutError,
    ResetBaudsSignal,
    TransportError,
)


@pytest.mark.asyncio
class TestTryBaud:
    async def test_accepted(self, fake, fast_config):
        negotiator = BaudNegotiator(fake, fast_config)
        await negotiator.try_baud(9600)
        assert fake.is_open
        assert fake.settings.baudrate == 9600
        assert fake.settings.parity == "O"
        assert fake.writes == [POLLING_FRAME]
        assert negotiator.baudrate == 9600
        assert fake.on_data is None

    async def test_silence_times_out(self, fake, fast_config):
        negotiator = BaudNegotiator(fake, fast_config)
        with pytest.raises(LinkTimeoutError) as exc:
            await negotiator.try_baud(19200)
        assert exc.value.code == "TIMEOUT"
        assert not fake.is_open

    async def test_garbage_exhausts_polling(self, fake, fast_config):
        fake.wrong_baud_reply = b"\xff\xfe"
        negotiator = BaudNegotiator(fake, fast_config)
        with pytest.raises(InvalidCommunicationError):
            await negotiator.try_baud(19200)
        # First poll plus max_polling_retries resends
        assert fake.writes.count(POLLING_FRAME) == 1 + fast_config.max_polling_retries
        assert not fake.is_open

    async def test_reset_remote(self, fake, fast_config):
        fake.accepted_bauds = {300}
        negotiator = BaudNegotiator(fake, fast_config)
        with pytest.raises(ResetBaudsSignal) as exc:
            await negotiator.try_baud(300, reset_remote=True)
        assert exc.value.code == "RESET_BAUDS"
        assert fake.writes == [POLLING_FRAME, RESET_BAUDS_FRAME]
        assert fake.reset_bauds_received == 1
        assert not fake.is_open

    async def test_reset_remote_after_garbage(self, fake, fast_config):
        fake.wrong_baud_reply = b"\x55"
        negotiator = BaudNegotiator(fake, fast_config)
        with pytest.raises(ResetBaudsSignal):
            await negotiator.try_baud(300, reset_remote=True)
        assert fake.writes[-1] == RESET_BAUDS_FRAME

    async def test_open_failure_propagates(self, fake, fast_config):
        async def broken_open(settings):
            raise TransportError("no such port")
        fake.open = broken_open

        negotiator = BaudNegotiator(fake, fast_config)
        with pytest.raises(TransportError):
            await negotiator.try_baud(9600)
        assert fake.on_data is None


@pytest.mark.asyncio
class TestNegotiate:
    async def test_first_rate(self, fake, fast_config):
        step = await BaudNegotiator(fake, fast_config).negotiate()
        assert step == BaudStep(9600)
        assert fake.opened == [9600]

    async def test_second_rate(self, fake, fast_config):
        fake.accepted_bauds = {19200}
        step = await BaudNegotiator(fake, fast_config).negotiate()
        assert step.baudrate == 19200
        assert fake.opened == [9600, 19200]
        assert fake.is_open

    async def test_remote_reset_then_default_rate(self, fake, fast_config):
        fake.accepted_bauds = {300}
        fake.baud_after_reset = 9600
        step = await BaudNegotiator(fake, fast_config).negotiate()
        assert step == BaudStep(9600)
        assert fake.opened == [9600, 19200, 9600, 300, 9600]
        assert fake.reset_bauds_received == 1

    async def test_connection_failed(self, fake, fast_config):
        fake.accepted_bauds = set()
        with pytest.raises(ConnectionFailedError) as exc:
            await BaudNegotiator(fake, fast_config).negotiate()
        assert exc.value.code == "CONNECTION_FAILED"
        assert len(fake.opened) == 2 * len(fast_config.baud_sequence)
        assert not fake.is_open

    async def test_custom_sequence(self, fake):
        fake.accepted_bauds = {4800}
        config = DriverConfig(
            baud_attempt_timeout=0.05,
            close_settle_delay=0,
            negotiation_passes=1,
            baud_sequence=(BaudStep(9600), BaudStep(4800)),
        )
        step = await BaudNegotiator(fake, config).negotiate()
        assert step.baudrate == 4800
