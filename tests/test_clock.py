from __future__ import annotations

import asyncio

from weatherdash.clock import LocalClock


def test_render_uses_location_offset():
    clock = LocalClock(28800, callback=lambda _: None, now=lambda: 1718056800.4)
    assert clock.render() == "06:00 AM"


def test_ticks_until_stopped():
    ticks = []

    async def scenario():
        clock = LocalClock(0, ticks.append, interval=0.01, now=lambda: 1718056800)
        clock.start()
        clock.start()  # second start is a no-op
        await asyncio.sleep(0.05)
        assert clock.running
        await clock.stop()
        assert not clock.running
        count = len(ticks)
        await asyncio.sleep(0.03)
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(ticks) == count
    assert set(ticks) == {"10:00 PM"}


def test_stop_without_start():
    asyncio.run(LocalClock(0, lambda _: None).stop())


def test_failing_callback_keeps_ticking(caplog):
    calls = []

    def flaky(text):
        calls.append(text)
        if len(calls) == 1:
            raise ValueError("label gone")

    async def scenario():
        clock = LocalClock(0, flaky, interval=0.01, now=lambda: 1718056800)
        clock.start()
        await asyncio.sleep(0.05)
        assert clock.running
        await clock.stop()

    with caplog.at_level("ERROR"):
        asyncio.run(scenario())
    assert len(calls) >= 2
    assert "Clock callback failed" in caplog.text
