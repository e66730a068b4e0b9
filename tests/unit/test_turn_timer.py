"""Unit tests for game/turn_timer.py - TurnTimer."""

import asyncio
import pytest
from game.turn_timer import TurnTimer


class TestTurnTimer:
    """Test TurnTimer."""

    @pytest.mark.asyncio
    async def test_ticks_repeatedly(self):
        """Test that the callback fires once per interval."""
        ticks = []
        timer = TurnTimer(lambda: ticks.append(1), interval=0.02)

        timer.start()
        await asyncio.sleep(0.11)
        timer.cancel()

        assert 3 <= len(ticks) <= 6

    @pytest.mark.asyncio
    async def test_cancel_prevents_ticks(self):
        """Test that cancelling before the first interval prevents any tick."""
        ticks = []
        timer = TurnTimer(lambda: ticks.append(1), interval=0.05)

        timer.start()
        timer.cancel()
        await asyncio.sleep(0.1)

        assert ticks == []
        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_run(self):
        """Test that starting again never leaves two runs ticking."""
        ticks = []
        timer = TurnTimer(lambda: ticks.append(1), interval=0.03)

        timer.start()
        timer.start()
        await asyncio.sleep(0.045)
        timer.cancel()

        assert len(ticks) == 1

    @pytest.mark.asyncio
    async def test_cancel_from_inside_tick(self):
        """Test that the tick callback can stop its own timer."""
        ticks = []

        def on_tick():
            ticks.append(1)
            if len(ticks) == 2:
                timer.cancel()

        timer = TurnTimer(on_tick, interval=0.01)
        timer.start()
        await asyncio.sleep(0.08)

        assert len(ticks) == 2

    @pytest.mark.asyncio
    async def test_restart_from_inside_tick(self):
        """Test that a restart from the callback retires the old run."""
        ticks = []

        def on_tick():
            ticks.append(1)
            if len(ticks) == 1:
                timer.start()

        timer = TurnTimer(on_tick, interval=0.02)
        timer.start()
        await asyncio.sleep(0.05)
        timer.cancel()

        # One tick from the first run, one from the replacement
        assert len(ticks) == 2

    def test_cancel_without_loop(self):
        """Test cancelling an idle timer outside of a running loop."""
        timer = TurnTimer(lambda: None)
        timer.cancel()

        assert not timer.is_running
