"""
Turn timer for the quiz countdown.

Handles:
- One tick callback per interval (one second in play)
- Clean cancellation, including from inside the tick callback
"""

import asyncio
from typing import Callable, Optional


class TurnTimer:
    """
    Calls on_tick every interval seconds until cancelled.

    The timer does not count anything down itself; the engine owns the
    remaining time and cancels the timer when it reaches zero. Starting the
    timer again always retires the previous run first, so at most one run
    can ever fire.
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = 1.0):
        self.on_tick = on_tick
        self.interval = interval

        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def is_running(self) -> bool:
        """Check if timer is currently running."""
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the timer, replacing any run already in progress."""
        self.cancel()

        self._task = asyncio.create_task(self._run(self._generation))

    async def _run(self, generation: int):
        """Internal tick loop."""
        try:
            while generation == self._generation:
                await asyncio.sleep(self.interval)
                if generation != self._generation:
                    break
                self.on_tick()
        except asyncio.CancelledError:
            pass

    def cancel(self):
        """Cancel the timer."""
        # Retires the current run even when called from its own on_tick.
        self._generation += 1
        task = self._task
        self._task = None
        if task and not task.done() and task is not _current_task():
            task.cancel()


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
