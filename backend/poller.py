"""
Recurring sensor poll owned by the dashboard.
Every `interval` seconds (fixed rate, starting immediately) each poll job is
launched as its own task, so a slow channel never delays the others.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable


class PollCycle:
    def __init__(self, jobs: Iterable[Callable[[], Awaitable[object]]], interval: float):
        self._jobs = list(jobs)
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="sensor-poll")
        logging.info("Sensor poll cycle started (interval = %ss)", self.interval)

    async def stop(self) -> None:
        """Cancel the pending tick and every poll job still in flight."""
        task, self._task = self._task, None
        if task is None:
            return
        pending = [task, *self._inflight]
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()
        logging.info("Sensor poll cycle stopped.")

    def _launch(self) -> None:
        for job in self._jobs:
            t = asyncio.create_task(job())
            self._inflight.add(t)
            t.add_done_callback(self._settled)

    def _settled(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logging.error("Sensor poll job failed", exc_info=task.exception())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            self._launch()
            next_tick += self.interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Missed ticks are dropped, not replayed
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)
