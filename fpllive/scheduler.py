"""Adaptive poll scheduler: fast while matches are live, slow otherwise."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .constants import IDLE_POLL_INTERVAL, LIVE_POLL_INTERVAL

logger = logging.getLogger('fpllive.scheduler')

LIVE = 'live'
IDLE = 'idle'


class PollScheduler:
    """
    Drives the poll cycle on a two-mode cadence.

    ``cycle`` runs one full refresh and returns whether live cadence applies
    afterwards. A mode change cancels the pending wait and starts a new one
    at the new interval. A tick that comes due while the previous cycle is
    still running is skipped; cycles never overlap.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[bool]],
        live_interval: float = LIVE_POLL_INTERVAL,
        idle_interval: float = IDLE_POLL_INTERVAL,
    ):
        self._cycle = cycle
        self.live_interval = live_interval
        self.idle_interval = idle_interval
        self.mode = IDLE
        self.cycles_run = 0
        self.ticks_skipped = 0
        self._in_cycle = False
        self._rescheduled = asyncio.Event()
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

    @property
    def interval(self) -> float:
        return self.live_interval if self.mode == LIVE else self.idle_interval

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def tick(self) -> bool:
        """
        Run one cycle unless one is already running.

        Errors from the cycle are logged and never stop the scheduler; the
        mode is left unchanged when the cycle fails.

        Returns:
            True if a cycle ran
        """
        if self._in_cycle:
            self.ticks_skipped += 1
            logger.warning('Previous poll cycle still running, skipping tick')
            return False

        self._in_cycle = True
        try:
            is_live = await self._cycle()
        except Exception:
            logger.exception('Poll cycle failed')
            return True
        finally:
            self._in_cycle = False
            self.cycles_run += 1

        self._set_mode(LIVE if is_live else IDLE)
        return True

    def _set_mode(self, mode: str) -> None:
        if mode == self.mode:
            return
        logger.info(f'Switching to {mode} polling ({self.live_interval if mode == LIVE else self.idle_interval}s)')
        self.mode = mode
        self._rescheduled.set()

    async def _wait_for_next_tick(self) -> None:
        while True:
            self._rescheduled.clear()
            try:
                await asyncio.wait_for(self._rescheduled.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                return
            # Mode changed mid-wait: start over at the new interval

    def _start_tick(self) -> None:
        if self._tick_task is not None and not self._tick_task.done():
            self.ticks_skipped += 1
            logger.warning('Previous poll cycle still running, skipping tick')
            return
        self._tick_task = asyncio.create_task(self.tick())

    async def _run(self) -> None:
        while True:
            await self._wait_for_next_tick()
            self._start_tick()

    async def start(self) -> None:
        """Run the first cycle to completion, then keep polling in the background."""
        if self.running:
            return
        logger.info('Running initial refresh')
        await self.tick()
        logger.info(f'Polling started in {self.mode} mode (every {self.interval}s)')
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        for task in (self._loop_task, self._tick_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._loop_task = None
        self._tick_task = None
        logger.info('Polling stopped')
