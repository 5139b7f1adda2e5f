"""Poll loop pacing: fixed interval, exponential backoff and jitter."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

from pool_watcher.models.records import IterationReport

log = logging.getLogger(__name__)


class PollScheduler:
    """Drives a tick coroutine until stopped.

    After a healthy tick it waits ``interval`` seconds. After a tick that
    raises, or reports that every network failed, it waits
    ``error_backoff * 2**(n-1)`` seconds (capped at ``max_backoff``) where
    ``n`` counts consecutive failures. Up to ``jitter`` x delay is added at
    random so several watchers do not hit a provider in lockstep.
    """

    def __init__(
        self,
        interval: float = 5.0,
        error_backoff: float = 5.0,
        max_backoff: float = 300.0,
        jitter: float = 0.1,
        rng: random.Random | None = None,
    ) -> None:
        if interval < 0 or error_backoff < 0 or max_backoff < 0 or jitter < 0:
            raise ValueError("scheduler delays must be non-negative")
        self._interval = interval
        self._error_backoff = error_backoff
        self._max_backoff = max_backoff
        self._jitter = jitter
        self._rng = rng or random.Random()
        self._failures = 0
        self._iterations = 0
        self._running = False
        self._stop_event = asyncio.Event()
        self._tick_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    def next_delay(self, failed: bool) -> float:
        """Record a tick outcome and return how long to wait before the next."""
        if failed:
            self._failures += 1
            base = min(self._error_backoff * 2 ** (self._failures - 1), self._max_backoff)
        else:
            self._failures = 0
            base = self._interval
        if self._jitter and base > 0:
            return base + self._rng.uniform(0, self._jitter * base)
        return base

    async def run(self, tick: Callable[[], Awaitable[IterationReport | None]]) -> None:
        """Await ``tick`` repeatedly until :meth:`stop` or cancellation.

        :meth:`stop` cancels a tick that is still in flight and returns
        normally. Cancelling the task running this loop propagates.
        """
        self._running = True
        self._stop_event.clear()
        try:
            while self._running:
                failed = False
                self._tick_task = asyncio.ensure_future(tick())  # type: ignore[assignment]
                try:
                    report = await self._tick_task
                    failed = report is not None and report.all_failed
                except asyncio.CancelledError:
                    if self._running:
                        log.info("Poll loop cancelled")
                        raise
                    log.info("Stopped during an iteration; in-flight work cancelled")
                    break
                except Exception as exc:
                    log.error("Poll iteration failed: %s", exc, exc_info=True)
                    failed = True
                finally:
                    self._tick_task = None

                self._iterations += 1
                if not self._running:
                    break

                delay = self.next_delay(failed)
                if failed:
                    log.warning(
                        "Iteration failed (%d in a row), backing off %.1fs",
                        self._failures, delay,
                    )
                await self._wait(delay)
        finally:
            self._running = False

    def stop(self) -> None:
        """Stop the loop, cancelling an in-flight tick and waking a pending wait."""
        self._running = False
        self._stop_event.set()
        task = self._tick_task
        # A tick that stops the loop itself finishes normally.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _wait(self, delay: float) -> None:
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
