# src/viberate/application/staleness_scheduler.py
"""
Staleness Scheduler - Periodic and Activation-Triggered Refresh

This module nudges the fetch coordinator when rates may be stale. A ticker
task fires every refresh_interval; notify_active() fires once when the
session becomes active. Neither touches coordinator state directly: both
push a signal onto a queue, and a single worker task owned by the scheduler
drains it and calls ensure_fresh(force_refresh=False). Concurrency with a
manual refresh is safe because both go through the coordinator's
single-flight gate.

Files that USE this module:
- viberate.adapters.telegram.bot (start/stop with the bot session)
- viberate.adapters.telegram.handlers (/start marks the session active)
- viberate.app (composition root)

Files that this module USES:
- viberate.application.fetch_coordinator (FetchCoordinator.ensure_fresh)
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from enum import Enum
from typing import Optional

from viberate.application.fetch_coordinator import FetchCoordinator
from viberate.domain.models import Cached, Failure, NoData, Success

logger = logging.getLogger(__name__)


class RefreshSignal(str, Enum):
    TIMER = "timer"
    ACTIVATED = "activated"


class StalenessScheduler:
    """Owns the refresh timer and the worker that forwards signals to the coordinator."""

    def __init__(
        self,
        coordinator: FetchCoordinator,
        pivot: str,
        refresh_interval: timedelta,
        stale_after: Optional[timedelta] = None,
    ):
        """
        Args:
            coordinator: Single-flight coordinator to nudge
            pivot: Pivot currency to keep fresh
            refresh_interval: Timer period
            stale_after: max_age passed to ensure_fresh (defaults to refresh_interval)
        """
        if refresh_interval <= timedelta(0):
            raise ValueError("refresh_interval must be positive")
        self.coordinator = coordinator
        self.pivot = pivot
        self.refresh_interval = refresh_interval
        self.stale_after = stale_after or refresh_interval

        self._queue: Optional[asyncio.Queue[RefreshSignal]] = None
        self._ticker: Optional[asyncio.Task] = None
        self._worker: Optional[asyncio.Task] = None
        self.signals_handled = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Start the timer and worker, and fire one activation refresh."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(), name="staleness-worker")
        self._ticker = asyncio.create_task(self._tick(), name="staleness-ticker")
        logger.info(
            "Staleness scheduler started: pivot=%s, interval=%ss, stale_after=%ss",
            self.pivot, self.refresh_interval.total_seconds(), self.stale_after.total_seconds(),
        )
        self.notify_active()

    def notify_active(self) -> None:
        """Session became active (e.g., app foregrounded). No-op when stopped."""
        self._signal(RefreshSignal.ACTIVATED)

    async def stop(self) -> None:
        """Tear down timer and worker; no signal is processed afterwards."""
        tasks = [t for t in (self._ticker, self._worker) if t is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._ticker = None
        self._worker = None
        self._queue = None
        logger.info("Staleness scheduler stopped")

    def _signal(self, signal: RefreshSignal) -> None:
        if self._queue is None or not self.running:
            logger.debug("Scheduler not running, dropping %s signal", signal.value)
            return
        self._queue.put_nowait(signal)

    async def _tick(self) -> None:
        interval = self.refresh_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            self._signal(RefreshSignal.TIMER)

    async def _run(self) -> None:
        queue = self._queue
        while True:
            signal = await queue.get()
            # Coalesce a burst of signals into one check
            while not queue.empty():
                queue.get_nowait()
            await self._handle(signal)

    async def _handle(self, signal: RefreshSignal) -> None:
        self.signals_handled += 1
        try:
            result = await self.coordinator.ensure_fresh(
                self.pivot, max_age=self.stale_after, force_refresh=False
            )
        except Exception:
            # Keep the worker alive; the next tick retries
            logger.exception("Scheduled refresh (%s) failed", signal.value)
            return

        if isinstance(result, Success):
            logger.info("Scheduled refresh (%s): fetched %d rates", signal.value, len(result.table))
        elif isinstance(result, Failure):
            logger.warning("Scheduled refresh (%s) failed: %s", signal.value, result.error.describe())
        elif isinstance(result, Cached):
            logger.debug("Scheduled refresh (%s): cache %s", signal.value, "stale" if result.stale else "fresh")
        elif isinstance(result, NoData):
            logger.info("Scheduled refresh (%s): no data (%s)", signal.value, result.reason)
