# src/viberate/application/fetch_coordinator.py
"""
Fetch Coordinator - Single-Flight Rate Refresh

This module guarantees at most one outstanding network fetch per pivot
currency. The first caller that finds the cache stale starts the fetch; every
caller arriving while it runs attaches to the same in-flight fetch and
receives the same outcome object.

State machine per pivot:
- Idle: no in-flight fetch
- Fetching: one in-flight fetch, any number of waiters

A forced refresh that arrives while a fetch is running invalidates the cache
and queues one follow-up fetch that starts as soon as the running one
completes. Cancelling the coordinator (session teardown) resolves waiters
with the last known rates, or NoData("cancelled"), never with an error.

All state lives on the event loop thread. The only suspension point is the
blocking provider call, which runs in a worker thread via asyncio.to_thread.

Files that USE this module:
- viberate.application.staleness_scheduler (periodic and activation refresh)
- viberate.application.rates_service (UI facade)
- viberate.application.health (reports coordinator state)
- viberate.app (composition root)

Files that this module USES:
- viberate.application.rate_cache (RateCache, NEEDS_FETCH)
- viberate.domain.models (RateTable and outcome variants)
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from viberate.application.rate_cache import RateCache
from viberate.domain.errors import RateError
from viberate.domain.models import (
    Cached,
    EnsureResult,
    Failure,
    NoData,
    RateTable,
    Success,
)

logger = logging.getLogger(__name__)


class LoadingState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class InFlightFetch:
    """One running (or queued) fetch that many callers may await."""

    def __init__(self, pivot: str, future: asyncio.Future, forced: bool):
        self.pivot = pivot
        self.future = future
        self.forced = forced
        self.waiters = 0
        self.follow_up: Optional[InFlightFetch] = None
        self.task: Optional[asyncio.Task] = None


Listener = Callable[["FetchCoordinator"], None]


class FetchCoordinator:
    """Single-flight gate in front of RateCache.refresh."""

    def __init__(
        self,
        cache: RateCache,
        min_fetch_interval: timedelta = timedelta(0),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize coordinator.

        Args:
            cache: RateCache to serve from and refresh through
            min_fetch_interval: Minimum time between network calls (0 disables the budget)
            clock: Source of "now" (injectable for tests)
        """
        self.cache = cache
        self.min_fetch_interval = min_fetch_interval
        self.clock = clock

        self._inflight: dict[str, InFlightFetch] = {}
        self._listeners: list[Listener] = []
        self._closed = False

        # Observable state
        self.loading_state = LoadingState.IDLE
        self.current_table: Optional[RateTable] = None
        self.last_updated: Optional[datetime] = None
        self.last_error: Optional[RateError] = None
        self.fetch_count = 0
        # The last successful fetch counts against the budget across restarts
        self.last_api_call_at: Optional[datetime] = cache.cache_timestamp()

    # --- Public API ---

    async def ensure_fresh(
        self,
        pivot: str,
        max_age: timedelta,
        force_refresh: bool = False,
    ) -> EnsureResult:
        """
        Return fresh rates for pivot, fetching at most once across concurrent callers.

        Returns:
            Cached(table) when the cache is fresh (no network activity),
            otherwise the Success/Failure of the shared fetch, or a
            last-known-good fallback (Cached(stale=True) / NoData) when the
            fetch was cancelled or the network budget is exhausted
        """
        if not force_refresh:
            cached = self.cache.get(pivot, max_age)
            if isinstance(cached, RateTable):
                logger.debug("Serving cached rates for %s (age=%s)", pivot, cached.age(self.clock()))
                self._apply_table(cached)
                return Cached(cached)

        if self._closed:
            return self._fallback(pivot, "cancelled")

        flight = self._inflight.get(pivot)
        if flight is not None and not force_refresh:
            logger.debug("Joining in-flight fetch for %s", pivot)
            return await self._wait(flight)

        if not self.can_fetch_from_api():
            if flight is not None:
                return await self._wait(flight)
            return self._throttled(pivot)

        if force_refresh:
            logger.info("Forced refresh for %s: invalidating cached rates", pivot)
            self.cache.invalidate()

        if flight is not None:
            return await self._wait(self._queue_follow_up(flight))
        return await self._wait(self._start(pivot, forced=force_refresh))

    async def close(self) -> None:
        """
        Cancel in-flight fetches and resolve their waiters with fallback state.

        A worker thread already blocked on the network may still finish; its
        result is discarded.
        """
        self._closed = True
        flights = list(self._inflight.values())
        tasks = [f.task for f in flights if f.task is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for flight in flights:
            if not flight.future.done():
                self._finish(flight, self._fallback(flight.pivot, "cancelled"))
        logger.info("Fetch coordinator closed (%d in-flight fetches cancelled)", len(flights))

    def prime(self, pivot: str) -> Optional[RateTable]:
        """Load the persisted table (any age) into observable state without network activity."""
        table = self.cache.last_known(pivot)
        if table is not None:
            self._apply_table(table)
            logger.info("Primed %d cached rates for %s from %s", len(table), pivot, table.fetched_at)
        return table

    def get_current_table(self) -> Optional[RateTable]:
        return self.current_table

    def is_fetching(self, pivot: str) -> bool:
        return pivot in self._inflight

    @property
    def is_loading(self) -> bool:
        return self.loading_state == LoadingState.LOADING

    @property
    def has_error(self) -> bool:
        return self.loading_state == LoadingState.FAILED

    def is_data_stale(self, threshold: timedelta) -> bool:
        if self.last_updated is None:
            return True
        return self.clock() - self.last_updated > threshold

    def can_fetch_from_api(self) -> bool:
        if self.min_fetch_interval <= timedelta(0) or self.last_api_call_at is None:
            return True
        return self.clock() - self.last_api_call_at >= self.min_fetch_interval

    def next_fetch_allowed_at(self) -> Optional[datetime]:
        """When the network budget reopens, or None if a fetch is allowed now."""
        if self.can_fetch_from_api():
            return None
        return self.last_api_call_at + self.min_fetch_interval

    def dismiss_error(self) -> None:
        self.last_error = None
        if self.loading_state in (LoadingState.FAILED, LoadingState.LOADING) and not self._inflight:
            self._set_state(LoadingState.LOADED if self.current_table is not None else LoadingState.IDLE)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked after every observable state change.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # --- Single-flight internals ---

    def _start(self, pivot: str, forced: bool) -> InFlightFetch:
        flight = InFlightFetch(pivot, asyncio.get_running_loop().create_future(), forced)
        self._launch(flight)
        return flight

    def _queue_follow_up(self, flight: InFlightFetch) -> InFlightFetch:
        if flight.follow_up is None:
            flight.follow_up = InFlightFetch(
                flight.pivot, asyncio.get_running_loop().create_future(), forced=True
            )
            logger.info("Queued follow-up fetch for %s after the running one", flight.pivot)
        return flight.follow_up

    def _launch(self, flight: InFlightFetch) -> None:
        self._inflight[flight.pivot] = flight
        self.fetch_count += 1
        self.last_api_call_at = self.clock()
        self._set_state(LoadingState.LOADING)
        flight.task = asyncio.create_task(self._run(flight), name=f"rate-fetch-{flight.pivot}")

    async def _run(self, flight: InFlightFetch) -> None:
        try:
            outcome = await asyncio.to_thread(self.cache.refresh, flight.pivot)
        except asyncio.CancelledError:
            logger.info("Rate fetch for %s cancelled; falling back to last known rates", flight.pivot)
            self._finish(flight, self._fallback(flight.pivot, "cancelled"))
            raise
        except Exception as e:
            logger.exception("Rate fetch for %s raised unexpectedly", flight.pivot)
            self._finish(flight, error=e)
            return

        self._apply_outcome(outcome)
        self._finish(flight, outcome)

    async def _wait(self, flight: InFlightFetch) -> EnsureResult:
        flight.waiters += 1
        try:
            # Shielded: one waiter giving up must not cancel the shared fetch
            return await asyncio.shield(flight.future)
        finally:
            flight.waiters -= 1

    def _finish(
        self,
        flight: InFlightFetch,
        outcome: Optional[EnsureResult] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if self._inflight.get(flight.pivot) is flight:
            del self._inflight[flight.pivot]

        if not flight.future.done():
            if error is not None:
                flight.future.set_exception(error)
            else:
                flight.future.set_result(outcome)
        logger.debug("Fetch for %s delivered to %d waiter(s)", flight.pivot, flight.waiters)

        follow_up = flight.follow_up
        if follow_up is not None:
            if self._closed:
                follow_up.future.set_result(self._fallback(follow_up.pivot, "cancelled"))
            else:
                self._launch(follow_up)
        elif not self._inflight and self.loading_state == LoadingState.LOADING:
            self._set_state(LoadingState.LOADED if self.current_table is not None else LoadingState.IDLE)

    # --- Fallbacks and observable state ---

    def _fallback(self, pivot: str, reason: str) -> EnsureResult:
        candidates = [
            t for t in (self.cache.last_known(pivot), self.current_table)
            if t is not None and t.pivot == pivot
        ]
        if not candidates:
            return NoData(reason)
        table = max(candidates, key=lambda t: t.fetched_at)
        self._apply_table(table)
        return Cached(table, stale=True)

    def _throttled(self, pivot: str) -> EnsureResult:
        logger.info(
            "Network budget exhausted until %s; serving last known rates for %s",
            self.next_fetch_allowed_at(), pivot,
        )
        return self._fallback(pivot, "throttled")

    def _apply_outcome(self, outcome: EnsureResult) -> None:
        if isinstance(outcome, Success):
            self.last_error = None
            self._apply_table(outcome.table)
        elif isinstance(outcome, Failure):
            self.last_error = outcome.error
            self._set_state(LoadingState.FAILED)

    def _apply_table(self, table: RateTable) -> None:
        self.current_table = table
        self.last_updated = table.fetched_at
        if self._inflight:
            self._notify()
        else:
            self._set_state(LoadingState.LOADED)

    def _set_state(self, state: LoadingState) -> None:
        self.loading_state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Rate state listener failed")
