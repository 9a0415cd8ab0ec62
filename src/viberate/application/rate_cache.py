# src/viberate/application/rate_cache.py
"""
Rate Cache - TTL Policy Over the Rate Store and Provider

This module composes RateStore and RateProvider. A persisted table younger
than max_age is served as-is; otherwise callers are told a fetch is needed.
A refresh that fails leaves the persisted table untouched so stale data
remains usable.

Files that USE this module:
- viberate.application.fetch_coordinator (FetchCoordinator drives refresh)
- viberate.application.health (cache age reporting)
- viberate.app (composition root)

Files that this module USES:
- viberate.adapters.persistence.file_store (RateStore, CacheRecord)
- viberate.adapters.providers.base (RateProvider interface)
- viberate.domain.models (RateTable, outcomes)
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from viberate.adapters.persistence.file_store import CacheRecord, RateStore
from viberate.adapters.providers.base import RateProvider
from viberate.domain.models import FetchOutcome, RateTable, Success

logger = logging.getLogger(__name__)


class _NeedsFetch:
    """Sentinel returned by RateCache.get when the cache cannot be trusted."""

    def __repr__(self) -> str:
        return "NEEDS_FETCH"


NEEDS_FETCH = _NeedsFetch()


class RateCache:
    """Serves the persisted rate table while fresh and refreshes it on demand."""

    def __init__(
        self,
        store: RateStore,
        provider: RateProvider,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.provider = provider
        self.clock = clock

    def get(self, pivot: str, max_age: timedelta) -> Union[RateTable, _NeedsFetch]:
        """
        Return the persisted table if younger than max_age.

        Side-effect free. A record for another pivot counts as a miss.
        """
        table = self.last_known(pivot)
        if table is None:
            return NEEDS_FETCH
        if table.age(self.clock()) < max_age:
            return table
        return NEEDS_FETCH

    def last_known(self, pivot: str) -> Optional[RateTable]:
        """Persisted table for pivot regardless of age, or None."""
        record = self.store.load()
        if record is None or record.table.pivot != pivot:
            return None
        return record.table

    def cache_timestamp(self) -> Optional[datetime]:
        record = self.store.load()
        return record.fetched_at if record else None

    def refresh(self, pivot: str) -> FetchOutcome:
        """
        Fetch from the provider and persist on success.

        Returns:
            The provider outcome unchanged. A failed save is logged only; the
            new table is still returned to callers for this process lifetime.
        """
        outcome = self.provider.fetch(pivot)
        if isinstance(outcome, Success):
            try:
                self.store.save(CacheRecord(outcome.table))
            except RuntimeError as e:
                logger.error("Failed to persist rate table: %s", e)
        else:
            logger.info("Refresh failed, keeping persisted rates: %s", outcome.error.describe())
        return outcome

    def invalidate(self) -> None:
        """Force the next get() to report NEEDS_FETCH regardless of age."""
        self.store.clear()
