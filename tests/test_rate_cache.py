# tests/test_rate_cache.py
"""
Rate Cache Tests - Unit Tests for the TTL Cache Policy

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- viberate.application.rate_cache (RateCache, NEEDS_FETCH)
- tests.conftest (FakeClock, FakeProvider, make_table)
"""
from datetime import timedelta  # Cache ages
from unittest.mock import Mock  # Store that fails to save

from conftest import FakeProvider, make_table
from viberate.adapters.persistence.file_store import CacheRecord, RateStore
from viberate.application.rate_cache import NEEDS_FETCH, RateCache
from viberate.domain.errors import NetworkError
from viberate.domain.models import Failure, Success


class TestRateCacheGet:
    def test_empty_store_needs_fetch(self, store, clock):
        cache = RateCache(store, FakeProvider(clock), clock=clock)
        assert cache.get("USD", timedelta(minutes=60)) is NEEDS_FETCH

    def test_fresh_record_served(self, store, clock):
        store.save(CacheRecord(make_table(fetched_at=clock())))
        cache = RateCache(store, FakeProvider(clock), clock=clock)

        clock.advance(minutes=59)
        table = cache.get("USD", timedelta(minutes=60))
        assert table is not NEEDS_FETCH
        assert table.rate_for("EUR") is not None

    def test_expired_record_needs_fetch(self, store, clock):
        store.save(CacheRecord(make_table(fetched_at=clock())))
        cache = RateCache(store, FakeProvider(clock), clock=clock)

        clock.advance(minutes=60)
        assert cache.get("USD", timedelta(minutes=60)) is NEEDS_FETCH
        # Still available as last known
        assert cache.last_known("USD") is not None

    def test_other_pivot_is_a_miss(self, store, clock):
        store.save(CacheRecord(make_table(pivot="EUR", fetched_at=clock())))
        cache = RateCache(store, FakeProvider(clock), clock=clock)
        assert cache.get("USD", timedelta(minutes=60)) is NEEDS_FETCH
        assert cache.last_known("USD") is None

    def test_get_never_fetches(self, store, clock):
        provider = FakeProvider(clock)
        cache = RateCache(store, provider, clock=clock)
        cache.get("USD", timedelta(0))
        assert provider.calls == 0


class TestRateCacheRefresh:
    def test_success_persists(self, store, clock):
        provider = FakeProvider(clock)
        cache = RateCache(store, provider, clock=clock)

        outcome = cache.refresh("USD")
        assert isinstance(outcome, Success)
        assert cache.cache_timestamp() == clock()
        assert store.load().table == outcome.table

    def test_failure_keeps_previous_table(self, store, clock):
        previous = make_table(fetched_at=clock())
        store.save(CacheRecord(previous))
        clock.advance(hours=2)
        failure = Failure(NetworkError("offline"))
        cache = RateCache(store, FakeProvider(clock, outcomes=[failure]), clock=clock)

        outcome = cache.refresh("USD")
        assert outcome is failure
        assert cache.last_known("USD") == previous
        assert cache.get("USD", timedelta(minutes=60)) is NEEDS_FETCH

    def test_save_failure_still_returns_success(self, clock):
        store = Mock()
        store.save.side_effect = RuntimeError("Failed to save rate cache: disk full")
        cache = RateCache(store, FakeProvider(clock), clock=clock)

        outcome = cache.refresh("USD")
        assert isinstance(outcome, Success)

    def test_invalidate(self, store, clock):
        store.save(CacheRecord(make_table(fetched_at=clock())))
        cache = RateCache(store, FakeProvider(clock), clock=clock)

        cache.invalidate()
        assert cache.get("USD", timedelta(days=1)) is NEEDS_FETCH
        assert cache.cache_timestamp() is None

    def test_unwritable_store_still_returns_success(self, tmp_path, clock):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("plain file")
        cache = RateCache(RateStore(blocker / "rates_cache.json"), FakeProvider(clock), clock=clock)

        outcome = cache.refresh("USD")
        assert isinstance(outcome, Success)
        assert cache.last_known("USD") is None
