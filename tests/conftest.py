# tests/conftest.py
"""
Shared Test Fixtures - Clocks, Tables and Fake Providers

Files that USE this module:
- pytest (auto-loaded for every test module in tests/)

Files that this module USES:
- viberate.domain.models (CurrencyRate, RateTable, outcomes)
- viberate.domain.errors (RateError for failing providers)
"""
import threading  # Lock for the fake provider call counter
import time  # Blocking sleep to simulate a slow network call
from datetime import datetime, timedelta, timezone  # Deterministic timestamps
from decimal import Decimal  # Exact rate values

import pytest  # Testing framework

from viberate.adapters.persistence.file_store import RateStore
from viberate.adapters.providers.base import RateProvider
from viberate.domain.models import CurrencyRate, Failure, RateTable, Success

T0 = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock shared by cache, coordinator and provider."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_table(pivot="USD", rates=None, fetched_at=T0) -> RateTable:
    rates = rates or {"USD": "1", "EUR": "0.92", "GBP": "0.79", "JPY": "148.5"}
    return RateTable.build(
        pivot,
        [CurrencyRate.create(code, Decimal(value), fetched_at) for code, value in rates.items()],
        fetched_at,
    )


class FakeProvider(RateProvider):
    """
    Counts fetches; each fetch blocks for `delay` seconds in the worker thread.

    outcomes is consumed in order; when exhausted a Success stamped with the
    clock's current time is returned.
    """

    def __init__(self, clock: FakeClock, delay: float = 0.0, outcomes=None):
        self.clock = clock
        self.delay = delay
        self.outcomes = list(outcomes or [])
        self.calls = 0
        self._lock = threading.Lock()

    def fetch(self, pivot):
        with self._lock:
            self.calls += 1
            outcome = self.outcomes.pop(0) if self.outcomes else None
        if self.delay:
            time.sleep(self.delay)
        if isinstance(outcome, (Success, Failure)):
            return outcome
        return Success(make_table(pivot, fetched_at=self.clock()))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return RateStore(tmp_path / "rates_cache.json")
