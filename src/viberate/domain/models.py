# src/viberate/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Currency rates and the rate table they belong to
- The tagged outcomes of a rate fetch
- The catalog of supported currencies

Files that USE this module:
- viberate.application.* (all services use domain models)
- viberate.adapters.* (adapters create and use domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- viberate.domain.errors (RateError carried by Failure)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass  # Decorator for creating data classes
from datetime import datetime, timedelta  # Date/time utilities for timestamps
from decimal import Decimal  # Exact decimal arithmetic for rates
from typing import Iterable, Optional, Union  # Type hints

from viberate.domain.errors import RateError


# Supported currencies: code -> (display name, flag)
CURRENCY_CATALOG: dict[str, tuple[str, str]] = {
    "USD": ("US Dollar", "🇺🇸"),
    "EUR": ("Euro", "🇪🇺"),
    "GBP": ("British Pound", "🇬🇧"),
    "JPY": ("Japanese Yen", "🇯🇵"),
    "CAD": ("Canadian Dollar", "🇨🇦"),
    "AUD": ("Australian Dollar", "🇦🇺"),
    "CHF": ("Swiss Franc", "🇨🇭"),
    "CNY": ("Chinese Yuan", "🇨🇳"),
}

UNKNOWN_FLAG = "💱"


@dataclass(frozen=True)
class CurrencyRate:
    """
    Value of one unit of the pivot currency expressed in this currency.

    Attributes:
        code: ISO-4217-like currency code, unique within a table
        name: Display name (e.g., "Euro")
        flag: Flag emoji used by the chat front-end
        rate: Units of this currency per 1 unit of pivot, always > 0
        fetched_at: When the provider produced this rate (UTC)
    """
    code: str
    name: str
    flag: str
    rate: Decimal
    fetched_at: datetime

    def __post_init__(self) -> None:
        if self.rate <= 0:
            raise ValueError(f"Rate for {self.code} must be positive, got {self.rate}")

    @classmethod
    def create(cls, code: str, rate: Decimal, fetched_at: datetime) -> CurrencyRate:
        """Build a CurrencyRate, filling name and flag from the catalog."""
        name, flag = CURRENCY_CATALOG.get(code, (code, UNKNOWN_FLAG))
        return cls(code=code, name=name, flag=flag, rate=rate, fetched_at=fetched_at)


@dataclass(frozen=True)
class RateTable:
    """
    Immutable snapshot of all rates for one pivot currency.

    The table is always replaced as a whole; callers never mutate it.
    """
    pivot: str
    rates: tuple[CurrencyRate, ...]
    fetched_at: datetime

    def __post_init__(self) -> None:
        codes = [r.code for r in self.rates]
        if len(codes) != len(set(codes)):
            raise ValueError(f"Duplicate currency codes in rate table: {codes}")

    @classmethod
    def build(cls, pivot: str, rates: Iterable[CurrencyRate], fetched_at: datetime) -> RateTable:
        return cls(pivot=pivot, rates=tuple(rates), fetched_at=fetched_at)

    @property
    def codes(self) -> list[str]:
        return [r.code for r in self.rates]

    def get(self, code: str) -> Optional[CurrencyRate]:
        for rate in self.rates:
            if rate.code == code:
                return rate
        return None

    def rate_for(self, code: str) -> Optional[Decimal]:
        entry = self.get(code)
        return entry.rate if entry else None

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def __len__(self) -> int:
        return len(self.rates)

    def __iter__(self):
        return iter(self.rates)


# --- Fetch outcomes ---

@dataclass(frozen=True)
class Success:
    """A network fetch produced a new table."""
    table: RateTable


@dataclass(frozen=True)
class Failure:
    """A network fetch failed; the error is already classified."""
    error: RateError


@dataclass(frozen=True)
class Cached:
    """
    Served from local data without a network fetch.

    stale is True when the table is older than the requested max age but was
    returned as last-known-good (fetch cancelled or network budget exhausted).
    """
    table: RateTable
    stale: bool = False


@dataclass(frozen=True)
class NoData:
    """No fetch result and nothing cached yet ("cancelled" or "throttled")."""
    reason: str


FetchOutcome = Union[Success, Failure]
EnsureResult = Union[Success, Failure, Cached, NoData]
