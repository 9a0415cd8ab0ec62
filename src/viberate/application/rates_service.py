# src/viberate/application/rates_service.py
"""
Rates Service - UI-Facing Facade Over the Rate Core

This module contains the high-level service the front-end talks to. It owns
no state of its own: it forwards refresh requests to the fetch coordinator,
converts against the coordinator's current table, and orders currency lists
with favorites first.

Files that USE this module:
- viberate.adapters.telegram.handlers (all commands go through RatesService)
- viberate.app (composition root)
- tests.test_rates_service (unit tests)

Files that this module USES:
- viberate.application.fetch_coordinator (FetchCoordinator)
- viberate.application.conversion (ConversionEngine)
- viberate.adapters.persistence.favorites_store (FavoritesStore)
- viberate.domain.models / viberate.domain.errors
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from viberate.adapters.persistence.favorites_store import FavoritesStore
from viberate.application.conversion import ConversionEngine, Number
from viberate.application.fetch_coordinator import FetchCoordinator
from viberate.domain.errors import RateError
from viberate.domain.models import CurrencyRate, EnsureResult, RateTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppError:
    """User-presentable error."""
    message: str
    title: str = "Error"


class RatesService:
    """
    Facade used by the front-end.

    The current table is whatever the coordinator last published; conversion
    never triggers a fetch.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        favorites: FavoritesStore,
        pivot: str,
        cache_validity: timedelta,
        engine: Optional[ConversionEngine] = None,
    ):
        """
        Args:
            coordinator: Single-flight coordinator
            favorites: Favorites collaborator used for ordering
            pivot: Pivot currency of the rate table
            cache_validity: max_age used for user-initiated loads
            engine: Conversion engine (a default instance if omitted)
        """
        self.coordinator = coordinator
        self.favorites = favorites
        self.pivot = pivot
        self.cache_validity = cache_validity
        self.engine = engine or ConversionEngine()

    async def ensure_fresh(self, force_refresh: bool = False) -> EnsureResult:
        return await self.coordinator.ensure_fresh(
            self.pivot, max_age=self.cache_validity, force_refresh=force_refresh
        )

    async def refresh_rates(self) -> EnsureResult:
        """
        Manual refresh: forced while the network budget allows, otherwise served from cache.
        """
        if not self.coordinator.can_fetch_from_api():
            logger.info("Manual refresh while budget exhausted; serving cached rates")
            return await self.ensure_fresh(force_refresh=False)
        return await self.ensure_fresh(force_refresh=True)

    def get_current_table(self) -> Optional[RateTable]:
        return self.coordinator.get_current_table()

    def dismiss_error(self) -> None:
        """Acknowledge the last fetch error once the user has been shown it."""
        self.coordinator.dismiss_error()

    def convert(self, amount: Number, from_code: str, to_code: str, strict: bool = False) -> Decimal:
        """Convert using the current table; Decimal(0) when no table is loaded yet."""
        table = self.get_current_table()
        if table is None:
            return Decimal(0)
        return self.engine.convert(amount, from_code, to_code, table, strict=strict)

    def get_currency(self, code: str) -> Optional[CurrencyRate]:
        table = self.get_current_table()
        return table.get(code) if table is not None else None

    def filtered_currencies(self, search: str = "") -> list[CurrencyRate]:
        """Currencies matching search (code or name, case-insensitive), favorites first."""
        table = self.get_current_table()
        if table is None:
            return []
        needle = search.strip().lower()
        matches = [
            c for c in table.rates
            if not needle or needle in c.code.lower() or needle in c.name.lower()
        ]
        return self.favorites.sort_currencies(matches)

    @staticmethod
    def describe_error(error: Exception) -> AppError:
        if isinstance(error, RateError):
            return AppError(message=error.describe(), title="Exchange Rate Error")
        return AppError(message=str(error), title="Unexpected Error")
