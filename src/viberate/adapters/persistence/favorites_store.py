# src/viberate/adapters/persistence/favorites_store.py
"""
Favorites Store - Bounded Set of Favorite Currency Codes

Stores up to max_favorites currency codes chosen by the user and remembers
whether a favorite has ever been added (the front-end celebrates the first
one). Also provides the sort and filter helpers used when listing currencies.

Files that USE this module:
- viberate.application.rates_service (sorts currency lists favorites-first)
- viberate.adapters.telegram.handlers (/fav and /favs commands)
- viberate.app (constructs FavoritesStore from settings)

Files that this module USES:
- viberate.domain.models (CurrencyRate for sort helpers)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from viberate.domain.models import CurrencyRate

logger = logging.getLogger(__name__)

DEFAULT_MAX_FAVORITES = 5


@dataclass(frozen=True)
class FavoriteChange:
    """Result of a favorites mutation."""
    code: str
    is_favorite: bool
    changed: bool
    first_ever: bool = False


class FavoritesStore:
    """Store and retrieve favorite currency codes."""

    def __init__(self, store_file: Path, max_favorites: int = DEFAULT_MAX_FAVORITES):
        """
        Initialize favorites store.

        Args:
            store_file: Path to JSON file for storing favorites
            max_favorites: Maximum number of favorite codes
        """
        self.store_file = Path(store_file)
        self.max_favorites = max_favorites
        self._codes: set[str] = set()
        self._first_favorite_added = False
        self._load()

    def _load(self) -> None:
        """Load favorites from disk."""
        if not self.store_file.exists():
            logger.info("No favorites file found")
            return

        try:
            with self.store_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
            codes = [str(c) for c in data.get("favorite_currencies", [])]
            # A hand-edited file may exceed the cap; keep a deterministic subset
            self._codes = set(sorted(codes)[: self.max_favorites])
            self._first_favorite_added = bool(data.get("first_favorite_added", False))
            logger.info("Loaded %d favorite currencies", len(self._codes))
        except (OSError, ValueError, AttributeError) as e:
            logger.error("Failed to load favorites: %s", e)

    def _save(self) -> None:
        """Save favorites to disk."""
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "favorite_currencies": sorted(self._codes),
                "first_favorite_added": self._first_favorite_added,
            }
            with self.store_file.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            logger.debug("Saved favorites: %s", sorted(self._codes))
        except OSError as e:
            logger.error("Failed to save favorites: %s", e)

    # --- Mutations ---

    def add(self, code: str) -> FavoriteChange:
        """
        Add a code to favorites.

        Returns:
            FavoriteChange; changed is False if already a favorite or the set is full
        """
        if code in self._codes:
            return FavoriteChange(code=code, is_favorite=True, changed=False)
        if not self.can_add_more():
            logger.info("Favorites full (%d), not adding %s", self.max_favorites, code)
            return FavoriteChange(code=code, is_favorite=False, changed=False)

        first_ever = not self._codes and not self._first_favorite_added
        self._codes.add(code)
        self._first_favorite_added = True
        self._save()
        return FavoriteChange(code=code, is_favorite=True, changed=True, first_ever=first_ever)

    def remove(self, code: str) -> FavoriteChange:
        if code not in self._codes:
            return FavoriteChange(code=code, is_favorite=False, changed=False)
        self._codes.discard(code)
        self._save()
        return FavoriteChange(code=code, is_favorite=False, changed=True)

    def toggle(self, code: str) -> FavoriteChange:
        if self.is_favorite(code):
            return self.remove(code)
        return self.add(code)

    # --- Queries ---

    def is_favorite(self, code: str) -> bool:
        return code in self._codes

    def can_add_more(self) -> bool:
        return len(self._codes) < self.max_favorites

    def count(self) -> int:
        return len(self._codes)

    def remaining_slots(self) -> int:
        return max(0, self.max_favorites - len(self._codes))

    @property
    def codes(self) -> frozenset[str]:
        return frozenset(self._codes)

    # --- Sort and filter helpers ---

    def sort_currencies(self, currencies: Iterable[CurrencyRate]) -> list[CurrencyRate]:
        """Favorites first, then alphabetical by code."""
        return sorted(currencies, key=lambda c: (not self.is_favorite(c.code), c.code))

    def favorites_of(self, currencies: Iterable[CurrencyRate]) -> list[CurrencyRate]:
        return [c for c in currencies if self.is_favorite(c.code)]

    def non_favorites_of(self, currencies: Iterable[CurrencyRate]) -> list[CurrencyRate]:
        return [c for c in currencies if not self.is_favorite(c.code)]
