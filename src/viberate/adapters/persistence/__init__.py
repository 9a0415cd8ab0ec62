# src/viberate/adapters/persistence/__init__.py
"""
Persistence Adapters - Data Storage

This package contains adapters for persisting data:
- Rate table cache (single JSON record, atomic writes)
- Favorite currencies (bounded set)
"""

from viberate.adapters.persistence.file_store import CACHE_KEY, CacheRecord, RateStore
from viberate.adapters.persistence.favorites_store import FavoriteChange, FavoritesStore

__all__ = [
    "CACHE_KEY",
    "CacheRecord",
    "RateStore",
    "FavoriteChange",
    "FavoritesStore",
]
