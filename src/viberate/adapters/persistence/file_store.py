# src/viberate/adapters/persistence/file_store.py
"""
File Store - Rate Table Cache Persistence

This module persists the last fetched rate table and its fetch timestamp as a
single JSON record. Writes are atomic (temp file + rename) so a reader never
observes a half-written record; unreadable records are treated as "no cache".

Files that USE this module:
- viberate.application.rate_cache (RateCache reads and writes through RateStore)
- viberate.app (constructs RateStore from settings)
- tests.test_file_store (unit tests)

Files that this module USES:
- viberate.domain.models (RateTable and CurrencyRate for (de)serialization)
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional

from viberate.domain.models import CurrencyRate, RateTable

logger = logging.getLogger(__name__)

CACHE_KEY = "cached_exchange_rates"


def _parse_ts(raw: str) -> datetime:
    # Accept both "...Z" and "+00:00"
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class CacheRecord:
    """Persisted form of a rate table and its fetch timestamp."""
    table: RateTable

    @property
    def fetched_at(self) -> datetime:
        return self.table.fetched_at

    def to_json(self) -> dict:
        """
        Convert CacheRecord to JSON-serializable dictionary.

        Rates are written as strings so Decimal precision survives the round trip.
        """
        return {
            "cache_key": CACHE_KEY,
            "pivot": self.table.pivot,
            "fetched_at": self.table.fetched_at.isoformat(),
            "rates": [
                {
                    "code": r.code,
                    "name": r.name,
                    "flag": r.flag,
                    "rate": str(r.rate),
                }
                for r in self.table.rates
            ],
        }

    @staticmethod
    def from_json(data: dict) -> "CacheRecord":
        """
        Create CacheRecord from JSON dictionary.

        Raises:
            KeyError, ValueError, TypeError: If the record does not match the schema
        """
        if data.get("cache_key") != CACHE_KEY:
            raise ValueError(f"Unexpected cache key: {data.get('cache_key')!r}")
        fetched_at = _parse_ts(data["fetched_at"])
        rates = [
            CurrencyRate(
                code=str(item["code"]),
                name=str(item.get("name", item["code"])),
                flag=str(item.get("flag", "")),
                rate=Decimal(str(item["rate"])),
                fetched_at=fetched_at,
            )
            for item in data["rates"]
        ]
        return CacheRecord(table=RateTable.build(str(data["pivot"]), rates, fetched_at))


class RateStore:
    """Single-record JSON cache for the last fetched rate table."""

    def __init__(self, path: Path):
        """
        Initialize rate store.

        Args:
            path: JSON file holding the cache record (parent is created on save)
        """
        self.path = Path(path)

    def load(self) -> Optional[CacheRecord]:
        """
        Load the persisted record.

        Handles corrupt files gracefully: an undecodable file is backed up to
        *.corrupt and removed; a schema mismatch is reported as no cache.

        Returns:
            CacheRecord if the file exists and is valid, None otherwise
        """
        if not self.path.exists():
            return None

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self._quarantine(e)
            return None
        except OSError as e:
            logger.error("Failed to read rate cache %s: %s", self.path, e)
            return None

        try:
            return CacheRecord.from_json(data)
        except (KeyError, ValueError, TypeError, ArithmeticError, AttributeError) as e:
            logger.warning("Rate cache schema mismatch, ignoring cached rates: %s", e)
            return None

    def save(self, record: CacheRecord) -> None:
        """
        Save the record using an atomic write.

        Uses temporary file + atomic rename to prevent readers from observing
        a partially written file.

        Raises:
            RuntimeError: If the record could not be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".json.tmp",
                dir=str(self.path.parent),
                text=True,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to save rate cache: {e}") from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(record.to_json(), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, str(self.path))
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise RuntimeError(f"Failed to save rate cache: {e}") from e

        logger.debug("Rate cache saved: pivot=%s, %d rates", record.table.pivot, len(record.table))

    def clear(self) -> None:
        """Remove the persisted record; load() returns None until the next save()."""
        try:
            self.path.unlink()
            logger.info("Rate cache cleared: %s", self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to clear rate cache %s: %s", self.path, e)

    def _quarantine(self, error: Exception) -> None:
        backup_path = self.path.with_suffix(".json.corrupt")
        try:
            shutil.copy2(self.path, backup_path)
            self.path.unlink()
            logger.warning("Rate cache corrupted (JSON decode error), backed up to %s: %s",
                           backup_path, error)
        except OSError as backup_error:
            logger.error("Failed to back up corrupt rate cache: %s", backup_error)
