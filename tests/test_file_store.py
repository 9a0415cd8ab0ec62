# tests/test_file_store.py
"""
File Store Tests - Unit Tests for Rate Cache Persistence

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- viberate.adapters.persistence.file_store (RateStore, CacheRecord)
- tests.conftest (make_table helper)
"""
import json  # Inspect and hand-craft persisted files
from decimal import Decimal  # Exact rate values
from unittest.mock import patch  # Force write failures

import pytest  # Testing framework

from conftest import T0, make_table
from viberate.adapters.persistence.file_store import CACHE_KEY, CacheRecord, RateStore


class TestCacheRecord:
    def test_to_json_shape(self):
        data = CacheRecord(make_table()).to_json()
        assert data["cache_key"] == CACHE_KEY
        assert data["pivot"] == "USD"
        assert data["fetched_at"] == T0.isoformat()
        assert {"code": "EUR", "name": "Euro", "flag": "🇪🇺", "rate": "0.92"} in data["rates"]

    def test_from_json_accepts_z_suffix(self):
        data = CacheRecord(make_table()).to_json()
        data["fetched_at"] = "2024-01-15T12:00:00Z"
        record = CacheRecord.from_json(data)
        assert record.fetched_at == T0

    def test_from_json_rejects_foreign_key(self):
        data = CacheRecord(make_table()).to_json()
        data["cache_key"] = "something_else"
        with pytest.raises(ValueError):
            CacheRecord.from_json(data)


class TestRateStore:
    def test_load_missing_file(self, store):
        assert store.load() is None

    def test_save_then_load_preserves_table(self, store):
        table = make_table(rates={"USD": "1", "EUR": "0.923456789"})
        store.save(CacheRecord(table))

        loaded = store.load()
        assert loaded is not None
        assert loaded.table == table
        assert loaded.table.rate_for("EUR") == Decimal("0.923456789")

    def test_save_creates_parent_directory(self, tmp_path):
        store = RateStore(tmp_path / "nested" / "dir" / "rates.json")
        store.save(CacheRecord(make_table()))
        assert store.path.exists()

    def test_save_leaves_no_temp_files(self, store):
        store.save(CacheRecord(make_table()))
        store.save(CacheRecord(make_table(rates={"USD": "1"})))
        assert [p.name for p in store.path.parent.iterdir()] == ["rates_cache.json"]

    def test_corrupt_file_is_backed_up(self, store):
        store.path.write_text("{not json", encoding="utf-8")

        assert store.load() is None
        assert not store.path.exists()
        assert store.path.with_suffix(".json.corrupt").exists()

    def test_schema_mismatch_is_no_cache(self, store):
        store.path.write_text(json.dumps({"cache_key": CACHE_KEY, "pivot": "USD"}), encoding="utf-8")
        assert store.load() is None

    def test_non_positive_rate_is_no_cache(self, store):
        data = CacheRecord(make_table()).to_json()
        data["rates"][0]["rate"] = "0"
        store.path.write_text(json.dumps(data), encoding="utf-8")
        assert store.load() is None

    def test_clear(self, store):
        store.save(CacheRecord(make_table()))
        store.clear()
        assert store.load() is None
        # Clearing twice is fine
        store.clear()

    def test_save_failure_raises_and_keeps_old_record(self, store):
        store.save(CacheRecord(make_table()))
        with patch("viberate.adapters.persistence.file_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RuntimeError, match="Failed to save rate cache"):
                store.save(CacheRecord(make_table(rates={"USD": "1"})))

        assert len(store.load().table) == 4

    def test_unwritable_parent_raises_runtime_error(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("plain file")
        store = RateStore(blocker / "rates_cache.json")

        with pytest.raises(RuntimeError, match="Failed to save rate cache"):
            store.save(CacheRecord(make_table()))

    def test_clear_error_is_not_fatal(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("plain file")
        store = RateStore(blocker / "rates_cache.json")

        store.clear()
        assert store.load() is None
