# tests/test_app.py
"""
Composition Root Tests - Service Wiring and Instance Lock

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- viberate.app (build_provider, build_services, PID helpers)
- viberate.config.settings (Settings)
"""
import os  # Current PID for the lock test

import pytest  # Testing framework

from viberate.adapters.providers import ExchangeProxyProvider, ExchangeRateApiProvider
from viberate.app import _check_existing_instance, _create_pid_file, build_provider, build_services
from viberate.config.settings import Settings


def _settings(tmp_path, **values):
    return Settings(
        _env_file=None,
        RATES_CACHE_FILE=tmp_path / "rates_cache.json",
        FAVORITES_FILE=tmp_path / "favorites.json",
        **values,
    )


class TestBuildServices:
    def test_default_provider_is_proxy(self, tmp_path):
        provider = build_provider(_settings(tmp_path, APP_AUTH_KEY="proxy-secret"))
        assert isinstance(provider, ExchangeProxyProvider)
        assert provider.auth_key == "proxy-secret"

    def test_direct_provider(self, tmp_path):
        provider = build_provider(_settings(tmp_path, RATE_PROVIDER="direct", EXCHANGE_RATE_API_KEY="direct-key"))
        assert isinstance(provider, ExchangeRateApiProvider)
        assert provider.base_url == "https://v6.exchangerate-api.com/v6"

    def test_wiring(self, tmp_path):
        services = build_services(_settings(tmp_path, PIVOT_CURRENCY="eur", MAX_FAVORITES=3))

        assert services.coordinator.cache is services.cache
        assert services.cache.store is services.store
        assert services.rates.pivot == "EUR"
        assert services.scheduler.pivot == "EUR"
        assert services.favorites.max_favorites == 3
        assert services.store.path == tmp_path / "rates_cache.json"
        # Nothing fetched at construction time
        assert services.coordinator.fetch_count == 0


class TestInstanceLock:
    def test_stale_pid_file_is_removed(self, tmp_path):
        pid_file = tmp_path / "bot.pid"
        pid_file.write_text("not-a-pid")
        _check_existing_instance(pid_file)
        assert not pid_file.exists()

    def test_running_instance_refuses(self, tmp_path):
        pid_file = tmp_path / "bot.pid"
        _create_pid_file(pid_file)
        assert pid_file.read_text() == str(os.getpid())
        with pytest.raises(RuntimeError, match="already running"):
            _check_existing_instance(pid_file)
