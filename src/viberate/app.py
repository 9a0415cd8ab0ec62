# src/viberate/app.py
"""
Application Entry Point - Service Wiring and Bot Startup

This module serves as the composition root for VibeRate. It builds the rate
core (store, provider, cache, coordinator, scheduler), the favorites store and
the UI-facing services, then starts the Telegram front-end.

Files that USE this module:
- viberate console script (pyproject entry point)
- python -m viberate.app (module entry point)

Files that this module USES:
- viberate.shared.logging_conf (setup_logging for logging configuration)
- viberate.config (settings for configuration management)
- viberate.adapters.providers (rate providers)
- viberate.adapters.persistence (rate cache and favorites files)
- viberate.application (rate core services)
- viberate.adapters.telegram.bot (build_application)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import atexit  # Register cleanup functions to run when program exits
import logging  # Standard library for logging messages and errors
import os  # Operating system interface for environment variables and process management
import sys  # System-specific parameters and functions for exit codes
from dataclasses import dataclass  # Plain container for composed services
from pathlib import Path  # Object-oriented filesystem paths

from telegram.error import Conflict, NetworkError, TimedOut  # Telegram API error exceptions

from viberate.adapters.persistence import FavoritesStore, RateStore
from viberate.adapters.providers import ExchangeProxyProvider, ExchangeRateApiProvider, RateProvider
from viberate.application import (
    FetchCoordinator,
    HealthChecker,
    RateCache,
    RatesService,
    StalenessScheduler,
)
from viberate.config.settings import Settings
from viberate.shared.logging_conf import setup_logging  # Configure logging with file rotation

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the front-end needs, built once per process."""
    store: RateStore
    provider: RateProvider
    cache: RateCache
    coordinator: FetchCoordinator
    scheduler: StalenessScheduler
    favorites: FavoritesStore
    rates: RatesService
    health: HealthChecker


def build_provider(settings: Settings) -> RateProvider:
    """Pick the proxy or the direct upstream provider from RATE_PROVIDER."""
    if settings.rate_provider == "direct":
        return ExchangeRateApiProvider(
            base_url=settings.base_url,
            api_key=settings.exchange_rate_api_key,
            timeout=settings.http_timeout_seconds,
            currency_codes=settings.currency_codes,
        )
    return ExchangeProxyProvider(
        base_url=settings.base_url,
        auth_key=settings.app_auth_key,
        timeout=settings.http_timeout_seconds,
        currency_codes=settings.currency_codes,
    )


def build_services(settings: Settings) -> Services:
    """
    Wire the rate core from settings.

    Nothing here touches the network; the first fetch happens when the
    scheduler starts or a command asks for rates.
    """
    store = RateStore(settings.rates_cache_file)
    provider = build_provider(settings)
    cache = RateCache(store, provider)
    coordinator = FetchCoordinator(cache, min_fetch_interval=settings.min_fetch_interval)
    scheduler = StalenessScheduler(
        coordinator,
        pivot=settings.pivot_currency,
        refresh_interval=settings.refresh_interval,
        stale_after=settings.stale_after,
    )
    favorites = FavoritesStore(settings.favorites_file, max_favorites=settings.max_favorites)
    rates = RatesService(
        coordinator,
        favorites,
        pivot=settings.pivot_currency,
        cache_validity=settings.cache_validity,
    )
    health = HealthChecker(coordinator, cache_validity=settings.cache_validity)
    return Services(
        store=store,
        provider=provider,
        cache=cache,
        coordinator=coordinator,
        scheduler=scheduler,
        favorites=favorites,
        rates=rates,
        health=health,
    )


# PID file path for preventing multiple instances
# Can be overridden via VIBERATE_PID_FILE environment variable
def _get_pid_file(settings: Settings) -> Path:
    pid_file = os.environ.get("VIBERATE_PID_FILE")
    if pid_file:
        return Path(pid_file)
    return settings.rates_cache_file.parent / "bot.pid"


def _check_existing_instance(pid_file: Path) -> None:
    """
    Check if another bot instance is already running.

    Raises RuntimeError if PID file exists and process is still running.
    """
    if not pid_file.exists():
        return
    try:
        old_pid = int(pid_file.read_text().strip())
    except (ValueError, OSError):
        # Invalid PID file, remove it
        pid_file.unlink(missing_ok=True)
        return

    try:
        os.kill(old_pid, 0)  # Signal 0 doesn't kill, just checks if process exists
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        return
    raise RuntimeError(
        f"Another bot instance is already running (PID: {old_pid}).\n"
        f"Please stop it first with: kill {old_pid}"
    )


def _create_pid_file(pid_file: Path) -> None:
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))


def _remove_pid_file(pid_file: Path) -> None:
    try:
        pid_file.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove PID file %s: %s", pid_file, e)


def main() -> None:
    """
    Initialize and start the bot.

    This function:
    1. Sets up logging and validates configuration
    2. Acquires the single-instance PID lock
    3. Builds the rate core and the Telegram application
    4. Starts the polling loop (the scheduler runs inside it)
    """
    # Import settings here so a bad .env surfaces after logging is configured
    from viberate.config import settings
    from viberate.adapters.telegram.bot import build_application

    setup_logging(
        level=logging.INFO,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN missing")

    pid_file = _get_pid_file(settings)
    try:
        _check_existing_instance(pid_file)
        _create_pid_file(pid_file)
        atexit.register(_remove_pid_file, pid_file)
        logger.info("Bot instance lock acquired (PID: %d)", os.getpid())
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)

    services = build_services(settings)
    app = build_application(settings.bot_token, services)

    logger.info(
        "Starting bot polling… provider=%s pivot=%s refresh=%ds cache validity=%dm",
        settings.rate_provider,
        settings.pivot_currency,
        settings.refresh_interval_seconds,
        settings.cache_validity_minutes,
    )

    try:
        app.run_polling(close_loop=False, drop_pending_updates=False)
    except Conflict as e:
        logger.error("Telegram Conflict error: %s (type: %s)", e, type(e).__name__, exc_info=True)
        logger.error(
            "Another bot instance is already polling for updates. "
            "Stop the other instance, then restart this one."
        )
        raise
    except (TimedOut, NetworkError) as e:
        logger.error(
            "Network error during bot operation (timeout connecting to Telegram API): %s (type: %s)",
            e,
            type(e).__name__,
            exc_info=True,
        )
        raise
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (KeyboardInterrupt)")
        raise
    except Exception as e:
        logger.exception("Unexpected error during bot operation: %s (type: %s)", e, type(e).__name__)
        raise
    finally:
        _remove_pid_file(pid_file)


if __name__ == "__main__":
    main()
