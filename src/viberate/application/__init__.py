# src/viberate/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains the rate core services: TTL cache policy, single-flight
fetch coordination, staleness scheduling, conversion, and the UI facade.
"""

from viberate.application.conversion import ConversionEngine, format_amount
from viberate.application.fetch_coordinator import FetchCoordinator, LoadingState
from viberate.application.health import HealthChecker
from viberate.application.rate_cache import NEEDS_FETCH, RateCache
from viberate.application.rates_service import AppError, RatesService
from viberate.application.staleness_scheduler import StalenessScheduler

__all__ = [
    "RateCache",
    "NEEDS_FETCH",
    "FetchCoordinator",
    "LoadingState",
    "StalenessScheduler",
    "ConversionEngine",
    "format_amount",
    "RatesService",
    "AppError",
    "HealthChecker",
]
