# src/viberate/adapters/providers/__init__.py
"""
Provider Adapters - External API Clients

This package contains adapters for external exchange rate APIs.
All providers implement the RateProvider interface.
"""

from viberate.adapters.providers.base import (
    ExchangeRatesPayload,
    HttpRateProvider,
    RateProvider,
)
from viberate.adapters.providers.exchange_proxy import ExchangeProxyProvider
from viberate.adapters.providers.exchange_rate_api import ExchangeRateApiProvider

__all__ = [
    "RateProvider",
    "HttpRateProvider",
    "ExchangeRatesPayload",
    "ExchangeProxyProvider",
    "ExchangeRateApiProvider",
]
