# src/viberate/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from viberate.domain.models import (
    CURRENCY_CATALOG,
    Cached,
    CurrencyRate,
    Failure,
    FetchOutcome,
    NoData,
    RateTable,
    Success,
)
from viberate.domain.errors import (
    ApiError,
    ConfigurationError,
    DecodingError,
    DomainError,
    HttpError,
    NetworkError,
    RateError,
    UnknownCurrencyError,
)

__all__ = [
    "CURRENCY_CATALOG",
    "CurrencyRate",
    "RateTable",
    "FetchOutcome",
    "Success",
    "Failure",
    "Cached",
    "NoData",
    "DomainError",
    "RateError",
    "NetworkError",
    "HttpError",
    "ApiError",
    "DecodingError",
    "ConfigurationError",
    "UnknownCurrencyError",
]
