# src/viberate/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Providers

This module defines the contract every exchange rate provider follows and
the shared HTTP logic that turns one request into a classified FetchOutcome:

- transport failure          -> Failure(NetworkError)
- non-2xx status             -> Failure(HttpError)
- body that is not JSON      -> Failure(DecodingError)
- schema mismatch / "error"  -> Failure(ApiError)
- success                    -> Success(RateTable) restricted to the allow-list

Providers never retry and never raise for expected failures.

Files that USE this module:
- viberate.adapters.providers.exchange_proxy (ExchangeProxyProvider)
- viberate.adapters.providers.exchange_rate_api (ExchangeRateApiProvider)
- viberate.application.rate_cache (uses RateProvider protocol)
- tests.test_providers (unit tests)

Files that this module USES:
- viberate.domain.models (CurrencyRate, RateTable, Success, Failure)
- viberate.domain.errors (error taxonomy)
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from viberate.domain.errors import (
    ApiError,
    ConfigurationError,
    DecodingError,
    HttpError,
    NetworkError,
)
from viberate.domain.models import (
    CURRENCY_CATALOG,
    CurrencyRate,
    Failure,
    FetchOutcome,
    RateTable,
    Success,
)

log = logging.getLogger(__name__)

UNKNOWN_API_ERROR = "Unknown API error"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExchangeRatesPayload(BaseModel):
    """Wire schema of an ExchangeRate-API style response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    result: str
    base_code: Optional[str] = None
    conversion_rates: Optional[dict[str, Any]] = None
    error_type: Optional[str] = Field(default=None, alias="error-type")


class RateProvider(ABC):
    @abstractmethod
    def fetch(self, pivot: str) -> FetchOutcome:
        """Issue one network request for rates relative to pivot."""
        raise NotImplementedError


class HttpRateProvider(RateProvider):
    """
    Shared request/classification logic for JSON rate providers.

    Subclasses only decide how to build the request (URL, query, headers).
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        currency_codes: Optional[Iterable[str]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            base_url: Provider base URL
            timeout: HTTP timeout in seconds
            currency_codes: Allow-list of codes to keep (defaults to the catalog)
            clock: Source of "now" for fetched_at (injectable for tests)
        """
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.currency_codes = list(currency_codes) if currency_codes is not None else list(CURRENCY_CATALOG)
        self.clock = clock

    @abstractmethod
    def _build_request(self, pivot: str) -> tuple[str, dict[str, str], dict[str, str]]:
        """
        Return (url, query params, headers) for one rate request.

        Raises:
            ConfigurationError: If a required credential is missing
        """
        raise NotImplementedError

    def fetch(self, pivot: str) -> FetchOutcome:
        if not self.base_url:
            log.error("%s provider has no base URL configured", self.name)
            return Failure(ConfigurationError("Rate provider base URL is missing"))

        try:
            url, params, headers = self._build_request(pivot)
        except ConfigurationError as e:
            log.error("%s provider misconfigured: %s", self.name, e)
            return Failure(e)

        try:
            log.info("Fetching fresh rates from %s (pivot=%s)", self.name, pivot)
            resp = requests.get(url, params=params or None, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            log.warning("%s timeout after %d seconds", self.name, self.timeout)
            return Failure(NetworkError(f"Request timed out after {self.timeout}s"))
        except requests.exceptions.RequestException as e:
            log.warning("%s request failed (network/connection error): %s", self.name, e)
            return Failure(NetworkError(str(e) or type(e).__name__))

        if not 200 <= resp.status_code < 300:
            log.warning("%s returned HTTP %d", self.name, resp.status_code)
            return Failure(HttpError(resp.status_code))

        try:
            data = resp.json()
        except ValueError as e:
            log.error("%s returned invalid JSON: %s", self.name, e)
            return Failure(DecodingError(str(e)))

        return self._parse(pivot, data)

    def _parse(self, pivot: str, data: object) -> FetchOutcome:
        try:
            payload = ExchangeRatesPayload.model_validate(data)
        except ValidationError as e:
            log.error("%s unexpected response schema: %s", self.name, e)
            message = data.get("error-type") if isinstance(data, dict) else None
            return Failure(ApiError(str(message) if message else UNKNOWN_API_ERROR))

        if payload.result != "success":
            log.warning("%s reported failure: result=%s error-type=%s",
                        self.name, payload.result, payload.error_type)
            return Failure(ApiError(payload.error_type or UNKNOWN_API_ERROR))

        if payload.conversion_rates is None:
            log.error("%s response missing 'conversion_rates'", self.name)
            return Failure(ApiError("Response missing conversion_rates"))

        if payload.base_code and payload.base_code.upper() != pivot:
            log.error("%s answered for base %s, requested %s", self.name, payload.base_code, pivot)
            return Failure(ApiError(f"Response base {payload.base_code} does not match requested {pivot}"))

        table = self.to_rate_table(pivot, payload.conversion_rates)
        log.info("%s updated: %d of %d allowed currencies", self.name, len(table), len(self.currency_codes))
        return Success(table)

    def to_rate_table(self, pivot: str, rates: Mapping[str, Any]) -> RateTable:
        """
        Map the wire rates onto the allow-list.

        Unknown codes are dropped without looking at their values; allowed
        codes missing from the response are omitted; non-numeric, non-positive
        or non-finite rates are dropped with a warning.
        """
        fetched_at = self.clock()
        entries = []
        for code in self.currency_codes:
            value = rates.get(code)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                log.warning("%s returned non-numeric rate for %s: %r", self.name, code, value)
                continue
            if not math.isfinite(value) or value <= 0:
                log.warning("%s returned unusable rate for %s: %s", self.name, code, value)
                continue
            entries.append(CurrencyRate.create(code, Decimal(str(value)), fetched_at))
        return RateTable.build(pivot, entries, fetched_at)
