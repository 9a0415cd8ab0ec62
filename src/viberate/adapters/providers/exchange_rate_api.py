# src/viberate/adapters/providers/exchange_rate_api.py
"""
ExchangeRate-API Provider - Direct Upstream Access

Calls ExchangeRate-API v6 directly: GET {base_url}/{api_key}/latest/{pivot}.
The key travels in the path, so it is never logged.

Files that USE this module:
- viberate.app (selected when RATE_PROVIDER=direct)
- tests.test_providers (unit tests)

Files that this module USES:
- viberate.adapters.providers.base (HttpRateProvider shared logic)
"""
from __future__ import annotations

import urllib.parse
from datetime import datetime
from typing import Callable, Iterable, Optional

from viberate.adapters.providers.base import HttpRateProvider, utc_now
from viberate.domain.errors import ConfigurationError


class ExchangeRateApiProvider(HttpRateProvider):
    name = "exchangerate-api"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 10,
        currency_codes: Optional[Iterable[str]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(base_url, timeout=timeout, currency_codes=currency_codes, clock=clock)
        self.api_key = api_key

    def _build_request(self, pivot: str) -> tuple[str, dict[str, str], dict[str, str]]:
        if not self.api_key:
            raise ConfigurationError("EXCHANGE_RATE_API_KEY is not configured")
        key = urllib.parse.quote(self.api_key, safe="")
        base = urllib.parse.quote(pivot, safe="")
        return f"{self.base_url}/{key}/latest/{base}", {}, {"Accept": "application/json"}
