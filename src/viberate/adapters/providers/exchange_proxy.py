# src/viberate/adapters/providers/exchange_proxy.py
"""
Exchange Proxy Provider - Rates Through the Authenticated Proxy

Calls the rate proxy with the pivot currency as the "base" query parameter
and authenticates with a bearer token. The proxy forwards to ExchangeRate-API
and passes its JSON body through unchanged.

Files that USE this module:
- viberate.app (default provider built from settings)
- tests.test_providers (unit tests)

Files that this module USES:
- viberate.adapters.providers.base (HttpRateProvider shared logic)
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from viberate.adapters.providers.base import HttpRateProvider, utc_now
from viberate.domain.errors import ConfigurationError


class ExchangeProxyProvider(HttpRateProvider):
    name = "exchange-proxy"

    def __init__(
        self,
        base_url: str,
        auth_key: str,
        timeout: int = 10,
        currency_codes: Optional[Iterable[str]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize proxy provider.

        Args:
            base_url: Proxy endpoint (e.g., https://host/api/exchange-rate)
            auth_key: Bearer token the proxy expects
            timeout: HTTP timeout in seconds
            currency_codes: Allow-list of codes to keep
            clock: Source of "now" for fetched_at
        """
        super().__init__(base_url, timeout=timeout, currency_codes=currency_codes, clock=clock)
        self.auth_key = auth_key

    def _build_request(self, pivot: str) -> tuple[str, dict[str, str], dict[str, str]]:
        if not self.auth_key:
            raise ConfigurationError("APP_AUTH_KEY is not configured")
        headers = {
            "Authorization": f"Bearer {self.auth_key}",
            "Accept": "application/json",
        }
        return self.base_url, {"base": pivot}, headers
