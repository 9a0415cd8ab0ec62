# tests/test_providers.py
"""
Provider Tests - Unit Tests for Exchange Rate Provider Classes

This module contains unit tests for the HTTP providers, covering request
construction and the classification of every failure mode into a Failure
outcome (network, HTTP, decoding, API, configuration).

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- viberate.adapters.providers (ExchangeProxyProvider, ExchangeRateApiProvider)
- viberate.domain (errors and outcomes)
- unittest.mock (Mock for API mocking)
"""
from decimal import Decimal  # Exact rate values
from unittest.mock import Mock, patch  # Mock objects and patching for testing without real API calls

import pytest  # Testing framework for writing and running tests
import requests  # HTTP library (used for mocking exceptions)

from conftest import T0
from viberate.adapters.providers.exchange_proxy import ExchangeProxyProvider
from viberate.adapters.providers.exchange_rate_api import ExchangeRateApiProvider
from viberate.domain.errors import ApiError, ConfigurationError, DecodingError, HttpError, NetworkError
from viberate.domain.models import Failure, Success

GET = "viberate.adapters.providers.base.requests.get"

SUCCESS_BODY = {
    "result": "success",
    "base_code": "USD",
    "conversion_rates": {"USD": 1, "EUR": 0.92, "GBP": 0.79, "XAU": 0.0005},
}


def _response(status=200, body=None, json_error=None):
    resp = Mock()
    resp.status_code = status
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def proxy():
    return ExchangeProxyProvider(
        base_url="https://proxy.example/api/exchange-rate",
        auth_key="secret-token",
        timeout=5,
        currency_codes=["USD", "EUR", "GBP", "JPY"],
        clock=lambda: T0,
    )


class TestExchangeProxyProvider:
    @patch(GET)
    def test_request_shape(self, mock_get, proxy):
        mock_get.return_value = _response(body=SUCCESS_BODY)
        proxy.fetch("USD")

        mock_get.assert_called_once_with(
            "https://proxy.example/api/exchange-rate",
            params={"base": "USD"},
            headers={"Authorization": "Bearer secret-token", "Accept": "application/json"},
            timeout=5,
        )

    @patch(GET)
    def test_success_restricted_to_allow_list(self, mock_get, proxy):
        mock_get.return_value = _response(body=SUCCESS_BODY)
        outcome = proxy.fetch("USD")

        assert isinstance(outcome, Success)
        table = outcome.table
        # XAU is not allowed, JPY is allowed but absent
        assert table.codes == ["USD", "EUR", "GBP"]
        assert table.rate_for("EUR") == Decimal("0.92")
        assert table.fetched_at == T0
        assert table.pivot == "USD"

    @patch(GET)
    def test_missing_auth_key(self, mock_get):
        provider = ExchangeProxyProvider(base_url="https://proxy.example", auth_key="")
        outcome = provider.fetch("USD")

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, ConfigurationError)
        mock_get.assert_not_called()

    @patch(GET)
    def test_missing_base_url(self, mock_get):
        provider = ExchangeProxyProvider(base_url="", auth_key="secret-token")
        outcome = provider.fetch("USD")
        assert isinstance(outcome.error, ConfigurationError)
        mock_get.assert_not_called()

    @patch(GET)
    def test_timeout(self, mock_get, proxy):
        mock_get.side_effect = requests.exceptions.Timeout("slow")
        outcome = proxy.fetch("USD")

        assert isinstance(outcome.error, NetworkError)
        assert outcome.error.describe() == "Network Error: Request timed out after 5s"

    @patch(GET)
    def test_connection_error(self, mock_get, proxy):
        mock_get.side_effect = requests.exceptions.ConnectionError("DNS failure")
        outcome = proxy.fetch("USD")
        assert isinstance(outcome.error, NetworkError)
        assert "DNS failure" in outcome.error.describe()

    @patch(GET)
    def test_http_error(self, mock_get, proxy):
        mock_get.return_value = _response(status=503)
        outcome = proxy.fetch("USD")

        assert isinstance(outcome.error, HttpError)
        assert outcome.error.status_code == 503
        assert outcome.error.describe() == "HTTP Error: 503"

    @patch(GET)
    def test_invalid_json(self, mock_get, proxy):
        mock_get.return_value = _response(json_error=ValueError("Expecting value"))
        outcome = proxy.fetch("USD")

        assert isinstance(outcome.error, DecodingError)
        assert outcome.error.describe() == "Failed to decode response"

    @patch(GET)
    def test_api_error_type(self, mock_get, proxy):
        mock_get.return_value = _response(body={"result": "error", "error-type": "invalid-key"})
        outcome = proxy.fetch("USD")

        assert isinstance(outcome.error, ApiError)
        assert outcome.error.describe() == "API Error: invalid-key"

    @patch(GET)
    def test_api_error_without_type(self, mock_get, proxy):
        mock_get.return_value = _response(body={"result": "error"})
        outcome = proxy.fetch("USD")
        assert outcome.error.describe() == "API Error: Unknown API error"

    @patch(GET)
    def test_schema_mismatch(self, mock_get, proxy):
        mock_get.return_value = _response(body=["not", "an", "object"])
        outcome = proxy.fetch("USD")
        assert isinstance(outcome.error, ApiError)

    @patch(GET)
    def test_missing_conversion_rates(self, mock_get, proxy):
        mock_get.return_value = _response(body={"result": "success", "base_code": "USD"})
        outcome = proxy.fetch("USD")
        assert isinstance(outcome.error, ApiError)

    @patch(GET)
    def test_non_positive_rates_dropped(self, mock_get, proxy):
        body = {"result": "success", "conversion_rates": {"USD": 1, "EUR": 0, "GBP": -2}}
        mock_get.return_value = _response(body=body)
        outcome = proxy.fetch("USD")
        assert outcome.table.codes == ["USD"]

    @patch(GET)
    def test_null_rate_outside_allow_list_ignored(self, mock_get, proxy):
        body = {"result": "success", "conversion_rates": {"USD": 1, "EUR": 0.9, "XDR": None, "XAG": "n/a"}}
        mock_get.return_value = _response(body=body)
        outcome = proxy.fetch("USD")

        assert isinstance(outcome, Success)
        assert outcome.table.codes == ["USD", "EUR"]
        assert outcome.table.rate_for("EUR") == Decimal("0.9")

    @patch(GET)
    def test_non_numeric_allowed_rates_dropped(self, mock_get, proxy):
        body = {
            "result": "success",
            "conversion_rates": {"USD": 1, "EUR": "0.9", "GBP": True, "JPY": None},
        }
        mock_get.return_value = _response(body=body)
        outcome = proxy.fetch("USD")

        assert isinstance(outcome, Success)
        assert outcome.table.codes == ["USD"]

    @patch(GET)
    def test_base_code_mismatch_is_failure(self, mock_get, proxy):
        body = dict(SUCCESS_BODY, base_code="EUR")
        mock_get.return_value = _response(body=body)
        outcome = proxy.fetch("USD")

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, ApiError)
        assert outcome.error.describe() == "API Error: Response base EUR does not match requested USD"

    @patch(GET)
    def test_base_code_case_insensitive(self, mock_get, proxy):
        mock_get.return_value = _response(body=dict(SUCCESS_BODY, base_code="usd"))
        outcome = proxy.fetch("USD")
        assert isinstance(outcome, Success)


class TestExchangeRateApiProvider:
    @patch(GET)
    def test_key_in_path(self, mock_get):
        mock_get.return_value = _response(body=SUCCESS_BODY)
        provider = ExchangeRateApiProvider(
            base_url="https://v6.exchangerate-api.com/v6/", api_key="abc123key", timeout=7
        )
        outcome = provider.fetch("USD")

        assert isinstance(outcome, Success)
        mock_get.assert_called_once_with(
            "https://v6.exchangerate-api.com/v6/abc123key/latest/USD",
            params=None,
            headers={"Accept": "application/json"},
            timeout=7,
        )

    @patch(GET)
    def test_missing_api_key(self, mock_get):
        provider = ExchangeRateApiProvider(base_url="https://v6.exchangerate-api.com/v6", api_key="")
        outcome = provider.fetch("USD")
        assert isinstance(outcome.error, ConfigurationError)
        assert outcome.error.describe() == "Configuration Error: EXCHANGE_RATE_API_KEY is not configured"
        mock_get.assert_not_called()
