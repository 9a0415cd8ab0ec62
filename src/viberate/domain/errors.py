# src/viberate/domain/errors.py
"""
Domain Errors - Rate Acquisition Failure Taxonomy

Every failure a rate fetch can produce is classified into one of the
RateError subclasses below. Providers return them inside a Failure outcome
rather than raising them, so the coordinator can hand the same error object
to every caller waiting on a fetch.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class RateError(DomainError):
    """Base class for classified rate fetch failures."""

    def describe(self) -> str:
        """Short human-readable description used by the UI layer."""
        return str(self)


class NetworkError(RateError):
    """Transport failure: DNS, timeout, connection reset."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def describe(self) -> str:
        return f"Network Error: {self.detail}"


class HttpError(RateError):
    """Provider answered with a non-2xx status."""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code

    def describe(self) -> str:
        return f"HTTP Error: {self.status_code}"


class ApiError(RateError):
    """Provider answered 2xx but reported a failure or an unexpected schema."""

    def __init__(self, provider_message: str):
        super().__init__(provider_message)
        self.provider_message = provider_message

    def describe(self) -> str:
        return f"API Error: {self.provider_message}"


class DecodingError(RateError):
    """Provider answered 2xx with a body that is not JSON."""

    def __init__(self, detail: str = ""):
        super().__init__(detail or "Failed to decode response")
        self.detail = detail

    def describe(self) -> str:
        return "Failed to decode response"


class ConfigurationError(RateError):
    """Required configuration (credential, base URL) is missing."""

    def describe(self) -> str:
        return f"Configuration Error: {self}"


class UnknownCurrencyError(DomainError):
    """Raised by strict conversion when a code is absent from the rate table."""

    def __init__(self, code: str):
        super().__init__(f"Currency {code!r} is not in the rate table")
        self.code = code
