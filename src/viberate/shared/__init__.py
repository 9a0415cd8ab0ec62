# src/viberate/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from viberate.shared.validators import (
    normalize_currency_code,
    parse_amount,
    sanitize_user_input,
    validate_api_key,
    validate_bot_token,
    validate_currency_code,
)
from viberate.shared.logging_conf import setup_logging

__all__ = [
    "validate_bot_token",
    "validate_api_key",
    "validate_currency_code",
    "normalize_currency_code",
    "parse_amount",
    "sanitize_user_input",
    "setup_logging",
]
