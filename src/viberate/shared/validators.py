# src/viberate/shared/validators.py
"""
Input Validation Utilities - Configuration and User Input Validation

This module provides validation functions for configuration values (bot token,
credentials, currency codes) and for user input typed into chat commands
(amounts and currency codes).

Files that USE this module:
- viberate.config.settings (uses validation functions in Settings field validators)
- viberate.adapters.telegram.handlers (parses amounts and codes from commands)

Files that this module USES:
- None (pure utility functions)
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional


def validate_bot_token(token: str) -> bool:
    """
    Validate Telegram bot token format.

    Args:
        token: Bot token to validate

    Returns:
        True if valid, False otherwise
    """
    if not token:
        return False

    # Bot tokens should be in format: 123456789:ABCDEFghijklmnopQRSTUVwxyz
    pattern = r'^\d{8,10}:[A-Za-z0-9_-]{35}$'
    return bool(re.match(pattern, token))


def validate_api_key(api_key: str, min_length: int = 10) -> bool:
    """
    Validate API key format.

    Args:
        api_key: API key to validate
        min_length: Minimum length requirement

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return False

    return len(api_key) >= min_length and not api_key.isspace()


def validate_currency_code(code: str) -> bool:
    """Check that code looks like an ISO-4217 code (three uppercase letters)."""
    if not code:
        return False
    return bool(re.match(r'^[A-Z]{3}$', code))


def normalize_currency_code(code: str) -> Optional[str]:
    """
    Normalize user-typed currency code.

    Args:
        code: Raw code (e.g., " eur ")

    Returns:
        Uppercase code, or None if it is not a valid code
    """
    if not code:
        return None
    cleaned = code.strip().upper()
    return cleaned if validate_currency_code(cleaned) else None


def parse_amount(value: str, max_fraction_digits: int = 2) -> Optional[Decimal]:
    """
    Parse a user-typed amount such as "1,234.5".

    Grouping commas are accepted; at most max_fraction_digits digits may follow
    the decimal point. Negative, non-finite and malformed values are rejected.

    Args:
        value: Raw user input
        max_fraction_digits: Maximum digits allowed after the decimal point

    Returns:
        Decimal amount, or None if the input is not a valid amount
    """
    if not value:
        return None

    raw = value.strip()
    # Commas must group digits in threes: "1,234" but not "1,2,3"
    if not re.match(r'^(\d{1,3}(,\d{3})+|\d*)(\.\d*)?$', raw):
        return None
    cleaned = raw.replace(",", "")
    if cleaned in ("", "."):
        return None

    if "." in cleaned and len(cleaned.split(".", 1)[1]) > max_fraction_digits:
        return None

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def sanitize_user_input(text: str, max_length: int = 100) -> str:
    """
    Sanitize free-text user input (search terms).

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove potentially dangerous characters
    sanitized = re.sub(r'[<>"\']', '', text)

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized.strip()
