# src/viberate/adapters/formatting/__init__.py
"""
Formatting Adapters - Output Formatting

This package contains adapters for formatting chat replies.
"""

from viberate.adapters.formatting.formatter import (
    format_conversion,
    format_error,
    format_health,
    format_last_updated,
    format_next_refresh,
    format_rate,
    format_rates_list,
)

__all__ = [
    "format_rate",
    "format_rates_list",
    "format_conversion",
    "format_last_updated",
    "format_next_refresh",
    "format_error",
    "format_health",
]
