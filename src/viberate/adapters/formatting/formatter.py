# src/viberate/adapters/formatting/formatter.py
"""
Message Formatter - Text Formatting and Presentation

This module handles all text formatting for chat replies: the currency list,
conversion results, "last updated" phrasing, errors and the health report.
This is the only place where amounts are rounded for display.

Files that USE this module:
- viberate.adapters.telegram.handlers (uses all formatter functions for replies)
- tests.test_formatter (unit tests)

Files that this module USES:
- viberate.application.conversion (format_amount)
- viberate.domain.models (CurrencyRate)
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from viberate.application.conversion import format_amount
from viberate.domain.models import CurrencyRate


def format_rate(rate: Decimal) -> str:
    """Rates of 1 or more show 2 decimals; smaller rates show 4."""
    if rate >= 1:
        return f"{rate:.2f}"
    return f"{rate:.4f}"


def format_last_updated(last_updated: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Describe how long ago rates were updated.

    Returns:
        "Never", "Just now", "N minute(s) ago", "N hour(s) ago", or a date
        for anything older than a day
    """
    if last_updated is None:
        return "Never"
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - last_updated).total_seconds()))

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if seconds < 86400:
        hours = seconds // 3600
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    return last_updated.strftime("%b %d, %Y %H:%M UTC")


def format_next_refresh(next_at: Optional[datetime]) -> str:
    if next_at is None:
        return "Now"
    return next_at.strftime("%Y-%m-%d %H:%M UTC")


def currency_line(currency: CurrencyRate, is_favorite: bool = False) -> str:
    star = "⭐ " if is_favorite else ""
    return f"{star}{currency.flag} {currency.code} ({currency.name}): {format_rate(currency.rate)}"


def format_rates_list(
    currencies: Iterable[CurrencyRate],
    pivot: str,
    favorites: Iterable[str] = (),
    last_updated: Optional[datetime] = None,
    now: Optional[datetime] = None,
    stale: bool = False,
) -> str:
    """
    Format the currency list for /rates.

    Args:
        currencies: Currencies in display order
        pivot: Pivot currency the rates are relative to
        favorites: Favorite codes (marked with a star)
        last_updated: When the table was fetched
        now: Current time (for relative phrasing)
        stale: Append a note that rates could not be refreshed

    Returns:
        Multi-line message, or a placeholder when there is nothing to show
    """
    currencies = list(currencies)
    if not currencies:
        return "No exchange rates available yet. Try /refresh."

    favs = set(favorites)
    lines = [f"💱 Rates for 1 {pivot}"]
    lines.extend(currency_line(c, c.code in favs) for c in currencies)
    lines.append("")
    lines.append(f"⏱️ Updated: {format_last_updated(last_updated, now)}")
    if stale:
        lines.append("⚠️ Showing last known rates; refresh is unavailable right now.")
    return "\n".join(lines)


def format_conversion(amount: Decimal, from_code: str, to_code: str, result: Decimal) -> str:
    return f"{format_amount(amount)} {from_code} = {format_amount(result)} {to_code}"


def format_error(title: str, message: str) -> str:
    return f"⚠️ {title}\n{message}"


def format_health(health_status: Dict[str, Any]) -> str:
    """Format HealthChecker.get_overall_health() output."""
    if health_status["overall_healthy"]:
        header = "✅ System Health Check\n\nAll systems healthy"
    else:
        header = "⚠️ System Health Check\n\nSome issues detected"

    lines = [header, ""]
    for check_name, check_data in health_status["checks"].items():
        check_emoji = "✅" if check_data["healthy"] else "❌"
        display_name = check_name.replace("_", " ").title()
        lines.append(f"{check_emoji} {display_name}: {check_data['message']}")
    lines.append("")
    lines.append(f"🕐 Checked at: {health_status['timestamp']}")
    return "\n".join(lines)
