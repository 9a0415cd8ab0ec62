# src/viberate/adapters/telegram/handlers.py
"""
Telegram Handlers - Command Processing and User Interaction

This module contains the chat commands of the front-end. Handlers are thin:
they parse arguments, call RatesService / FavoritesStore / HealthChecker from
the Services container stored in application.bot_data, and format replies.

Commands:
- /start                      mark the session active, show help
- /rates [search]             list rates (favorites first)
- /convert <amount> <from> <to>
- /refresh                    manual refresh (forced while the budget allows)
- /fav <code>                 toggle a favorite
- /favs                       list favorites
- /health                     rate core health report

Files that USE this module:
- viberate.adapters.telegram.bot (build_handlers registers these handlers)

Files that this module USES:
- viberate.adapters.formatting.formatter (reply formatting)
- viberate.shared.validators (amount and code parsing)
- viberate.domain.models / viberate.domain.errors
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from telegram import Update
from telegram.ext import CommandHandler, ContextTypes

from viberate.adapters.formatting.formatter import (
    format_conversion,
    format_error,
    format_health,
    format_next_refresh,
    format_rates_list,
)
from viberate.domain.errors import UnknownCurrencyError
from viberate.domain.models import CURRENCY_CATALOG, Cached, Failure, NoData, Success
from viberate.shared.validators import normalize_currency_code, parse_amount, sanitize_user_input

if TYPE_CHECKING:
    from viberate.app import Services

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "💱 VibeRate\n\n"
    "/rates [search] - exchange rates (favorites first)\n"
    "/convert <amount> <from> <to> - e.g. /convert 100 USD EUR\n"
    "/refresh - fetch the latest rates\n"
    "/fav <code> - add or remove a favorite\n"
    "/favs - your favorites\n"
    "/health - service status"
)


def _services(context: ContextTypes.DEFAULT_TYPE) -> "Services":
    return context.application.bot_data["services"]


def _rates_reply(services: "Services", search: str = "", stale: bool = False) -> str:
    rates = services.rates
    table = rates.get_current_table()
    return format_rates_list(
        rates.filtered_currencies(search),
        pivot=rates.pivot,
        favorites=services.favorites.codes,
        last_updated=table.fetched_at if table is not None else None,
        now=datetime.now(timezone.utc),
        stale=stale,
    )


# --- /start: session became active ---
async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    services.scheduler.notify_active()
    await update.message.reply_text(HELP_TEXT)


# --- /rates: currency list ---
async def rates_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /rates - show the current table, loading it first if needed.

    A failed fetch still shows the last known list when one exists.
    """
    services = _services(context)
    search = sanitize_user_input(" ".join(context.args or []))

    try:
        result = await services.rates.ensure_fresh()
    except Exception:
        logger.exception("Failed to load rates for /rates")
        await update.message.reply_text("Sorry, rates are unavailable right now.")
        return

    if isinstance(result, Failure):
        app_error = services.rates.describe_error(result.error)
        text = format_error(app_error.title, app_error.message)
        if services.rates.get_current_table() is not None:
            text = _rates_reply(services, search, stale=True) + "\n\n" + text
        await update.message.reply_text(text)
        services.rates.dismiss_error()
        return

    stale = isinstance(result, Cached) and result.stale
    await update.message.reply_text(_rates_reply(services, search, stale=stale))


# --- /convert: amount conversion ---
async def convert_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    args = context.args or []
    if len(args) != 3:
        await update.message.reply_text("Usage: /convert <amount> <from> <to>\nExample: /convert 100 USD EUR")
        return

    amount = parse_amount(args[0])
    from_code = normalize_currency_code(args[1])
    to_code = normalize_currency_code(args[2])
    if amount is None:
        await update.message.reply_text("⚠️ Invalid amount. Use digits with up to two decimals, e.g. 1,250.50")
        return
    if from_code is None or to_code is None:
        await update.message.reply_text("⚠️ Currency codes must be three letters, e.g. USD")
        return

    try:
        result = await services.rates.ensure_fresh()
        if isinstance(result, NoData) or services.rates.get_current_table() is None:
            message = "No exchange rates available yet."
            if isinstance(result, Failure):
                app_error = services.rates.describe_error(result.error)
                message = format_error(app_error.title, app_error.message)
            await update.message.reply_text(message)
            services.rates.dismiss_error()
            return

        converted = services.rates.convert(amount, from_code, to_code, strict=True)
    except UnknownCurrencyError as e:
        await update.message.reply_text(f"⚠️ Unknown currency: {e.code}")
        return
    except Exception:
        logger.exception("Conversion failed for %s %s -> %s", amount, from_code, to_code)
        await update.message.reply_text("Sorry, conversion failed. Please try again later.")
        return

    await update.message.reply_text(format_conversion(amount, from_code, to_code, converted))


# --- /refresh: manual refresh ---
async def refresh_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    try:
        result = await services.rates.refresh_rates()
    except Exception:
        logger.exception("Manual refresh failed")
        await update.message.reply_text("Sorry, refresh failed. Please try again later.")
        return

    if isinstance(result, Success):
        await update.message.reply_text("✅ Rates refreshed\n\n" + _rates_reply(services))
    elif isinstance(result, Failure):
        app_error = services.rates.describe_error(result.error)
        await update.message.reply_text(format_error(app_error.title, app_error.message))
        services.rates.dismiss_error()
    elif isinstance(result, Cached):
        next_at = services.coordinator.next_fetch_allowed_at()
        note = "" if next_at is None else f"\n\nNext refresh: {format_next_refresh(next_at)}"
        await update.message.reply_text(_rates_reply(services, stale=result.stale) + note)
    else:
        await update.message.reply_text("No exchange rates available yet. Please try again later.")


# --- /fav and /favs: favorites ---
async def fav_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    args = context.args or []
    code = normalize_currency_code(args[0]) if args else None
    if code is None:
        await update.message.reply_text("Usage: /fav <code>\nExample: /fav EUR")
        return

    table = services.rates.get_current_table()
    known = code in CURRENCY_CATALOG or (table is not None and table.get(code) is not None)
    if not known:
        await update.message.reply_text(f"⚠️ Unknown currency: {code}")
        return

    change = services.favorites.toggle(code)
    if change.is_favorite and change.changed:
        text = f"⭐ {code} added to favorites"
        if change.first_ever:
            text = "🎉 " + text + " - your first favorite!"
    elif change.changed:
        text = f"{code} removed from favorites"
    else:
        text = f"⚠️ You can have at most {services.favorites.max_favorites} favorites. Remove one first."
    await update.message.reply_text(text)


async def favs_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    favorites = services.favorites
    codes = sorted(favorites.codes)
    if not codes:
        await update.message.reply_text("You have no favorites yet. Add one with /fav <code>.")
        return
    await update.message.reply_text(
        "⭐ Favorites: " + ", ".join(codes)
        + f"\n{favorites.remaining_slots()} of {favorites.max_favorites} slots left"
    )


# --- /health: rate core status ---
async def health_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = _services(context)
    try:
        await update.message.reply_text(format_health(services.health.get_overall_health()))
    except Exception as e:
        logger.exception("Health check failed")
        await update.message.reply_text(f"Health check failed: {e}")


def build_handlers():
    """
    Build and return list of Telegram bot handlers.

    Returns:
        List of handler instances for registration with bot
    """
    return [
        CommandHandler("start", start),
        CommandHandler("rates", rates_cmd),
        CommandHandler("convert", convert_cmd),
        CommandHandler("refresh", refresh_cmd),
        CommandHandler("fav", fav_cmd),
        CommandHandler("favs", favs_cmd),
        CommandHandler("health", health_cmd),
    ]
