# src/viberate/adapters/telegram/bot.py
"""
Telegram Bot - Application Builder and Session Lifecycle

This module builds the Telegram application and ties the rate core's
session lifecycle to it: on startup the cached table is primed and the
staleness scheduler starts; on shutdown the scheduler is torn down and any
in-flight fetch is cancelled.

Files that USE this module:
- viberate.app (build_application for the bot)

Files that this module USES:
- viberate.adapters.telegram.handlers (build_handlers)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram.ext import Application

from viberate.adapters.telegram.handlers import build_handlers

if TYPE_CHECKING:
    from viberate.app import Services

logger = logging.getLogger(__name__)


async def on_startup(application: Application) -> None:
    services: Services = application.bot_data["services"]
    services.coordinator.prime(services.rates.pivot)
    await services.scheduler.start()


async def on_shutdown(application: Application) -> None:
    services: Services = application.bot_data["services"]
    await services.scheduler.stop()
    await services.coordinator.close()
    logger.info("Rate core session ended")


def build_application(bot_token: str, services: "Services") -> Application:
    """
    Build Telegram bot application with handlers and lifecycle hooks.

    Args:
        bot_token: Telegram bot token
        services: Composed rate core services

    Returns:
        Configured Application instance
    """
    app = (
        Application.builder()
        .token(bot_token)
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )
    app.bot_data["services"] = services
    for handler in build_handlers():
        app.add_handler(handler)
    return app
