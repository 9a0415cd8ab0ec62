# src/viberate/adapters/telegram/__init__.py
"""
Telegram Adapters - Chat Front-End

This package contains Telegram bot adapters:
- Bot application builder and session lifecycle
- Command handlers
"""

from viberate.adapters.telegram.bot import build_application
from viberate.adapters.telegram.handlers import build_handlers

__all__ = [
    "build_application",
    "build_handlers",
]
