# src/viberate/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (exchange-rate APIs)
- Persistence (storage)
- Formatting (output)
- Telegram (chat front-end)
"""

__all__ = []
