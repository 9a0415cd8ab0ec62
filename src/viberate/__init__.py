# src/viberate/__init__.py
"""
VibeRate - Exchange Rate Acquisition and Conversion Core

Fetches exchange rates from a remote provider through a single-flight
coordinator, keeps a persistent TTL cache of the last rate table, refreshes
it on a staleness schedule, and converts amounts between currencies.
"""

__version__ = "1.0.0"
