# src/viberate/application/health.py
"""
Health Checker - Rate Core Monitoring

This module reports the health of the rate core: how old the cached table is,
what the coordinator is doing, the last classified error, and whether the
network budget currently allows a fetch.

Files that USE this module:
- viberate.adapters.telegram.handlers (/health command)
- tests.test_health (unit tests)

Files that this module USES:
- viberate.application.fetch_coordinator (FetchCoordinator state)
- viberate.application.rate_cache (cache timestamp)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from viberate.application.fetch_coordinator import FetchCoordinator, LoadingState

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Represents the health status of a component."""
    is_healthy: bool
    message: str
    last_check: datetime
    details: Optional[Dict[str, Any]] = None


class HealthChecker:
    """Centralized health checking for the rate core."""

    def __init__(
        self,
        coordinator: FetchCoordinator,
        cache_validity: timedelta,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.coordinator = coordinator
        self.cache_validity = cache_validity
        self.clock = clock

    def check_cache(self) -> HealthStatus:
        """Cache is healthy when a record exists and is within the validity window."""
        now = self.clock()
        fetched_at = self.coordinator.cache.cache_timestamp()
        if fetched_at is None:
            return HealthStatus(
                is_healthy=False,
                message="No cached rates",
                last_check=now,
                details={"fetched_at": None},
            )
        age = now - fetched_at
        fresh = age < self.cache_validity
        return HealthStatus(
            is_healthy=fresh,
            message=f"Cached rates are {int(age.total_seconds())}s old" + ("" if fresh else " (stale)"),
            last_check=now,
            details={"fetched_at": fetched_at.isoformat(), "age_seconds": int(age.total_seconds())},
        )

    def check_coordinator(self) -> HealthStatus:
        now = self.clock()
        c = self.coordinator
        error = c.last_error
        healthy = c.loading_state != LoadingState.FAILED
        message = f"State: {c.loading_state.value}"
        if error is not None:
            message += f", last error: {error.describe()}"
        return HealthStatus(
            is_healthy=healthy,
            message=message,
            last_check=now,
            details={
                "state": c.loading_state.value,
                "loading": c.is_loading,
                "fetch_count": c.fetch_count,
                "last_error": error.describe() if error else None,
            },
        )

    def check_budget(self) -> HealthStatus:
        now = self.clock()
        next_at = self.coordinator.next_fetch_allowed_at()
        if next_at is None:
            return HealthStatus(is_healthy=True, message="Network fetch allowed now", last_check=now)
        return HealthStatus(
            is_healthy=True,
            message=f"Next network fetch allowed at {next_at.strftime('%Y-%m-%d %H:%M UTC')}",
            last_check=now,
            details={"next_fetch_allowed_at": next_at.isoformat()},
        )

    def get_overall_health(self) -> Dict[str, Any]:
        """
        Run all checks.

        Returns:
            Dict with overall_healthy, timestamp and per-check results
        """
        checks = {
            "rate_cache": self.check_cache(),
            "fetch_coordinator": self.check_coordinator(),
            "network_budget": self.check_budget(),
        }
        overall = all(status.is_healthy for status in checks.values())
        if not overall:
            logger.warning("Health check found issues: %s",
                           [name for name, s in checks.items() if not s.is_healthy])
        return {
            "overall_healthy": overall,
            "timestamp": self.clock().strftime("%Y-%m-%d %H:%M:%S UTC"),
            "checks": {
                name: {"healthy": s.is_healthy, "message": s.message, "details": s.details or {}}
                for name, s in checks.items()
            },
        }
