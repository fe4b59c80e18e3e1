"""
Domain time utilities (pure).

Centralized timestamp validation and the lifecycle clock.

Lifecycle rules never read the system clock directly; every evaluation takes an
explicit `now`. Services obtain it from an injected Clock so tests can pin time.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the contract requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Manually advanced clock for tests and dry runs.

    Not thread-safe for concurrent `advance` calls; reads are fine.
    """

    def __init__(self, current: datetime) -> None:
        require_utc_timestamp("current", current)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        require_utc_timestamp("current", current)
        self._current = current

    def advance(self, delta: timedelta) -> datetime:
        self._current = self._current + delta
        return self._current


__all__ = ["Clock", "FixedClock", "SystemClock", "require_utc_timestamp"]
