"""
Stats service for promotion monitoring.

Thin store-backed wrappers over domain/stats.py. All reads, no side effects.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

from domain import stats
from domain.promotion import PromotionStatus
from repositories.promotion_store import PromotionStore


def status_breakdown(store: PromotionStore) -> List[stats.StatusBreakdown]:
    return stats.status_breakdown(store.list_all())


def expiring_within(store: PromotionStore, now: datetime, window: timedelta) -> int:
    return stats.expiring_within(store.list_by_status(PromotionStatus.ACTIVE), now, window)


def active_investment_total(store: PromotionStore) -> int:
    return stats.active_investment_total(store.list_by_status(PromotionStatus.ACTIVE))


def expiry_stats(store: PromotionStore, now: datetime) -> stats.ExpiryStats:
    """Dashboard snapshot computed from a single read of all records."""

    return stats.expiry_stats(store.list_all(), now)


__all__ = [
    "active_investment_total",
    "expiring_within",
    "expiry_stats",
    "status_breakdown",
]
