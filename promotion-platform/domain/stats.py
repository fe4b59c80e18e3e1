"""
Domain: Promotion statistics (pure).

Read-only aggregates over promotion records for monitoring: counts and invested
amounts by status, active investment, and how many active promotions end soon.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from .promotion import PromotionRecord, PromotionStatus
from .time import require_utc_timestamp

EXPIRING_TODAY_WINDOW = timedelta(days=1)
EXPIRING_THIS_WEEK_WINDOW = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class StatusBreakdown:
    status: PromotionStatus
    count: int
    total_investment: int


@dataclass(frozen=True, slots=True)
class ExpiryStats:
    """Snapshot shown on the admin expiry dashboard."""

    status_breakdown: List[StatusBreakdown]
    active_count: int
    expiring_today: int
    expiring_this_week: int
    total_active_investment: int


def status_breakdown(records: Iterable[PromotionRecord]) -> List[StatusBreakdown]:
    """Group all records by status. Only statuses that occur are returned, in enum order."""

    counts: Dict[PromotionStatus, int] = {}
    totals: Dict[PromotionStatus, int] = {}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1
        totals[record.status] = totals.get(record.status, 0) + record.investment

    return [
        StatusBreakdown(status=status, count=counts[status], total_investment=totals[status])
        for status in PromotionStatus
        if status in counts
    ]


def expiring_within(records: Iterable[PromotionRecord], now: datetime, window: timedelta) -> int:
    """Count active records whose end_date falls in [now, now + window]."""

    require_utc_timestamp("now", now)
    if window < timedelta(0):
        raise ValueError("window must be >= 0")

    horizon = now + window
    return sum(
        1
        for r in records
        if r.status is PromotionStatus.ACTIVE
        and r.end_date is not None
        and now <= r.end_date <= horizon
    )


def active_investment_total(records: Iterable[PromotionRecord]) -> int:
    return sum(r.investment for r in records if r.status is PromotionStatus.ACTIVE)


def expiry_stats(records: Iterable[PromotionRecord], now: datetime) -> ExpiryStats:
    snapshot = list(records)
    breakdown = status_breakdown(snapshot)
    active_count = sum(b.count for b in breakdown if b.status is PromotionStatus.ACTIVE)
    return ExpiryStats(
        status_breakdown=breakdown,
        active_count=active_count,
        expiring_today=expiring_within(snapshot, now, EXPIRING_TODAY_WINDOW),
        expiring_this_week=expiring_within(snapshot, now, EXPIRING_THIS_WEEK_WINDOW),
        total_active_investment=active_investment_total(snapshot),
    )


__all__ = [
    "EXPIRING_THIS_WEEK_WINDOW",
    "EXPIRING_TODAY_WINDOW",
    "ExpiryStats",
    "StatusBreakdown",
    "active_investment_total",
    "expiring_within",
    "expiry_stats",
    "status_breakdown",
]
