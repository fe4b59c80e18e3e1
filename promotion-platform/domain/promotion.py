"""
Domain: Promotion records.

A PromotionRecord is one purchased boost attached to one content item.

Contract excerpts implemented here:
- end_date is present iff start_date is present, and end_date == start_date + duration_days.
- Only active and completed records carry dates; pending_payment, cancelled and failed never do.
- investment, duration_days and priority are write-once; status transitions return new
  instances that copy them unchanged.
- content_id/content_type reference externally owned content and are never dereferenced here.

This module contains only pure domain entities: no I/O, no database, no frameworks.
All timestamps must be passed explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import UUID

from .package import PackageType
from .time import require_utc_timestamp


class ContentType(str, Enum):
    OPPORTUNITY = "opportunity"
    JOB = "job"
    EVENT = "event"
    RESOURCE = "resource"


class PromotionStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {PromotionStatus.COMPLETED, PromotionStatus.CANCELLED, PromotionStatus.FAILED}
)

# Statuses that carry start/end dates.
DATED_STATUSES = frozenset({PromotionStatus.ACTIVE, PromotionStatus.COMPLETED})


def compute_end_date(start_date: datetime, duration_days: int) -> datetime:
    """end_date = start_date + duration_days whole days."""

    return start_date + timedelta(days=duration_days)


@dataclass(frozen=True, slots=True)
class PromotionRecord:
    """
    Immutable snapshot of a promotion and its lifecycle state.

    Only the lifecycle rules (domain/lifecycle.py) produce records with a new status.
    """

    promotion_id: UUID
    content_id: str
    content_type: ContentType
    package_type: PackageType
    investment: int  # minor units
    duration_days: int
    priority: int
    status: PromotionStatus
    provider_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.content_id:
            raise ValueError("content_id must be non-empty")
        if self.investment <= 0:
            raise ValueError("investment must be > 0")
        if self.duration_days <= 0:
            raise ValueError("duration_days must be > 0")

        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be set together")

        if self.start_date is not None and self.end_date is not None:
            require_utc_timestamp("start_date", self.start_date)
            require_utc_timestamp("end_date", self.end_date)
            if self.end_date != compute_end_date(self.start_date, self.duration_days):
                raise ValueError("end_date must equal start_date + duration_days")

        has_dates = self.start_date is not None
        if self.status in DATED_STATUSES and not has_dates:
            raise ValueError(f"{self.status.value} promotions must have start/end dates")
        if self.status not in DATED_STATUSES and has_dates:
            raise ValueError(f"{self.status.value} promotions must not have start/end dates")

        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def content_key(self) -> tuple[str, ContentType]:
        """Key of the "one active promotion per content item" constraint."""

        return (self.content_id, self.content_type)

    @property
    def is_active(self) -> bool:
        return self.status is PromotionStatus.ACTIVE

    def with_status(
        self,
        status: PromotionStatus,
        *,
        updated_at: datetime,
        start_date: Optional[datetime] = None,
    ) -> "PromotionRecord":
        """
        Return a copy in a new status.

        start_date is only accepted when the record has none yet; end_date is derived
        from it exactly once and never recomputed.
        """

        if start_date is not None:
            if self.start_date is not None:
                raise ValueError("start_date is already set")
            return replace(
                self,
                status=status,
                start_date=start_date,
                end_date=compute_end_date(start_date, self.duration_days),
                updated_at=updated_at,
            )
        return replace(self, status=status, updated_at=updated_at)


__all__ = [
    "ContentType",
    "DATED_STATUSES",
    "PromotionRecord",
    "PromotionStatus",
    "TERMINAL_STATUSES",
    "compute_end_date",
]
