"""
Domain: Promotion lifecycle state machine (pure).

    pending_payment --payment_verified--> active --expired--> completed
    pending_payment --cancel_requested--> cancelled
    pending_payment --payment_failed----> failed

completed, cancelled and failed are terminal.

Every transition goes through TRANSITIONS; nothing else decides legality. `evaluate`
is the only rule the expiry sweeper uses: it is a pure function of (record, now),
returns at most one step, and is a no-op on terminal records, so running it
repeatedly or from several triggers never changes the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import InvalidTransition
from .promotion import PromotionRecord, PromotionStatus
from .time import require_utc_timestamp


class LifecycleEvent(str, Enum):
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_FAILED = "payment_failed"
    CANCEL_REQUESTED = "cancel_requested"
    EXPIRED = "expired"


TRANSITIONS: Dict[Tuple[PromotionStatus, LifecycleEvent], PromotionStatus] = {
    (PromotionStatus.PENDING_PAYMENT, LifecycleEvent.PAYMENT_VERIFIED): PromotionStatus.ACTIVE,
    (PromotionStatus.PENDING_PAYMENT, LifecycleEvent.CANCEL_REQUESTED): PromotionStatus.CANCELLED,
    (PromotionStatus.PENDING_PAYMENT, LifecycleEvent.PAYMENT_FAILED): PromotionStatus.FAILED,
    (PromotionStatus.ACTIVE, LifecycleEvent.EXPIRED): PromotionStatus.COMPLETED,
}


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Outcome of evaluating one record.

    changed=False means "no change": record is the input record, to_status is None.
    """

    record: PromotionRecord
    changed: bool
    from_status: PromotionStatus
    to_status: Optional[PromotionStatus] = None

    @staticmethod
    def no_change(record: PromotionRecord) -> "TransitionResult":
        return TransitionResult(record=record, changed=False, from_status=record.status)


def next_status(status: PromotionStatus, event: LifecycleEvent) -> Optional[PromotionStatus]:
    """Target status for (status, event), or None if the transition is illegal."""

    return TRANSITIONS.get((status, event))


def apply_event(record: PromotionRecord, event: LifecycleEvent, now: datetime) -> PromotionRecord:
    """
    Apply a lifecycle event and return the new record.

    Raises InvalidTransition (record untouched) when the event is not legal from the
    current status.
    """

    require_utc_timestamp("now", now)

    target = next_status(record.status, event)
    if target is None:
        raise InvalidTransition(record.promotion_id, record.status.value, event.value)

    if event is LifecycleEvent.PAYMENT_VERIFIED:
        return record.with_status(target, updated_at=now, start_date=now)

    if event is LifecycleEvent.EXPIRED and record.end_date is not None and now < record.end_date:
        raise InvalidTransition(record.promotion_id, record.status.value, event.value)

    return record.with_status(target, updated_at=now)


def is_expired(record: PromotionRecord, now: datetime) -> bool:
    return (
        record.status is PromotionStatus.ACTIVE
        and record.end_date is not None
        and now >= record.end_date
    )


def evaluate(record: PromotionRecord, now: datetime) -> TransitionResult:
    """
    Decide whether the clock alone moves this record.

    The only time-driven transition is active -> completed once now >= end_date.
    Dates are never touched.
    """

    require_utc_timestamp("now", now)

    if record.status.is_terminal or not is_expired(record, now):
        return TransitionResult.no_change(record)

    completed = apply_event(record, LifecycleEvent.EXPIRED, now)
    return TransitionResult(
        record=completed,
        changed=True,
        from_status=record.status,
        to_status=completed.status,
    )


__all__ = [
    "LifecycleEvent",
    "TRANSITIONS",
    "TransitionResult",
    "apply_event",
    "evaluate",
    "is_expired",
    "next_status",
]
