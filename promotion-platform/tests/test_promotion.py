"""
Tests for `domain/promotion.py`.

Covers contract rules:
- end_date is present iff start_date is present, and equals start_date + duration_days.
- Only active and completed records carry dates.
- Timestamps must be UTC.
- PromotionRecord is immutable (frozen), and start_date is set at most once.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from domain.package import PackageType
from domain.promotion import ContentType, PromotionRecord, PromotionStatus

PROMOTION_ID = UUID("00000000-0000-0000-0000-000000000101")
START = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _record(**overrides) -> PromotionRecord:
    values = dict(
        promotion_id=PROMOTION_ID,
        content_id="job-1",
        content_type=ContentType.JOB,
        package_type=PackageType.SPOTLIGHT,
        investment=9990,
        duration_days=7,
        priority=1,
        status=PromotionStatus.ACTIVE,
        start_date=START,
        end_date=START + timedelta(days=7),
    )
    values.update(overrides)
    return PromotionRecord(**values)


def test_active_record_has_end_date_from_duration() -> None:
    record = _record()

    assert record.end_date - record.start_date == timedelta(days=7)
    assert record.is_active
    assert record.content_key == ("job-1", ContentType.JOB)


def test_end_date_must_match_duration() -> None:
    """Verify end_date != start_date + duration_days is rejected."""

    with pytest.raises(ValueError):
        _record(end_date=START + timedelta(days=8))


def test_dates_must_be_set_together() -> None:
    with pytest.raises(ValueError):
        _record(end_date=None)


@pytest.mark.parametrize(
    "status",
    [PromotionStatus.PENDING_PAYMENT, PromotionStatus.CANCELLED, PromotionStatus.FAILED],
)
def test_undated_statuses_reject_dates(status: PromotionStatus) -> None:
    """Verify pending, cancelled and failed records never carry dates."""

    with pytest.raises(ValueError):
        _record(status=status)

    record = _record(status=status, start_date=None, end_date=None)
    assert record.start_date is None and record.end_date is None


@pytest.mark.parametrize("status", [PromotionStatus.ACTIVE, PromotionStatus.COMPLETED])
def test_dated_statuses_require_dates(status: PromotionStatus) -> None:
    with pytest.raises(ValueError):
        _record(status=status, start_date=None, end_date=None)


def test_dates_must_be_utc() -> None:
    """Verify naive and non-UTC start dates are rejected."""

    naive = datetime(2025, 1, 1, 0, 0, 0)
    with pytest.raises(ValueError):
        _record(start_date=naive, end_date=naive + timedelta(days=7))

    plus_two = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    with pytest.raises(ValueError):
        _record(start_date=plus_two, end_date=plus_two + timedelta(days=7))


@pytest.mark.parametrize(
    "overrides",
    [{"content_id": ""}, {"investment": 0}, {"investment": -5}, {"duration_days": 0}],
)
def test_rejects_invalid_purchase_terms(overrides: dict) -> None:
    with pytest.raises(ValueError):
        _record(**overrides)


def test_record_is_immutable() -> None:
    """Verify PromotionRecord cannot be mutated after creation (frozen entity)."""

    record = _record()

    with pytest.raises(FrozenInstanceError):
        record.priority = 10  # type: ignore[misc]

    with pytest.raises(FrozenInstanceError):
        record.investment = 1  # type: ignore[misc]


def test_with_status_sets_start_date_once() -> None:
    """Verify start/end dates are derived once and never overwritten."""

    pending = _record(status=PromotionStatus.PENDING_PAYMENT, start_date=None, end_date=None)
    active = pending.with_status(PromotionStatus.ACTIVE, updated_at=START, start_date=START)

    assert active.start_date == START
    assert active.end_date == START + timedelta(days=7)
    assert (active.investment, active.duration_days, active.priority) == (9990, 7, 1)

    with pytest.raises(ValueError):
        active.with_status(PromotionStatus.ACTIVE, updated_at=START, start_date=START + timedelta(days=1))

    completed = active.with_status(PromotionStatus.COMPLETED, updated_at=active.end_date)
    assert (completed.start_date, completed.end_date) == (active.start_date, active.end_date)
