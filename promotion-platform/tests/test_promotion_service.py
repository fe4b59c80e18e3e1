"""
Tests for `services/promotion_service.py`.

Covers contract rules:
- Purchases are validated and created in pending_payment with the package's terms.
- At most one promotion per content item is active, including under concurrent activation.
- Payment events follow the lifecycle; illegal events raise InvalidTransition.
- Activation sets the content's promotion flag; a flag failure does not undo activation.
- The admin listing filters by status and package type and rejects unknown values.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from uuid import uuid4

import pytest

from domain.errors import (
    ConflictingActivePromotion,
    InvalidTransition,
    PromotionNotFound,
    PromotionValidationError,
    UnknownPackageType,
)
from domain.lifecycle import LifecycleEvent, apply_event
from domain.package import PackageType
from domain.promotion import ContentType, PromotionStatus
from repositories.promotion_store import InMemoryPromotionStore
from services.promotion_service import PromotionService


def _create(service: PromotionService, **overrides):
    values = dict(
        content_id="job-1",
        content_type="job",
        package_type="spotlight",
        investment=9990,
        provider_id="provider-1",
    )
    values.update(overrides)
    return service.create_promotion(**values)


def test_create_promotion_uses_package_terms(service, store, now) -> None:
    record = _create(service, package_type="launch", investment=99990)

    assert record.status is PromotionStatus.PENDING_PAYMENT
    assert record.package_type is PackageType.LAUNCH
    assert record.duration_days == 14
    assert record.priority == 3
    assert record.start_date is None and record.end_date is None
    assert record.created_at == now
    assert store.get(record.promotion_id) == record


def test_create_promotion_overrides(service) -> None:
    record = _create(service, duration_override=10, priority_override=50)

    assert record.duration_days == 10
    assert record.priority == 50


@pytest.mark.parametrize(
    "overrides",
    [
        {"content_id": ""},
        {"content_id": "   "},
        {"content_type": ""},
        {"content_type": "podcast"},
        {"investment": 0},
        {"investment": -100},
        {"investment": True},
        {"duration_override": 0},
        {"priority_override": -1},
    ],
)
def test_create_promotion_rejects_invalid_input(service, store, overrides: dict) -> None:
    """Verify malformed purchases raise and store nothing."""

    with pytest.raises(PromotionValidationError):
        _create(service, **overrides)

    assert store.list_all() == []


def test_create_promotion_rejects_unknown_package(service) -> None:
    with pytest.raises(UnknownPackageType):
        _create(service, package_type="platinum")


def test_confirm_payment_activates_and_flags_content(service, visibility, clock) -> None:
    record = _create(service)
    clock.advance(timedelta(minutes=5))

    active = service.confirm_payment(record.promotion_id)

    assert active.status is PromotionStatus.ACTIVE
    assert active.start_date == clock.now()
    assert active.end_date == clock.now() + timedelta(days=7)
    assert service.get_promotion(record.promotion_id) == active
    assert visibility.is_promoted("job-1", ContentType.JOB)


def test_confirm_payment_twice_is_invalid(service) -> None:
    record = _create(service)
    active = service.confirm_payment(record.promotion_id)

    with pytest.raises(InvalidTransition):
        service.confirm_payment(record.promotion_id)

    assert service.get_promotion(record.promotion_id).start_date == active.start_date


def test_fail_and_cancel(service) -> None:
    failed = service.fail_payment(_create(service, content_id="job-a").promotion_id)
    cancelled = service.cancel_promotion(_create(service, content_id="job-b").promotion_id)

    assert failed.status is PromotionStatus.FAILED
    assert cancelled.status is PromotionStatus.CANCELLED


def test_cancel_active_promotion_is_invalid(service) -> None:
    record = _create(service)
    service.confirm_payment(record.promotion_id)

    with pytest.raises(InvalidTransition):
        service.cancel_promotion(record.promotion_id)


def test_unknown_promotion(service) -> None:
    with pytest.raises(PromotionNotFound):
        service.get_promotion(uuid4())

    with pytest.raises(PromotionNotFound):
        service.confirm_payment(uuid4())


def test_purchase_rejected_while_content_is_active(service) -> None:
    """Verify a second purchase for promoted content raises ConflictingActivePromotion."""

    first = _create(service)
    service.confirm_payment(first.promotion_id)

    with pytest.raises(ConflictingActivePromotion) as exc_info:
        _create(service, package_type="launch", investment=99990)

    assert exc_info.value.active_promotion_id == first.promotion_id

    # Same id under another content type is a different content item.
    other = _create(service, content_type="event")
    assert other.status is PromotionStatus.PENDING_PAYMENT


def test_second_pending_cannot_activate_while_first_is_active(service) -> None:
    first = _create(service)
    second = _create(service)
    service.confirm_payment(first.promotion_id)

    with pytest.raises(ConflictingActivePromotion):
        service.confirm_payment(second.promotion_id)

    assert service.get_promotion(second.promotion_id).status is PromotionStatus.PENDING_PAYMENT


def test_concurrent_activation_keeps_one_active(service, store) -> None:
    """Verify racing activations for one content item leave exactly one active record."""

    pending = [_create(service) for _ in range(8)]
    barrier = threading.Barrier(len(pending))
    outcomes = []
    outcomes_lock = threading.Lock()

    def activate(promotion_id) -> None:
        barrier.wait()
        try:
            service.confirm_payment(promotion_id)
            outcome = "active"
        except ConflictingActivePromotion:
            outcome = "conflict"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=activate, args=(p.promotion_id,)) for p in pending]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert outcomes.count("active") == 1
    assert outcomes.count("conflict") == len(pending) - 1
    assert len(store.list_by_status(PromotionStatus.ACTIVE)) == 1


def test_lost_race_reports_invalid_transition(clock) -> None:
    """Verify an activation that loses to a concurrent cancel raises InvalidTransition."""

    class RacingStore(InMemoryPromotionStore):
        def save_transition(self, record, expected_status):
            stored = self.get(record.promotion_id)
            if stored.status is PromotionStatus.PENDING_PAYMENT:
                cancelled = apply_event(stored, LifecycleEvent.CANCEL_REQUESTED, clock.now())
                super().save_transition(cancelled, PromotionStatus.PENDING_PAYMENT)
            return super().save_transition(record, expected_status)

    service = PromotionService(RacingStore(), clock=clock)
    record = _create(service)

    with pytest.raises(InvalidTransition):
        service.confirm_payment(record.promotion_id)

    assert service.get_promotion(record.promotion_id).status is PromotionStatus.CANCELLED


def test_visibility_failure_does_not_undo_activation(store, clock) -> None:
    class BrokenVisibility:
        def set_promoted(self, content_id, content_type, promoted):
            raise RuntimeError("content table unavailable")

    service = PromotionService(store, clock=clock, visibility=BrokenVisibility())
    record = _create(service)

    active = service.confirm_payment(record.promotion_id)

    assert active.status is PromotionStatus.ACTIVE
    assert store.get(record.promotion_id).status is PromotionStatus.ACTIVE


def test_list_provider_promotions_newest_first(service, clock) -> None:
    first = _create(service, content_id="job-a")
    clock.advance(timedelta(hours=1))
    second = _create(service, content_id="job-b")
    _create(service, content_id="job-c", provider_id="provider-2")

    listed = service.list_provider_promotions("provider-1")

    assert [r.promotion_id for r in listed] == [second.promotion_id, first.promotion_id]


def test_list_promotions_filters_and_orders(service, clock) -> None:
    """Verify the admin listing filters by status and package and returns newest first."""

    oldest = _create(service, content_id="job-a")
    clock.advance(timedelta(hours=1))
    active = _create(service, content_id="job-b", package_type="feature", investment=24990)
    service.confirm_payment(active.promotion_id)
    clock.advance(timedelta(hours=1))
    newest = _create(service, content_id="job-c", provider_id="provider-2")

    assert [r.promotion_id for r in service.list_promotions()] == [
        newest.promotion_id,
        active.promotion_id,
        oldest.promotion_id,
    ]
    assert [r.promotion_id for r in service.list_promotions(status="pending_payment")] == [
        newest.promotion_id,
        oldest.promotion_id,
    ]
    assert [r.promotion_id for r in service.list_promotions(package_type="feature")] == [
        active.promotion_id
    ]
    assert service.list_promotions(status="active", package_type="spotlight") == []


def test_list_promotions_rejects_unknown_filters(service) -> None:
    with pytest.raises(PromotionValidationError):
        service.list_promotions(status="paused")

    with pytest.raises(UnknownPackageType):
        service.list_promotions(package_type="platinum")
