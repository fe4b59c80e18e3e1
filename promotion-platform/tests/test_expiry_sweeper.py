"""
Tests for `services/expiry_sweeper.py`.

Covers contract rules:
- A sweep completes every expired active promotion and nothing else.
- A second sweep at the same instant transitions nothing.
- A failing or slow record is reported in the summary without aborting the batch.
- Only one sweep runs at a time.
- The content flag stays set when a newer promotion for the content is active.
"""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from domain.errors import SweepAlreadyRunning
from domain.promotion import ContentType, PromotionStatus
from repositories.content_repository import InMemoryContentVisibility
from repositories.promotion_store import InMemoryPromotionStore
from services.expiry_sweeper import ExpirySweeper
from services.promotion_service import PromotionService


def _seed(store, make_record, now, *, expired: int, live: int):
    expired_records = [
        make_record(start_date=now - timedelta(days=10), duration_days=7) for _ in range(expired)
    ]
    live_records = [make_record(start_date=now, duration_days=7) for _ in range(live)]
    for record in expired_records + live_records:
        store.insert(record)
    return expired_records, live_records


def test_sweep_completes_exactly_the_expired(store, clock, visibility, make_record, now) -> None:
    """Verify 3 of 5 active records past end_date are completed and flags cleared."""

    expired, live = _seed(store, make_record, now, expired=3, live=2)
    for record in expired + live:
        visibility.set_promoted(record.content_id, record.content_type, True)
    sweeper = ExpirySweeper(store, clock=clock, visibility=visibility)

    summary = sweeper.run_now()

    assert (summary.scanned, summary.transitioned, summary.errors) == (5, 3, [])
    for record in expired:
        stored = store.get(record.promotion_id)
        assert stored.status is PromotionStatus.COMPLETED
        assert stored.end_date == record.end_date
        assert not visibility.is_promoted(record.content_id, record.content_type)
    for record in live:
        assert store.get(record.promotion_id).status is PromotionStatus.ACTIVE
        assert visibility.is_promoted(record.content_id, record.content_type)


def test_sweep_is_idempotent(store, clock, make_record, now) -> None:
    _seed(store, make_record, now, expired=2, live=1)
    sweeper = ExpirySweeper(store, clock=clock)

    first = sweeper.run_now()
    second = sweeper.run_now()

    assert first.transitioned == 2
    assert (second.scanned, second.transitioned, second.errors) == (1, 0, [])


def test_sweep_processes_more_records_than_workers(store, clock, make_record, now) -> None:
    _seed(store, make_record, now, expired=11, live=4)
    sweeper = ExpirySweeper(store, clock=clock, max_workers=3)

    summary = sweeper.run_now()

    assert (summary.scanned, summary.transitioned) == (15, 11)


def test_failing_record_does_not_abort_batch(clock, make_record, now) -> None:
    """Verify a persistence failure is reported per record and retried next sweep."""

    class FlakyStore(InMemoryPromotionStore):
        failing_id = None

        def save_transition(self, record, expected_status):
            if record.promotion_id == self.failing_id:
                raise RuntimeError("write rejected")
            return super().save_transition(record, expected_status)

    store = FlakyStore()
    expired, _ = _seed(store, make_record, now, expired=3, live=0)
    store.failing_id = expired[1].promotion_id
    sweeper = ExpirySweeper(store, clock=clock)

    summary = sweeper.run_now()

    assert summary.transitioned == 2
    assert len(summary.errors) == 1
    assert summary.errors[0].promotion_id == expired[1].promotion_id
    assert "write rejected" in summary.errors[0].message
    assert store.get(expired[1].promotion_id).status is PromotionStatus.ACTIVE

    store.failing_id = None
    retry = sweeper.run_now()
    assert (retry.transitioned, retry.errors) == (1, [])


def test_slow_record_times_out(clock, make_record, now) -> None:
    """Verify a record stuck in persistence is reported as a timeout and others still complete."""

    release = threading.Event()

    class SlowStore(InMemoryPromotionStore):
        slow_id = None

        def save_transition(self, record, expected_status):
            if record.promotion_id == self.slow_id:
                release.wait(timeout=5)
            return super().save_transition(record, expected_status)

    store = SlowStore()
    expired, _ = _seed(store, make_record, now, expired=3, live=0)
    store.slow_id = expired[0].promotion_id
    sweeper = ExpirySweeper(store, clock=clock, record_timeout_seconds=0.2)

    try:
        summary = sweeper.run_now()
    finally:
        release.set()

    assert summary.transitioned == 2
    assert [e.promotion_id for e in summary.errors] == [expired[0].promotion_id]
    assert "Timed out" in summary.errors[0].message


def test_listing_failure_is_reported(clock) -> None:
    class BrokenStore(InMemoryPromotionStore):
        def list_by_status(self, status):
            raise RuntimeError("database unavailable")

    summary = ExpirySweeper(BrokenStore(), clock=clock).run_now()

    assert (summary.scanned, summary.transitioned) == (0, 0)
    assert summary.errors[0].promotion_id is None
    assert "database unavailable" in summary.errors[0].message


def test_only_one_sweep_runs_at_a_time(clock, make_record, now) -> None:
    """Verify run_now(wait=False) raises while another sweep holds the gate."""

    entered = threading.Event()
    release = threading.Event()

    class BlockingStore(InMemoryPromotionStore):
        def list_by_status(self, status):
            entered.set()
            release.wait(timeout=5)
            return super().list_by_status(status)

    store = BlockingStore()
    _seed(store, make_record, now, expired=1, live=0)
    sweeper = ExpirySweeper(store, clock=clock)
    results = []
    worker = threading.Thread(target=lambda: results.append(sweeper.run_now()))
    worker.start()

    try:
        assert entered.wait(timeout=5)
        assert sweeper.is_running
        with pytest.raises(SweepAlreadyRunning):
            sweeper.run_now(wait=False)
    finally:
        release.set()
        worker.join(timeout=5)

    assert results[0].transitioned == 1
    assert not sweeper.is_running


def test_concurrent_sweeps_complete_each_record_once(store, clock, make_record, now) -> None:
    _seed(store, make_record, now, expired=6, live=2)
    sweeper = ExpirySweeper(store, clock=clock)
    summaries = []
    lock = threading.Lock()

    def sweep() -> None:
        summary = sweeper.run_now(wait=True)
        with lock:
            summaries.append(summary)

    threads = [threading.Thread(target=sweep) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert sum(s.transitioned for s in summaries) == 6
    assert len(store.list_by_status(PromotionStatus.COMPLETED)) == 6


def test_sweep_uses_clock_and_records_summary(store, clock, make_record, now) -> None:
    record = make_record(start_date=now, duration_days=1, content_type=ContentType.EVENT)
    store.insert(record)
    sweeper = ExpirySweeper(store, clock=clock)

    assert sweeper.run_now().transitioned == 0

    clock.advance(timedelta(days=1))
    summary = sweeper.run_now(trigger="scheduled")

    assert summary.transitioned == 1
    assert summary.trigger == "scheduled"
    assert summary.started_at == now + timedelta(days=1)
    assert sweeper.last_summary is summary


@pytest.mark.parametrize(
    "kwargs",
    [{"record_timeout_seconds": 0}, {"max_workers": 0}],
)
def test_rejects_invalid_settings(store, kwargs: dict) -> None:
    with pytest.raises(ValueError):
        ExpirySweeper(store, **kwargs)


def _expiring_promotion(service, clock):
    first = service.create_promotion(
        content_id="job-1", content_type="job", package_type="spotlight", investment=9990
    )
    service.confirm_payment(first.promotion_id)
    clock.advance(timedelta(days=7))
    return first


def test_flag_kept_when_new_promotion_activates_after_completion(clock) -> None:
    """Verify completing A does not clear the flag set by B activating right after."""

    visibility = InMemoryContentVisibility()

    class ReactivatingStore(InMemoryPromotionStore):
        service = None

        def save_transition(self, record, expected_status):
            saved = super().save_transition(record, expected_status)
            if saved and record.status is PromotionStatus.COMPLETED:
                follow_up = self.service.create_promotion(
                    content_id="job-1", content_type="job", package_type="feature", investment=24990
                )
                self.service.confirm_payment(follow_up.promotion_id)
            return saved

    store = ReactivatingStore()
    service = PromotionService(store, clock=clock, visibility=visibility)
    store.service = service
    first = _expiring_promotion(service, clock)

    summary = ExpirySweeper(store, clock=clock, visibility=visibility).run_now()

    assert summary.transitioned == 1
    assert store.get(first.promotion_id).status is PromotionStatus.COMPLETED
    assert store.find_active_for_content("job-1", ContentType.JOB) is not None
    assert visibility.is_promoted("job-1", ContentType.JOB)


def test_flag_restored_when_new_promotion_activates_during_clear(clock) -> None:
    """Verify a promotion activated while the flag is being cleared ends up flagged."""

    store = InMemoryPromotionStore()

    class InterleavingVisibility(InMemoryContentVisibility):
        service = None
        triggered = False

        def set_promoted(self, content_id, content_type, promoted):
            if not promoted and not self.triggered:
                self.triggered = True
                follow_up = self.service.create_promotion(
                    content_id=content_id, content_type=content_type, package_type="launch", investment=99990
                )
                self.service.confirm_payment(follow_up.promotion_id)
            super().set_promoted(content_id, content_type, promoted)

    visibility = InterleavingVisibility()
    service = PromotionService(store, clock=clock, visibility=visibility)
    visibility.service = service
    _expiring_promotion(service, clock)

    ExpirySweeper(store, clock=clock, visibility=visibility).run_now()

    assert visibility.triggered
    assert visibility.is_promoted("job-1", ContentType.JOB)


def test_flag_cleared_when_nothing_else_is_active(store, clock, visibility) -> None:
    service = PromotionService(store, clock=clock, visibility=visibility)
    _expiring_promotion(service, clock)
    assert visibility.is_promoted("job-1", ContentType.JOB)

    ExpirySweeper(store, clock=clock, visibility=visibility).run_now()

    assert not visibility.is_promoted("job-1", ContentType.JOB)
