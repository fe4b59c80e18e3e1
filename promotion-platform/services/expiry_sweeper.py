"""
Expiry sweeper for active promotions.

One sweep:
1. Read every active promotion
2. Evaluate each against a single `now` taken from the injected clock
3. Persist active -> completed for the expired ones (compare-and-set on status)
4. Clear the content's promotion flag for each completed record
5. Return a SweepSummary {scanned, transitioned, errors}

Guarantees:
- At most one sweep runs at a time. run_now(wait=True) blocks until the running
  sweep finishes; run_now(wait=False) raises SweepAlreadyRunning instead.
- A failing or slow record never aborts the batch. Its error is collected in the
  summary and the record stays active, so the next sweep retries it.
- Sweeps are idempotent: a second sweep at the same `now` transitions nothing.

Scheduled and manual sweeps share this code path and return the same summary.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import List, Optional, Union
from uuid import UUID

from domain.errors import SweepAlreadyRunning
from domain.lifecycle import evaluate
from domain.promotion import PromotionRecord, PromotionStatus
from domain.time import Clock, SystemClock
from repositories.content_repository import ContentVisibilityWriter
from repositories.promotion_store import PromotionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SweepError:
    """A record the sweep could not process. promotion_id is None for scan-level failures."""

    promotion_id: Optional[UUID]
    message: str


@dataclass(frozen=True, slots=True)
class SweepSummary:
    scanned: int
    transitioned: int
    errors: List[SweepError] = field(default_factory=list)
    trigger: str = "manual"
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)


class ExpirySweeper:
    """Evaluates active promotions and commits expirations, one sweep at a time."""

    def __init__(
        self,
        store: PromotionStore,
        *,
        clock: Optional[Clock] = None,
        visibility: Optional[ContentVisibilityWriter] = None,
        record_timeout_seconds: float = 30.0,
        max_workers: int = 4,
    ) -> None:
        if record_timeout_seconds <= 0:
            raise ValueError("record_timeout_seconds must be > 0")
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._store = store
        self._clock = clock or SystemClock()
        self._visibility = visibility
        self._record_timeout_seconds = record_timeout_seconds
        self._max_workers = max_workers
        self._gate: Lock = Lock()
        self._last_summary: Optional[SweepSummary] = None

    @property
    def is_running(self) -> bool:
        return self._gate.locked()

    @property
    def last_summary(self) -> Optional[SweepSummary]:
        return self._last_summary

    def run_now(self, *, wait: bool = True, trigger: str = "manual") -> SweepSummary:
        """
        Run one sweep synchronously and return its summary.

        Raises:
            SweepAlreadyRunning: wait=False and another sweep holds the gate
        """

        if not self._gate.acquire(blocking=wait):
            raise SweepAlreadyRunning("A promotion expiry sweep is already running")
        try:
            summary = self._sweep(trigger)
            self._last_summary = summary
        finally:
            self._gate.release()

        log = logger.warning if summary.errors else logger.info
        log(
            "Promotion expiry sweep finished",
            extra={
                "trigger": trigger,
                "scanned": summary.scanned,
                "transitioned": summary.transitioned,
                "error_count": summary.error_count,
            },
        )
        return summary

    def _sweep(self, trigger: str) -> SweepSummary:
        now = self._clock.now()

        try:
            active = self._store.list_by_status(PromotionStatus.ACTIVE)
        except Exception as e:
            logger.exception("Failed to read active promotions", extra={"trigger": trigger})
            return SweepSummary(
                scanned=0,
                transitioned=0,
                errors=[SweepError(promotion_id=None, message=f"Failed to read active promotions: {e}")],
                trigger=trigger,
                started_at=now,
                finished_at=self._clock.now(),
            )

        transitioned = 0
        errors: List[SweepError] = []

        executor = self._new_executor()
        try:
            # Batches of max_workers so every record in a batch starts right away and
            # the timeout measures its own work, not time spent queued.
            for offset in range(0, len(active), self._max_workers):
                batch = active[offset:offset + self._max_workers]
                futures = [(r, executor.submit(self._process, r, now)) for r in batch]
                deadline = time.monotonic() + self._record_timeout_seconds
                timed_out = False
                for record, future in futures:
                    outcome = self._collect(record, future, deadline)
                    if isinstance(outcome, SweepError):
                        errors.append(outcome)
                        timed_out = timed_out or not future.done()
                    elif outcome:
                        transitioned += 1
                if timed_out:
                    # Stuck workers keep their threads; continue on a fresh pool.
                    executor.shutdown(wait=False, cancel_futures=True)
                    executor = self._new_executor()
        finally:
            # Timed-out writes are left running; save_transition is compare-and-set.
            executor.shutdown(wait=False, cancel_futures=True)

        return SweepSummary(
            scanned=len(active),
            transitioned=transitioned,
            errors=errors,
            trigger=trigger,
            started_at=now,
            finished_at=self._clock.now(),
        )

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="promotion-sweep")

    def _collect(
        self, record: PromotionRecord, future: "Future[bool]", deadline: float
    ) -> Union[bool, SweepError]:
        remaining = max(deadline - time.monotonic(), 0.0)
        try:
            return future.result(timeout=remaining)
        except FutureTimeoutError:
            logger.warning(
                "Promotion expiry timed out",
                extra={"promotion_id": str(record.promotion_id), "timeout_seconds": self._record_timeout_seconds},
            )
            return SweepError(
                promotion_id=record.promotion_id,
                message=f"Timed out after {self._record_timeout_seconds}s",
            )
        except Exception as e:
            logger.warning(
                "Promotion expiry failed",
                exc_info=True,
                extra={"promotion_id": str(record.promotion_id)},
            )
            return SweepError(promotion_id=record.promotion_id, message=str(e))

    def _process(self, record: PromotionRecord, now: datetime) -> bool:
        """Evaluate and persist one record. Returns True if this call completed it."""

        result = evaluate(record, now)
        if not result.changed:
            return False

        if not self._store.save_transition(result.record, expected_status=PromotionStatus.ACTIVE):
            # Already moved by another writer.
            return False

        logger.info(
            "Promotion completed",
            extra={
                "promotion_id": str(record.promotion_id),
                "content_id": record.content_id,
                "end_date": record.end_date.isoformat() if record.end_date else None,
            },
        )

        if self._visibility is not None:
            try:
                self._clear_promoted_flag(record)
            except Exception:
                logger.warning(
                    "Failed to clear content promotion flag",
                    exc_info=True,
                    extra={"promotion_id": str(record.promotion_id), "content_id": record.content_id},
                )
        return True

    def _clear_promoted_flag(self, record: PromotionRecord) -> None:
        """
        Clear the content flag unless another promotion for the content is now active.

        A second promotion may activate between the completion write and the flag write.
        Its own activation sets the flag after its status write, so re-reading the store
        after clearing and restoring the flag when one is active always converges on
        `is_promoted == (an active promotion exists)`.
        """

        if self._store.find_active_for_content(record.content_id, record.content_type) is not None:
            return
        self._visibility.set_promoted(record.content_id, record.content_type, False)
        if self._store.find_active_for_content(record.content_id, record.content_type) is not None:
            self._visibility.set_promoted(record.content_id, record.content_type, True)


__all__ = ["ExpirySweeper", "SweepError", "SweepSummary"]
