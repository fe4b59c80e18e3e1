"""
Promotion store interface and in-process implementation.

Services depend on the PromotionStore protocol; the Supabase-backed implementation
lives in repositories/promotion_repository.py.

Store contract:
- insert() rejects a record whose content already has an active promotion.
- save_transition() is compare-and-set on the stored status: it writes only if the
  stored record is still in `expected_status` and returns False otherwise. Writes that
  would make a second record active for the same content raise
  ConflictingActivePromotion.
- Only status, start_date, end_date and updated_at are written by save_transition;
  investment, duration_days and priority are never updated.

InMemoryPromotionStore keeps an index of active records per (content_id, content_type)
and does every check-and-write under one lock, which plays the role of the partial
unique index used in Postgres.
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional, Protocol, Tuple
from uuid import UUID

from domain.errors import ConflictingActivePromotion, PromotionNotFound
from domain.promotion import ContentType, PromotionRecord, PromotionStatus


class PromotionStore(Protocol):
    def insert(self, record: PromotionRecord) -> PromotionRecord:
        ...

    def get(self, promotion_id: UUID) -> Optional[PromotionRecord]:
        ...

    def list_all(self) -> List[PromotionRecord]:
        ...

    def list_by_status(self, status: PromotionStatus) -> List[PromotionRecord]:
        ...

    def list_by_provider(self, provider_id: str) -> List[PromotionRecord]:
        ...

    def find_active_for_content(
        self, content_id: str, content_type: ContentType
    ) -> Optional[PromotionRecord]:
        ...

    def save_transition(self, record: PromotionRecord, expected_status: PromotionStatus) -> bool:
        ...


class InMemoryPromotionStore:
    """Thread-safe dict-backed store."""

    def __init__(self) -> None:
        self._lock: Lock = Lock()
        self._records: Dict[UUID, PromotionRecord] = {}
        self._active_by_content: Dict[Tuple[str, ContentType], UUID] = {}

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
            self._active_by_content.clear()

    def _check_no_other_active(self, record: PromotionRecord) -> None:
        holder = self._active_by_content.get(record.content_key)
        if holder is not None and holder != record.promotion_id:
            raise ConflictingActivePromotion(
                record.content_id, record.content_type.value, active_promotion_id=holder
            )

    def insert(self, record: PromotionRecord) -> PromotionRecord:
        with self._lock:
            if record.promotion_id in self._records:
                raise ValueError(f"Duplicate promotion_id: {record.promotion_id}")
            self._check_no_other_active(record)
            self._records[record.promotion_id] = record
            if record.is_active:
                self._active_by_content[record.content_key] = record.promotion_id
        return record

    def get(self, promotion_id: UUID) -> Optional[PromotionRecord]:
        with self._lock:
            return self._records.get(promotion_id)

    def list_all(self) -> List[PromotionRecord]:
        with self._lock:
            return list(self._records.values())

    def list_by_status(self, status: PromotionStatus) -> List[PromotionRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.status is status]

    def list_by_provider(self, provider_id: str) -> List[PromotionRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.provider_id == provider_id]

    def find_active_for_content(
        self, content_id: str, content_type: ContentType
    ) -> Optional[PromotionRecord]:
        with self._lock:
            holder = self._active_by_content.get((content_id, ContentType(content_type)))
            return self._records.get(holder) if holder is not None else None

    def save_transition(self, record: PromotionRecord, expected_status: PromotionStatus) -> bool:
        with self._lock:
            stored = self._records.get(record.promotion_id)
            if stored is None:
                raise PromotionNotFound(record.promotion_id)
            if stored.status is not expected_status:
                return False

            updated = replace(
                stored,
                status=record.status,
                start_date=record.start_date,
                end_date=record.end_date,
                updated_at=record.updated_at,
            )
            if updated.is_active:
                self._check_no_other_active(updated)
                self._active_by_content[updated.content_key] = updated.promotion_id
            elif self._active_by_content.get(updated.content_key) == updated.promotion_id:
                del self._active_by_content[updated.content_key]

            self._records[updated.promotion_id] = updated
            return True


__all__ = ["InMemoryPromotionStore", "PromotionStore"]
