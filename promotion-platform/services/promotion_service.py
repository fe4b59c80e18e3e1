"""
Promotion service for purchases and payment events.

Handles:
- Creating a promotion in pending_payment for a purchased package
- Payment verified -> active (dates set once, content flagged as promoted)
- Payment failed -> failed, cancellation -> cancelled

Payment collection and receipt verification happen upstream; this service only
receives their outcome. Only one promotion per content item may be active; a second
purchase while one is active is rejected with ConflictingActivePromotion.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union
from uuid import UUID, uuid4

from domain.errors import (
    ConflictingActivePromotion,
    InvalidTransition,
    PromotionNotFound,
    PromotionValidationError,
)
from domain.lifecycle import LifecycleEvent, apply_event
from domain.package import DEFAULT_CATALOG, PackageCatalog, PackageType
from domain.promotion import ContentType, PromotionRecord, PromotionStatus
from domain.time import Clock, SystemClock
from repositories.content_repository import ContentVisibilityWriter
from repositories.promotion_store import PromotionStore

logger = logging.getLogger(__name__)


def _parse_content_type(content_type: Union[ContentType, str]) -> ContentType:
    if not content_type:
        raise PromotionValidationError("content_type must be non-empty")
    try:
        return ContentType(content_type)
    except ValueError:
        raise PromotionValidationError(f"Unknown content type: {content_type!r}") from None


def _newest_first(records: List[PromotionRecord]) -> List[PromotionRecord]:
    return sorted(records, key=lambda r: (r.created_at is not None, r.created_at), reverse=True)


class PromotionService:
    """
    Entry point for the purchase flow and the payment/cancellation events.

    The store, catalog and clock are injected; visibility is optional (when omitted
    no content flag is written).
    """

    def __init__(
        self,
        store: PromotionStore,
        *,
        catalog: PackageCatalog = DEFAULT_CATALOG,
        clock: Optional[Clock] = None,
        visibility: Optional[ContentVisibilityWriter] = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._visibility = visibility

    def create_promotion(
        self,
        *,
        content_id: str,
        content_type: Union[ContentType, str],
        package_type: Union[PackageType, str],
        investment: int,
        provider_id: Optional[str] = None,
        duration_override: Optional[int] = None,
        priority_override: Optional[int] = None,
    ) -> PromotionRecord:
        """
        Create a pending_payment promotion.

        Raises:
            PromotionValidationError: bad ids, non-positive investment or duration,
                negative priority, unknown content type
            UnknownPackageType: package not in the catalog
            ConflictingActivePromotion: the content already has an active promotion
        """

        if not content_id or not str(content_id).strip():
            raise PromotionValidationError("content_id must be non-empty")
        parsed_type = _parse_content_type(content_type)
        if isinstance(investment, bool) or not isinstance(investment, int) or investment <= 0:
            raise PromotionValidationError("investment must be a positive integer (minor units)")
        package = self._catalog.get_package(package_type)
        if duration_override is not None and duration_override <= 0:
            raise PromotionValidationError("duration_override must be > 0")
        if priority_override is not None and priority_override < 0:
            raise PromotionValidationError("priority_override must be >= 0")

        now = self._clock.now()
        record = PromotionRecord(
            promotion_id=uuid4(),
            content_id=str(content_id),
            content_type=parsed_type,
            provider_id=provider_id,
            package_type=package.package_type,
            investment=investment,
            duration_days=duration_override or package.default_duration_days,
            priority=package.priority if priority_override is None else priority_override,
            status=PromotionStatus.PENDING_PAYMENT,
            created_at=now,
            updated_at=now,
        )

        # Re-checked by the store under its own guard.
        active = self._store.find_active_for_content(record.content_id, record.content_type)
        if active is not None:
            raise ConflictingActivePromotion(
                record.content_id, record.content_type.value, active_promotion_id=active.promotion_id
            )

        self._store.insert(record)
        logger.info(
            "Promotion created",
            extra={
                "promotion_id": str(record.promotion_id),
                "content_id": record.content_id,
                "content_type": record.content_type.value,
                "package_type": record.package_type.value,
                "investment": record.investment,
            },
        )
        return record

    def get_promotion(self, promotion_id: UUID) -> PromotionRecord:
        record = self._store.get(promotion_id)
        if record is None:
            raise PromotionNotFound(promotion_id)
        return record

    def list_provider_promotions(self, provider_id: str) -> List[PromotionRecord]:
        """A provider's promotions, newest first."""

        return _newest_first(self._store.list_by_provider(provider_id))

    def list_promotions(
        self,
        status: Union[PromotionStatus, str, None] = None,
        package_type: Union[PackageType, str, None] = None,
    ) -> List[PromotionRecord]:
        """
        All promotions for the admin dashboard, newest first.

        Raises:
            PromotionValidationError: unknown status
            UnknownPackageType: unknown package type
        """

        parsed_status = None
        if status is not None:
            try:
                parsed_status = PromotionStatus(status)
            except ValueError:
                raise PromotionValidationError(f"Unknown promotion status: {status!r}") from None
        parsed_package = None
        if package_type is not None:
            parsed_package = self._catalog.get_package(package_type).package_type

        if parsed_status is None:
            records = self._store.list_all()
        else:
            records = self._store.list_by_status(parsed_status)
        if parsed_package is not None:
            records = [r for r in records if r.package_type is parsed_package]

        return _newest_first(records)

    def confirm_payment(self, promotion_id: UUID) -> PromotionRecord:
        """Payment verified: pending_payment -> active."""

        activated = self._transition(promotion_id, LifecycleEvent.PAYMENT_VERIFIED)
        self._write_visibility(activated, promoted=True)
        logger.info(
            "Promotion activated",
            extra={
                "promotion_id": str(activated.promotion_id),
                "start_date": activated.start_date.isoformat() if activated.start_date else None,
                "end_date": activated.end_date.isoformat() if activated.end_date else None,
            },
        )
        return activated

    def fail_payment(self, promotion_id: UUID) -> PromotionRecord:
        """Payment failed: pending_payment -> failed."""

        failed = self._transition(promotion_id, LifecycleEvent.PAYMENT_FAILED)
        logger.info("Promotion payment failed", extra={"promotion_id": str(promotion_id)})
        return failed

    def cancel_promotion(self, promotion_id: UUID) -> PromotionRecord:
        """Cancellation request: pending_payment -> cancelled."""

        cancelled = self._transition(promotion_id, LifecycleEvent.CANCEL_REQUESTED)
        logger.info("Promotion cancelled", extra={"promotion_id": str(promotion_id)})
        return cancelled

    def _transition(self, promotion_id: UUID, event: LifecycleEvent) -> PromotionRecord:
        record = self.get_promotion(promotion_id)
        updated = apply_event(record, event, self._clock.now())

        if not self._store.save_transition(updated, expected_status=record.status):
            # Another writer moved the record between our read and write.
            current = self.get_promotion(promotion_id)
            raise InvalidTransition(promotion_id, current.status.value, event.value)
        return updated

    def _write_visibility(self, record: PromotionRecord, *, promoted: bool) -> None:
        if self._visibility is None:
            return
        try:
            self._visibility.set_promoted(record.content_id, record.content_type, promoted)
        except Exception:
            logger.warning(
                "Failed to update content promotion flag",
                exc_info=True,
                extra={
                    "promotion_id": str(record.promotion_id),
                    "content_id": record.content_id,
                    "promoted": promoted,
                },
            )


__all__ = ["PromotionService"]
