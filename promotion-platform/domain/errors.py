"""
Domain errors for the promotion engine.

Validation, conflict and transition errors are raised synchronously and leave
state untouched. Persistence errors raised during a sweep are collected per
record by the sweeper and never escape as a batch failure.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID


class PromotionError(Exception):
    """Base class for promotion engine errors."""
    pass


class PromotionValidationError(PromotionError, ValueError):
    """Raised when caller input is malformed (bad ids, amounts, limits)."""
    pass


class UnknownPackageType(PromotionValidationError):
    """Raised when a package type is not in the fixed catalog."""

    def __init__(self, package_type: object):
        self.package_type = package_type
        super().__init__(f"Unknown package type: {package_type!r}")


class CatalogIntegrityError(PromotionError):
    """Raised at load time when the package catalog breaks its display rules."""
    pass


class ConflictingActivePromotion(PromotionError):
    """Raised when content already carries an active promotion."""

    def __init__(
        self,
        content_id: str,
        content_type: str,
        active_promotion_id: Optional[UUID] = None,
    ):
        self.content_id = content_id
        self.content_type = content_type
        self.active_promotion_id = active_promotion_id
        super().__init__(
            f"Content {content_type}:{content_id} already has an active promotion"
            + (f" ({active_promotion_id})" if active_promotion_id else "")
        )


class InvalidTransition(PromotionError):
    """Raised when an event is not legal from the record's current status."""

    def __init__(self, promotion_id: UUID, from_status: str, event: str):
        self.promotion_id = promotion_id
        self.from_status = from_status
        self.event = event
        super().__init__(
            f"Cannot apply '{event}' to promotion {promotion_id} in status '{from_status}'"
        )


class PromotionNotFound(PromotionError):
    """Raised when a promotion id does not resolve to a stored record."""

    def __init__(self, promotion_id: UUID):
        self.promotion_id = promotion_id
        super().__init__(f"Promotion not found: {promotion_id}")


class SweepAlreadyRunning(PromotionError):
    """Raised by a non-blocking sweep request while another sweep is in flight."""
    pass


__all__ = [
    "CatalogIntegrityError",
    "ConflictingActivePromotion",
    "InvalidTransition",
    "PromotionError",
    "PromotionNotFound",
    "PromotionValidationError",
    "SweepAlreadyRunning",
    "UnknownPackageType",
]
