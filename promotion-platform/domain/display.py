"""
Domain: Display eligibility and ordering (pure).

A record is eligible for a surface when:
- status == active
- its package entitles the surface
- the content type filter is "all" or matches the record's content type

Ordering: priority descending, then start_date ascending (older boosts first among
equal priority), then promotion_id for determinism.

Selection is a read. It never re-evaluates or mutates status, so an active record
whose end_date has passed stays visible until the next sweep completes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from .errors import PromotionValidationError
from .package import DisplaySurface, PackageCatalog, VisualEnhancement
from .promotion import ContentType, PromotionRecord, PromotionStatus

ALL_CONTENT_TYPES = "all"

# Sort key stand-in for records without a start_date (never true for active records).
_MISSING_START = datetime.max.replace(tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class DisplayedPromotion:
    """A selected record joined with the rendering and ranking hints of its package."""

    record: PromotionRecord
    boost_multiplier: float
    visual_enhancement: VisualEnhancement


def parse_surface(surface: Union[DisplaySurface, str]) -> DisplaySurface:
    try:
        return DisplaySurface(surface)
    except ValueError:
        raise PromotionValidationError(f"Unknown display surface: {surface!r}") from None


def parse_content_type_filter(value: Union[ContentType, str, None]) -> Optional[ContentType]:
    """Return the ContentType to filter on, or None for "all"."""

    if value is None or value == ALL_CONTENT_TYPES:
        return None
    try:
        return ContentType(value)
    except ValueError:
        raise PromotionValidationError(f"Unknown content type filter: {value!r}") from None


def display_sort_key(record: PromotionRecord) -> tuple:
    return (-record.priority, record.start_date or _MISSING_START, str(record.promotion_id))


def select_for_surface(
    records: Iterable[PromotionRecord],
    catalog: PackageCatalog,
    surface: Union[DisplaySurface, str],
    content_type_filter: Union[ContentType, str, None],
    limit: int,
) -> List[PromotionRecord]:
    """
    Ordered eligible records for one surface, truncated to `limit`.

    Raises PromotionValidationError for limit <= 0, an unknown surface or an unknown
    content type filter. Empty input yields an empty list.
    """

    if limit <= 0:
        raise PromotionValidationError("limit must be > 0")
    target_surface = parse_surface(surface)
    content_type = parse_content_type_filter(content_type_filter)
    entitled = catalog.entitled_packages(target_surface)

    eligible = [
        r
        for r in records
        if r.status is PromotionStatus.ACTIVE
        and r.package_type in entitled
        and (content_type is None or r.content_type == content_type)
    ]
    eligible.sort(key=display_sort_key)
    return eligible[:limit]


def decorate(records: Iterable[PromotionRecord], catalog: PackageCatalog) -> List[DisplayedPromotion]:
    displayed: List[DisplayedPromotion] = []
    for record in records:
        package = catalog.get_package(record.package_type)
        displayed.append(
            DisplayedPromotion(
                record=record,
                boost_multiplier=package.boost_multiplier,
                visual_enhancement=package.visual_enhancement,
            )
        )
    return displayed


__all__ = [
    "ALL_CONTENT_TYPES",
    "DisplayedPromotion",
    "decorate",
    "display_sort_key",
    "parse_content_type_filter",
    "parse_surface",
    "select_for_surface",
]
