"""
Display service for promoted content surfaces.

Answers "which promotions should the hero banner / featured section / spotlight
search show?" from the active records in the store. Reads only; status is never
changed here, even for active records already past their end_date (the sweeper
owns that transition).
"""

from __future__ import annotations

import logging
from typing import List, Union

from domain.display import (
    DisplayedPromotion,
    decorate,
    display_sort_key,
    parse_content_type_filter,
    parse_surface,
    select_for_surface,
)
from domain.errors import PromotionValidationError
from domain.package import DEFAULT_CATALOG, DisplaySurface, PackageCatalog
from domain.promotion import ContentType, PromotionRecord, PromotionStatus
from repositories.promotion_store import PromotionStore

logger = logging.getLogger(__name__)

# Collection names the content listings use in their URLs.
_PLURAL_CONTENT_TYPES = {
    "opportunities": ContentType.OPPORTUNITY,
    "jobs": ContentType.JOB,
    "events": ContentType.EVENT,
    "resources": ContentType.RESOURCE,
}


def select_promotions(
    store: PromotionStore,
    surface: Union[DisplaySurface, str],
    content_type_filter: Union[ContentType, str] = "all",
    limit: int = 10,
    catalog: PackageCatalog = DEFAULT_CATALOG,
) -> List[PromotionRecord]:
    """
    Ordered active promotions eligible for a surface.

    Raises PromotionValidationError on malformed input (limit <= 0, unknown surface or
    content type) before touching the store.
    """

    if limit <= 0:
        raise PromotionValidationError("limit must be > 0")
    parse_surface(surface)
    parse_content_type_filter(content_type_filter)

    active = store.list_by_status(PromotionStatus.ACTIVE)
    return select_for_surface(active, catalog, surface, content_type_filter, limit)


def select_for_display(
    store: PromotionStore,
    surface: Union[DisplaySurface, str],
    content_type_filter: Union[ContentType, str] = "all",
    limit: int = 10,
    catalog: PackageCatalog = DEFAULT_CATALOG,
) -> List[DisplayedPromotion]:
    """
    Like select_promotions, joined with boost/visual hints, degrading to [] on store errors.

    Malformed input still raises PromotionValidationError.
    """

    try:
        records = select_promotions(store, surface, content_type_filter, limit, catalog)
    except PromotionValidationError:
        raise
    except Exception:
        logger.warning(
            "Promotion display read failed; showing no promoted content",
            exc_info=True,
            extra={"surface": str(surface), "content_type_filter": str(content_type_filter)},
        )
        return []
    return decorate(records, catalog)


def promoted_content_ids(store: PromotionStore, content_type: Union[ContentType, str]) -> List[str]:
    """
    Content ids of one type that currently carry an active promotion, display-ordered.

    Accepts the singular content type or its plural collection name ("jobs").
    """

    if isinstance(content_type, str):
        content_type = _PLURAL_CONTENT_TYPES.get(content_type, content_type)
    parsed = parse_content_type_filter(content_type)
    if parsed is None:
        raise PromotionValidationError("content_type must be a specific content type")

    active = [
        r for r in store.list_by_status(PromotionStatus.ACTIVE) if r.content_type == parsed
    ]
    active.sort(key=display_sort_key)
    return [r.content_id for r in active]


__all__ = ["promoted_content_ids", "select_for_display", "select_promotions"]
