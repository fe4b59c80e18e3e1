"""
Pytest configuration and shared fixtures.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services and api packages.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

import pytest

# Add the promotion-platform directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.package import PackageType  # noqa: E402
from domain.promotion import (  # noqa: E402
    DATED_STATUSES,
    ContentType,
    PromotionRecord,
    PromotionStatus,
    compute_end_date,
)
from domain.time import FixedClock  # noqa: E402
from repositories.content_repository import InMemoryContentVisibility  # noqa: E402
from repositories.promotion_store import InMemoryPromotionStore  # noqa: E402
from services.promotion_service import PromotionService  # noqa: E402

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryPromotionStore:
    return InMemoryPromotionStore()


@pytest.fixture
def visibility() -> InMemoryContentVisibility:
    return InMemoryContentVisibility()


@pytest.fixture
def service(store, clock, visibility) -> PromotionService:
    return PromotionService(store, clock=clock, visibility=visibility)


@pytest.fixture
def make_record():
    """Build a valid PromotionRecord; dated statuses get start/end dates."""

    def _make(
        *,
        status: PromotionStatus = PromotionStatus.ACTIVE,
        start_date: Optional[datetime] = NOW,
        duration_days: int = 7,
        priority: int = 1,
        package_type: PackageType = PackageType.SPOTLIGHT,
        content_id: Optional[str] = None,
        content_type: ContentType = ContentType.JOB,
        investment: int = 1000,
        provider_id: Optional[str] = None,
        promotion_id: Optional[UUID] = None,
    ) -> PromotionRecord:
        dated = status in DATED_STATUSES
        start = start_date if dated else None
        return PromotionRecord(
            promotion_id=promotion_id or uuid4(),
            content_id=content_id or f"content-{uuid4().hex[:8]}",
            content_type=content_type,
            provider_id=provider_id,
            package_type=package_type,
            investment=investment,
            duration_days=duration_days,
            priority=priority,
            status=status,
            start_date=start,
            end_date=compute_end_date(start, duration_days) if start is not None else None,
            created_at=NOW,
            updated_at=NOW,
        )

    return _make
