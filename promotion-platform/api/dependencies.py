"""
Application wiring.

Builds the store, services, sweeper and scheduler once per process from Settings.
Routers receive them through `Depends(get_container)`; tests override that
dependency with a container built on the in-memory store.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Optional

from config import Settings, load_settings
from domain.package import DEFAULT_CATALOG, PackageCatalog
from domain.time import Clock, SystemClock
from repositories.content_repository import (
    ContentVisibilityWriter,
    InMemoryContentVisibility,
    SupabaseContentVisibility,
)
from repositories.promotion_store import InMemoryPromotionStore, PromotionStore
from services.expiry_scheduler import ExpiryScheduler
from services.expiry_sweeper import ExpirySweeper
from services.promotion_service import PromotionService


@dataclass
class PromotionContainer:
    settings: Settings
    store: PromotionStore
    visibility: ContentVisibilityWriter
    clock: Clock
    catalog: PackageCatalog
    service: PromotionService
    sweeper: ExpirySweeper
    scheduler: ExpiryScheduler


def build_container(
    settings: Settings,
    *,
    store: Optional[PromotionStore] = None,
    visibility: Optional[ContentVisibilityWriter] = None,
    clock: Optional[Clock] = None,
    catalog: PackageCatalog = DEFAULT_CATALOG,
) -> PromotionContainer:
    if store is None or visibility is None:
        if settings.store_backend == "memory":
            store = store or InMemoryPromotionStore()
            visibility = visibility or InMemoryContentVisibility()
        else:
            from repositories.promotion_repository import SupabasePromotionRepository

            store = store or SupabasePromotionRepository()
            visibility = visibility or SupabaseContentVisibility()

    clock = clock or SystemClock()
    service = PromotionService(store, catalog=catalog, clock=clock, visibility=visibility)
    sweeper = ExpirySweeper(
        store,
        clock=clock,
        visibility=visibility,
        record_timeout_seconds=settings.sweep_record_timeout_seconds,
        max_workers=settings.sweep_max_workers,
    )
    scheduler = ExpiryScheduler(sweeper, interval_minutes=settings.sweep_interval_minutes)
    return PromotionContainer(
        settings=settings,
        store=store,
        visibility=visibility,
        clock=clock,
        catalog=catalog,
        service=service,
        sweeper=sweeper,
        scheduler=scheduler,
    )


_container: Optional[PromotionContainer] = None
_container_lock = Lock()


def get_container() -> PromotionContainer:
    global _container
    with _container_lock:
        if _container is None:
            _container = build_container(load_settings())
        return _container


__all__ = ["PromotionContainer", "build_container", "get_container"]
