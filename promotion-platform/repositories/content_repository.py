"""
Content visibility repository (persistence).

Content rows (opportunities, jobs, events, resources) are owned elsewhere. The
promotion engine writes exactly one thing on them: the promotion-derived
`is_promoted` flag, set when a promotion activates and cleared when it completes.
"""

from __future__ import annotations

from threading import Lock
from typing import Any, Dict, Protocol, Tuple

from domain.promotion import ContentType

_CONTENT_TABLES: Dict[ContentType, str] = {
    ContentType.OPPORTUNITY: "opportunities",
    ContentType.JOB: "jobs",
    ContentType.EVENT: "events",
    ContentType.RESOURCE: "resources",
}


class ContentVisibilityWriter(Protocol):
    def set_promoted(self, content_id: str, content_type: ContentType, promoted: bool) -> None:
        ...


class SupabaseContentVisibility:
    """Writes `is_promoted` on the content type's table."""

    def __init__(self, client: Any = None) -> None:
        if client is None:
            from repositories.client import get_supabase

            client = get_supabase()
        self._client = client

    def set_promoted(self, content_id: str, content_type: ContentType, promoted: bool) -> None:
        table = _CONTENT_TABLES[ContentType(content_type)]
        response = (
            self._client.table(table)
            .update({"is_promoted": promoted})
            .eq("id", content_id)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to update is_promoted on {table}: {error}")


class InMemoryContentVisibility:
    def __init__(self) -> None:
        self._lock: Lock = Lock()
        self._flags: Dict[Tuple[str, ContentType], bool] = {}

    def set_promoted(self, content_id: str, content_type: ContentType, promoted: bool) -> None:
        with self._lock:
            self._flags[(content_id, ContentType(content_type))] = promoted

    def is_promoted(self, content_id: str, content_type: ContentType) -> bool:
        with self._lock:
            return self._flags.get((content_id, ContentType(content_type)), False)


__all__ = [
    "ContentVisibilityWriter",
    "InMemoryContentVisibility",
    "SupabaseContentVisibility",
]
