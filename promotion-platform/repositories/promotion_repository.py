"""
Promotion repository (persistence).

Supabase-backed PromotionStore. It does not decide lifecycle rules; it inserts,
fetches and conditionally updates promotion rows.

Exclusivity is enforced by the database: sql/001_promotions.sql defines a partial
unique index on (content_id, content_type) WHERE status = 'active'. A write that
would create a second active row fails with a unique violation (SQLSTATE 23505),
which is surfaced as ConflictingActivePromotion.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.errors import ConflictingActivePromotion
from domain.package import PackageType
from domain.promotion import ContentType, PromotionRecord, PromotionStatus
from domain.time import require_utc_timestamp

# Supabase table name for promotion records.
# Keep this aligned with sql/001_promotions.sql.
_PROMOTIONS_TABLE: str = "promotions"

_UNIQUE_VIOLATION = "23505"

# PostgREST caps each response (1000 rows by default); reads page until a page comes back empty.
_PAGE_SIZE = 1000


def _to_iso_utc(dt: Optional[datetime], *, name: str) -> Optional[str]:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    if dt is None:
        return None
    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _row_to_promotion(row: Mapping[str, Any]) -> PromotionRecord:
    """Convert a Supabase row into a PromotionRecord."""

    return PromotionRecord(
        promotion_id=UUID(str(row["promotion_id"])),
        content_id=str(row["content_id"]),
        content_type=ContentType(str(row["content_type"])),
        provider_id=row.get("provider_id"),
        package_type=PackageType(str(row["package_type"])),
        investment=int(row["investment"]),
        duration_days=int(row["duration_days"]),
        priority=int(row["priority"]),
        status=PromotionStatus(str(row["status"])),
        start_date=_parse_utc_datetime(row.get("start_date_utc")),
        end_date=_parse_utc_datetime(row.get("end_date_utc")),
        created_at=_parse_utc_datetime(row.get("created_at_utc")),
        updated_at=_parse_utc_datetime(row.get("updated_at_utc")),
    )


def _promotion_to_row(record: PromotionRecord) -> dict[str, Any]:
    return {
        "promotion_id": str(record.promotion_id),
        "content_id": record.content_id,
        "content_type": record.content_type.value,
        "provider_id": record.provider_id,
        "package_type": record.package_type.value,
        "investment": record.investment,
        "duration_days": record.duration_days,
        "priority": record.priority,
        "status": record.status.value,
        "start_date_utc": _to_iso_utc(record.start_date, name="start_date"),
        "end_date_utc": _to_iso_utc(record.end_date, name="end_date"),
        "created_at_utc": _to_iso_utc(record.created_at, name="created_at"),
        "updated_at_utc": _to_iso_utc(record.updated_at, name="updated_at"),
    }


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


class SupabasePromotionRepository:
    """PromotionStore over the `promotions` table."""

    def __init__(self, client: Any = None) -> None:
        if client is None:
            from repositories.client import get_supabase

            client = get_supabase()
        self._client = client

    def _table(self) -> Any:
        return self._client.table(_PROMOTIONS_TABLE)

    def _select(self, action: str, **filters: str) -> List[PromotionRecord]:
        all_rows: List[Mapping[str, Any]] = []
        offset = 0

        while True:
            query = self._table().select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            query = query.order("promotion_id").range(offset, offset + _PAGE_SIZE - 1)
            response = query.execute()
            _raise_on_error(response, action)

            page_rows = getattr(response, "data", None) or []
            if not page_rows:
                break

            all_rows.extend(page_rows)
            offset += len(page_rows)

        return [_row_to_promotion(row) for row in all_rows]

    def insert(self, record: PromotionRecord) -> PromotionRecord:
        """
        Insert a new promotion row.

        The active-content check here is a fast path for a clear error message; the
        partial unique index is what guarantees exclusivity for active rows.
        """

        active = self.find_active_for_content(record.content_id, record.content_type)
        if active is not None:
            raise ConflictingActivePromotion(
                record.content_id, record.content_type.value, active_promotion_id=active.promotion_id
            )

        response = self._execute_write(
            lambda: self._table().insert(_promotion_to_row(record)).execute(),
            record,
        )
        _raise_on_error(response, "insert promotion")
        return record

    def get(self, promotion_id: UUID) -> Optional[PromotionRecord]:
        response = (
            self._table()
            .select("*")
            .eq("promotion_id", str(promotion_id))
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get promotion")
        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_promotion(rows[0])

    def list_all(self) -> List[PromotionRecord]:
        return self._select("list promotions")

    def list_by_status(self, status: PromotionStatus) -> List[PromotionRecord]:
        return self._select("list promotions by status", status=status.value)

    def list_by_provider(self, provider_id: str) -> List[PromotionRecord]:
        return self._select("list promotions by provider", provider_id=provider_id)

    def find_active_for_content(
        self, content_id: str, content_type: ContentType
    ) -> Optional[PromotionRecord]:
        rows = self._select(
            "find active promotion",
            content_id=content_id,
            content_type=ContentType(content_type).value,
            status=PromotionStatus.ACTIVE.value,
        )
        return rows[0] if rows else None

    def save_transition(self, record: PromotionRecord, expected_status: PromotionStatus) -> bool:
        """
        Conditionally update status and dates.

        The `status = expected_status` filter makes this a compare-and-set: a row that
        another writer already moved is left alone and False is returned.
        """

        payload: dict[str, Any] = {
            "status": record.status.value,
            "start_date_utc": _to_iso_utc(record.start_date, name="start_date"),
            "end_date_utc": _to_iso_utc(record.end_date, name="end_date"),
            "updated_at_utc": _to_iso_utc(record.updated_at, name="updated_at"),
        }

        response = self._execute_write(
            lambda: (
                self._table()
                .update(payload)
                .eq("promotion_id", str(record.promotion_id))
                .eq("status", expected_status.value)
                .execute()
            ),
            record,
        )
        _raise_on_error(response, "update promotion status")
        rows = getattr(response, "data", None) or []
        return len(rows) > 0

    def _execute_write(self, write: Any, record: PromotionRecord) -> Any:
        from postgrest.exceptions import APIError

        try:
            return write()
        except APIError as e:
            if getattr(e, "code", None) == _UNIQUE_VIOLATION:
                raise ConflictingActivePromotion(
                    record.content_id, record.content_type.value
                ) from e
            raise


__all__ = ["SupabasePromotionRepository"]
