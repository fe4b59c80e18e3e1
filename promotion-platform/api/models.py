"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Amounts are integer minor units.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.display import DisplayedPromotion
from domain.package import PromotionPackage
from domain.promotion import PromotionRecord
from domain.stats import ExpiryStats
from services.expiry_sweeper import SweepSummary
from services.pricing_service import PromotionQuote


# ============================================================================
# Package Models
# ============================================================================

class VisualEnhancementModel(BaseModel):
    highlighted: bool
    border_style: str
    priority: int


class CustomDurationModel(BaseModel):
    price_per_day: int
    min_days: int
    max_days: int


class PackageResponse(BaseModel):
    """Single promotion package (tier)."""
    package_type: str
    name: str
    display_entitlements: List[str]
    default_duration_days: int
    boost_multiplier: float
    visual_enhancement: VisualEnhancementModel
    price: int
    custom_duration: Optional[CustomDurationModel] = None

    @classmethod
    def from_package(cls, package: PromotionPackage) -> "PackageResponse":
        custom = package.custom_duration
        return cls(
            package_type=package.package_type.value,
            name=package.name,
            display_entitlements=sorted(s.value for s in package.display_entitlements),
            default_duration_days=package.default_duration_days,
            boost_multiplier=package.boost_multiplier,
            visual_enhancement=VisualEnhancementModel(
                highlighted=package.visual_enhancement.highlighted,
                border_style=package.visual_enhancement.border_style,
                priority=package.visual_enhancement.priority,
            ),
            price=package.price,
            custom_duration=None
            if custom is None
            else CustomDurationModel(
                price_per_day=custom.price_per_day,
                min_days=custom.min_days,
                max_days=custom.max_days,
            ),
        )


class PackageListResponse(BaseModel):
    packages: List[PackageResponse]


# ============================================================================
# Quote Models
# ============================================================================

class QuoteRequest(BaseModel):
    """Request to price a package."""
    package_type: str = Field(..., description="spotlight, feature or launch")
    duration_days: Optional[int] = Field(
        None,
        description="Custom duration in days (Spotlight only); defaults to the package duration"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "package_type": "spotlight",
                "duration_days": 10
            }
        }


class QuoteResponse(BaseModel):
    package_type: str
    duration_days: int
    price: int
    currency: str
    is_custom_duration: bool
    created_at: datetime
    expires_at: datetime

    @classmethod
    def from_quote(cls, quote: PromotionQuote) -> "QuoteResponse":
        return cls(
            package_type=quote.package_type.value,
            duration_days=quote.duration_days,
            price=quote.price,
            currency=quote.currency,
            is_custom_duration=quote.is_custom_duration,
            created_at=quote.created_at,
            expires_at=quote.expires_at,
        )


# ============================================================================
# Promotion Models
# ============================================================================

class CreatePromotionRequest(BaseModel):
    """Request to create a promotion (starts in pending_payment)."""
    content_id: str = Field(..., description="ID of the promoted content")
    content_type: str = Field(..., description="opportunity, job, event or resource")
    package_type: str = Field(..., description="spotlight, feature or launch")
    investment: int = Field(..., description="Amount paid, in minor units")
    provider_id: Optional[str] = Field(None, description="Purchasing provider account")
    duration_override: Optional[int] = Field(None, description="Custom duration in days")
    priority_override: Optional[int] = Field(None, description="Manual curation priority")

    class Config:
        json_schema_extra = {
            "example": {
                "content_id": "65f1c2a9e4b0a1b2c3d4e5f6",
                "content_type": "opportunity",
                "package_type": "feature",
                "investment": 24990,
                "provider_id": "provider-42"
            }
        }


class PromotionResponse(BaseModel):
    promotion_id: UUID
    content_id: str
    content_type: str
    provider_id: Optional[str] = None
    package_type: str
    investment: int
    duration_days: int
    priority: int
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: PromotionRecord) -> "PromotionResponse":
        return cls(
            promotion_id=record.promotion_id,
            content_id=record.content_id,
            content_type=record.content_type.value,
            provider_id=record.provider_id,
            package_type=record.package_type.value,
            investment=record.investment,
            duration_days=record.duration_days,
            priority=record.priority,
            status=record.status.value,
            start_date=record.start_date,
            end_date=record.end_date,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class PromotionListResponse(BaseModel):
    promotions: List[PromotionResponse]
    total_count: int


# ============================================================================
# Display Models
# ============================================================================

class DisplayedPromotionResponse(BaseModel):
    promotion: PromotionResponse
    boost_multiplier: float
    visual_enhancement: VisualEnhancementModel

    @classmethod
    def from_displayed(cls, displayed: DisplayedPromotion) -> "DisplayedPromotionResponse":
        visual = displayed.visual_enhancement
        return cls(
            promotion=PromotionResponse.from_record(displayed.record),
            boost_multiplier=displayed.boost_multiplier,
            visual_enhancement=VisualEnhancementModel(
                highlighted=visual.highlighted,
                border_style=visual.border_style,
                priority=visual.priority,
            ),
        )


class DisplayListResponse(BaseModel):
    surface: str
    content_type: str
    promotions: List[DisplayedPromotionResponse]
    total_count: int


class PromotedContentResponse(BaseModel):
    content_type: str
    content_ids: List[str]
    total_count: int


# ============================================================================
# Admin Models
# ============================================================================

class SweepErrorModel(BaseModel):
    promotion_id: Optional[UUID] = None
    message: str


class SweepSummaryResponse(BaseModel):
    scanned: int
    transitioned: int
    errors: List[SweepErrorModel]
    trigger: str
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: SweepSummary) -> "SweepSummaryResponse":
        return cls(
            scanned=summary.scanned,
            transitioned=summary.transitioned,
            errors=[SweepErrorModel(promotion_id=e.promotion_id, message=e.message) for e in summary.errors],
            trigger=summary.trigger,
            started_at=summary.started_at,
            finished_at=summary.finished_at,
        )


class StatusBreakdownModel(BaseModel):
    status: str
    count: int
    total_investment: int


class ExpiryStatsResponse(BaseModel):
    status_breakdown: List[StatusBreakdownModel]
    active_count: int
    expiring_today: int
    expiring_this_week: int
    total_active_investment: int

    @classmethod
    def from_stats(cls, stats: ExpiryStats) -> "ExpiryStatsResponse":
        return cls(
            status_breakdown=[
                StatusBreakdownModel(
                    status=b.status.value,
                    count=b.count,
                    total_investment=b.total_investment,
                )
                for b in stats.status_breakdown
            ],
            active_count=stats.active_count,
            expiring_today=stats.expiring_today,
            expiring_this_week=stats.expiring_this_week,
            total_active_investment=stats.total_active_investment,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "status_breakdown": [
                    {"status": "active", "count": 2, "total_investment": 3000},
                    {"status": "completed", "count": 1, "total_investment": 500}
                ],
                "active_count": 2,
                "expiring_today": 0,
                "expiring_this_week": 1,
                "total_active_investment": 3000
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Conflict",
                "detail": "Content opportunity:65f1c2a9 already has an active promotion",
                "status_code": 409
            }
        }
