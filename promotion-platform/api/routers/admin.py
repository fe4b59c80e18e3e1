"""
Admin Promotion Expiry Endpoints.

Promotion listing, manual expiry sweep and monitoring stats for the admin dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import PromotionContainer, get_container
from api.errors import to_http_exception
from api.models import (
    ErrorResponse,
    ExpiryStatsResponse,
    PromotionListResponse,
    PromotionResponse,
    SweepSummaryResponse,
)
from domain.errors import PromotionError
from services.stats_service import expiry_stats

router = APIRouter()


@router.post(
    "/admin/promotions/expiry/check",
    response_model=SweepSummaryResponse,
    summary="Check & Expire Now",
    description="Run the expiry sweep immediately and return its summary.",
    responses={409: {"model": ErrorResponse}},
)
def run_expiry_check(
    wait: bool = Query(
        True,
        description="Wait for a sweep that is already running, instead of returning 409"
    ),
    container: PromotionContainer = Depends(get_container),
):
    """
    Run a manual expiry sweep.

    Uses the same code path as the hourly scheduled sweep. Only one sweep runs at a
    time; with `wait=false` a request made during a running sweep gets 409.

    Per-record failures do not fail the request. They are listed in `errors` and
    those promotions are retried on the next sweep.
    """
    try:
        summary = container.sweeper.run_now(wait=wait, trigger="manual")
    except PromotionError as e:
        raise to_http_exception(e)
    return SweepSummaryResponse.from_summary(summary)


@router.get(
    "/admin/promotions/expiry/stats",
    response_model=ExpiryStatsResponse,
    summary="Promotion Expiry Stats",
    description="Counts and investment by status, plus active promotions expiring today and this week."
)
def get_expiry_stats(container: PromotionContainer = Depends(get_container)):
    try:
        stats = expiry_stats(container.store, container.clock.now())
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute promotion stats: {str(e)}"
        )
    return ExpiryStatsResponse.from_stats(stats)


@router.get(
    "/admin/promotions",
    response_model=PromotionListResponse,
    summary="List Promotions",
    description="All promotions, newest first, optionally filtered by status and package type.",
    responses={400: {"model": ErrorResponse}},
)
def list_promotions(
    status: Optional[str] = Query(None, description="pending_payment, active, completed or cancelled"),
    package_type: Optional[str] = Query(None, alias="packageType", description="spotlight, feature or launch"),
    container: PromotionContainer = Depends(get_container),
):
    try:
        records = container.service.list_promotions(status=status, package_type=package_type)
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list promotions: {str(e)}"
        )
    return PromotionListResponse(
        promotions=[PromotionResponse.from_record(r) for r in records],
        total_count=len(records),
    )
