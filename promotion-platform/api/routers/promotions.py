"""
Promotions API Endpoints.

Endpoints for package discovery, quotes, promotion purchases and the payment
events that move a promotion through its lifecycle.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import PromotionContainer, get_container
from api.errors import to_http_exception
from api.models import (
    CreatePromotionRequest,
    ErrorResponse,
    PackageListResponse,
    PackageResponse,
    PromotionListResponse,
    PromotionResponse,
    QuoteRequest,
    QuoteResponse,
)
from domain.errors import PromotionError
from services.pricing_service import calculate_promotion_quote

router = APIRouter()


@router.get(
    "/promotions/packages",
    response_model=PackageListResponse,
    summary="List Promotion Packages",
    description="List the Spotlight, Feature and Launch packages with their display entitlements and prices."
)
def list_packages(container: PromotionContainer = Depends(get_container)):
    return PackageListResponse(
        packages=[PackageResponse.from_package(p) for p in container.catalog.packages()]
    )


@router.post(
    "/promotions/quote",
    response_model=QuoteResponse,
    summary="Quote a Package",
    description="Price a package for its default duration or a custom Spotlight duration. Quote is valid for 15 minutes."
)
def quote_package(request: QuoteRequest, container: PromotionContainer = Depends(get_container)):
    """
    Calculate the price of a package.

    **Example request:**
    ```json
    {"package_type": "spotlight", "duration_days": 10}
    ```
    """
    try:
        quote = calculate_promotion_quote(
            request.package_type,
            container.clock.now(),
            duration_days=request.duration_days,
            catalog=container.catalog,
        )
        return QuoteResponse.from_quote(quote)
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to calculate quote: {str(e)}"
        )


@router.post(
    "/promotions",
    response_model=PromotionResponse,
    status_code=201,
    summary="Create Promotion",
    description="Create a promotion for a content item. It stays in pending_payment until payment is verified.",
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_promotion(request: CreatePromotionRequest, container: PromotionContainer = Depends(get_container)):
    """
    Create a promotion purchase.

    **Rules:**
    - `investment` must be positive (minor units)
    - only one promotion per content item can be active; creating one for content
      that is currently promoted returns 409
    """
    try:
        record = container.service.create_promotion(
            content_id=request.content_id,
            content_type=request.content_type,
            package_type=request.package_type,
            investment=request.investment,
            provider_id=request.provider_id,
            duration_override=request.duration_override,
            priority_override=request.priority_override,
        )
        return PromotionResponse.from_record(record)
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create promotion: {str(e)}"
        )


@router.get(
    "/promotions/{promotion_id}",
    response_model=PromotionResponse,
    summary="Get Promotion",
)
def get_promotion(promotion_id: UUID, container: PromotionContainer = Depends(get_container)):
    try:
        return PromotionResponse.from_record(container.service.get_promotion(promotion_id))
    except PromotionError as e:
        raise to_http_exception(e)


@router.get(
    "/providers/{provider_id}/promotions",
    response_model=PromotionListResponse,
    summary="List Provider Promotions",
    description="All promotions purchased by a provider, newest first."
)
def list_provider_promotions(provider_id: str, container: PromotionContainer = Depends(get_container)):
    try:
        records = container.service.list_provider_promotions(provider_id)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list promotions: {str(e)}"
        )
    return PromotionListResponse(
        promotions=[PromotionResponse.from_record(r) for r in records],
        total_count=len(records),
    )


@router.post(
    "/promotions/{promotion_id}/payment-verified",
    response_model=PromotionResponse,
    summary="Payment Verified",
    description="Activate a pending promotion. Start and end dates are set once, here.",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def payment_verified(promotion_id: UUID, container: PromotionContainer = Depends(get_container)):
    try:
        return PromotionResponse.from_record(container.service.confirm_payment(promotion_id))
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to activate promotion: {str(e)}"
        )


@router.post(
    "/promotions/{promotion_id}/payment-failed",
    response_model=PromotionResponse,
    summary="Payment Failed",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def payment_failed(promotion_id: UUID, container: PromotionContainer = Depends(get_container)):
    try:
        return PromotionResponse.from_record(container.service.fail_payment(promotion_id))
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to record payment failure: {str(e)}"
        )


@router.post(
    "/promotions/{promotion_id}/cancel",
    response_model=PromotionResponse,
    summary="Cancel Promotion",
    description="Cancel a promotion that has not been paid yet.",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def cancel_promotion(promotion_id: UUID, container: PromotionContainer = Depends(get_container)):
    try:
        return PromotionResponse.from_record(container.service.cancel_promotion(promotion_id))
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to cancel promotion: {str(e)}"
        )
