"""
Promotion Display API Endpoints.

Public read endpoints for the hero banner, the featured section and spotlight
search results. A storage failure yields an empty list so the page still renders;
malformed input (bad limit, surface or content type) is a 400.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import PromotionContainer, get_container
from api.errors import to_http_exception
from api.models import DisplayedPromotionResponse, DisplayListResponse, PromotedContentResponse
from domain.errors import PromotionError
from domain.package import DisplaySurface
from services.display_service import promoted_content_ids, select_for_display

router = APIRouter()


def _display(container: PromotionContainer, surface: DisplaySurface, content_type: str, limit: int):
    try:
        displayed = select_for_display(
            container.store,
            surface,
            content_type,
            limit,
            catalog=container.catalog,
        )
    except PromotionError as e:
        raise to_http_exception(e)

    return DisplayListResponse(
        surface=surface.value,
        content_type=content_type,
        promotions=[DisplayedPromotionResponse.from_displayed(d) for d in displayed],
        total_count=len(displayed),
    )


@router.get(
    "/promotions/hero",
    response_model=DisplayListResponse,
    summary="Hero Promotions",
    description="Active Launch promotions for the homepage hero banner."
)
def hero_promotions(
    limit: int = Query(10, description="Maximum number of promotions to return"),
    container: PromotionContainer = Depends(get_container),
):
    return _display(container, DisplaySurface.HERO, "all", limit)


@router.get(
    "/promotions/featured",
    response_model=DisplayListResponse,
    summary="Featured Promotions",
    description="Active Feature and Launch promotions for the homepage featured section."
)
def featured_promotions(
    limit: int = Query(10, description="Maximum number of promotions to return"),
    content_type: str = Query("all", alias="contentType", description="'all' or opportunity, job, event, resource"),
    container: PromotionContainer = Depends(get_container),
):
    return _display(container, DisplaySurface.FEATURED, content_type, limit)


@router.get(
    "/promotions/spotlight-enhanced",
    response_model=DisplayListResponse,
    summary="Spotlight Search Promotions",
    description="Active promotions of every tier, for spotlight-enhanced search results."
)
def spotlight_promotions(
    limit: int = Query(10, description="Maximum number of promotions to return"),
    content_type: str = Query("all", alias="contentType", description="'all' or opportunity, job, event, resource"),
    container: PromotionContainer = Depends(get_container),
):
    return _display(container, DisplaySurface.SPOTLIGHT_SEARCH, content_type, limit)


@router.get(
    "/promoted/{content_type}",
    response_model=PromotedContentResponse,
    summary="Promoted Content IDs",
    description="IDs of content of one type (singular or plural, e.g. job or jobs) that currently carry an active promotion."
)
def promoted_content(content_type: str, container: PromotionContainer = Depends(get_container)):
    try:
        content_ids = promoted_content_ids(container.store, content_type)
    except PromotionError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list promoted content: {str(e)}"
        )

    return PromotedContentResponse(
        content_type=content_type,
        content_ids=content_ids,
        total_count=len(content_ids),
    )
