"""
Content Promotion Platform API - Main Application.

FastAPI application with CORS enabled for frontend communication. The hourly
promotion expiry sweep starts and stops with the application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.dependencies import PromotionContainer, get_container
from config import load_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = get_container()
    if settings.scheduler_enabled:
        container.scheduler.start()
    else:
        logger.info("Promotion expiry scheduler disabled by configuration")
    try:
        yield
    finally:
        container.scheduler.stop()


# Create FastAPI application
app = FastAPI(
    title="Content Promotion Platform API",
    description="REST API for purchasing, displaying and expiring content promotions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the marketplace front-end domains in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for demo
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)


@app.get("/health", tags=["Health"])
def health_check(container: PromotionContainer = Depends(get_container)):
    """
    Health check endpoint.

    Returns the API status, version and expiry scheduler state.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "content-promotion-platform-api",
        "expiry_scheduler": container.scheduler.health(),
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Content Promotion Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
# display before promotions: /promotions/hero must match ahead of /promotions/{promotion_id}
from api.routers import admin, display, promotions

app.include_router(display.router, prefix="/api/v1", tags=["Display"])
app.include_router(promotions.router, prefix="/api/v1", tags=["Promotions"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
