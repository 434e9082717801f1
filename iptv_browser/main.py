"""
IPTV Browser - FastAPI Backend

Browse iptv-org playlists by category, language, country and region.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from iptv_browser.config import get_settings
from iptv_browser.models.metadata import Dimension
from iptv_browser.ratelimit import limiter
from iptv_browser.routers import browse, channels, relay
from iptv_browser.services.catalog import get_catalog

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting IPTV Browser...")

    # Load reference datasets once
    catalog = get_catalog()
    counts = {
        dimension.value: len(catalog.entries(dimension))
        for dimension in Dimension if dimension is not Dimension.ALL
    }
    logger.info(f"Reference catalog loaded: {counts}")

    yield

    logger.info("Shutting down IPTV Browser...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Browse and play iptv-org channels",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(channels.router)
app.include_router(browse.router)
app.include_router(relay.router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "iptv_browser.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
