"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from catalog_crawler.config import settings
from catalog_crawler.api.routes import scrapers
from catalog_crawler.crawl.profiles import available_sites
from catalog_crawler.worker.run_lock import run_lock

# Configure structured logging
from catalog_crawler.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting Catalog Crawler for sites: {', '.join(available_sites())}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if run_lock.in_progress:
        logger.warning(f"Shutting down while '{run_lock.current_job}' is running")
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Catalog Crawler",
    description="Crawl wholesale catalog sites and reconcile products into storage",
    version="0.1.0",
    lifespan=lifespan,
)

# Add Prometheus instrumentation
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_respect_env_var=True,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/metrics", "/health"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

# Include API routes
app.include_router(scrapers.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    # Run with uvicorn
    uvicorn.run(
        "catalog_crawler.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
