"""Crawl job API endpoints."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog_crawler.api.deps import get_orchestrator, get_run_lock, get_site_profile
from catalog_crawler.crawl.profiles import SiteProfile, UnknownCategoryError
from catalog_crawler.crawl.types import JobOptions
from catalog_crawler.worker.orchestrator import JobOrchestrator, ScrapeResult
from catalog_crawler.worker.run_lock import JobConflictError, RunLock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scrapers", tags=["scrapers"])


# Request/response models
class ScrapeRequest(BaseModel):
    """Request model for triggering a crawl job."""
    email: Optional[str] = None
    password: Optional[str] = None
    use_credentials: bool = False
    headless: bool = True
    download_images: bool = False
    persist_to_store: bool = False
    output_file: str = "products.json"

    def to_options(self) -> JobOptions:
        return JobOptions(**self.model_dump())


class CategoryResponse(BaseModel):
    """Response model for one category."""
    name: str
    url: str


class CategoriesResponse(BaseModel):
    """Response model for a site's categories."""
    status: str = "success"
    site: str
    categories: List[CategoryResponse]
    total_categories: int


class LockStatusResponse(BaseModel):
    """Response model for run lock status."""
    in_progress: bool
    current_job: Optional[str]
    started_at: Optional[str]


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message, **extra})


def _log_request(action: str, site: str, request: ScrapeRequest) -> None:
    options = request.to_options()
    logger.info(f"{action} for {site} received: {json.dumps(options.masked())}")


@router.post("/{site}/scrape-all-categories", response_model=ScrapeResult)
async def scrape_all_categories(
    site: str,
    request: ScrapeRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Crawl every category of a site."""
    _log_request("Scrape all categories", site, request)
    try:
        return await orchestrator.run_all(request.to_options())
    except JobConflictError as e:
        return _error(409, str(e))
    except Exception as e:
        logger.error(f"Error during scrape all request for {site}: {e}")
        return _error(500, "An error occurred during scraping", error=str(e))


@router.post("/{site}/scrape-category/{category_name}", response_model=ScrapeResult)
async def scrape_category(
    site: str,
    category_name: str,
    request: ScrapeRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Crawl one category of a site."""
    _log_request(f"Scrape category '{category_name}'", site, request)
    try:
        return await orchestrator.run_category(category_name, request.to_options())
    except UnknownCategoryError as e:
        return _error(400, str(e), available_categories=e.available)
    except JobConflictError as e:
        return _error(409, str(e))
    except Exception as e:
        logger.error(f"Error during scrape category request for {category_name}: {e}")
        return _error(500, "An error occurred during scraping", error=str(e))


@router.get("/{site}/categories", response_model=CategoriesResponse)
async def list_categories(profile: SiteProfile = Depends(get_site_profile)):
    """List the categories configured for a site."""
    categories = [CategoryResponse(name=c.name, url=c.url) for c in profile.categories]
    return CategoriesResponse(site=profile.key, categories=categories, total_categories=len(categories))


@router.get("/{site}/config")
async def get_config(profile: SiteProfile = Depends(get_site_profile)) -> Dict[str, Any]:
    """Return the site's base URL, category count and selectors."""
    return {
        "status": "success",
        **profile.describe(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status", response_model=LockStatusResponse)
async def get_status(lock: RunLock = Depends(get_run_lock)):
    """Return whether a job is running and which one."""
    return LockStatusResponse(**lock.info())
