"""FastAPI dependencies."""

from fastapi import Depends, HTTPException, status

from catalog_crawler.crawl.profiles import SiteProfile, UnknownSiteError, get_profile
from catalog_crawler.worker.orchestrator import JobOrchestrator
from catalog_crawler.worker.run_lock import RunLock, run_lock


def get_run_lock() -> RunLock:
    """Dependency for the process-wide run lock."""
    return run_lock


def get_site_profile(site: str) -> SiteProfile:
    """
    Dependency resolving the ``{site}`` path parameter to a profile.

    Raises:
        HTTPException: 404 if no profile is registered for the site
    """
    try:
        return get_profile(site)
    except UnknownSiteError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def get_orchestrator(
    profile: SiteProfile = Depends(get_site_profile),
    lock: RunLock = Depends(get_run_lock),
) -> JobOrchestrator:
    """Dependency for a job orchestrator bound to the requested site."""
    return JobOrchestrator(profile, lock)
