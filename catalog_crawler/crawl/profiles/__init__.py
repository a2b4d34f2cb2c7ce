"""Site profile registry."""

from __future__ import annotations

from catalog_crawler.crawl.profiles.base import (
    DetailPageConfig,
    FieldRule,
    ItemLocator,
    LoginConfig,
    SiteProfile,
    UnknownCategoryError,
)
from catalog_crawler.crawl.profiles.adams import AdamsProfile
from catalog_crawler.crawl.profiles.cater_choice import CaterChoiceProfile
from catalog_crawler.crawl.profiles.metro import MetroProfile


class UnknownSiteError(Exception):
    """No profile is registered under the requested site key."""
    def __init__(self, site: str):
        self.site = site
        super().__init__(f"Unknown site '{site}'. Available: {', '.join(sorted(_PROFILES))}")


_PROFILES = {
    "caterchoice": CaterChoiceProfile(),
    "adams": AdamsProfile(),
    "metro": MetroProfile(),
}


def get_profile(site: str) -> SiteProfile:
    """Return the profile registered for a site key."""
    profile = _PROFILES.get((site or "").lower())
    if profile is None:
        raise UnknownSiteError(site)
    return profile


def available_sites() -> list[str]:
    return list(_PROFILES)


__all__ = [
    "DetailPageConfig",
    "FieldRule",
    "ItemLocator",
    "LoginConfig",
    "SiteProfile",
    "UnknownCategoryError",
    "UnknownSiteError",
    "available_sites",
    "get_profile",
]
