"""Browser session ownership and per-category crawl lifecycle."""

import logging
from typing import Any, List, Optional

from playwright.async_api import Browser, async_playwright

from catalog_crawler.config import settings
from catalog_crawler.crawl.auth import Authenticator
from catalog_crawler.crawl.debug_artifacts import DebugArtifactWriter
from catalog_crawler.crawl.extractor import PageExtractor
from catalog_crawler.crawl.profiles.base import SiteProfile
from catalog_crawler.crawl.types import Category, JobOptions, ScrapedRecord
from catalog_crawler.logging_config import get_logger

logger = logging.getLogger(__name__)


class BrowserSession:
    """Async context manager owning Playwright and one Chromium browser."""

    def __init__(self, headless: bool = True, slow_mo: int = 0, args: Optional[List[str]] = None):
        self.headless = headless
        self.slow_mo = slow_mo
        self.args = args or []
        self.browser: Optional[Browser] = None
        self._playwright = None

    async def __aenter__(self) -> Browser:
        """Launch the browser."""
        self._playwright = await async_playwright().start()
        try:
            self.browser = await self._playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
                args=self.args,
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info(f"Browser launched (headless={self.headless})")
        return self.browser

    async def __aexit__(self, *args):
        """Close the browser and stop Playwright."""
        try:
            if self.browser:
                await self.browser.close()
        finally:
            self.browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Browser closed")


class CrawlEngine:
    """
    Crawls one category of a site.

    Owns the page and context for the category; the browser is either
    supplied by the caller (full-site jobs) or launched and closed here.
    """

    def __init__(
        self,
        profile: SiteProfile,
        extractor: Optional[PageExtractor] = None,
        authenticator: Optional[Authenticator] = None,
    ):
        self.profile = profile
        self.artifacts = DebugArtifactWriter(profile.key)
        self.extractor = extractor or PageExtractor(profile, artifacts=self.artifacts)
        if authenticator is None and profile.login is not None:
            authenticator = Authenticator(profile.login, self.artifacts, site=profile.key)
        self.authenticator = authenticator
        self.log = get_logger(__name__, site=profile.key)

    def session(self, headless: bool) -> BrowserSession:
        return BrowserSession(headless=headless, slow_mo=settings.slow_mo_ms, args=self.profile.browser_args)

    async def crawl_category(
        self,
        category: Category,
        options: JobOptions,
        browser: Optional[Any] = None,
    ) -> List[ScrapedRecord]:
        """
        Crawl one category.

        Args:
            category: Category to crawl
            options: Job options (a per-category copy)
            browser: Shared browser; when omitted one is launched for this call

        Returns:
            Records extracted from every page of the category

        Raises:
            AuthError: If login was requested and failed
        """
        if browser is None:
            async with self.session(options.headless) as own_browser:
                return await self._crawl_with_browser(category, options, own_browser)
        return await self._crawl_with_browser(category, options, browser)

    async def _crawl_with_browser(self, category: Category, options: JobOptions, browser: Any) -> List[ScrapedRecord]:
        self.log.info(f"Starting to scrape {self.profile.display_name} category: {category.name} ({category.url})")

        context = await browser.new_context(viewport=self.profile.viewport, user_agent=settings.user_agent)
        try:
            page = await context.new_page()
            try:
                if options.use_credentials and self.authenticator is not None:
                    await self._login(page, options)

                records = await self.profile.make_navigator().crawl(
                    page, category, self.extractor, options.download_images
                )
                self.log.info(f"Finished scraping category {category.name}, found {len(records)} records")
                return records
            finally:
                await page.close()
        finally:
            await context.close()

    async def _login(self, page: Any, options: JobOptions) -> None:
        email, password = options.email, options.password
        if not (email and password):
            email, password = settings.credentials_for(self.profile.key)
        if not (email and password):
            self.log.warning("Credentials requested but none configured, skipping login")
            return
        self.log.info("Using credentials, attempting login...")
        await self.authenticator.login(page, email, password)
