"""Listing page extraction with selector fallbacks and detail-page enrichment."""

from typing import Any, Dict, List, Optional, Set
from urllib.parse import urljoin

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from catalog_crawler.config import settings
from catalog_crawler.crawl.debug_artifacts import DebugArtifactWriter
from catalog_crawler.crawl.images import ImageDownload, ImageFetcher, content_hash
from catalog_crawler.crawl.profiles.base import FieldRule, SiteProfile
from catalog_crawler.crawl.selectors import resolve, resolve_element
from catalog_crawler.crawl.types import Category, ScrapedRecord
from catalog_crawler.logging_config import get_logger

PLACEHOLDER_NAME = "Unknown Product"


class PageExtractor:
    """
    Turns one listing page into records for a site profile.

    Item lookup walks the profile's locators in order, then its XPath
    fallback; when everything misses the page HTML is dumped for debugging.
    Each item is extracted independently so one bad card never loses the page.
    """

    def __init__(
        self,
        profile: SiteProfile,
        image_fetcher: Optional[ImageFetcher] = None,
        artifacts: Optional[DebugArtifactWriter] = None,
    ):
        self.profile = profile
        self.image_fetcher = image_fetcher or ImageFetcher()
        self.artifacts = artifacts or DebugArtifactWriter(profile.key)
        self.log = get_logger(__name__, site=profile.key)

    async def extract(
        self,
        page: Any,
        category: Category,
        download_images: bool,
        elements: Optional[List[Any]] = None,
        seen_names: Optional[Set[str]] = None,
    ) -> List[ScrapedRecord]:
        """
        Extract records from the current page.

        Args:
            page: Playwright page showing a listing
            category: Category being crawled
            download_images: Whether to fetch product images
            elements: Pre-located item elements (skips item lookup)
            seen_names: Names already emitted for this page; updated in place

        Returns:
            Records in DOM order
        """
        if self.profile.grid_selector:
            try:
                await page.wait_for_selector(self.profile.grid_selector, timeout=settings.grid_timeout_ms)
            except PlaywrightTimeoutError:
                self.log.warning(f"Product grid not found for {category.name}, continuing with extraction")

        if elements is None:
            elements = await self.locate_items(page, category)
        if not elements:
            return []

        if seen_names is None:
            seen_names = set()

        self.log.info(f"Processing {len(elements)} product elements for {category.name}")
        records = []
        for i, element in enumerate(elements):
            try:
                record = await self._extract_item(page, element, category, download_images, seen_names)
                if record is not None:
                    records.append(record)
            except Exception as e:
                self.log.error(f"Error processing product {i + 1} in {category.name}: {e}")

        self.log.info(f"Extracted {len(records)} valid records from {len(elements)} elements")
        return records

    async def locate_items(self, page: Any, category: Category) -> List[Any]:
        """
        Find product item elements on the page.

        Returns:
            Item elements, or an empty list after dumping the page HTML
        """
        for locator in self.profile.item_locators:
            try:
                if locator.container:
                    await page.wait_for_selector(locator.container, timeout=settings.selector_timeout_ms)
                for item_selector in locator.items:
                    elements = await page.query_selector_all(item_selector)
                    if elements:
                        self.log.info(f"Found {len(elements)} products using selector: {item_selector}")
                        return elements
            except Exception as e:
                self.log.warning(f"Selector {locator.container} failed: {e}")

        if self.profile.xpath_fallback:
            self.log.info("Trying XPath selector as last resort...")
            try:
                elements = await page.query_selector_all(f"xpath={self.profile.xpath_fallback}")
                if elements:
                    self.log.info(f"Found {len(elements)} products using XPath")
                    return elements
            except Exception as e:
                self.log.warning(f"XPath selector failed: {e}")

        self.log.warning(f"No product elements found for {category.name}, saving page content for debugging")
        await self.artifacts.dump_html(page, category.name)
        return []

    async def _extract_item(
        self,
        page: Any,
        element: Any,
        category: Category,
        download_images: bool,
        seen_names: Set[str],
    ) -> Optional[ScrapedRecord]:
        profile = self.profile

        name_element, name = await resolve_element(
            element, profile.name_rule.candidates, profile.name_rule.attribute
        )
        if not name or name == PLACEHOLDER_NAME:
            self.log.debug("Skipping product: no valid name found")
            return None
        if name in seen_names:
            self.log.debug(f"Skipping duplicate product: {name}")
            return None
        seen_names.add(name)

        fields: Dict[str, Optional[str]] = {"name": name}

        if profile.url_rule is None:
            href = await name_element.get_attribute("href") if name_element else None
        else:
            href = await self._resolve_rule(element, profile.url_rule)
        fields["url"] = self._absolute(href)

        for field_name, rule in profile.listing_rules.items():
            fields[field_name] = await self._resolve_rule(element, rule)

        image_url = None
        if profile.image_rule is not None:
            image_url = self._absolute(await self._resolve_rule(element, profile.image_rule))
        fields["image_url"] = image_url

        image: Optional[ImageDownload] = None
        if download_images and image_url:
            image = await self.image_fetcher.download(image_url, content_hash(name), profile.image_folder)

        if profile.detail_page is not None and fields["url"]:
            fields.update(await self.enrich_from_detail(page, fields["url"]))

        return profile.build_record(category, fields, image)

    async def _resolve_rule(self, scope: Any, rule: FieldRule) -> Optional[str]:
        return await resolve(scope, rule.candidates, rule.attribute, rule.transform)

    def _absolute(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        try:
            return urljoin(self.profile.base_url, url)
        except ValueError as e:
            self.log.warning(f"Ignoring malformed URL {url!r}: {e}")
            return None

    async def enrich_from_detail(self, page: Any, url: str) -> Dict[str, Optional[str]]:
        """
        Resolve detail-page fields for a product.

        A navigation timeout is retried once in a fresh page, then by
        reloading up to ``detail_page_max_reloads`` times. When the page
        never loads, or any other error occurs, the fields come back empty
        and the listing data is kept.
        """
        detail = None
        try:
            detail = await page.context.new_page()
            loaded = await self._load_detail(detail, url)

            if not loaded:
                self.log.warning(f"Timeout loading {url}, retrying in a fresh page")
                await detail.close()
                detail = await page.context.new_page()
                loaded = await self._load_detail(detail, url)

            attempt = 0
            while not loaded and attempt < settings.detail_page_max_reloads:
                attempt += 1
                self.log.warning(f"Reloading {url} (attempt {attempt}/{settings.detail_page_max_reloads})")
                loaded = await self._load_detail(detail, url, reload=True)

            if not loaded:
                self.log.error(f"Giving up on product page {url}, keeping listing data")
                return {}

            detail_fields = {}
            for field_name, rule in self.profile.detail_page.fields.items():
                detail_fields[field_name] = await self._resolve_rule(detail, rule)
            return detail_fields

        except Exception as e:
            self.log.error(f"Error visiting product page {url}: {e}")
            return {}
        finally:
            if detail is not None:
                try:
                    await detail.close()
                except Exception as e:
                    self.log.debug(f"Error closing product page {url}: {e}")

    async def _load_detail(self, detail: Any, url: str, reload: bool = False) -> bool:
        """Load the detail page; False on timeout."""
        try:
            if reload:
                await detail.reload(timeout=settings.detail_page_timeout_ms)
            else:
                await detail.goto(url, timeout=settings.detail_page_timeout_ms)
            await detail.wait_for_load_state("networkidle", timeout=settings.detail_idle_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False
