"""Category traversal policies: numbered pages, offset pages and load-more."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Set
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from catalog_crawler.config import settings
from catalog_crawler.crawl.types import Category, ScrapedRecord
from catalog_crawler.logging_config import get_logger

if TYPE_CHECKING:
    from catalog_crawler.crawl.extractor import PageExtractor


def with_query_param(url: str, name: str, value: Any) -> str:
    """Return the URL with ``name`` set (added or replaced) in its query string."""
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    query.append((name, str(value)))
    return urlunparse(parts._replace(query=urlencode(query)))


class Navigator:
    """Base traversal policy."""

    def __init__(self, site: Optional[str] = None):
        self.log = get_logger(__name__, site=site)

    async def crawl(
        self,
        page: Any,
        category: Category,
        extractor: "PageExtractor",
        download_images: bool,
    ) -> List[ScrapedRecord]:
        raise NotImplementedError

    async def open(self, page: Any, url: str) -> None:
        """Navigate and wait for the network to settle."""
        self.log.info(f"Navigating to {url}")
        await page.goto(url, timeout=settings.navigation_timeout_ms)
        try:
            await page.wait_for_load_state("networkidle", timeout=settings.load_idle_timeout_ms)
        except PlaywrightTimeoutError:
            self.log.warning(f"Network did not go idle on {url}, continuing")


class NumberedPagesNavigator(Navigator):
    """Walks ``?page=N`` until a page yields nothing or the cap is hit."""

    def __init__(self, max_pages: int = 30, site: Optional[str] = None):
        super().__init__(site)
        self.max_pages = max_pages

    @staticmethod
    def page_url(url: str, number: int) -> str:
        if number <= 1:
            return url
        return with_query_param(url, "page", number)

    async def crawl(self, page, category, extractor, download_images):
        records: List[ScrapedRecord] = []

        for number in range(1, self.max_pages + 1):
            url = self.page_url(category.url, number)
            try:
                await self.open(page, url)
            except Exception as e:
                if number == 1:
                    raise
                self.log.warning(f"Failed to open page {number} of {category.name}: {e}")
                break

            await extractor.artifacts.page_screenshot(
                page, category.name, "" if number == 1 else f"-{number}"
            )

            page_records = await extractor.extract(page, category, download_images)
            self.log.info(f"Page {number} of {category.name}: {len(page_records)} records")
            if not page_records:
                break
            records.extend(page_records)
        else:
            self.log.info(f"Reached page cap ({self.max_pages}) for {category.name}")

        return records


class OffsetPagesNavigator(Navigator):
    """
    Walks ``?offset=N`` pages while a "next page" affordance is present.

    A missing grid ends traversal. Navigation errors after the first page
    end traversal and keep what was already collected.
    """

    def __init__(
        self,
        page_size: int = 60,
        max_pages: int = 50,
        grid_selector: Optional[str] = None,
        next_selector: Optional[str] = None,
        site: Optional[str] = None,
    ):
        super().__init__(site)
        self.page_size = page_size
        self.max_pages = max_pages
        self.grid_selector = grid_selector
        self.next_selector = next_selector

    @staticmethod
    def offset_url(url: str, offset: int) -> str:
        if offset <= 0:
            return url
        return with_query_param(url, "offset", offset)

    async def crawl(self, page, category, extractor, download_images):
        records: List[ScrapedRecord] = []
        offset = 0

        for number in range(1, self.max_pages + 1):
            url = self.offset_url(category.url, offset)
            try:
                await self.open(page, url)
            except Exception as e:
                if number == 1:
                    raise
                self.log.error(f"Error loading {category.name} at offset {offset}: {e}")
                break

            if self.grid_selector:
                try:
                    await page.wait_for_selector(self.grid_selector, timeout=settings.offset_grid_timeout_ms)
                except PlaywrightTimeoutError:
                    self.log.warning(f"Product grid not found for {category.name} at offset {offset}")
                    break

            await extractor.artifacts.page_screenshot(
                page, category.name, "" if offset == 0 else f"-offset-{offset}"
            )

            page_records = await extractor.extract(page, category, download_images)
            records.extend(page_records)
            self.log.info(f"Offset {offset} of {category.name}: {len(page_records)} records")

            if not self.next_selector or not await page.query_selector(self.next_selector):
                self.log.info(f"No next page for {category.name}, finished pagination")
                break
            offset += self.page_size
        else:
            self.log.info(f"Reached page cap ({self.max_pages}) for {category.name}")

        return records


class LoadMoreNavigator(Navigator):
    """
    Clicks a "load more" / "next" control until it stops producing records.

    After each click every item on the page is handed to the extractor with
    the same ``seen_names`` set, so both appended and replaced item lists
    work. Traversal stops when a click yields no new records, when the
    control is gone or at ``max_clicks``.
    """

    def __init__(
        self,
        button_selector: str,
        item_selector: str,
        max_clicks: int = 20,
        site: Optional[str] = None,
    ):
        super().__init__(site)
        self.button_selector = button_selector
        self.item_selector = item_selector
        self.max_clicks = max_clicks

    async def crawl(self, page, category, extractor, download_images):
        await self.open(page, category.url)
        await extractor.artifacts.page_screenshot(page, category.name)

        elements = await extractor.locate_items(page, category)
        if not elements:
            return []

        seen_names: Set[str] = set()
        records = await extractor.extract(
            page, category, download_images, elements=elements, seen_names=seen_names
        )
        self.log.info(f"Extracted {len(records)} records from {category.name} before load more")

        clicks = 0
        try:
            button = await page.query_selector(self.button_selector)
            while button and clicks < self.max_clicks:
                clicks += 1
                self.log.info(f"Clicking load more for {category.name} (attempt {clicks})")
                await button.click()
                await page.wait_for_load_state("networkidle", timeout=settings.load_idle_timeout_ms)
                await page.wait_for_selector(self.item_selector, timeout=settings.selector_timeout_ms)

                items = await page.query_selector_all(self.item_selector)
                new_records = await extractor.extract(
                    page, category, download_images, elements=items, seen_names=seen_names
                )
                if not new_records:
                    self.log.info(f"No new records after load more on {category.name}")
                    break

                records.extend(new_records)
                self.log.info(f"Loaded {len(new_records)} additional records")

                button = await page.query_selector(self.button_selector)
        except Exception as e:
            self.log.warning(f"Load more failed for {category.name}: {e}")

        return records
