"""Screenshot and raw-HTML writer for crawl diagnostics."""

import logging
from pathlib import Path
from typing import Any, Optional

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)


class DebugArtifactWriter:
    """
    Writes page screenshots and HTML dumps under ``<base>/<site>/``.

    Artifact writes never fail a crawl; errors are logged and swallowed.
    """

    def __init__(self, site: str, base_path: Optional[str] = None, screenshots: Optional[bool] = None):
        """
        Initialize debug artifact writer.

        Args:
            site: Site key, used as the sub-folder name
            base_path: Base path for artifacts (defaults to config)
            screenshots: Whether page screenshots are captured (defaults to config)
        """
        self.site = site
        self.base_path = Path(base_path or settings.debug_dir)
        self.screenshots = settings.capture_screenshots if screenshots is None else screenshots

    @property
    def site_dir(self) -> Path:
        return self.base_path / self.site

    def path_for(self, filename: str) -> Path:
        return self.site_dir / filename

    async def screenshot(self, page: Any, filename: str, full_page: bool = True) -> Optional[Path]:
        """
        Capture a screenshot of the page.

        Args:
            page: Playwright page
            filename: File name inside the site folder
            full_page: Capture the whole scrollable page

        Returns:
            Path written, or None on failure
        """
        path = self.path_for(filename)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=full_page)
            logger.debug(f"Saved screenshot to {path}")
            return path
        except Exception as e:
            logger.warning(f"Failed to save screenshot {path}: {e}")
            return None

    async def page_screenshot(self, page: Any, category: str, suffix: str = "") -> Optional[Path]:
        """Capture the per-category listing screenshot when enabled."""
        if not self.screenshots:
            return None
        return await self.screenshot(page, f"{self.site}-{category}-page{suffix}.png")

    async def dump_html(self, page: Any, category: str) -> Optional[Path]:
        """Write ``page.content()`` to ``<site>-<category>-debug.html``."""
        path = self.path_for(f"{self.site}-{category}-debug.html")
        try:
            html = await page.content()
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(html)
            logger.info(f"Saved debug HTML to {path}")
            return path
        except Exception as e:
            logger.warning(f"Failed to save debug HTML {path}: {e}")
            return None
