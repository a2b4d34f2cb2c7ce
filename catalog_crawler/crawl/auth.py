"""Form login with ordered submit strategies."""

import asyncio
from typing import Any, Optional

from catalog_crawler.config import settings
from catalog_crawler.crawl.debug_artifacts import DebugArtifactWriter
from catalog_crawler.crawl.profiles.base import LoginConfig
from catalog_crawler.logging_config import get_logger


class AuthError(Exception):
    """Every submit strategy ran and the page is still the login page."""
    def __init__(self, url: str, reason: str = "still on login page"):
        self.url = url
        self.reason = reason
        super().__init__(f"Login failed at {url}: {reason}")


class Authenticator:
    """
    Logs a page into a site.

    Submit strategies, in order: click the known login button, submit the
    first form via script, click the first visible generic submit control,
    press Enter in the password field. After each attempt, whether it
    succeeded or raised, the URL is checked; leaving the login pattern
    ends the login.
    """

    def __init__(
        self,
        login_config: LoginConfig,
        artifacts: Optional[DebugArtifactWriter] = None,
        site: Optional[str] = None,
    ):
        self.config = login_config
        self.artifacts = artifacts
        self.log = get_logger(__name__, site=site)

    async def login(self, page: Any, email: str, password: str) -> None:
        """
        Log in with the given credentials.

        Raises:
            AuthError: If the page is still on the login URL after every strategy
        """
        config = self.config
        try:
            self.log.info(f"Navigating to {config.url}")
            await page.goto(config.url, timeout=settings.navigation_timeout_ms)
            await page.wait_for_load_state("networkidle", timeout=settings.load_idle_timeout_ms)

            await page.wait_for_selector(config.email_selector, timeout=settings.login_field_timeout_ms)
            self.log.info(f"Filling email: {email[:3]}...")
            await page.fill(config.email_selector, email)
            await page.fill(config.password_selector, password)

            if self.artifacts:
                await self.artifacts.screenshot(page, "login-form.png")

            strategies = (
                ("known button", self._click_known_button),
                ("form submit", self._submit_form),
                ("generic submit selectors", self._click_generic_submit),
                ("enter in password field", self._press_enter),
            )
            for number, (label, strategy) in enumerate(strategies, start=1):
                self.log.info(f"Login strategy {number}: {label}")
                try:
                    await strategy(page)
                except Exception as e:
                    # Navigation away can destroy the context mid-strategy
                    self.log.warning(f"Login strategy {number} failed: {e}")

                if await self._left_login_page(page):
                    self.log.info(f"Login successful, URL changed to: {page.url}")
                    return

            if config.url_pattern in page.url:
                raise AuthError(page.url)
            self.log.info(f"Login successful, URL changed to: {page.url}")

        except Exception as e:
            self.log.error(f"Login error: {e}")
            if self.artifacts:
                await self.artifacts.screenshot(page, "login-error.png")
            raise

    async def _left_login_page(self, page: Any) -> bool:
        await asyncio.sleep(settings.login_settle_ms / 1000)
        return self.config.url_pattern not in page.url

    async def _click_known_button(self, page: Any) -> bool:
        if not self.config.button_locator:
            return False
        button = page.locator(self.config.button_locator)
        if not await button.is_visible():
            self.log.info("Login button not visible")
            return False
        await button.click(force=True, timeout=settings.login_click_timeout_ms)
        return True

    async def _submit_form(self, page: Any) -> bool:
        submitted = await page.evaluate(self.config.form_submit_script)
        if not submitted:
            self.log.info("No form found to submit")
        return bool(submitted)

    async def _click_generic_submit(self, page: Any) -> bool:
        for selector in self.config.submit_selectors:
            try:
                button = page.locator(selector).first
                if await button.is_visible():
                    self.log.info(f"Clicking submit control: {selector}")
                    await button.click(force=True, timeout=settings.login_click_timeout_ms)
                    return True
            except Exception as e:
                self.log.warning(f"Selector {selector} failed: {e}")
        return False

    async def _press_enter(self, page: Any) -> bool:
        await page.focus(self.config.password_selector)
        await page.keyboard.press("Enter")
        return True
