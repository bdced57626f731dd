"""
Headless browser transport - full page load with Playwright.

Used for broker pages that render positioning figures client-side.
Each fetcher owns its own browser; pages are opened in a fresh context
per fetch and always closed.
"""

import asyncio
import logging
import re
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ..base import BaseSentimentSource
from ..config import DEFAULT_USER_AGENT
from ..exceptions import FetchError


logger = logging.getLogger(__name__)


BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

CONSENT_BUTTON_NAME = re.compile(r"accept|agree|allow all", re.IGNORECASE)


class HeadlessSentimentSource(BaseSentimentSource):
    """Base for fetchers that need a rendered page."""

    DEFAULT_TIMEOUT = 45.0
    SELECTOR_TIMEOUT_MS = 20000
    CONSENT_TIMEOUT_MS = 2000

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        super().__init__(timeout)
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()

    async def _get_browser(self) -> Browser:
        """Launch the browser on first use."""
        async with self._launch_lock:
            if self._browser is None or not self._browser.is_connected():
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=True,
                    args=BROWSER_ARGS,
                )
            return self._browser

    async def _load_page(
        self,
        url: str,
        wait_selector: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Load url and return {"html": ..., "text": ...}.

        A missing wait_selector is not fatal: the page text is still
        returned so callers can fall back to text parsing.
        """
        timeout_ms = int(self.timeout * 1000)
        try:
            browser = await self._get_browser()
            context = await browser.new_context(
                user_agent=self.user_agent,
                viewport={"width": 1366, "height": 768},
                extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
            )
        except PlaywrightError as e:
            raise FetchError(
                f"Browser launch failed: {e}",
                source_name=self.name,
                url=url,
            ) from e

        try:
            page = await context.new_page()
            page.set_default_navigation_timeout(timeout_ms)
            page.set_default_timeout(timeout_ms)

            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            await self._dismiss_consent(page)

            if wait_selector:
                try:
                    await page.wait_for_selector(
                        wait_selector,
                        timeout=self.SELECTOR_TIMEOUT_MS,
                    )
                except PlaywrightTimeoutError:
                    logger.warning(
                        f"[{self.name}] Selector {wait_selector} not found, "
                        f"falling back to text parsing"
                    )

            return {
                "html": await page.content(),
                "text": await page.inner_text("body"),
            }
        except PlaywrightTimeoutError as e:
            raise FetchError(
                f"Page load timed out: {e}",
                source_name=self.name,
                url=url,
            ) from e
        except PlaywrightError as e:
            raise FetchError(
                f"Page load failed: {e}",
                source_name=self.name,
                url=url,
            ) from e
        finally:
            await context.close()

    async def _dismiss_consent(self, page: Any) -> None:
        """Click a cookie/consent button if one is showing."""
        button = page.get_by_role("button", name=CONSENT_BUTTON_NAME).first
        try:
            await button.click(timeout=self.CONSENT_TIMEOUT_MS)
        except PlaywrightError:
            logger.debug(f"[{self.name}] No consent button to dismiss")

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
