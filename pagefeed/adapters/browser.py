"""
Browser Document Source for the page-to-feed generator.
Renders the target page in headless Chromium and hands back the settled markup.
"""
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from pagefeed.adapters.document import DocumentSource, RenderedPage
from pagefeed.config import config
from pagefeed.errors import DocumentUnavailable
from pagefeed.utils.logger import LayerLogger


BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class BrowserDocumentSource(DocumentSource):
    """
    Headless Chromium page renderer.

    Navigation waits for network idle, then for any node of the selector
    cascade, then a fixed settle delay. Not finding a cascade node is
    tolerated here; the resolution layer reports it.
    """

    def __init__(
        self,
        url: str,
        wait_selectors: Optional[List[str]] = None,
        navigation_timeout: float = 30,
        selector_timeout: float = 15,
        settle_delay: float = 2.0,
        user_agent: Optional[str] = None,
        headless: bool = True,
        capture_screenshot: bool = True,
    ):
        self.url = url
        self.wait_selectors = list(wait_selectors or [])
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.settle_delay = settle_delay
        self.user_agent = user_agent
        self.headless = headless
        self.capture_screenshot = capture_screenshot
        self.logger = LayerLogger("browser_source")

    @classmethod
    def from_config(cls, url: Optional[str] = None) -> "BrowserDocumentSource":
        return cls(
            url=url or config.TARGET_URL,
            wait_selectors=config.ARTICLE_SELECTORS,
            navigation_timeout=config.NAVIGATION_TIMEOUT,
            selector_timeout=config.SELECTOR_TIMEOUT,
            settle_delay=config.SETTLE_DELAY,
            user_agent=config.USER_AGENT,
            headless=config.HEADLESS,
            capture_screenshot=config.CAPTURE_SCREENSHOT,
        )

    async def load(self) -> RenderedPage:
        """
        Render the page and return its settled markup.

        Raises:
            DocumentUnavailable: on launch or navigation failure
        """
        self.logger.log_action("render_page", "started", url=self.url, headless=self.headless)

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
                try:
                    context = await browser.new_context(user_agent=self.user_agent)
                    page = await context.new_page()

                    await page.goto(
                        self.url,
                        wait_until="networkidle",
                        timeout=self.navigation_timeout * 1000,
                    )
                    await self._wait_for_candidates(page)
                    await page.wait_for_timeout(self.settle_delay * 1000)

                    html = await page.content()
                    screenshot = None
                    if self.capture_screenshot:
                        screenshot = await self._take_screenshot(page)
                    final_url = page.url
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as e:
            self.logger.log_error(f"Navigation timed out: {str(e)}", error_type="timeout", url=self.url)
            raise DocumentUnavailable(f"Navigation timed out: {self.url}", context={"url": self.url}) from e
        except PlaywrightError as e:
            self.logger.log_error(f"Browser failure: {str(e)}", error_type="browser_error", url=self.url)
            raise DocumentUnavailable(f"Browser failure: {str(e)}", context={"url": self.url}) from e

        self.logger.log_action(
            "render_page",
            "completed",
            url=final_url,
            content_length=len(html),
            screenshot=screenshot is not None
        )
        return RenderedPage(url=final_url, html=html, screenshot=screenshot)

    async def _wait_for_candidates(self, page):
        """Wait until any cascade selector is attached, tolerating a timeout."""
        if not self.wait_selectors:
            return
        combined = ", ".join(self.wait_selectors)
        try:
            await page.wait_for_selector(combined, state="attached", timeout=self.selector_timeout * 1000)
        except PlaywrightTimeoutError:
            self.logger.log_fallback(
                from_source="wait_for_selector",
                to_source="settle_delay",
                reason="no cascade selector attached before timeout",
                url=self.url
            )

    async def _take_screenshot(self, page) -> Optional[bytes]:
        try:
            return await page.screenshot(full_page=True)
        except PlaywrightError as e:
            self.logger.log_error(f"Screenshot failed: {str(e)}", error_type="screenshot_error")
            return None
