"""
Static Document Source for the page-to-feed generator.
Fetches server-rendered markup over plain HTTP when no browser is needed.
"""
from typing import Optional

import httpx

from pagefeed.adapters.document import DocumentSource, RenderedPage
from pagefeed.config import config
from pagefeed.errors import DocumentUnavailable
from pagefeed.utils.logger import LayerLogger


class StaticDocumentSource(DocumentSource):
    """HTTP fetch of a page whose articles are present without JavaScript."""

    def __init__(self, url: str, timeout: float = 30, user_agent: Optional[str] = None):
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent or config.USER_AGENT
        self.logger = LayerLogger("static_source")

    @classmethod
    def from_config(cls, url: Optional[str] = None) -> "StaticDocumentSource":
        return cls(
            url=url or config.TARGET_URL,
            timeout=config.NAVIGATION_TIMEOUT,
            user_agent=config.USER_AGENT,
        )

    async def load(self) -> RenderedPage:
        """
        Fetch the page markup.

        Raises:
            DocumentUnavailable: on any HTTP error
        """
        self.logger.log_action("fetch_html", "started", url=self.url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(self.url, headers=self._get_headers())
                response.raise_for_status()
                html = response.text
        except httpx.HTTPError as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="http_error",
                url=self.url
            )
            raise DocumentUnavailable(f"Failed to fetch {self.url}: {str(e)}", context={"url": self.url}) from e

        self.logger.log_action(
            "fetch_html",
            "completed",
            url=self.url,
            status_code=response.status_code,
            content_length=len(html)
        )
        return RenderedPage(url=str(response.url), html=html)

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
