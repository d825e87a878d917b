"""
Configuration management for the page-to-feed generator.
Handles environment variables and application settings.
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


DEFAULT_ARTICLE_SELECTORS = [
    "div.article",
    "article",
    "[data-article-id]",
    "div[class*='article']",
    "div[class*='card']",
]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _split_list(value: Optional[str], default: List[str]) -> List[str]:
    """Parse a comma separated env value, keeping order."""
    if not value:
        return list(default)
    items = [part.strip() for part in value.split(",")]
    return [item for item in items if item] or list(default)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = _as_bool(os.getenv("DEBUG", "false"))

    # Target page
    TARGET_URL: str = os.getenv("TARGET_URL", "https://web.swipeinsight.app/app/for-you")
    RENDER_MODE: str = os.getenv("RENDER_MODE", "browser")  # browser or static

    # Extraction
    ARTICLE_SELECTORS: List[str] = _split_list(os.getenv("ARTICLE_SELECTORS"), DEFAULT_ARTICLE_SELECTORS)
    ITEM_ID_ATTRIBUTE: str = os.getenv("ITEM_ID_ATTRIBUTE", "data-article-id")
    ITEM_LIMIT: int = int(os.getenv("ITEM_LIMIT", "50"))
    DEFAULT_DESCRIPTION: str = os.getenv("DEFAULT_DESCRIPTION", "No description")
    DEDUPLICATE: bool = _as_bool(os.getenv("DEDUPLICATE", "false"))

    # Output
    FEED_FORMAT: str = os.getenv("FEED_FORMAT", "rss2")  # rss2 or atom
    OUTPUT_PATH: str = os.getenv("OUTPUT_PATH", "feed.xml")
    DEBUG_DIR: str = os.getenv("DEBUG_DIR", "debug")
    CAPTURE_SCREENSHOT: bool = _as_bool(os.getenv("CAPTURE_SCREENSHOT", "true"))

    # Browser / request settings (seconds)
    NAVIGATION_TIMEOUT: float = float(os.getenv("NAVIGATION_TIMEOUT", "30"))
    SELECTOR_TIMEOUT: float = float(os.getenv("SELECTOR_TIMEOUT", "15"))
    SETTLE_DELAY: float = float(os.getenv("SETTLE_DELAY", "2.0"))
    USER_AGENT: str = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    HEADLESS: bool = _as_bool(os.getenv("HEADLESS", "true"))

    # Feed identity
    FEED_TITLE: str = os.getenv("FEED_TITLE", "SwipeInsight - For You Daily Picks")
    FEED_DESCRIPTION: str = os.getenv("FEED_DESCRIPTION", "SwipeInsight recommended content, auto-generated feed")
    FEED_LINK: str = os.getenv("FEED_LINK", "https://web.swipeinsight.app/app/for-you")
    FEED_LANGUAGE: str = os.getenv("FEED_LANGUAGE", "zh-CN")
    FEED_IMAGE: Optional[str] = os.getenv(
        "FEED_IMAGE", "https://web.swipeinsight.app/images/swipe-insight-og-image.webp"
    )
    FEED_FAVICON: Optional[str] = os.getenv("FEED_FAVICON", "https://web.swipeinsight.app/favicon.ico")
    FEED_COPYRIGHT: Optional[str] = os.getenv("FEED_COPYRIGHT", "SwipeInsight")
    FEED_AUTHOR: Optional[str] = os.getenv("FEED_AUTHOR")  # falls back to copyright, then title
    FEED_GENERATOR: str = os.getenv("FEED_GENERATOR", "pagefeed Playwright RSS Generator")
    FEED_SELF_LINK: Optional[str] = os.getenv("FEED_SELF_LINK")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    @classmethod
    def is_browser_mode(cls) -> bool:
        """Check whether pages should be rendered in a headless browser."""
        return cls.RENDER_MODE.lower() != "static"

    @classmethod
    def get_invalid_settings(cls) -> list:
        """Return list of settings whose values cannot be used."""
        invalid = []
        if cls.ITEM_LIMIT <= 0:
            invalid.append("ITEM_LIMIT")
        if cls.FEED_FORMAT not in ("rss2", "atom"):
            invalid.append("FEED_FORMAT")
        if cls.RENDER_MODE.lower() not in ("browser", "static"):
            invalid.append("RENDER_MODE")
        if not cls.ARTICLE_SELECTORS:
            invalid.append("ARTICLE_SELECTORS")
        return invalid


config = Config()
