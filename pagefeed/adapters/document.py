"""
Queryable document adapter for the page-to-feed generator.
Wraps rendered markup in a read-only node tree that the pipeline layers
query with CSS selectors.
"""
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag


@dataclass
class RenderedPage:
    """Markup of a page after it has loaded and settled."""
    url: str
    html: str
    screenshot: Optional[bytes] = None


class DocumentSource:
    """
    Supplies a rendered page to the pipeline.

    Implementations raise DocumentUnavailable when no settled document
    can be produced.
    """

    async def load(self) -> RenderedPage:
        raise NotImplementedError


class DocumentNode:
    """
    Handle to one element of a parsed document.

    Handles are borrowed from their Document and must not outlive the run.
    """

    def __init__(self, tag: Tag, base_url: str):
        self._tag = tag
        self._base_url = base_url

    @property
    def name(self) -> str:
        return self._tag.name

    def select(self, selector: str) -> List["DocumentNode"]:
        """Return all descendants matching a CSS selector, in document order."""
        return [DocumentNode(t, self._base_url) for t in self._tag.select(selector)]

    def select_one(self, selector: str) -> Optional["DocumentNode"]:
        """Return the first descendant matching a CSS selector."""
        found = self._tag.select_one(selector)
        return DocumentNode(found, self._base_url) if found is not None else None

    def text(self) -> str:
        """Visible text of the element with whitespace collapsed."""
        return " ".join(self._tag.get_text(separator=" ").split())

    def attr(self, name: str) -> Optional[str]:
        """Return a named attribute as a string, or None when absent."""
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            # multi-valued attributes such as class
            return " ".join(value)
        return str(value)

    def resolved_href(self) -> Optional[str]:
        """Absolute href of this element, or None for missing or in-page links."""
        return self._resolve(self.attr("href"))

    def resolved_src(self) -> Optional[str]:
        """Absolute image source, honoring lazy-load data-src."""
        return self._resolve(self.attr("src")) or self._resolve(self.attr("data-src"))

    def markup(self) -> str:
        return str(self._tag)

    def _resolve(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        value = value.strip()
        if not value or value.startswith("#") or value.lower().startswith(("javascript:", "data:")):
            return None
        resolved = urljoin(self._base_url, value)
        parsed = urlparse(resolved)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        return resolved


class Document:
    """Parsed, read-only view over a rendered page."""

    def __init__(self, html: str, base_url: str):
        self.html = html
        self.soup = BeautifulSoup(html, "lxml")
        self.base_url = self._find_base_url(base_url)
        self.root = DocumentNode(self.soup, self.base_url)

    @classmethod
    def from_page(cls, page: RenderedPage) -> "Document":
        return cls(page.html, page.url)

    def select(self, selector: str) -> List[DocumentNode]:
        return self.root.select(selector)

    def markup(self) -> str:
        return self.html

    def _find_base_url(self, fallback_url: str) -> str:
        """Honor a <base href> element the way the browser resolves links."""
        base = self.soup.find("base", href=True)
        if base and base.get("href"):
            return urljoin(fallback_url, base["href"].strip())
        return fallback_url
