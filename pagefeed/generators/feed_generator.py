"""
Feed Generator for the page-to-feed generator.
Builds a complete RSS 2.0 or Atom 1.0 document from normalized items.
"""
import html
import mimetypes
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import List, Optional
from urllib.parse import urlparse

from lxml import etree

from pagefeed.errors import EmptyResultSet
from pagefeed.models.feed import ExtractedItem, FeedEntry, FeedFormat, FeedMetadata
from pagefeed.utils.logger import LayerLogger


CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
ATOM_NS = "http://www.w3.org/2005/Atom"
RSS_DOCS = "https://validator.w3.org/feed/docs/rss2.html"

IMAGE_STYLE = "max-width:100%; height:auto; margin-bottom:10px;"


def to_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def rfc822(moment: datetime) -> str:
    """RSS date format, e.g. Mon, 19 Oct 2026 08:00:00 GMT."""
    return format_datetime(to_utc(moment), usegmt=True)


def iso8601(moment: datetime) -> str:
    """Atom date format, e.g. 2026-10-19T08:00:00Z."""
    return to_utc(moment).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_content(description: str, image: Optional[str]) -> str:
    """
    Entry HTML: the description, with the image placed above it when present.
    """
    body = html.escape(description, quote=False)
    if not image:
        return body
    return f'<img src="{html.escape(image, quote=True)}" style="{IMAGE_STYLE}"><br><br>{body}'


def guess_image_type(url: str) -> str:
    """MIME type for an image enclosure, from the URL path."""
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    if guessed and guessed.startswith("image/"):
        return guessed
    if urlparse(url).path.lower().endswith(".webp"):
        return "image/webp"
    return "image/jpeg"


def _text(parent: etree._Element, tag: str, value: Optional[str], cdata: bool = False) -> Optional[etree._Element]:
    if value is None:
        return None
    element = etree.SubElement(parent, tag)
    # a literal "]]>" cannot live inside a CDATA section
    if cdata and "]]>" not in value:
        element.text = etree.CDATA(value)
    else:
        element.text = value
    return element


class FeedGenerator:
    """
    Deterministic feed document generator.

    Principles:
    - Output depends only on metadata, items, timestamp and format
    - Every entry shares the run timestamp
    - The whole document is built in memory and returned at once
    - An empty item sequence is an error, never an empty feed
    """

    def __init__(self):
        self.logger = LayerLogger("feed_generator")

    def build_entries(self, items: List[ExtractedItem], published: datetime) -> List[FeedEntry]:
        """Map normalized items to feed entries, preserving order."""
        entries = []
        for item in items:
            content = render_content(item.description or "", item.image or None)
            entries.append(FeedEntry(
                id=item.id or item.link,
                title=item.title,
                link=item.link,
                description=content,
                content=content,
                image=item.image or None,
                published=to_utc(published),
            ))
        return entries

    def generate(
        self,
        metadata: FeedMetadata,
        items: List[ExtractedItem],
        timestamp: datetime,
        feed_format: FeedFormat = FeedFormat.RSS2,
    ) -> str:
        """
        Generate a feed document.

        Args:
            metadata: Feed identity
            items: Normalized items in final order
            timestamp: Run invocation time, used for every entry
            feed_format: rss2 or atom

        Returns:
            The serialized XML document

        Raises:
            EmptyResultSet: when items is empty
        """
        if not items:
            self.logger.log_error("Refusing to synthesize an empty feed", error_type="empty_result_set")
            raise EmptyResultSet()

        feed_format = FeedFormat(feed_format)
        self.logger.log_action("generate_feed", "started", format=feed_format.value, items=len(items))

        entries = self.build_entries(items, timestamp)
        if feed_format == FeedFormat.ATOM:
            root = self._build_atom(metadata, entries, timestamp)
        else:
            root = self._build_rss(metadata, entries, timestamp)

        document = etree.tostring(
            root,
            xml_declaration=True,
            encoding="utf-8",
            pretty_print=True,
        ).decode("utf-8")

        self.logger.log_action(
            "generate_feed",
            "completed",
            format=feed_format.value,
            entries=len(entries),
            size_bytes=len(document.encode("utf-8"))
        )
        return document

    def _build_rss(self, metadata: FeedMetadata, entries: List[FeedEntry], timestamp: datetime) -> etree._Element:
        rss = etree.Element("rss", nsmap={"content": CONTENT_NS, "atom": ATOM_NS})
        rss.set("version", "2.0")
        channel = etree.SubElement(rss, "channel")

        _text(channel, "title", metadata.title)
        _text(channel, "link", metadata.link)
        _text(channel, "description", metadata.description)
        _text(channel, "lastBuildDate", rfc822(timestamp))
        _text(channel, "docs", RSS_DOCS)
        _text(channel, "generator", metadata.generator)
        _text(channel, "language", metadata.language)

        if metadata.image:
            image = etree.SubElement(channel, "image")
            _text(image, "title", metadata.title)
            _text(image, "url", metadata.image)
            _text(image, "link", metadata.link)

        _text(channel, "copyright", metadata.copyright)

        if metadata.feed_link:
            self_link = etree.SubElement(channel, f"{{{ATOM_NS}}}link")
            self_link.set("href", metadata.feed_link)
            self_link.set("rel", "self")
            self_link.set("type", "application/rss+xml")

        for entry in entries:
            item = etree.SubElement(channel, "item")
            _text(item, "title", entry.title, cdata=True)
            _text(item, "link", entry.link)
            guid = _text(item, "guid", entry.id)
            guid.set("isPermaLink", "false")
            _text(item, "pubDate", rfc822(entry.published))
            _text(item, "description", entry.description, cdata=True)
            _text(item, f"{{{CONTENT_NS}}}encoded", entry.content, cdata=True)
            if entry.image:
                enclosure = etree.SubElement(item, "enclosure")
                enclosure.set("url", entry.image)
                enclosure.set("length", "0")
                enclosure.set("type", guess_image_type(entry.image))

        return rss

    def _build_atom(self, metadata: FeedMetadata, entries: List[FeedEntry], timestamp: datetime) -> etree._Element:
        feed = etree.Element(f"{{{ATOM_NS}}}feed", nsmap={None: ATOM_NS})
        if metadata.language:
            feed.set("{http://www.w3.org/XML/1998/namespace}lang", metadata.language)

        def atom(parent, tag, value=None):
            element = etree.SubElement(parent, f"{{{ATOM_NS}}}{tag}")
            if value is not None:
                element.text = value
            return element

        atom(feed, "id", metadata.id)
        atom(feed, "title", metadata.title)
        atom(feed, "updated", iso8601(timestamp))
        atom(feed, "generator", metadata.generator)
        # Atom requires a feed-level author when entries carry none
        author = atom(feed, "author")
        atom(author, "name", metadata.author or metadata.copyright or metadata.title)
        alternate = atom(feed, "link")
        alternate.set("rel", "alternate")
        alternate.set("href", metadata.link)
        if metadata.feed_link:
            self_link = atom(feed, "link")
            self_link.set("rel", "self")
            self_link.set("href", metadata.feed_link)
        if metadata.description:
            atom(feed, "subtitle", metadata.description)
        if metadata.image:
            atom(feed, "logo", metadata.image)
        if metadata.favicon:
            atom(feed, "icon", metadata.favicon)
        if metadata.copyright:
            atom(feed, "rights", metadata.copyright)

        for entry in entries:
            node = atom(feed, "entry")
            atom(node, "title", entry.title).set("type", "text")
            atom(node, "id", entry.id)
            link = atom(node, "link")
            link.set("href", entry.link)
            atom(node, "updated", iso8601(entry.published))
            atom(node, "published", iso8601(entry.published))
            atom(node, "summary", entry.description).set("type", "html")
            atom(node, "content", entry.content).set("type", "html")

        return feed
