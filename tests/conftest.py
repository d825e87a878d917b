from datetime import datetime, timezone

import pytest

from pagefeed.adapters.document import Document, DocumentSource, RenderedPage
from pagefeed.models.feed import FeedMetadata
from pagefeed.pipeline import FeedPipeline

BASE_URL = "https://example.com/app/for-you"

FIXED_TIME = datetime(2026, 10, 19, 8, 30, 0, tzinfo=timezone.utc)

SCENARIO_HTML = """
<html><body>
  <div class="article" data-article-id="a-1">
    <h2><a href="https://x/a">A</a></h2>
    <section><p>First article</p></section>
  </div>
  <div class="article">
    <h2><a href="https://x/b">B</a></h2>
    <img src="https://x/b.png">
  </div>
  <div class="article">
    <section><p>Body without a heading</p></section>
  </div>
</body></html>
"""


def article(title, href, body=None, image=None, article_id=None, css_class="article"):
    """Render one article card the way the target page does."""
    id_attr = f' data-article-id="{article_id}"' if article_id else ""
    parts = [f'<div class="{css_class}"{id_attr}>']
    if title is not None:
        parts.append(f'<h2><a href="{href}">{title}</a></h2>')
    if body is not None:
        parts.append(f"<section><p>{body}</p></section>")
    if image is not None:
        parts.append(f'<img src="{image}">')
    parts.append("</div>")
    return "".join(parts)


def page(*cards):
    return "<html><body>" + "".join(cards) + "</body></html>"


class StaticPageSource(DocumentSource):
    """Document source that returns fixed markup."""

    def __init__(self, html, url=BASE_URL, screenshot=None):
        self.html = html
        self.url = url
        self.screenshot = screenshot
        self.calls = 0

    async def load(self):
        self.calls += 1
        return RenderedPage(url=self.url, html=self.html, screenshot=self.screenshot)


@pytest.fixture
def metadata():
    return FeedMetadata(
        title="Test Feed",
        description="Articles from the test page",
        id=BASE_URL,
        link=BASE_URL,
        language="en",
        generator="pagefeed tests",
        image="https://example.com/logo.png",
        favicon="https://example.com/favicon.ico",
        copyright="Example",
        feed_link="https://example.github.io/feed.xml",
    )


@pytest.fixture
def selectors():
    return [
        "div.article",
        "article",
        "[data-article-id]",
        "div[class*='article']",
        "div[class*='card']",
    ]


@pytest.fixture
def pipeline(metadata, selectors):
    return FeedPipeline(metadata=metadata, selectors=selectors, item_limit=50)


@pytest.fixture
def scenario_document():
    return Document(SCENARIO_HTML, BASE_URL)
