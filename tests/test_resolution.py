import pytest

from pagefeed.adapters.document import Document
from pagefeed.errors import NoCandidatesFound
from pagefeed.layers.resolution import SelectorResolutionLayer

from conftest import BASE_URL


class RecordingDocument:
    """Wraps a Document and records every selector queried."""

    def __init__(self, document):
        self.document = document
        self.queried = []

    def select(self, selector):
        self.queried.append(selector)
        return self.document.select(selector)


HTML = """
<html><body>
  <div class="news-card"><h2><a href="/1">One</a></h2></div>
  <div class="news-card"><h2><a href="/2">Two</a></h2></div>
  <article><h2><a href="/3">Three</a></h2></article>
</body></html>
"""


def test_first_matching_selector_wins():
    layer = SelectorResolutionLayer()
    doc = RecordingDocument(Document(HTML, BASE_URL))
    selectors = ["div.article", "section.post", "div[class*='card']", "article"]

    result = layer.resolve(doc, selectors)

    assert result.selector == "div[class*='card']"
    assert [n.text() for n in result.nodes] == ["One", "Two"]
    assert result.selectors_tried == ["div.article", "section.post", "div[class*='card']"]


def test_later_selectors_are_never_queried():
    layer = SelectorResolutionLayer()
    doc = RecordingDocument(Document(HTML, BASE_URL))

    layer.resolve(doc, ["article", "div[class*='card']"])

    assert doc.queried == ["article"]


def test_no_match_raises_with_selectors_tried():
    layer = SelectorResolutionLayer()
    doc = Document("<html><body><p>empty</p></body></html>", BASE_URL)

    with pytest.raises(NoCandidatesFound) as exc_info:
        layer.resolve(doc, ["div.article", "article"])

    assert exc_info.value.selectors == ["div.article", "article"]
    assert exc_info.value.context["selectors_tried"] == ["div.article", "article"]


def test_invalid_selector_counts_as_no_match():
    layer = SelectorResolutionLayer()
    doc = Document(HTML, BASE_URL)

    result = layer.resolve(doc, ["div[[broken", "article"])

    assert result.selector == "article"
    assert len(result.nodes) == 1
