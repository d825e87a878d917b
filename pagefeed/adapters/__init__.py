"""Adapters package initialization."""
from pagefeed.adapters.document import Document, DocumentNode, DocumentSource, RenderedPage
from pagefeed.adapters.browser import BrowserDocumentSource
from pagefeed.adapters.static_fetcher import StaticDocumentSource
from pagefeed.adapters.diagnostics import DiagnosticsWriter, write_feed

__all__ = [
    "Document",
    "DocumentNode",
    "DocumentSource",
    "RenderedPage",
    "BrowserDocumentSource",
    "StaticDocumentSource",
    "DiagnosticsWriter",
    "write_feed",
]
