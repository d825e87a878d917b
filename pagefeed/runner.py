"""
Run entry point shared by the command line and the HTTP service.
Wires a document source to the pipeline and handles the output artifact.
"""
from datetime import datetime
from typing import Optional

from pagefeed.adapters.browser import BrowserDocumentSource
from pagefeed.adapters.diagnostics import DiagnosticsWriter, write_feed
from pagefeed.adapters.document import DocumentSource
from pagefeed.adapters.static_fetcher import StaticDocumentSource
from pagefeed.config import config
from pagefeed.pipeline import FeedPipeline, RunOutcome
from pagefeed.utils.logger import get_logger

logger = get_logger("runner")


def build_source(render_mode: Optional[str] = None, url: Optional[str] = None) -> DocumentSource:
    """Pick the document source for a render mode (browser or static)."""
    mode = (render_mode or config.RENDER_MODE).lower()
    if mode == "static":
        return StaticDocumentSource.from_config(url)
    return BrowserDocumentSource.from_config(url)


async def run_once(
    pipeline: Optional[FeedPipeline] = None,
    source: Optional[DocumentSource] = None,
    output_path: Optional[str] = None,
    debug_dir: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> RunOutcome:
    """
    Execute one run: load, process, then write the feed or the diagnostics.

    Returns:
        RunOutcome of the run
    """
    pipeline = pipeline or FeedPipeline.from_config()
    source = source or build_source()
    output_path = output_path or config.OUTPUT_PATH

    outcome = await pipeline.run(source, timestamp=timestamp)

    if outcome.ok:
        path = write_feed(output_path, outcome.feed_xml)
        logger.info(
            "feed_written",
            path=str(path),
            size_kb=round(outcome.report.feed_bytes / 1024, 2),
            items=outcome.report.normalized_count
        )
    else:
        DiagnosticsWriter(debug_dir or config.DEBUG_DIR).capture(outcome)

    return outcome
