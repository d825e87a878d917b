"""
Feed Pipeline for the page-to-feed generator.
Drives one run through loading, resolution, extraction, normalization and
synthesis, and reports a single success or failure outcome.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from pagefeed.adapters.document import Document, DocumentSource
from pagefeed.config import config
from pagefeed.errors import DocumentUnavailable, EmptyResultSet, FeedRunError
from pagefeed.generators.feed_generator import FeedGenerator
from pagefeed.layers.extraction import ItemExtractionLayer
from pagefeed.layers.normalization import NormalizationLayer
from pagefeed.layers.resolution import SelectorResolutionLayer
from pagefeed.models.feed import FeedFormat, FeedMetadata, RunReport, RunState
from pagefeed.utils.logger import LayerLogger


ALLOWED_TRANSITIONS: Dict[RunState, Set[RunState]] = {
    RunState.LOADING: {RunState.RESOLVING, RunState.ABORTED},
    RunState.RESOLVING: {RunState.EXTRACTING, RunState.ABORTED},
    RunState.EXTRACTING: {RunState.NORMALIZING, RunState.ABORTED},
    RunState.NORMALIZING: {RunState.SYNTHESIZING, RunState.ABORTED},
    RunState.SYNTHESIZING: {RunState.DONE, RunState.ABORTED},
    RunState.DONE: set(),
    RunState.ABORTED: set(),
}


@dataclass
class RunOutcome:
    """Result of one run. ok is True exactly when feed_xml is set."""
    ok: bool
    report: RunReport
    feed_xml: Optional[str] = None
    error: Optional[FeedRunError] = None
    markup: Optional[str] = None
    screenshot: Optional[bytes] = None


def metadata_from_config() -> FeedMetadata:
    """Build feed identity from configuration."""
    return FeedMetadata(
        title=config.FEED_TITLE,
        description=config.FEED_DESCRIPTION,
        id=config.FEED_LINK,
        link=config.FEED_LINK,
        language=config.FEED_LANGUAGE or None,
        generator=config.FEED_GENERATOR,
        image=config.FEED_IMAGE or None,
        favicon=config.FEED_FAVICON or None,
        copyright=config.FEED_COPYRIGHT or None,
        author=config.FEED_AUTHOR or config.FEED_COPYRIGHT or config.FEED_TITLE,
        feed_link=config.FEED_SELF_LINK or None,
    )


class FeedPipeline:
    """
    Feed Pipeline - single-pass run orchestration.

    Two-tier failure policy:
    - per item: a broken node is logged and skipped
    - per run: no candidates or no surviving items aborts with no feed
    """

    def __init__(
        self,
        metadata: FeedMetadata,
        selectors: List[str],
        item_limit: int = 50,
        id_attribute: str = "data-article-id",
        default_description: str = "No description",
        deduplicate: bool = False,
        feed_format: FeedFormat = FeedFormat.RSS2,
    ):
        self.metadata = metadata
        self.selectors = list(selectors)
        self.feed_format = FeedFormat(feed_format)
        self.logger = LayerLogger("pipeline")
        self.resolution_layer = SelectorResolutionLayer()
        self.extraction_layer = ItemExtractionLayer(
            item_limit=item_limit,
            id_attribute=id_attribute,
            default_description=default_description,
        )
        self.normalization_layer = NormalizationLayer(
            default_description=default_description,
            deduplicate=deduplicate,
        )
        self.feed_generator = FeedGenerator()

    @classmethod
    def from_config(cls, **overrides) -> "FeedPipeline":
        """Create a pipeline from configuration, with keyword overrides."""
        settings = dict(
            metadata=metadata_from_config(),
            selectors=config.ARTICLE_SELECTORS,
            item_limit=config.ITEM_LIMIT,
            id_attribute=config.ITEM_ID_ATTRIBUTE,
            default_description=config.DEFAULT_DESCRIPTION,
            deduplicate=config.DEDUPLICATE,
            feed_format=config.FEED_FORMAT,
        )
        settings.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**settings)

    async def run(self, source: DocumentSource, timestamp: Optional[datetime] = None) -> RunOutcome:
        """
        Load a document from the source and process it.

        Args:
            source: Rendered document source
            timestamp: Run time for every entry (defaults to now, UTC)

        Returns:
            RunOutcome; never raises for run-level failures
        """
        timestamp = timestamp or datetime.now(timezone.utc)
        report = RunReport(started_at=timestamp)
        self.logger.log_action("feed_run", "started", state=report.state.value)

        try:
            page = await source.load()
        except DocumentUnavailable as e:
            self._transition(report, RunState.ABORTED)
            return self._fail(report, e)

        report.target_url = page.url
        outcome = self.process(Document.from_page(page), timestamp=timestamp, report=report)
        outcome.screenshot = page.screenshot
        return outcome

    def process(
        self,
        document: Document,
        timestamp: Optional[datetime] = None,
        report: Optional[RunReport] = None,
    ) -> RunOutcome:
        """
        Run resolution, extraction, normalization and synthesis on a
        loaded document.
        """
        timestamp = timestamp or datetime.now(timezone.utc)
        if report is None:
            report = RunReport(started_at=timestamp)

        try:
            self._transition(report, RunState.RESOLVING)
            resolution = self.resolution_layer.resolve(document, self.selectors)
            report.matched_selector = resolution.selector
            report.selectors_tried = resolution.selectors_tried
            report.candidate_count = len(resolution.nodes)

            self._transition(report, RunState.EXTRACTING)
            extraction = self.extraction_layer.extract_all(resolution.nodes)
            report.processed_count = extraction.processed_count
            report.extracted_count = len(extraction.items)
            report.skipped = dict(extraction.skipped)

            self._transition(report, RunState.NORMALIZING)
            items = self.normalization_layer.normalize(extraction.items)
            report.normalized_count = len(items)
            if not items:
                raise EmptyResultSet(
                    candidate_count=report.candidate_count,
                    extracted_count=report.extracted_count,
                    selector=report.matched_selector,
                )

            self._transition(report, RunState.SYNTHESIZING)
            feed_xml = self.feed_generator.generate(self.metadata, items, timestamp, self.feed_format)
        except FeedRunError as e:
            if not report.selectors_tried and e.context.get("selectors_tried"):
                report.selectors_tried = list(e.context["selectors_tried"])
            self._transition(report, RunState.ABORTED)
            return self._fail(report, e, markup=document.markup())

        report.feed_bytes = len(feed_xml.encode("utf-8"))
        self._transition(report, RunState.DONE)
        self.logger.log_action(
            "feed_run",
            "completed",
            matched_selector=report.matched_selector,
            candidate_count=report.candidate_count,
            normalized_count=report.normalized_count,
            feed_bytes=report.feed_bytes
        )
        return RunOutcome(ok=True, report=report, feed_xml=feed_xml)

    def _transition(self, report: RunReport, new_state: RunState):
        """Move the run to a new state, rejecting illegal transitions."""
        if new_state not in ALLOWED_TRANSITIONS[report.state]:
            raise RuntimeError(f"Illegal run transition {report.state.value} -> {new_state.value}")
        report.state = new_state
        report.states_visited.append(new_state)

    def _fail(self, report: RunReport, error: FeedRunError, markup: Optional[str] = None) -> RunOutcome:
        report.error_type = error.error_type
        report.error_message = error.message
        self.logger.log_error(
            error.message,
            error_type=error.error_type,
            matched_selector=report.matched_selector,
            candidate_count=report.candidate_count,
            extracted_count=report.extracted_count
        )
        return RunOutcome(ok=False, report=report, error=error, markup=markup)
