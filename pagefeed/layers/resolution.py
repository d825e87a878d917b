"""
Selector Resolution Layer for the page-to-feed generator.
Finds the article nodes on the page by walking a selector cascade.
"""
from dataclasses import dataclass, field
from typing import List

from soupsieve import SelectorSyntaxError

from pagefeed.adapters.document import Document, DocumentNode
from pagefeed.errors import NoCandidatesFound
from pagefeed.utils.logger import LayerLogger


@dataclass
class ResolutionResult:
    """Candidate nodes and the selector that produced them."""
    selector: str
    nodes: List[DocumentNode]
    selectors_tried: List[str] = field(default_factory=list)


class SelectorResolutionLayer:
    """
    Selector Resolution Layer - locates candidate article nodes.

    Selectors are ordered most specific first, most generic last.
    The first selector that matches at least one node wins and the
    remaining selectors are never evaluated.
    """

    def __init__(self):
        self.logger = LayerLogger("selector_resolution")

    def resolve(self, document: Document, selectors: List[str]) -> ResolutionResult:
        """
        Resolve the candidate nodes for a document.

        Args:
            document: Parsed rendered document
            selectors: Ordered selector cascade

        Returns:
            ResolutionResult for the first matching selector

        Raises:
            NoCandidatesFound: when every selector matches zero nodes
        """
        self.logger.log_action("resolve_candidates", "started", selectors=len(selectors))

        tried: List[str] = []
        for position, selector in enumerate(selectors):
            tried.append(selector)
            try:
                nodes = document.select(selector)
            except SelectorSyntaxError as e:
                self.logger.log_error(
                    f"Invalid selector: {str(e)}",
                    error_type="selector_syntax",
                    selector=selector
                )
                nodes = []

            if nodes:
                self.logger.log_decision(
                    decision="selector_matched",
                    reason=f"{len(nodes)} nodes matched",
                    selector=selector,
                    position=position
                )
                return ResolutionResult(selector=selector, nodes=nodes, selectors_tried=tried)

            next_selector = selectors[position + 1] if position + 1 < len(selectors) else "none"
            self.logger.log_fallback(
                from_source=selector,
                to_source=next_selector,
                reason="selector matched zero nodes"
            )

        self.logger.log_error(
            "No selector in the cascade matched",
            error_type="no_candidates_found",
            selectors_tried=tried
        )
        raise NoCandidatesFound(tried)
