"""
Error taxonomy for a feed generation run.

Item-level errors are absorbed inside the extraction layer. Run-level errors
abort the run and carry enough context to drive diagnostics capture.
"""
from typing import Any, Dict, List, Optional


class ItemExtractionError(Exception):
    """A single candidate node could not be turned into an item."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"item {index}: {reason}")
        self.index = index
        self.reason = reason


class FeedRunError(Exception):
    """Base class for failures that abort the whole run."""

    error_type = "run_failed"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})


class DocumentUnavailable(FeedRunError):
    """The rendered document could not be obtained."""

    error_type = "document_unavailable"


class NoCandidatesFound(FeedRunError):
    """No selector in the cascade matched any node."""

    error_type = "no_candidates_found"

    def __init__(self, selectors: List[str]):
        super().__init__(
            f"None of {len(selectors)} selectors matched any node",
            context={"selectors_tried": list(selectors)},
        )
        self.selectors = list(selectors)


class EmptyResultSet(FeedRunError):
    """Candidates were found but no item survived extraction and normalization."""

    error_type = "empty_result_set"

    def __init__(self, candidate_count: int = 0, extracted_count: int = 0, selector: Optional[str] = None):
        super().__init__(
            f"0 items survived from {candidate_count} candidates",
            context={
                "matched_selector": selector,
                "candidate_count": candidate_count,
                "extracted_count": extracted_count,
            },
        )
        self.candidate_count = candidate_count
        self.extracted_count = extracted_count
