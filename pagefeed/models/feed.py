"""
Feed data models for the page-to-feed generator.
Items extracted from the rendered page, feed identity, and the run report
that travels with every outcome.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RunState(str, Enum):
    """States of a single pipeline run."""
    LOADING = "loading"
    RESOLVING = "resolving"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    ABORTED = "aborted"


class FeedFormat(str, Enum):
    """Supported syndication formats."""
    RSS2 = "rss2"
    ATOM = "atom"


class ExtractedItem(BaseModel):
    """
    One article pulled from a candidate node.

    title and link are mandatory. The extractor never builds an item
    without them; normalization re-checks after trimming.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    link: str
    description: Optional[str] = None
    image: str = ""
    id: Optional[str] = None

    def get_present_fields(self) -> List[str]:
        """Return list of non-empty fields."""
        present = ["title", "link"]
        if self.description:
            present.append("description")
        if self.image:
            present.append("image")
        if self.id:
            present.append("id")
        return present

    def get_missing_fields(self) -> List[str]:
        """Return list of empty optional fields."""
        present = self.get_present_fields()
        return [f for f in ["description", "image", "id"] if f not in present]


class FeedMetadata(BaseModel):
    """Static feed identity. Immutable for the run."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    id: str
    link: str
    language: Optional[str] = None
    generator: str = "pagefeed"
    image: Optional[str] = None
    favicon: Optional[str] = None
    copyright: Optional[str] = None
    author: Optional[str] = None
    feed_link: Optional[str] = None  # self link of the published feed


class FeedEntry(BaseModel):
    """A feed entry derived from a normalized item."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    link: str
    description: str
    content: str  # HTML fragment, image-prefixed when the item has one
    image: Optional[str] = None
    published: datetime


class RunReport(BaseModel):
    """
    Human-readable summary of a run.

    Filled in stage by stage so a failed run still says how far it got
    and what it saw.
    """
    target_url: Optional[str] = None
    state: RunState = RunState.LOADING
    states_visited: List[RunState] = Field(default_factory=lambda: [RunState.LOADING])
    matched_selector: Optional[str] = None
    selectors_tried: List[str] = Field(default_factory=list)
    candidate_count: int = 0
    processed_count: int = 0
    extracted_count: int = 0
    normalized_count: int = 0
    skipped: Dict[int, str] = Field(default_factory=dict)
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    feed_bytes: int = 0

    def to_dict(self) -> dict:
        """Return the report as a JSON-safe dictionary."""
        return self.model_dump(mode="json")
