"""
Normalization Layer for the page-to-feed generator.
Trims text, fills defaults and derives identifiers before synthesis.
"""
import re
from typing import List, Optional, Set
from urllib.parse import urlparse

from pagefeed.models.feed import ExtractedItem
from pagefeed.utils.logger import LayerLogger


XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def clean_text(value: Optional[str]) -> str:
    """Strip surrounding whitespace, collapse internal runs and drop control characters."""
    if not value:
        return ""
    value = XML_INVALID_CHARS.sub("", value)
    return re.sub(r"\s+", " ", value).strip()


def is_absolute_url(value: str) -> bool:
    """True for http(s) URLs with a host; fragments and relative paths fail."""
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class NormalizationLayer:
    """
    Normalization Layer - final shaping of extracted items.

    Keeps every structurally valid item in input order. Deduplication
    by id is an opt-in policy and is off unless explicitly enabled.
    """

    def __init__(self, default_description: str = "No description", deduplicate: bool = False):
        self.default_description = default_description
        self.deduplicate = deduplicate
        self.logger = LayerLogger("normalization")

    def normalize(self, items: List[ExtractedItem]) -> List[ExtractedItem]:
        """
        Normalize extracted items.

        Args:
            items: Items as produced by the extraction layer, in DOM order

        Returns:
            Frozen, trimmed items in the same order
        """
        self.logger.log_action("normalize_items", "started", input_count=len(items), deduplicate=self.deduplicate)

        normalized: List[ExtractedItem] = []
        seen_ids: Set[str] = set()

        for index, item in enumerate(items):
            title = clean_text(item.title)
            link = (item.link or "").strip()

            if not title or not link or not is_absolute_url(link):
                self.logger.log_item_skipped(
                    index=index,
                    reason="missing title or absolute link after trimming",
                    link=link or None
                )
                continue

            description = clean_text(item.description) or self.default_description
            image = (item.image or "").strip()
            if image and not is_absolute_url(image):
                image = ""
            item_id = (item.id or "").strip() or link

            if self.deduplicate:
                if item_id in seen_ids:
                    self.logger.log_decision(
                        decision="drop_duplicate",
                        reason="id already emitted in this run",
                        url=link,
                        item_id=item_id
                    )
                    continue
                seen_ids.add(item_id)

            normalized.append(ExtractedItem(
                title=title,
                link=link,
                description=description,
                image=image,
                id=item_id,
            ))

        self.logger.log_action(
            "normalize_items",
            "completed",
            input_count=len(items),
            output_count=len(normalized)
        )
        return normalized
