"""
Item Extraction Layer for the page-to-feed generator.
Turns candidate nodes into ExtractedItem records, one node at a time.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pagefeed.adapters.document import DocumentNode
from pagefeed.errors import ItemExtractionError
from pagefeed.models.feed import ExtractedItem
from pagefeed.utils.logger import LayerLogger


# Readers applied to the node a strategy selects
READ_TEXT = "text"
READ_HREF = "href"
READ_SRC = "src"


@dataclass(frozen=True)
class FieldStrategy:
    """One step of a field's fallback chain: a sub-selector and how to read it."""
    label: str
    selector: str
    reader: str = READ_TEXT


TITLE_STRATEGIES = [
    FieldStrategy("heading_link", "h2 a, h3 a, h1 a", READ_TEXT),
    FieldStrategy("heading", "h1, h2, h3, h4", READ_TEXT),
    FieldStrategy("title_class_link", "a[class*='title']", READ_TEXT),
]

LINK_STRATEGIES = [
    FieldStrategy("first_link", "a[href]", READ_HREF),
]

DESCRIPTION_STRATEGIES = [
    FieldStrategy("section_paragraph", "section p", READ_TEXT),
    FieldStrategy("paragraph", "p", READ_TEXT),
    FieldStrategy(
        "description_container",
        "[class*='description'], [class*='content'], [class*='summary']",
        READ_TEXT,
    ),
]

IMAGE_STRATEGIES = [
    FieldStrategy("first_image", "img", READ_SRC),
]


@dataclass
class ExtractionResult:
    """Items extracted from the candidate nodes plus what was skipped."""
    items: List[ExtractedItem] = field(default_factory=list)
    skipped: Dict[int, str] = field(default_factory=dict)
    candidate_count: int = 0
    processed_count: int = 0


class ItemExtractionLayer:
    """
    Item Extraction Layer - per-node field extraction.

    Each field walks its own fallback chain; the first strategy that yields
    a value wins. A failure on one node is logged and that node is skipped,
    the batch always continues with the next node.
    """

    def __init__(
        self,
        item_limit: int = 50,
        id_attribute: str = "data-article-id",
        default_description: str = "No description",
    ):
        if item_limit < 1:
            raise ValueError(f"item_limit must be at least 1, got {item_limit}")
        self.item_limit = item_limit
        self.id_attribute = id_attribute
        self.default_description = default_description
        self.logger = LayerLogger("item_extraction")

    def extract_all(self, nodes: List[DocumentNode]) -> ExtractionResult:
        """
        Extract items from candidate nodes in document order.

        Only the first item_limit nodes are processed.
        """
        capped = nodes[: self.item_limit]
        result = ExtractionResult(candidate_count=len(nodes), processed_count=len(capped))

        if len(nodes) > len(capped):
            self.logger.log_decision(
                decision="cap_candidates",
                reason=f"item limit {self.item_limit} reached",
                candidate_count=len(nodes),
                processed_count=len(capped)
            )

        self.logger.log_action("extract_items", "started", processed_count=len(capped))

        for index, node in enumerate(capped):
            try:
                item = self.extract_item(node, index)
            except ItemExtractionError as e:
                result.skipped[index] = e.reason
                self.logger.log_item_skipped(index=index, reason=e.reason)
                continue
            except Exception as e:
                reason = f"{type(e).__name__}: {str(e)}"
                result.skipped[index] = reason
                self.logger.log_item_skipped(index=index, reason=reason, error_type="unexpected")
                continue

            result.items.append(item)
            self.logger.log_extraction(
                index=index,
                fields_present=item.get_present_fields(),
                fields_missing=item.get_missing_fields()
            )

        self.logger.log_action(
            "extract_items",
            "completed",
            extracted_count=len(result.items),
            skipped_count=len(result.skipped)
        )
        return result

    def extract_item(self, node: DocumentNode, index: int) -> ExtractedItem:
        """
        Extract one item from a candidate node.

        Raises:
            ItemExtractionError: when the title or link chain is exhausted
        """
        title_match = self._first_match(node, TITLE_STRATEGIES)
        if title_match is None:
            raise ItemExtractionError(index, "no title")
        title, title_node, title_label = title_match

        link = self._extract_link(node, title_node, title_label)
        if not link:
            raise ItemExtractionError(index, "no resolvable link")

        description_match = self._first_match(node, DESCRIPTION_STRATEGIES)
        description = description_match[0] if description_match else self.default_description

        image_match = self._first_match(node, IMAGE_STRATEGIES)
        image = image_match[0] if image_match else ""

        explicit_id = node.attr(self.id_attribute) if self.id_attribute else None
        item_id = explicit_id.strip() if explicit_id and explicit_id.strip() else link

        return ExtractedItem(
            title=title,
            link=link,
            description=description,
            image=image,
            id=item_id,
        )

    def _extract_link(self, node: DocumentNode, title_node: DocumentNode, title_label: str) -> Optional[str]:
        """Title anchor's href first, then the first resolvable anchor in the node."""
        if title_label in ("heading_link", "title_class_link"):
            href = title_node.resolved_href()
            if href:
                return href
            self.logger.log_fallback(
                from_source="title_anchor",
                to_source="first_link",
                reason="title anchor has no resolvable href"
            )

        for strategy in LINK_STRATEGIES:
            for candidate in node.select(strategy.selector):
                href = candidate.resolved_href()
                if href:
                    return href

        # the card itself may be the anchor
        if getattr(node, "name", None) == "a":
            return node.resolved_href()
        return None

    def _first_match(
        self,
        node: DocumentNode,
        strategies: List[FieldStrategy],
    ) -> Optional[Tuple[str, DocumentNode, str]]:
        """Fold over a fallback chain, stopping at the first non-empty value."""
        for strategy in strategies:
            for candidate in node.select(strategy.selector):
                value = self._read(candidate, strategy.reader)
                if value:
                    return value, candidate, strategy.label
        return None

    def _read(self, node: DocumentNode, reader: str) -> Optional[str]:
        if reader == READ_HREF:
            return node.resolved_href()
        if reader == READ_SRC:
            return node.resolved_src()
        text = node.text()
        return text.strip() if text else None
