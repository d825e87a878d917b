"""Layers package initialization."""
from pagefeed.layers.resolution import SelectorResolutionLayer, ResolutionResult
from pagefeed.layers.extraction import ItemExtractionLayer, ExtractionResult, FieldStrategy
from pagefeed.layers.normalization import NormalizationLayer

__all__ = [
    "SelectorResolutionLayer",
    "ResolutionResult",
    "ItemExtractionLayer",
    "ExtractionResult",
    "FieldStrategy",
    "NormalizationLayer",
]
