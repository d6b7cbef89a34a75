"""Signal extraction from conversational text."""

from .extractors import (
    EXTRACTORS,
    NORMALISERS,
    extract_sentiment,
    extract_psychological,
    extract_relationship,
    extract_conversational,
    extract_historical,
    reading_from_components,
)

__all__ = [
    "EXTRACTORS",
    "NORMALISERS",
    "extract_sentiment",
    "extract_psychological",
    "extract_relationship",
    "extract_conversational",
    "extract_historical",
    "reading_from_components",
]
