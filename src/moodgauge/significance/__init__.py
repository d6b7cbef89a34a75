"""Significance weighting and the human review queue."""

from .weighter import SignificanceWeighter, SignificanceAssessment, novelty
from .queue import ReviewQueue, ReviewItem, ReviewClaim

__all__ = [
    "SignificanceWeighter",
    "SignificanceAssessment",
    "novelty",
    "ReviewQueue",
    "ReviewItem",
    "ReviewClaim",
]
