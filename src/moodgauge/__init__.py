"""Mood scoring, emotional transition detection and auto-confirmation of conversational memories."""

__version__ = "0.1.0"

from moodgauge.api import (
    score_mood,
    calculate_confidence,
    detect_deltas,
    build_timeline,
    decide,
    record_outcome,
    recalibrate,
)

__all__ = [
    "score_mood",
    "calculate_confidence",
    "detect_deltas",
    "build_timeline",
    "decide",
    "record_outcome",
    "recalibrate",
]
