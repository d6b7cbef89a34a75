"""Utility functions and helpers."""

from .itertools import chunked
from .timing import timeit, section_timer
from .logging import setup_logging
from .numeric import clamp01, clamp, saturate, max_pairwise_gap

__all__ = [
    "chunked",
    "timeit",
    "section_timer",
    "setup_logging",
    "clamp01",
    "clamp",
    "saturate",
    "max_pairwise_gap",
]
