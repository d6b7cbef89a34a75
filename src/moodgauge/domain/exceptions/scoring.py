"""Scoring-stage exceptions and warnings."""

from typing import Optional, Any
from .base import moodgaugeError

class ScoringError(moodgaugeError):
    """Base class for errors raised while scoring an item."""

    def _get_default_error_code(self) -> str:
        return "SCORING_ERROR"


class InvalidIndicatorRangeError(ScoringError):
    """A sub-score, component or derived value is outside its allowed range.

    Always fatal: an out-of-range value means an upstream extractor or caller
    produced bad data, so it is never clamped.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
        allowed: Optional[tuple] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context('field_name', field_name)
        if value is not None:
            self.add_context('value', value)
        if allowed is not None:
            self.add_context('allowed_range', allowed)
        self.add_suggestion("Check the extractor or caller that produced this value")

    def _get_default_error_code(self) -> str:
        return "INVALID_INDICATOR_RANGE"


class InsufficientDataError(ScoringError):
    """Fewer data points than an analysis needs.

    Public entry points catch this and return a flagged empty result.
    """

    def __init__(
        self,
        message: str,
        *,
        required: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, recoverable=True, **kwargs)
        if required is not None:
            self.add_context('required', required)
        if available is not None:
            self.add_context('available', available)

    def _get_default_error_code(self) -> str:
        return "INSUFFICIENT_DATA"


class AmbiguousContextWarning(UserWarning):
    """Scoring went ahead on mixed or incomplete context; see the uncertainty areas."""
