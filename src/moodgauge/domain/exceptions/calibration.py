"""Calibration and threshold-registry exceptions."""

from typing import Optional
from .base import moodgaugeError

class CalibrationError(moodgaugeError):
    """Base class for calibration failures."""

    def _get_default_error_code(self) -> str:
        return "CALIBRATION_ERROR"


class CalibrationSafetyViolation(CalibrationError):
    """A proposed threshold update was rejected; the active version is unchanged."""

    def __init__(
        self,
        message: str,
        *,
        metric: Optional[str] = None,
        observed: Optional[float] = None,
        bounds: Optional[tuple] = None,
        active_version: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if metric:
            self.add_context('metric', metric)
        if observed is not None:
            self.add_context('observed', observed)
        if bounds is not None:
            self.add_context('bounds', bounds)
        if active_version is not None:
            self.add_context('active_version', active_version)
        self.add_suggestion("Review the outcome batch before re-running calibration")

    def _get_default_error_code(self) -> str:
        return "CALIBRATION_SAFETY_VIOLATION"


class CalibrationInProgressError(CalibrationError):
    """Another calibration run holds the calibration lock."""

    def __init__(self, message: str = "A calibration run is already in progress", **kwargs):
        super().__init__(message, recoverable=True, **kwargs)
        self.add_suggestion("Retry after the current run completes")

    def _get_default_error_code(self) -> str:
        return "CALIBRATION_IN_PROGRESS"


class UnknownThresholdVersionError(CalibrationError):
    def __init__(self, version: int, **kwargs):
        super().__init__(f"Unknown threshold config version: {version}", **kwargs)
        self.add_context('version', version)

    def _get_default_error_code(self) -> str:
        return "UNKNOWN_THRESHOLD_VERSION"
