"""Batch runner exceptions."""

from typing import Optional
from .base import moodgaugeError

class ProcessingError(moodgaugeError):
    """Base class for batch pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        participant_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if stage:
            self.add_context('processing_stage', stage)
        if participant_id:
            self.add_context('participant_id', participant_id)


class BatchProcessingError(ProcessingError):
    """Raised when one or more participant timelines fail in a batch."""

    def __init__(
        self,
        message: str,
        *,
        batch_size: Optional[int] = None,
        failed_count: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, stage="batch_processing", **kwargs)
        if batch_size:
            self.add_context('batch_size', batch_size)
        if failed_count:
            self.add_context('failed_participants', failed_count)
        self.add_suggestion("Inspect the per-participant errors in the log file")

    def _get_default_error_code(self) -> str:
        return "BATCH_PROCESSING_FAILED"
