"""Decision, ledger and review-queue exceptions."""

from typing import Optional, Any
from .base import moodgaugeError

class ValidationError(moodgaugeError):
    """Base class for validation-stage errors."""

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context('field_name', field_name)
        if field_value is not None:
            self.add_context('field_value', str(field_value))

    def _get_default_error_code(self) -> str:
        return "VALIDATION_ERROR"


class UnknownDecisionError(ValidationError):
    """No decision with the given id has been registered."""

    def __init__(self, decision_id: str, **kwargs):
        super().__init__(
            f"Unknown decision id: {decision_id}",
            field_name="decision_id",
            field_value=decision_id,
            **kwargs
        )

    def _get_default_error_code(self) -> str:
        return "UNKNOWN_DECISION"


class ReviewClaimError(ValidationError):
    """A review claim token is unknown, already completed, or has expired."""

    def __init__(self, message: str, *, token: Optional[str] = None, item_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if token:
            self.add_context('token', token)
        if item_id:
            self.add_context('item_id', item_id)

    def _get_default_error_code(self) -> str:
        return "REVIEW_CLAIM_INVALID"


class ParameterValidationError(ValidationError):
    """Raised when an operation parameter is invalid."""

    def __init__(
        self,
        message: str,
        *,
        parameter_name: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, field_name=parameter_name, **kwargs)
        if expected_type:
            self.add_context('expected_type', expected_type)

    def _get_default_error_code(self) -> str:
        return "INVALID_PARAMETER"
