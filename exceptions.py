"""
Custom exceptions for the Darts Rating Engine.

Every error the engine raises carries an ErrorCategory so callers can branch
on the category instead of matching message strings. Collaborator failures
are wrapped as UpstreamError with the original exception chained.
"""

from app_types import ErrorCategory


class DartsEngineError(Exception):
    """Base exception for all engine errors."""

    category: ErrorCategory = ErrorCategory.UPSTREAM

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DartsEngineError):
    """Raised when input to a formula, flow or grouping is malformed or out of range."""

    category = ErrorCategory.VALIDATION


class NotFoundError(DartsEngineError):
    """Raised when a referenced player, band, session run or schedule does not exist."""

    category = ErrorCategory.NOT_FOUND


class ConflictError(DartsEngineError):
    """Raised when a collaborator reports a uniqueness violation."""

    category = ErrorCategory.CONFLICT


class UpstreamError(DartsEngineError):
    """Raised when a collaborator call itself fails (network, server)."""

    category = ErrorCategory.UPSTREAM


# =============================================================================
# ITA derivation errors
# =============================================================================


class ITARoutineMissingError(ValidationError):
    """Raised when an assessment session references a routine that does not resolve."""

    def __init__(self, routine_no: int, routine_id: str):
        super().__init__(
            f"ITA routine {routine_no} (id '{routine_id}') could not be found"
        )
        self.routine_no = routine_no
        self.routine_id = routine_id


class ITAStepTypeMissingError(ValidationError):
    """Raised when an assessment routine step has no step type."""

    def __init__(self, routine_no: int, step_no: int | None):
        if step_no is None:
            message = f"ITA routine {routine_no} has no steps to classify"
        else:
            message = f"ITA routine {routine_no} step {step_no} has no step type"
        super().__init__(message)
        self.routine_no = routine_no
        self.step_no = step_no


class ITAStepTypeUnrecognizedError(ValidationError):
    """Raised when an assessment routine step type is not SS, SD, ST or C."""

    def __init__(self, routine_no: int, step_no: int, step_type: str, reason: str = ""):
        message = (
            f"ITA routine {routine_no} step {step_no} has unrecognized step type "
            f"'{step_type}'"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.routine_no = routine_no
        self.step_no = step_no
        self.step_type = step_type
