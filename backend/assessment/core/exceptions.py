"""
Exception hierarchy for the assessment engine.

Every engine error carries a human-readable message, the optional underlying
exception and optional context, and formats them into a single line so
production logs stay greppable.
"""

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from assessment.core.blueprint import ValidationIssue


class AssessmentEngineError(Exception):
    """Base exception for scoring, selection and analysis errors.

    Attributes:
        message: Human-readable error description
        original_error: The underlying exception that caused this error
        context: Additional context about where the error occurred
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[str] = None,
    ):
        self.message = message
        self.original_error = original_error
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context and original error details."""
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.original_error:
            parts.append(
                f"Original error: {type(self.original_error).__name__}: {self.original_error}"
            )
        return " | ".join(parts)


class BlueprintValidationError(AssessmentEngineError):
    """Raised before assembly when a blueprint fails validation.

    ``issues`` holds the field-attributed errors so API callers can point
    at the offending blueprint field or competency.
    """

    def __init__(
        self,
        message: str,
        issues: Sequence["ValidationIssue"] = (),
        context: Optional[str] = None,
    ):
        self.issues: List["ValidationIssue"] = list(issues)
        super().__init__(message, context=context)

    def _format_message(self) -> str:
        parts = [super()._format_message()]
        if self.issues:
            parts.append(
                "Issues: " + "; ".join(f"{i.field}: {i.message}" for i in self.issues)
            )
        return " | ".join(parts)


class InsufficientInventoryError(AssessmentEngineError):
    """Raised when a competency has zero eligible questions for assembly."""


class ScoringError(AssessmentEngineError):
    """Raised when a scoring strategy cannot produce a consistent result."""


class DifAnalysisError(AssessmentEngineError):
    """Raised when DIF analysis input is invalid (empty or overlapping groups)."""


class InsufficientGroupSizeError(DifAnalysisError):
    """Raised when respondent groups are too small for a meaningful MH estimate."""
