"""Workflow error types raised by the claim engine and store."""
from typing import Any, Dict, Optional


class WorkflowError(ValueError):
    """
    Base exception for rejected workflow operations.

    Raised before any mutation is stored, so the claim is unchanged
    whenever one of these propagates.

    Attributes:
        message: Human-readable error message
        claim_id: Id of the claim the operation referenced, if any
        details: Optional additional error details
    """

    error_type = "WORKFLOW_ERROR"

    def __init__(
        self,
        message: str,
        claim_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.claim_id = claim_id
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary for logging or API responses."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "claim_id": self.claim_id,
            "details": self.details,
        }


class InvalidTransitionError(WorkflowError):
    """The (role, status, intent) triple is not a legal transition."""

    error_type = "INVALID_TRANSITION"


class TerminalStateError(WorkflowError):
    """The claim is Closed or Rejected and accepts no further transitions."""

    error_type = "TERMINAL_STATE"


class ClaimValidationError(WorkflowError):
    """Malformed input: blank reason or justification, bad amount, empty comment."""

    error_type = "VALIDATION_ERROR"


class ClaimNotFoundError(LookupError):
    """An operation referenced a claim id absent from the store."""

    error_type = "NOT_FOUND"

    def __init__(self, claim_id: str):
        self.claim_id = claim_id
        self.message = f"Claim {claim_id} not found"
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "claim_id": self.claim_id,
            "details": {},
        }
