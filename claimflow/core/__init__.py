# Core module - states, models and errors
from .states import ClaimStatus, ClaimIntent, EstimateSource, UserRole, TERMINAL_STATUSES
from .models import Claim, ClaimCreate, Comment, Estimate, RepairShopSuggestion
from .errors import (
    ClaimNotFoundError,
    ClaimValidationError,
    InvalidTransitionError,
    TerminalStateError,
    WorkflowError,
)

__all__ = [
    "ClaimStatus",
    "ClaimIntent",
    "EstimateSource",
    "UserRole",
    "TERMINAL_STATUSES",
    "Claim",
    "ClaimCreate",
    "Comment",
    "Estimate",
    "RepairShopSuggestion",
    "ClaimNotFoundError",
    "ClaimValidationError",
    "InvalidTransitionError",
    "TerminalStateError",
    "WorkflowError",
]
