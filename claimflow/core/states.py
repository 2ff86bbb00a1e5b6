"""
Claim State Definitions

Defines the statuses, roles and intents used by the claim workflow.
"""
from enum import Enum


class ClaimStatus(str, Enum):
    """
    Enum representing the possible statuses of an auto damage claim.

    Standard Flow: SUBMITTED -> AI_REVIEW -> ESTIMATED -> APPROVED -> IN_REPAIR -> PICK_UP_PENDING -> CLOSED
    Rejection: any non-terminal status -> REJECTED
    """
    SUBMITTED = "Submitted"
    AI_REVIEW = "AI Review"
    ESTIMATED = "Estimated"
    APPROVED = "Approved"
    IN_REPAIR = "In Repair"
    PICK_UP_PENDING = "Pick Up Pending"
    CLOSED = "Closed"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ClaimStatus.CLOSED, ClaimStatus.REJECTED})


class UserRole(str, Enum):
    """Actors that may act on a claim. SYSTEM covers intake and the AI gateway."""
    POLICYHOLDER = "Policyholder"
    REPAIR_SHOP = "Repair Shop"
    INSURANCE_AGENT = "Insurance Agent"
    SYSTEM = "System"


class ClaimIntent(str, Enum):
    """User or system intents that may move a claim between statuses."""
    ACCEPT_FOR_AI_REVIEW = "accept_for_ai_review"
    COMPLETE_ASSESSMENT = "complete_assessment"
    REVERT_AI_FAILURE = "revert_ai_failure"
    APPROVE_ESTIMATE = "approve_estimate"
    RECEIVE_VEHICLE = "receive_vehicle"
    COMPLETE_REPAIR = "complete_repair"
    CONFIRM_PICKUP = "confirm_pickup"
    REJECT = "reject"


class EstimateSource(str, Enum):
    """Who authored an estimate."""
    AI = "AI"
    REPAIR_SHOP = "Repair Shop"
    INSURANCE_AGENT = "Insurance Agent"
