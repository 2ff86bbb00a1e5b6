"""
Claim State Machine

Manages status transitions and the role-permission matrix for claims.
"""
import logging
from typing import Dict, List, Optional, Tuple

from claimflow.core.errors import ClaimValidationError, InvalidTransitionError, TerminalStateError
from claimflow.core.models import Claim
from claimflow.core.states import ClaimIntent, ClaimStatus, UserRole

logger = logging.getLogger(__name__)

REJECTION_PREFIX = "CLAIM REJECTED: "


class ClaimStateMachine:
    """
    State machine for managing claim status transitions.

    Each transition is keyed by (current status, intent) and names the
    only role allowed to perform it. Transitions never modify the claim
    passed in; they return an updated copy.
    """

    # (from_status, intent) -> (role, to_status)
    TRANSITIONS: Dict[Tuple[ClaimStatus, ClaimIntent], Tuple[UserRole, ClaimStatus]] = {
        (ClaimStatus.SUBMITTED, ClaimIntent.ACCEPT_FOR_AI_REVIEW): (UserRole.SYSTEM, ClaimStatus.AI_REVIEW),
        (ClaimStatus.AI_REVIEW, ClaimIntent.COMPLETE_ASSESSMENT): (UserRole.SYSTEM, ClaimStatus.ESTIMATED),
        (ClaimStatus.AI_REVIEW, ClaimIntent.REVERT_AI_FAILURE): (UserRole.SYSTEM, ClaimStatus.SUBMITTED),
        (ClaimStatus.ESTIMATED, ClaimIntent.APPROVE_ESTIMATE): (UserRole.INSURANCE_AGENT, ClaimStatus.APPROVED),
        (ClaimStatus.APPROVED, ClaimIntent.RECEIVE_VEHICLE): (UserRole.REPAIR_SHOP, ClaimStatus.IN_REPAIR),
        (ClaimStatus.IN_REPAIR, ClaimIntent.COMPLETE_REPAIR): (UserRole.REPAIR_SHOP, ClaimStatus.PICK_UP_PENDING),
        (ClaimStatus.PICK_UP_PENDING, ClaimIntent.CONFIRM_PICKUP): (UserRole.POLICYHOLDER, ClaimStatus.CLOSED),
    }

    # Rejection is allowed from every non-terminal status
    REJECT_ROLE = UserRole.INSURANCE_AGENT

    def _lookup(
        self,
        status: ClaimStatus,
        intent: ClaimIntent
    ) -> Optional[Tuple[UserRole, ClaimStatus]]:
        if intent == ClaimIntent.REJECT:
            if status.is_terminal:
                return None
            return (self.REJECT_ROLE, ClaimStatus.REJECTED)
        return self.TRANSITIONS.get((status, intent))

    def get_valid_intents(self, claim: Claim, role: UserRole) -> List[ClaimIntent]:
        """List the intents `role` may apply to the claim right now."""
        if claim.is_terminal:
            return []
        return [
            intent for intent in ClaimIntent
            if self.can_apply(claim, role, intent)
        ]

    def can_apply(self, claim: Claim, role: UserRole, intent: ClaimIntent) -> bool:
        """Check if (role, claim.status, intent) is in the transition table."""
        entry = self._lookup(claim.status, intent)
        return entry is not None and entry[0] == role

    def apply_transition(
        self,
        claim: Claim,
        role: UserRole,
        intent: ClaimIntent,
        reason: Optional[str] = None
    ) -> Claim:
        """
        Execute a status transition.

        Args:
            claim: The claim to transition (left untouched)
            role: The acting role
            intent: What the actor wants to do
            reason: Required for REJECT, ignored otherwise

        Returns:
            Updated copy of the claim

        Raises:
            TerminalStateError: If the claim is Closed or Rejected
            InvalidTransitionError: If the triple is not in the table
            ClaimValidationError: If a rejection carries no reason
        """
        if claim.is_terminal:
            raise TerminalStateError(
                f"Claim {claim.id} is {claim.status.value} and accepts no further transitions",
                claim_id=claim.id,
                details={"status": claim.status.value, "intent": intent.value}
            )

        if not self.can_apply(claim, role, intent):
            valid = self.get_valid_intents(claim, role)
            raise InvalidTransitionError(
                f"{role.value} cannot {intent.value} a claim in {claim.status.value}. "
                f"Valid intents: {[i.value for i in valid]}",
                claim_id=claim.id,
                details={"status": claim.status.value, "role": role.value, "intent": intent.value}
            )

        if intent == ClaimIntent.REJECT and (reason is None or not reason.strip()):
            raise ClaimValidationError("A rejection requires a reason", claim_id=claim.id)

        _, target = self._lookup(claim.status, intent)
        updated = claim.model_copy(deep=True)
        updated.record_status_change(target)

        if intent == ClaimIntent.REJECT:
            updated.add_comment(
                author_role=UserRole.INSURANCE_AGENT,
                author_name=UserRole.INSURANCE_AGENT.value,
                text=f"{REJECTION_PREFIX}{reason.strip()}"
            )

        logger.info(
            f"Claim {claim.id}: {role.value} applied {intent.value}, "
            f"{claim.status.value} -> {target.value}"
        )
        return updated
