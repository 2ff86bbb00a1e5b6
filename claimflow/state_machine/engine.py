"""
Workflow Engine

The single entry point the view layer uses to create and act on claims.
Every mutation goes through the claim store, so a rejected operation
leaves the stored claim exactly as it was.
"""
import logging
from typing import List, Optional, Sequence

from claimflow.agents.gateway import AIGateway, OllamaGateway
from claimflow.agents.vision_agent import DamageImage
from claimflow.config import Settings, get_settings
from claimflow.core.errors import ClaimValidationError, InvalidTransitionError
from claimflow.core.models import Claim, ClaimCreate
from claimflow.core.states import ClaimIntent, ClaimStatus, UserRole
from claimflow.monitors.process_monitor import ProcessMonitor
from claimflow.store.claim_store import ClaimStore
from .machine import ClaimStateMachine
from .negotiation import (
    propose_estimate,
    resolve_current_estimate,
    validate_amount,
    validate_justification,
)

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """
    Session-scoped claim workflow.

    Construct once per session and hand it to the view layer; it owns the
    store, the state machine and the intake monitor.
    """

    def __init__(
        self,
        gateway: Optional[AIGateway] = None,
        store: Optional[ClaimStore] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.store = store if store is not None else ClaimStore()
        self.state_machine = ClaimStateMachine()
        self.gateway = gateway or OllamaGateway(settings=self.settings)
        self.monitor = ProcessMonitor(
            self.state_machine,
            self.store,
            self.gateway,
            default_location=self.settings.default_shop_location
        )

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def create_claim(self, data: ClaimCreate, images: Sequence[DamageImage] = ()) -> Claim:
        """
        Store a new claim and accept it for AI review.

        The returned claim is already in AI_REVIEW; call process_intake to
        run the analysis.
        """
        claim = Claim(
            policy_number=data.policy_number,
            policyholder_name=data.policyholder_name,
            vehicle_model=data.vehicle_model,
            vehicle_year=data.vehicle_year,
            accident_details=data.accident_details,
            damage_images=[image.to_base64() for image in images],
            status=ClaimStatus.SUBMITTED,
            status_history=[ClaimStatus.SUBMITTED]
        )
        self.store.create(claim)
        logger.info(f"Created new claim {claim.id} for policy {claim.policy_number}")

        return self.store.update(
            claim.id,
            lambda current: self.state_machine.apply_transition(
                current, UserRole.SYSTEM, ClaimIntent.ACCEPT_FOR_AI_REVIEW
            )
        )

    async def process_intake(
        self,
        claim_id: str,
        images: Sequence[DamageImage] = (),
        location: Optional[str] = None
    ) -> Claim:
        """
        Run the AI_REVIEW hooks for a claim.

        Without explicit images the photos stored on the claim are analysed.
        """
        claim = self.store.get(claim_id)
        if not images:
            images = [DamageImage.from_base64(encoded) for encoded in claim.damage_images]
        return await self.monitor.on_state_entered(
            claim, claim.status, images=images, location=location
        )

    async def submit_claim(self, data: ClaimCreate, images: Sequence[DamageImage] = ()) -> Claim:
        """Create a claim and wait for its AI intake to finish."""
        claim = self.create_claim(data, images)
        return await self.process_intake(claim.id, images, data.location)

    def requeue_for_ai_review(self, claim_id: str) -> Claim:
        """Move a claim that fell back to SUBMITTED into AI_REVIEW again."""
        claim = self.store.update(
            claim_id,
            lambda current: self.state_machine.apply_transition(
                current, UserRole.SYSTEM, ClaimIntent.ACCEPT_FOR_AI_REVIEW
            )
        )
        logger.info(f"Claim {claim_id} re-queued for AI review")
        return claim

    async def retry_ai_review(self, claim_id: str, location: Optional[str] = None) -> Claim:
        """Re-queue a claim and run AI review on its stored photos."""
        self.requeue_for_ai_review(claim_id)
        return await self.process_intake(claim_id, location=location)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def apply_transition(
        self,
        claim_id: str,
        role: UserRole,
        intent: ClaimIntent,
        reason: Optional[str] = None
    ) -> Claim:
        """
        Apply a user intent. SYSTEM intents belong to the intake flow and are
        refused here.
        """
        if role == UserRole.SYSTEM:
            raise InvalidTransitionError(
                f"{role.value} transitions are driven by AI intake only",
                claim_id=claim_id,
                details={"role": role.value, "intent": intent.value}
            )
        return self.store.update(
            claim_id,
            lambda current: self.state_machine.apply_transition(current, role, intent, reason)
        )

    def approve_estimate(self, claim_id: str, role: UserRole = UserRole.INSURANCE_AGENT) -> Claim:
        """Approve whatever estimate is current; only the status changes."""
        return self.apply_transition(claim_id, role, ClaimIntent.APPROVE_ESTIMATE)

    def reject_claim(
        self,
        claim_id: str,
        reason: str,
        role: UserRole = UserRole.INSURANCE_AGENT
    ) -> Claim:
        return self.apply_transition(claim_id, role, ClaimIntent.REJECT, reason)

    def valid_intents(self, claim_id: str, role: UserRole) -> List[ClaimIntent]:
        return self.state_machine.get_valid_intents(self.store.get(claim_id), role)

    # ------------------------------------------------------------------
    # Negotiation and comments
    # ------------------------------------------------------------------

    def propose_estimate(
        self,
        claim_id: str,
        role: UserRole,
        total_amount: float,
        justification: str
    ) -> Claim:
        return self.store.update(
            claim_id,
            lambda current: propose_estimate(current, role, total_amount, justification)
        )

    async def review_estimate_proposal(
        self,
        claim_id: str,
        new_amount: float,
        justification: str
    ) -> str:
        """Ask the AI judge whether a proposal is reasonable. Stores nothing."""
        claim = self.store.get(claim_id)
        amount = validate_amount(claim_id, new_amount)
        justification = validate_justification(claim_id, justification)
        current = resolve_current_estimate(claim)
        if current is None:
            raise ClaimValidationError(
                f"Claim {claim_id} has no estimate to compare against", claim_id=claim_id
            )
        return await self.gateway.judge_estimate(current, amount, justification)

    def add_comment(
        self,
        claim_id: str,
        role: UserRole,
        text: str,
        author_name: Optional[str] = None
    ) -> Claim:
        """Append a comment. Allowed on terminal claims too."""
        if role == UserRole.SYSTEM:
            raise ClaimValidationError("System cannot author comments", claim_id=claim_id)
        if text is None or not text.strip():
            raise ClaimValidationError("Comment text cannot be empty", claim_id=claim_id)

        def mutate(current: Claim) -> Claim:
            current.add_comment(role, author_name or role.value, text.strip())
            return current

        return self.store.update(claim_id, mutate)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_claim(self, claim_id: str) -> Claim:
        return self.store.get(claim_id)

    def list_claims(
        self,
        query: Optional[str] = None,
        status: Optional[ClaimStatus] = None
    ) -> List[Claim]:
        return self.store.list(query=query, status=status)
