"""
Process Monitor

Watches claim status changes and triggers the intake actions tied to them.
"""
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from claimflow.agents.gateway import AIGateway
from claimflow.agents.vision_agent import fallback_analysis
from claimflow.core.errors import WorkflowError
from claimflow.core.models import Claim
from claimflow.core.states import ClaimIntent, ClaimStatus, UserRole
from claimflow.state_machine.machine import ClaimStateMachine
from claimflow.store.claim_store import ClaimStore

logger = logging.getLogger(__name__)

StatusHandler = Callable[..., Awaitable[Claim]]


class ProcessMonitor:
    """
    Fires status entry hooks and stores what they produce.

    When a claim enters a status, every handler registered for it runs in
    registration order. Entering AI_REVIEW runs the AI gateway and moves
    the claim on to ESTIMATED.
    """

    def __init__(
        self,
        state_machine: ClaimStateMachine,
        store: ClaimStore,
        gateway: AIGateway,
        default_location: str = "Current Location"
    ):
        """
        Initialize the process monitor.

        Args:
            state_machine: The state machine to use for transitions
            store: Where claims live
            gateway: AI provider for damage analysis and shop search
            default_location: Shop search location when the claim gives none
        """
        self.state_machine = state_machine
        self.store = store
        self.gateway = gateway
        self.default_location = default_location
        self._event_handlers: Dict[ClaimStatus, List[StatusHandler]] = {}

        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        self.register_handler(ClaimStatus.AI_REVIEW, self._on_ai_review)

    def register_handler(self, status: ClaimStatus, handler: StatusHandler) -> None:
        """
        Register an async handler to be called when a claim enters a status.

        Handlers receive the claim plus any context passed to on_state_entered()
        and return the claim as it stands afterwards.
        """
        self._event_handlers.setdefault(status, []).append(handler)
        logger.info(f"Registered handler for status {status.value}")

    async def on_state_entered(self, claim: Claim, status: ClaimStatus, **context) -> Claim:
        """Run all handlers registered for `status`."""
        for handler in self._event_handlers.get(status, []):
            claim = await handler(claim, **context)
        return claim

    async def _on_ai_review(self, claim: Claim, images=(), location: Optional[str] = None, **_) -> Claim:
        """
        Handler for when a claim enters AI_REVIEW.

        The claim stays visible in AI_REVIEW while the gateway is awaited.
        A degraded analysis still completes the assessment. A gateway that
        raises sends the claim back to SUBMITTED carrying the manual-review
        fallback, so it always has an estimate to work from.
        """
        location = location or self.default_location
        logger.info(f"Claim {claim.id} entered AI_REVIEW - running damage analysis")

        try:
            analysis = await self.gateway.analyze_damage(images, claim.vehicle_info)
            shops = await self.gateway.find_repair_shops(location)
        except Exception as e:
            logger.error(f"AI gateway raised for claim {claim.id}, reverting to SUBMITTED: {e}")
            return self._store_ai_results(
                claim.id, fallback_analysis(), [], ClaimIntent.REVERT_AI_FAILURE
            )

        if analysis.degraded:
            logger.warning(f"Claim {claim.id}: AI analysis degraded, manual review needed")

        return self._store_ai_results(claim.id, analysis, shops, ClaimIntent.COMPLETE_ASSESSMENT)

    def _store_ai_results(self, claim_id: str, analysis, shops, intent: ClaimIntent) -> Claim:
        def mutate(current: Claim) -> Claim:
            updated = self.state_machine.apply_transition(current, UserRole.SYSTEM, intent)
            updated.ai_damage_assessment = analysis.assessment
            updated.ai_estimate = analysis.estimate
            updated.ai_confidence_score = analysis.confidence_score
            updated.suggested_shops = list(shops)
            if updated.agent_estimate is None:
                updated.current_estimate = analysis.estimate
            return updated

        try:
            return self.store.update(claim_id, mutate)
        except WorkflowError as e:
            # The claim moved on (e.g. rejected) while the gateway was running
            logger.warning(f"Discarding AI results for claim {claim_id}: {e}")
            return self.store.get(claim_id)
