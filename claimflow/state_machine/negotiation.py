"""
Estimate Negotiation

Repair shops and insurance agents counter the AI estimate with their own
proposals. Agent proposals are authoritative and replace the current
estimate; shop proposals are recorded alongside it.
"""
import logging
import math
from numbers import Real
from typing import Optional

from claimflow.core.errors import ClaimValidationError, InvalidTransitionError, TerminalStateError
from claimflow.core.models import Claim, Estimate
from claimflow.core.states import EstimateSource, UserRole

logger = logging.getLogger(__name__)

# Fixed labor/parts split for negotiated estimates, not a costing model
LABOR_SHARE = 0.6

PROPOSER_SOURCES = {
    UserRole.REPAIR_SHOP: EstimateSource.REPAIR_SHOP,
    UserRole.INSURANCE_AGENT: EstimateSource.INSURANCE_AGENT,
}


def format_currency(amount: float) -> str:
    """Format an amount the way the activity feed shows it, e.g. $1,500.00."""
    return f"${amount:,.2f}"


def split_estimate(total_amount: float, details: str, source: EstimateSource) -> Estimate:
    """Build an estimate whose labor and parts add up exactly to the total."""
    labor = round(total_amount * LABOR_SHARE, 2)
    parts = total_amount - labor
    return Estimate(
        total_cost=total_amount,
        labor_cost=labor,
        parts_cost=parts,
        details=details,
        source=source
    )


def resolve_current_estimate(claim: Claim) -> Optional[Estimate]:
    """
    The estimate that takes precedence for display and approval.

    Agent estimate > repair shop estimate > AI estimate.
    """
    return claim.active_estimate()


def validate_amount(claim_id: str, total_amount) -> float:
    if isinstance(total_amount, bool) or not isinstance(total_amount, Real):
        raise ClaimValidationError(
            f"Estimate amount must be a number, got {total_amount!r}",
            claim_id=claim_id
        )
    amount = float(total_amount)
    if not math.isfinite(amount) or amount < 0:
        raise ClaimValidationError(
            f"Estimate amount must be a finite non-negative number, got {total_amount!r}",
            claim_id=claim_id
        )
    return amount


def validate_justification(claim_id: str, justification: Optional[str]) -> str:
    if justification is None or not justification.strip():
        raise ClaimValidationError("An estimate proposal requires a justification", claim_id=claim_id)
    return justification.strip()


def propose_estimate(
    claim: Claim,
    role: UserRole,
    total_amount: float,
    justification: str
) -> Claim:
    """
    Record a negotiated estimate on a copy of the claim.

    Args:
        claim: The claim being negotiated (left untouched)
        role: Repair Shop or Insurance Agent
        total_amount: Proposed total in USD
        justification: Why the amount differs

    Returns:
        Updated copy carrying the estimate and one proposal comment

    Raises:
        TerminalStateError: If the claim is Closed or Rejected
        InvalidTransitionError: If the role may not propose estimates
        ClaimValidationError: On a bad amount or blank justification
    """
    if claim.is_terminal:
        raise TerminalStateError(
            f"Claim {claim.id} is {claim.status.value}; estimates can no longer change",
            claim_id=claim.id
        )

    source = PROPOSER_SOURCES.get(role)
    if source is None:
        raise InvalidTransitionError(
            f"{role.value} cannot propose estimates",
            claim_id=claim.id,
            details={"role": role.value}
        )

    amount = validate_amount(claim.id, total_amount)
    justification = validate_justification(claim.id, justification)

    estimate = split_estimate(amount, justification, source)
    updated = claim.model_copy(deep=True)

    if role == UserRole.INSURANCE_AGENT:
        updated.agent_estimate = estimate
        updated.current_estimate = estimate
    else:
        updated.repair_shop_estimate = estimate
        # A shop estimate only fills an empty slot; it never replaces one
        if updated.current_estimate is None and updated.agent_estimate is None:
            updated.current_estimate = estimate

    updated.add_comment(
        author_role=role,
        author_name=role.value,
        text=f"Proposed new estimate: {format_currency(amount)}. Reason: {justification}"
    )

    logger.info(f"Claim {claim.id}: {role.value} proposed {format_currency(amount)}")
    return updated
