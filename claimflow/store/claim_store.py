"""
Claim Store

In-memory collection of claim records for one session.
"""
import logging
from typing import Callable, Dict, List, Optional

from claimflow.core.errors import ClaimNotFoundError, WorkflowError
from claimflow.core.models import Claim
from claimflow.core.states import ClaimStatus

logger = logging.getLogger(__name__)


class ClaimStore:
    """
    Claims keyed by id, listed most recent first.

    Updates are all-or-nothing: the mutator works on a copy, and the copy
    replaces the stored record only if the mutator returns without raising.
    Records handed out are copies, so callers cannot change stored state.
    """

    def __init__(self):
        self._claims: Dict[str, Claim] = {}

    def __len__(self) -> int:
        return len(self._claims)

    def __contains__(self, claim_id: str) -> bool:
        return claim_id in self._claims

    def create(self, claim: Claim) -> Claim:
        if claim.id in self._claims:
            raise WorkflowError(f"Claim {claim.id} already exists", claim_id=claim.id)
        self._claims[claim.id] = claim.model_copy(deep=True)
        logger.info(f"Stored new claim {claim.id}")
        return claim.model_copy(deep=True)

    def find(self, claim_id: str) -> Optional[Claim]:
        claim = self._claims.get(claim_id)
        return claim.model_copy(deep=True) if claim else None

    def get(self, claim_id: str) -> Claim:
        """Like find, but raises ClaimNotFoundError when absent."""
        claim = self.find(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    def update(self, claim_id: str, mutator: Callable[[Claim], Claim]) -> Claim:
        """
        Apply one logical mutation to a stored claim.

        Args:
            claim_id: Claim to update
            mutator: Receives a copy of the claim and returns the new record

        Returns:
            The stored result

        Raises:
            ClaimNotFoundError: If no claim has that id
            Whatever the mutator raises; the stored claim is then unchanged
        """
        current = self.get(claim_id)
        updated = mutator(current)
        if updated.id != claim_id:
            raise WorkflowError(
                f"Mutator changed claim id from {claim_id} to {updated.id}", claim_id=claim_id
            )
        # Re-insert keeps the original insertion position
        self._claims[claim_id] = updated.model_copy(deep=True)
        return updated

    def list(
        self,
        query: Optional[str] = None,
        status: Optional[ClaimStatus] = None,
        predicate: Optional[Callable[[Claim], bool]] = None
    ) -> List[Claim]:
        """
        List claims, most recently created first.

        Args:
            query: Case-insensitive match on policy number, or substring of the id
            status: Only claims currently in this status
            predicate: Any further filter
        """
        results = []
        needle = query.lower() if query else None
        for claim in reversed(list(self._claims.values())):
            if needle and needle not in claim.policy_number.lower() and query not in claim.id:
                continue
            if status is not None and claim.status != status:
                continue
            if predicate is not None and not predicate(claim):
                continue
            results.append(claim.model_copy(deep=True))
        return results
