"""Tests for the claim status state machine and its role-permission matrix."""
import pytest

from claimflow.core.errors import ClaimValidationError, InvalidTransitionError, TerminalStateError
from claimflow.core.models import Claim
from claimflow.core.states import ClaimIntent, ClaimStatus, UserRole
from claimflow.state_machine.machine import ClaimStateMachine


LEGAL = [
    (ClaimStatus.SUBMITTED, UserRole.SYSTEM, ClaimIntent.ACCEPT_FOR_AI_REVIEW, ClaimStatus.AI_REVIEW),
    (ClaimStatus.AI_REVIEW, UserRole.SYSTEM, ClaimIntent.COMPLETE_ASSESSMENT, ClaimStatus.ESTIMATED),
    (ClaimStatus.AI_REVIEW, UserRole.SYSTEM, ClaimIntent.REVERT_AI_FAILURE, ClaimStatus.SUBMITTED),
    (ClaimStatus.ESTIMATED, UserRole.INSURANCE_AGENT, ClaimIntent.APPROVE_ESTIMATE, ClaimStatus.APPROVED),
    (ClaimStatus.APPROVED, UserRole.REPAIR_SHOP, ClaimIntent.RECEIVE_VEHICLE, ClaimStatus.IN_REPAIR),
    (ClaimStatus.IN_REPAIR, UserRole.REPAIR_SHOP, ClaimIntent.COMPLETE_REPAIR, ClaimStatus.PICK_UP_PENDING),
    (ClaimStatus.PICK_UP_PENDING, UserRole.POLICYHOLDER, ClaimIntent.CONFIRM_PICKUP, ClaimStatus.CLOSED),
]

NON_TERMINAL = [s for s in ClaimStatus if not s.is_terminal]
TERMINAL = [ClaimStatus.CLOSED, ClaimStatus.REJECTED]


def make_claim(status: ClaimStatus) -> Claim:
    return Claim(
        id="claim-1",
        policy_number="POL-883920",
        policyholder_name="John Doe",
        vehicle_model="Honda Civic",
        vehicle_year="2020",
        accident_details="Rear-ended at a stop sign.",
        status=status,
        status_history=[status]
    )


@pytest.fixture
def machine():
    return ClaimStateMachine()


class TestLegalTransitions:

    @pytest.mark.parametrize("from_status,role,intent,to_status", LEGAL)
    def test_table_entry_moves_claim(self, machine, from_status, role, intent, to_status):
        claim = make_claim(from_status)
        updated = machine.apply_transition(claim, role, intent)

        assert updated.status == to_status
        assert updated.status_history[-2:] == [from_status, to_status]
        assert updated.updated_at > claim.updated_at
        # Pure status change, no comments
        assert updated.comments == []

    @pytest.mark.parametrize("from_status,role,intent,to_status", LEGAL)
    def test_input_claim_is_left_untouched(self, machine, from_status, role, intent, to_status):
        claim = make_claim(from_status)
        before = claim.model_dump()
        machine.apply_transition(claim, role, intent)
        assert claim.model_dump() == before

    @pytest.mark.parametrize("status", NON_TERMINAL)
    def test_agent_can_reject_any_open_claim(self, machine, status):
        claim = make_claim(status)
        updated = machine.apply_transition(
            claim, UserRole.INSURANCE_AGENT, ClaimIntent.REJECT, reason="Fraud suspected"
        )

        assert updated.status == ClaimStatus.REJECTED
        assert len(updated.comments) == 1
        comment = updated.comments[-1]
        assert comment.text == "CLAIM REJECTED: Fraud suspected"
        assert comment.author_role == UserRole.INSURANCE_AGENT


class TestIllegalTransitions:

    @pytest.mark.parametrize("status", NON_TERMINAL)
    @pytest.mark.parametrize("role", list(UserRole))
    @pytest.mark.parametrize("intent", [i for i in ClaimIntent if i != ClaimIntent.REJECT])
    def test_out_of_table_triples_are_rejected(self, machine, status, role, intent):
        legal = {(s, r, i) for s, r, i, _ in LEGAL}
        if (status, role, intent) in legal:
            pytest.skip("legal transition")

        claim = make_claim(status)
        before = claim.model_dump()
        with pytest.raises(InvalidTransitionError):
            machine.apply_transition(claim, role, intent)
        assert claim.model_dump() == before

    @pytest.mark.parametrize("role", [UserRole.POLICYHOLDER, UserRole.REPAIR_SHOP, UserRole.SYSTEM])
    def test_only_agents_reject(self, machine, role):
        with pytest.raises(InvalidTransitionError):
            machine.apply_transition(
                make_claim(ClaimStatus.ESTIMATED), role, ClaimIntent.REJECT, reason="no"
            )

    @pytest.mark.parametrize("status", TERMINAL)
    @pytest.mark.parametrize("intent", list(ClaimIntent))
    def test_terminal_claims_refuse_everything(self, machine, status, intent):
        claim = make_claim(status)
        with pytest.raises(TerminalStateError):
            machine.apply_transition(claim, UserRole.INSURANCE_AGENT, intent, reason="again")

    def test_rejecting_twice_fails_with_terminal_state(self, machine):
        rejected = machine.apply_transition(
            make_claim(ClaimStatus.ESTIMATED), UserRole.INSURANCE_AGENT, ClaimIntent.REJECT,
            reason="Fraud suspected"
        )
        with pytest.raises(TerminalStateError):
            machine.apply_transition(
                rejected, UserRole.INSURANCE_AGENT, ClaimIntent.REJECT, reason="Fraud suspected"
            )

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_rejection_requires_reason(self, machine, reason):
        claim = make_claim(ClaimStatus.ESTIMATED)
        with pytest.raises(ClaimValidationError):
            machine.apply_transition(claim, UserRole.INSURANCE_AGENT, ClaimIntent.REJECT, reason=reason)
        assert claim.status == ClaimStatus.ESTIMATED
        assert claim.comments == []


class TestValidIntents:

    def test_role_gated_actions(self, machine):
        assert machine.get_valid_intents(make_claim(ClaimStatus.ESTIMATED), UserRole.INSURANCE_AGENT) == [
            ClaimIntent.APPROVE_ESTIMATE,
            ClaimIntent.REJECT,
        ]
        assert machine.get_valid_intents(make_claim(ClaimStatus.APPROVED), UserRole.REPAIR_SHOP) == [
            ClaimIntent.RECEIVE_VEHICLE
        ]
        assert machine.get_valid_intents(make_claim(ClaimStatus.PICK_UP_PENDING), UserRole.POLICYHOLDER) == [
            ClaimIntent.CONFIRM_PICKUP
        ]
        assert machine.get_valid_intents(make_claim(ClaimStatus.ESTIMATED), UserRole.POLICYHOLDER) == []

    @pytest.mark.parametrize("status", TERMINAL)
    def test_terminal_claims_have_no_intents(self, machine, status):
        for role in UserRole:
            assert machine.get_valid_intents(make_claim(status), role) == []
