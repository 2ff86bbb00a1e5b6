"""Tests for the in-memory claim store."""
import pytest

from claimflow.core.errors import ClaimNotFoundError, WorkflowError
from claimflow.core.models import Claim
from claimflow.core.states import ClaimStatus, UserRole
from claimflow.store.claim_store import ClaimStore


def make_claim(claim_id: str, policy_number: str, status=ClaimStatus.ESTIMATED) -> Claim:
    return Claim(
        id=claim_id,
        policy_number=policy_number,
        policyholder_name="Jane Roe",
        vehicle_model="Toyota Corolla",
        vehicle_year="2019",
        accident_details="Side swipe in a parking lot.",
        status=status
    )


@pytest.fixture
def store():
    store = ClaimStore()
    store.create(make_claim("a1", "POL-100"))
    store.create(make_claim("b2", "POL-200", ClaimStatus.APPROVED))
    store.create(make_claim("c3", "XYZ-300"))
    return store


def test_list_is_most_recent_first(store):
    assert [c.id for c in store.list()] == ["c3", "b2", "a1"]


def test_list_filters(store):
    assert [c.id for c in store.list(query="pol")] == ["b2", "a1"]
    assert [c.id for c in store.list(query="c3")] == ["c3"]
    assert [c.id for c in store.list(status=ClaimStatus.APPROVED)] == ["b2"]
    assert [c.id for c in store.list(predicate=lambda c: c.policy_number.endswith("00"))] == [
        "c3", "b2", "a1"
    ]


def test_find_missing_returns_none(store):
    assert store.find("nope") is None
    with pytest.raises(ClaimNotFoundError):
        store.get("nope")


def test_duplicate_ids_are_refused(store):
    with pytest.raises(WorkflowError):
        store.create(make_claim("a1", "POL-999"))


def test_returned_claims_are_copies(store):
    claim = store.find("a1")
    claim.policy_number = "tampered"
    assert store.find("a1").policy_number == "POL-100"


def test_update_applies_mutation(store):
    def mutate(claim):
        claim.add_comment(UserRole.POLICYHOLDER, "Jane Roe", "Happened yesterday around 5pm.")
        return claim

    updated = store.update("a1", mutate)
    assert updated.comments[-1].text == "Happened yesterday around 5pm."
    assert store.find("a1").comments[-1].text == "Happened yesterday around 5pm."


def test_update_keeps_listing_order(store):
    store.update("a1", lambda claim: claim)
    assert [c.id for c in store.list()] == ["c3", "b2", "a1"]


def test_failed_update_leaves_claim_unchanged(store):
    before = store.find("a1").model_dump()

    def mutate(claim):
        claim.add_comment(UserRole.POLICYHOLDER, "Jane Roe", "half written")
        raise WorkflowError("boom", claim_id=claim.id)

    with pytest.raises(WorkflowError):
        store.update("a1", mutate)
    assert store.find("a1").model_dump() == before


def test_update_missing_claim(store):
    with pytest.raises(ClaimNotFoundError):
        store.update("nope", lambda claim: claim)


def test_mutator_may_not_change_id(store):
    def mutate(claim):
        return claim.model_copy(update={"id": "other"})

    with pytest.raises(WorkflowError):
        store.update("a1", mutate)
    assert "other" not in store
