"""Shared fixtures: a scripted AI gateway and engines built around it."""
import pytest
import pytest_asyncio

from claimflow.agents.vision_agent import DamageAnalysis, DamageImage
from claimflow.config import Settings
from claimflow.core.models import ClaimCreate, Estimate, RepairShopSuggestion
from claimflow.core.states import EstimateSource
from claimflow.state_machine.engine import WorkflowEngine


AI_ESTIMATE = Estimate(
    total_cost=1200,
    labor_cost=500,
    parts_cost=700,
    details="Replace Rear Bumper Cover, Replace Impact Absorber, Paint & Blend.",
    source=EstimateSource.AI
)

SHOPS = [
    RepairShopSuggestion(name="Downtown Auto Fix", address="123 Main St", rating="4.5"),
    RepairShopSuggestion(name="Quick Collision", address="44 Broadway", rating="4.2"),
]


class FakeGateway:
    """AIGateway double that records calls and returns scripted results."""

    def __init__(self, analysis=None, shops=None, error=None, verdict="Increase looks reasonable."):
        self.analysis = analysis or DamageAnalysis(
            assessment="Significant denting on rear bumper cover.",
            estimate=AI_ESTIMATE,
            confidence_score=87
        )
        self.shops = SHOPS if shops is None else shops
        self.error = error
        self.verdict = verdict
        self.analyze_calls = []
        self.shop_calls = []
        self.judge_calls = []

    async def analyze_damage(self, images, vehicle_info):
        self.analyze_calls.append((list(images), vehicle_info))
        if self.error:
            raise self.error
        return self.analysis

    async def find_repair_shops(self, location):
        self.shop_calls.append(location)
        return list(self.shops)

    async def judge_estimate(self, current_estimate, new_amount, justification):
        self.judge_calls.append((current_estimate, new_amount, justification))
        return self.verdict


def ollama_reply(content: str) -> dict:
    """Shape of an ollama chat response as the agents read it."""
    return {"message": {"role": "assistant", "content": content}}


@pytest.fixture
def settings():
    return Settings(default_shop_location="Springfield")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def engine(gateway, settings):
    return WorkflowEngine(gateway=gateway, settings=settings)


@pytest.fixture
def claim_data():
    return ClaimCreate(
        policy_number="POL-1",
        policyholder_name="John Doe",
        vehicle_model="Honda Civic",
        vehicle_year="2020",
        accident_details="Rear-ended at a stop sign. Bumper dented."
    )


@pytest.fixture
def photo():
    return DamageImage(data=b"\x89PNG fake image bytes", mime_type="image/png")


@pytest_asyncio.fixture
async def estimated_claim(engine, claim_data, photo):
    """A claim that went through AI review and sits in Estimated."""
    return await engine.submit_claim(claim_data, [photo])
