"""
AI Gateway

Bundles the vision, shop and judge agents around a single Ollama client.
"""
from typing import List, Optional, Protocol, Sequence

import ollama

from claimflow.config import Settings, get_settings
from claimflow.core.models import Estimate, RepairShopSuggestion
from .shop_agent import find_repair_shops
from .text_agent import judge_estimate
from .vision_agent import DamageAnalysis, DamageImage, analyze_damage


class AIGateway(Protocol):
    """What the intake flow needs from an AI provider."""

    async def analyze_damage(
        self, images: Sequence[DamageImage], vehicle_info: str
    ) -> DamageAnalysis: ...

    async def find_repair_shops(self, location: str) -> List[RepairShopSuggestion]: ...

    async def judge_estimate(
        self, current_estimate: Estimate, new_amount: float, justification: str
    ) -> str: ...


class OllamaGateway:
    """AIGateway backed by a local Ollama server. One attempt per call, no retries."""

    def __init__(self, client=None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.client = client or ollama.AsyncClient(host=self.settings.ollama_host)

    async def analyze_damage(
        self, images: Sequence[DamageImage], vehicle_info: str
    ) -> DamageAnalysis:
        return await analyze_damage(
            self.client, images, vehicle_info, model=self.settings.vision_model
        )

    async def find_repair_shops(self, location: str) -> List[RepairShopSuggestion]:
        return await find_repair_shops(self.client, location, model=self.settings.text_model)

    async def judge_estimate(
        self, current_estimate: Estimate, new_amount: float, justification: str
    ) -> str:
        return await judge_estimate(
            self.client, current_estimate, new_amount, justification,
            model=self.settings.text_model
        )
