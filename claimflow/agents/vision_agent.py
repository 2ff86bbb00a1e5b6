"""
Vision Agent Module

Damage assessment and repair cost estimation from claim photos using
Ollama + Llama 3.2-Vision.
"""
import base64
import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from claimflow.core.models import Estimate
from claimflow.core.states import EstimateSource
from .parsing import extract_json_text, message_content

logger = logging.getLogger(__name__)

FALLBACK_ASSESSMENT = "AI Analysis unavailable. Please review manually."
FALLBACK_DETAILS = "Manual estimation required."


class DamageImage(BaseModel):
    """Raw photo content as uploaded."""
    data: bytes
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    @classmethod
    def from_base64(cls, encoded: str, mime_type: str = "image/jpeg") -> "DamageImage":
        return cls(data=base64.b64decode(encoded), mime_type=mime_type)


class DamageAssessmentPayload(BaseModel):
    """Schema the vision model must answer with."""
    assessment: str = Field(..., min_length=1, description="Detailed description of damage")
    total_cost: float = Field(..., ge=0, description="Total estimated cost in USD")
    labor_cost: float = Field(..., ge=0, description="Estimated labor cost")
    parts_cost: float = Field(..., ge=0, description="Estimated parts cost")
    repair_details: str = Field(..., description="List of repairs needed")
    confidence: Optional[float] = Field(default=None, description="Confidence in the estimate, 0-100")


class DamageAnalysis(BaseModel):
    """Result handed to the workflow; always well formed."""
    assessment: str
    estimate: Estimate
    confidence_score: Optional[float] = Field(default=None, ge=0, le=100)
    degraded: bool = False


# System prompt for the Insurance Adjuster role
INSURANCE_ADJUSTER_PROMPT = """You are an expert car insurance adjuster AI. Your task is to assess vehicle damage from photos and estimate repair costs.

IMPORTANT INSTRUCTIONS:
1. Describe ALL visible damage in detail (scratches, dents, structural damage) and where it is
2. Estimate the repair costs based on industry standards for the given vehicle model
3. Break the total down into parts and labor

You MUST respond with ONLY a valid JSON object in this exact format:
{
    "assessment": "Detailed description of the damage",
    "total_cost": <total estimated cost in USD>,
    "labor_cost": <estimated labor cost in USD>,
    "parts_cost": <estimated parts cost in USD>,
    "repair_details": "List of repairs needed",
    "confidence": <0-100, how confident you are in this estimate>
}

Do not include any text outside the JSON object. Do not use markdown code blocks."""


def fallback_analysis() -> DamageAnalysis:
    """Degraded result used whenever the model cannot be reached or understood."""
    return DamageAnalysis(
        assessment=FALLBACK_ASSESSMENT,
        estimate=Estimate(
            total_cost=0,
            labor_cost=0,
            parts_cost=0,
            details=FALLBACK_DETAILS,
            source=EstimateSource.AI
        ),
        degraded=True
    )


def _parse_vision_response(response_text: str) -> DamageAnalysis:
    """
    Validate the vision model's response against DamageAssessmentPayload.

    Raises on anything that does not match the schema.
    """
    payload = DamageAssessmentPayload.model_validate_json(extract_json_text(response_text))

    if round(payload.labor_cost + payload.parts_cost, 2) != round(payload.total_cost, 2):
        # AI breakdowns are advisory; stored as returned
        logger.warning(
            f"AI estimate breakdown does not add up: labor {payload.labor_cost} + "
            f"parts {payload.parts_cost} != total {payload.total_cost}"
        )

    confidence = None
    if payload.confidence is not None:
        confidence = max(0.0, min(100.0, payload.confidence))

    return DamageAnalysis(
        assessment=payload.assessment,
        estimate=Estimate(
            total_cost=payload.total_cost,
            labor_cost=payload.labor_cost,
            parts_cost=payload.parts_cost,
            details=payload.repair_details,
            source=EstimateSource.AI
        ),
        confidence_score=confidence
    )


async def analyze_damage(
    client,
    images: Sequence[DamageImage],
    vehicle_info: str,
    model: str = "llama3.2-vision"
) -> DamageAnalysis:
    """
    Assess vehicle damage and estimate repair costs from photos.

    Makes a single call to the model. Any failure (connection, missing
    model, malformed or off-schema output) is logged and replaced by the
    fallback analysis; this function does not raise.

    Args:
        client: An ollama.AsyncClient (or anything with the same chat method)
        images: Photos of the damage
        vehicle_info: e.g. "2020 Honda Civic"
        model: Ollama model to use (default: llama3.2-vision)

    Returns:
        DamageAnalysis with assessment and an AI-sourced estimate
    """
    user_prompt = f"""Analyze the uploaded images of a {vehicle_info}.

1. Describe the visible damage in detail.
2. Estimate the repair costs for this vehicle model.
3. Provide a breakdown of parts vs labor costs.

Respond with ONLY a JSON object as specified."""

    logger.info(f"Analyzing {len(images)} image(s) of a {vehicle_info} with Ollama model '{model}'")

    try:
        encoded: List[str] = [image.to_base64() for image in images]
        response = await client.chat(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": INSURANCE_ADJUSTER_PROMPT
                },
                {
                    "role": "user",
                    "content": user_prompt,
                    "images": encoded
                }
            ],
            format=DamageAssessmentPayload.model_json_schema()
        )

        raw_response = message_content(response)
        logger.info(f"Received response from Ollama: {raw_response[:200]}...")

        return _parse_vision_response(raw_response)

    except Exception as e:
        logger.error(f"AI damage analysis failed, falling back to manual review: {e}")
        return fallback_analysis()
