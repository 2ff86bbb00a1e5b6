"""
Repair Shop Agent Module

Suggests auto body repair shops near a location using Ollama + Llama 3.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from claimflow.core.models import RepairShopSuggestion
from .parsing import extract_json_text, message_content

logger = logging.getLogger(__name__)


class ShopEntry(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    rating: Optional[str] = None
    website_uri: Optional[str] = None


class ShopSearchPayload(BaseModel):
    """Schema the text model must answer with."""
    shops: List[ShopEntry] = Field(default_factory=list)


SHOP_FINDER_PROMPT = """You help insurance claimants find auto body repair shops.

You MUST respond with ONLY a valid JSON object in this exact format:
{
    "shops": [
        {"name": "Shop name", "address": "Street address", "rating": "4.5", "website_uri": "https://..."}
    ]
}

"rating" and "website_uri" may be null when unknown. Return an empty list if you know of no shops.
Do not include any text outside the JSON object. Do not use markdown code blocks."""


async def find_repair_shops(
    client,
    location: str,
    model: str = "llama3"
) -> List[RepairShopSuggestion]:
    """
    Find top rated auto body repair shops in or near a location.

    Makes a single call to the model. On any failure the result is an
    empty list, meaning "no suggestions available".

    Args:
        client: An ollama.AsyncClient (or anything with the same chat method)
        location: Free-text location descriptor
        model: Ollama model to use (default: llama3)

    Returns:
        Shop suggestions in the order the model gave them
    """
    logger.info(f"Searching repair shops near '{location}' with Ollama model '{model}'")

    try:
        response = await client.chat(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": SHOP_FINDER_PROMPT
                },
                {
                    "role": "user",
                    "content": f"Find top rated auto body repair shops in or near {location}. "
                               f"Provide their names and addresses."
                }
            ],
            format=ShopSearchPayload.model_json_schema()
        )

        payload = ShopSearchPayload.model_validate_json(extract_json_text(message_content(response)))

    except Exception as e:
        logger.error(f"Repair shop search failed: {e}")
        return []

    shops = [RepairShopSuggestion(**entry.model_dump()) for entry in payload.shops]
    logger.info(f"Found {len(shops)} repair shop suggestion(s)")
    return shops
