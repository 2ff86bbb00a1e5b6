"""
Estimate Judge Agent Module

Asks Ollama + Llama 3 to act as a senior adjuster and give a one-sentence
verdict on a negotiated estimate.
"""
import logging

from claimflow.core.models import Estimate
from claimflow.state_machine.negotiation import format_currency
from .parsing import message_content

logger = logging.getLogger(__name__)

JUDGE_UNAVAILABLE = "Manual review required."
JUDGE_EMPTY = "Review pending."


async def judge_estimate(
    client,
    current_estimate: Estimate,
    new_amount: float,
    justification: str,
    model: str = "llama3"
) -> str:
    """
    Judge whether a proposed estimate is reasonable against the current one.

    Args:
        client: An ollama.AsyncClient (or anything with the same chat method)
        current_estimate: The estimate being countered
        new_amount: Proposed total in USD
        justification: Reason given by the proposer
        model: Ollama model to use (default: llama3)

    Returns:
        A short verdict; a manual-review marker if the model fails
    """
    prompt = f"""Act as a senior insurance adjuster judge.
Original Estimate: {format_currency(current_estimate.total_cost)}.
Proposed New Estimate: {format_currency(new_amount)}.
Justification: {justification}.

Is this change reasonable? Provide a short 1 sentence verdict."""

    try:
        response = await client.chat(
            model=model,
            messages=[{"role": "user", "content": prompt}]
        )
        verdict = message_content(response).strip()
    except Exception as e:
        logger.error(f"Estimate judge failed: {e}")
        return JUDGE_UNAVAILABLE

    return verdict or JUDGE_EMPTY
