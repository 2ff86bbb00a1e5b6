"""Helpers for pulling JSON out of model responses."""
import re

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def extract_json_text(response_text: str) -> str:
    """
    Return the JSON document inside a model response.

    Strips Markdown code fences and any prose around the outermost
    object or array. The result still has to be validated by the caller.
    """
    text = (response_text or "").strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    if text[:1] in ("{", "["):
        return text

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise ValueError("No JSON found in model response")
    start = min(starts)
    closing = "}" if text[start] == "{" else "]"
    end = text.rfind(closing)
    if end <= start:
        raise ValueError("Unterminated JSON in model response")
    return text[start:end + 1]


def message_content(response) -> str:
    """Text content of an ollama chat response."""
    return response["message"]["content"] or ""
