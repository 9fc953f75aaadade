from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from repo_snapshot.config import AI_MODELS, CHARS_PER_TOKEN, DEFAULT_TOKEN_LIMIT


class TokenEstimate(BaseModel):
    """Approximate size of a text against a model's context budget."""

    model_config = ConfigDict(frozen=True)

    tokens: int = Field(..., ge=0, description="Estimated token count")
    characters: int = Field(..., ge=0, description="Character count of the text")
    within_limit: bool = Field(..., description="Whether tokens <= limit")
    limit: int = Field(..., description="Token limit used for the check")


def estimate_tokens(text: str, limit: int) -> TokenEstimate:
    """Estimate the token count of `text` with the 4-characters-per-token heuristic.

    This is not a tokenizer: it only gives an order of magnitude, good enough
    to decide whether a snapshot fits in a model's context window.

    Args:
        text (str): the text to measure
        limit (int): the token budget

    Returns:
        TokenEstimate: the estimate and whether it fits in `limit`
    """
    characters = len(text)
    tokens = math.ceil(characters / CHARS_PER_TOKEN)
    return TokenEstimate(
        tokens=tokens,
        characters=characters,
        within_limit=tokens <= limit,
        limit=limit,
    )


def resolve_token_limit(model_id: str | None) -> int:
    """Context size of a known model, or `DEFAULT_TOKEN_LIMIT`."""
    if model_id and model_id in AI_MODELS:
        return AI_MODELS[model_id][1]
    return DEFAULT_TOKEN_LIMIT
