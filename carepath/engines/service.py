"""
Recommendation service: AI generation with a rule-engine fallback.

When an Anthropic key is configured the service asks Claude for
recommendations. Any transport failure, error status, unparseable reply or
reply that does not match the output schema hands the request to the rule
engine, which runs its complete path with the same seed.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from anthropic import APIError
from pydantic import BaseModel, Field

from carepath.engines.context import MAX_ACTIVITIES, MAX_FOCUS_AREAS, MAX_GOALS
from carepath.engines.dedup import normalize_text
from carepath.engines.engine import RecommendationEngine, as_payload
from carepath.engines.rng import derive_seed
from carepath.llm import (
    SYSTEM_PROMPT,
    LLMClient,
    LLMResponseError,
    build_prompt,
    extract_json_text,
    get_client,
)
from carepath.models import GenerationResult, IntakeRecord

logger = logging.getLogger(__name__)


class AIRecommendation(BaseModel):
    """Shape a model reply must have to be used."""
    focus_areas: list[str] = Field(min_length=1)
    therapy_goals: list[str]
    activities: list[str]
    notes: str | None = None


def _casefold(item: str) -> str:
    return item.strip().lower()


def _distinct(items: list[str], limit: int, key_fn: Callable[[str], str] = _casefold) -> list[str]:
    seen: set[str] = set()
    kept = []
    for item in items:
        key = key_fn(item)
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(item.strip())
        if len(kept) >= limit:
            break
    return kept


def parse_recommendation(text: str, default_notes: str) -> GenerationResult:
    """
    Turn a model reply into a GenerationResult.

    Raises LLMResponseError (a ValueError) when the reply is not a JSON
    object, and pydantic's ValidationError (also a ValueError) when keys
    are missing or mistyped.
    """
    try:
        data = json.loads(extract_json_text(text))
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise LLMResponseError(f"Reply is a JSON {type(data).__name__}, expected an object")

    rec = AIRecommendation.model_validate(data)
    focus = _distinct(rec.focus_areas, MAX_FOCUS_AREAS)
    if not focus:
        raise LLMResponseError("Reply has no usable focus areas")
    return GenerationResult(
        focus_areas=focus,
        therapy_goals=_distinct(rec.therapy_goals, MAX_GOALS, key_fn=normalize_text),
        activities=_distinct(rec.activities, MAX_ACTIVITIES),
        notes=rec.notes or default_notes,
    )


class RecommendationService:
    """
    Entry point for generating recommendations.

    The LLM client is optional; without one the rule engine is used
    unconditionally.
    """

    def __init__(
        self,
        engine: RecommendationEngine | None = None,
        llm_client: LLMClient | Any | None = None,
        use_llm: bool = True,
    ):
        self.engine = engine or RecommendationEngine()
        if not use_llm:
            self.llm = None
        elif llm_client is not None:
            self.llm = llm_client
        else:
            try:
                self.llm = get_client()
            except ValueError:
                self.llm = None

    @property
    def ai_enabled(self) -> bool:
        return self.llm is not None

    def generate(
        self,
        record: IntakeRecord | Mapping[str, Any],
        seed: int | None = None,
        tick: int | None = None,
    ) -> GenerationResult:
        """Generate recommendations, preferring the AI path when configured."""
        payload = as_payload(record)
        if self.llm is None:
            return self.engine.generate(payload, seed=seed, tick=tick)

        # Fix the seed before the call so a fallback does not depend on its latency.
        if seed is None:
            seed = derive_seed(payload, tick)
        try:
            result = self._generate_with_llm(payload)
        except (APIError, ValueError) as e:
            logger.warning("AI recommendation failed, falling back to rule engine: %s", e)
            return self.engine.generate(payload, seed=seed)
        logger.info("AI recommendation accepted")
        return result

    def _generate_with_llm(self, payload: dict[str, Any]) -> GenerationResult:
        prompt = build_prompt(payload)
        text = self.llm.generate(prompt, system=SYSTEM_PROMPT, max_tokens=1024, temperature=0.7)
        return parse_recommendation(text, default_notes=self.engine.notes)
