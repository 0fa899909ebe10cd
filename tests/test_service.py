"""
Tests for the recommendation service and its rule-engine fallback.
"""

import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest
from anthropic import APIConnectionError

from carepath.engines import (
    RecommendationEngine,
    RecommendationService,
    derive_seed,
    normalize_text,
    parse_recommendation,
)
from carepath.llm import LLMResponseError, build_prompt, extract_json_text


PAYLOAD = {
    "age": "4",
    "eye_contact": "Moderate",
    "speech_level": "Limited",
    "social_response": "Passive",
    "sensory_reactions": "Sensitive",
}


class FakeLLM:
    """Stands in for LLMClient; returns a canned reply or raises."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt, system=None, max_tokens=1024, temperature=0.7):
        self.prompts.append((prompt, system))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(scope="module")
def engine():
    return RecommendationEngine(top_up_goals=False)


def _service(engine, **kwargs):
    return RecommendationService(engine=engine, llm_client=FakeLLM(**kwargs))


class TestFallback:
    """Every AI failure hands the request to the rule engine with the same seed."""

    @pytest.mark.parametrize("reply", [
        "not json at all",
        '{"focus_areas": ["Speech"]}',
        '["a", "b"]',
        '{"focus_areas": [], "therapy_goals": [], "activities": []}',
        '{"focus_areas": "Speech", "therapy_goals": [], "activities": []}',
    ])
    def test_bad_reply_falls_back(self, engine, reply):
        service = _service(engine, reply=reply)
        result = service.generate(PAYLOAD, seed=17)
        assert result == engine.generate(PAYLOAD, seed=17)

    def test_transport_error_falls_back(self, engine):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        service = _service(engine, error=APIConnectionError(request=request))
        result = service.generate(PAYLOAD, seed=321)
        assert result == engine.generate(PAYLOAD, seed=321)

    def test_value_error_falls_back(self, engine):
        service = _service(engine, error=ValueError("boom"))
        assert service.generate(PAYLOAD, seed=5) == engine.generate(PAYLOAD, seed=5)

    def test_fallback_uses_tick_seed(self, engine):
        service = _service(engine, error=LLMResponseError("empty"))
        tick = 1700000123
        result = service.generate(PAYLOAD, tick=tick)
        assert result == engine.generate(PAYLOAD, seed=derive_seed(PAYLOAD, tick))

    def test_unexpected_errors_propagate(self, engine):
        service = _service(engine, error=RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            service.generate(PAYLOAD, seed=1)

    def test_fallback_is_logged(self, engine, caplog):
        service = _service(engine, reply="nope")
        with caplog.at_level("WARNING", logger="carepath.engines.service"):
            service.generate(PAYLOAD, seed=2)
        assert "falling back to rule engine" in caplog.text


class TestAIPath:
    """Test accepted AI replies."""

    def test_valid_reply_used(self, engine):
        reply = json.dumps({
            "focus_areas": ["Speech", "Sensory regulation"],
            "therapy_goals": ["Use two-word phrases", "Tolerate hand washing"],
            "activities": ["Picture cards: name each picture together"],
        })
        service = _service(engine, reply=reply)
        result = service.generate(PAYLOAD, seed=9)
        assert result.focus_areas == ["Speech", "Sensory regulation"]
        assert result.therapy_goals == ["Use two-word phrases", "Tolerate hand washing"]
        assert result.activities == ["Picture cards: name each picture together"]
        assert result.notes == engine.notes

    def test_reply_notes_kept(self, engine):
        reply = json.dumps({
            "focus_areas": ["Speech"],
            "therapy_goals": [],
            "activities": [],
            "notes": "Review in a month.",
        })
        result = _service(engine, reply=reply).generate(PAYLOAD)
        assert result.notes == "Review in a month."

    def test_reply_capped_and_deduplicated(self, engine):
        reply = json.dumps({
            "focus_areas": [f"Area {i}" for i in range(10)],
            "therapy_goals": ["Goal A", "goal a", "Goal B"] + [f"Goal {i}" for i in range(10)],
            "activities": [f"Activity {i}" for i in range(12)],
        })
        result = _service(engine, reply=reply).generate(PAYLOAD)
        assert len(result.focus_areas) == 6
        assert result.therapy_goals[:2] == ["Goal A", "Goal B"]
        assert len(result.therapy_goals) == 6
        assert len(result.activities) == 8

    def test_goal_variants_collapse_after_normalization(self, engine):
        reply = json.dumps({
            "focus_areas": ["Social skills"],
            "therapy_goals": ["Practice turn-taking.", "practice turntaking", "Practice   turn taking!", "Name colors"],
            "activities": [],
        })
        result = _service(engine, reply=reply).generate(PAYLOAD)
        assert result.therapy_goals == ["Practice turn-taking.", "Practice   turn taking!", "Name colors"]
        normalized = [normalize_text(g) for g in result.therapy_goals]
        assert len(set(normalized)) == len(normalized)

    def test_code_fenced_reply(self, engine):
        reply = '```json\n{"focus_areas": ["Speech"], "therapy_goals": ["Goal"], "activities": []}\n```'
        result = _service(engine, reply=reply).generate(PAYLOAD)
        assert result.focus_areas == ["Speech"]

    def test_malformed_emotion_breakdown(self, engine):
        reply = json.dumps({"focus_areas": ["Speech"], "therapy_goals": [], "activities": []})
        llm = FakeLLM(reply=reply)
        service = RecommendationService(engine=engine, llm_client=llm)
        payload = dict(PAYLOAD, emotion_data={
            "dominant_emotion": "sad",
            "confidence": 60,
            "all_emotions": [["sad", 60]],
        })
        result = service.generate(payload, seed=1)
        assert result.focus_areas == ["Speech"]
        prompt, _ = llm.prompts[0]
        assert "Primary emotion detected is sad with 60% confidence." in prompt
        assert "All emotions detected" not in prompt

    def test_prompt_mentions_emotion(self, engine):
        llm = FakeLLM(error=ValueError("skip"))
        service = RecommendationService(engine=engine, llm_client=llm)
        payload = dict(PAYLOAD, emotion_data={
            "dominant_emotion": "sad",
            "confidence": 60,
            "all_emotions": {"sad": 60, "happy": 40},
        })
        service.generate(payload, seed=1)
        prompt, system = llm.prompts[0]
        assert "Primary emotion detected is sad with 60% confidence" in prompt
        assert "Child age: 4" in prompt
        assert "JSON" in system


class TestServiceConfig:
    """Test service construction."""

    def test_no_llm(self, engine):
        service = RecommendationService(engine=engine, use_llm=False)
        assert not service.ai_enabled
        assert service.generate(PAYLOAD, seed=3) == engine.generate(PAYLOAD, seed=3)

    def test_tick_parity_without_llm(self, engine):
        service = RecommendationService(engine=engine, use_llm=False)
        tick = 1700000000
        assert service.generate(PAYLOAD, tick=tick) == engine.generate(PAYLOAD, tick=tick)

    def test_missing_key_disables_ai(self, engine, monkeypatch):
        from carepath.llm import set_client

        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        set_client(None)
        service = RecommendationService(engine=engine)
        assert not service.ai_enabled


class TestParsing:
    """Test reply parsing helpers."""

    def test_extract_json_text(self):
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert extract_json_text('```\n{"a": 1}\n```') == '{"a": 1}'
        assert extract_json_text('  {"a": 1}  ') == '{"a": 1}'

    def test_parse_non_object(self):
        with pytest.raises(LLMResponseError):
            parse_recommendation("[1, 2]", default_notes="n")

    def test_parse_missing_keys(self):
        with pytest.raises(ValueError):
            parse_recommendation('{"focus_areas": ["x"]}', default_notes="n")

    def test_build_prompt_without_emotion(self):
        prompt = build_prompt(PAYLOAD)
        assert "Emotion Analysis" not in prompt
        assert "Sensory reactions: Sensitive" in prompt


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
