"""
Tests for intake models, validation and the placeholder emotion estimate.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from pydantic import ValidationError

from carepath.engines import emotion_level, estimate_emotions
from carepath.models import (
    EmotionEstimate,
    GenerationResult,
    IntakeRecord,
    MissingFieldsError,
    REQUIRED_FIELDS,
    find_missing_fields,
    validate_intake,
)


class TestIntakeValidation:
    """Test required-field checks."""

    def test_all_missing(self):
        assert find_missing_fields({}) == REQUIRED_FIELDS

    def test_blank_and_null_count_as_missing(self):
        payload = {
            "age": "3",
            "eye_contact": "  ",
            "speech_level": None,
            "social_response": "Active",
            "sensory_reactions": "Typical",
        }
        assert find_missing_fields(payload) == ["eye_contact", "speech_level"]

    def test_zero_age_is_present(self):
        payload = {f: "x" for f in REQUIRED_FIELDS}
        payload["age"] = 0
        assert find_missing_fields(payload) == []

    def test_validate_raises(self):
        with pytest.raises(MissingFieldsError) as exc_info:
            validate_intake({"age": "3"})
        assert exc_info.value.missing == REQUIRED_FIELDS[1:]
        assert "eye_contact" in str(exc_info.value)


class TestIntakeRecord:
    """Test the typed intake record."""

    def test_payload_excludes_unset(self):
        record = IntakeRecord(
            age=5,
            eye_contact="Poor",
            speech_level="Fluent",
            social_response="Active",
            sensory_reactions="Under-responsive",
        )
        assert record.to_payload() == {
            "age": 5,
            "eye_contact": "Poor",
            "speech_level": "Fluent",
            "social_response": "Active",
            "sensory_reactions": "Under-responsive",
        }

    @pytest.mark.parametrize("age", [0, 19])
    def test_age_bounds(self, age):
        with pytest.raises(ValidationError):
            IntakeRecord(
                age=age,
                eye_contact="Poor",
                speech_level="Fluent",
                social_response="Active",
                sensory_reactions="Typical",
            )

    def test_unknown_rating(self):
        with pytest.raises(ValidationError):
            IntakeRecord(
                age=4,
                eye_contact="Excellent",
                speech_level="Fluent",
                social_response="Active",
                sensory_reactions="Typical",
            )

    def test_result_caps(self):
        with pytest.raises(ValidationError):
            GenerationResult(
                focus_areas=["a"] * 7,
                therapy_goals=[],
                activities=[],
                notes="",
            )


class TestEmotionEstimate:
    """Test emotion estimate validation and generation."""

    def test_valid(self):
        estimate = EmotionEstimate(
            dominant_emotion="happy",
            confidence=70,
            all_emotions={"happy": 70, "sad": 20, "neutral": 10},
        )
        assert estimate.sorted_emotions()[0] == ("happy", 70)

    def test_confidence_must_match(self):
        with pytest.raises(ValidationError):
            EmotionEstimate(
                dominant_emotion="happy",
                confidence=60,
                all_emotions={"happy": 70, "sad": 30},
            )

    def test_sum_must_be_100(self):
        with pytest.raises(ValidationError):
            EmotionEstimate(
                dominant_emotion="happy",
                confidence=70,
                all_emotions={"happy": 70, "sad": 20},
            )

    def test_dominant_must_be_listed(self):
        with pytest.raises(ValidationError):
            EmotionEstimate(
                dominant_emotion="fear",
                confidence=50,
                all_emotions={"happy": 50, "sad": 50},
            )

    @pytest.mark.parametrize("seed", range(25))
    def test_estimate_invariants(self, seed):
        estimate = estimate_emotions(seed)
        values = list(estimate.all_emotions.values())
        assert len(values) == 7
        assert sum(values) == 100
        assert all(v >= 1 for v in values)
        assert 35 <= estimate.confidence <= 74
        assert estimate.all_emotions[estimate.dominant_emotion] == estimate.confidence

    @pytest.mark.parametrize("seed", range(200))
    def test_dominant_is_strictly_largest(self, seed):
        estimate = estimate_emotions(seed)
        others = [v for e, v in estimate.all_emotions.items() if e != estimate.dominant_emotion]
        assert max(others) < estimate.confidence

    def test_estimate_reproducible(self):
        assert estimate_emotions(12) == estimate_emotions(12)

    @pytest.mark.parametrize("pct,level", [
        (75, "High"),
        (51, "High"),
        (50, "Moderate"),
        (31, "Moderate"),
        (30, "Low"),
        (16, "Low"),
        (15, "Minimal"),
        (0, "Minimal"),
    ])
    def test_emotion_level(self, pct, level):
        assert emotion_level(pct) == level


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
