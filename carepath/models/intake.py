"""
Core data models for carepath.

These Pydantic models describe the intake questionnaire, the optional
emotion estimate attached to it, and the recommendation result returned
by the generation engine.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class EyeContact(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    POOR = "Poor"


class SpeechLevel(str, Enum):
    FLUENT = "Fluent"
    MODERATE = "Moderate"
    LIMITED = "Limited"


class SocialResponse(str, Enum):
    ACTIVE = "Active"
    PASSIVE = "Passive"
    WITHDRAWN = "Withdrawn"


class SensoryReactions(str, Enum):
    TYPICAL = "Typical"
    SENSITIVE = "Sensitive"
    UNDER_RESPONSIVE = "Under-responsive"


class Emotion(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FEAR = "fear"
    SURPRISE = "surprise"
    DISGUST = "disgust"
    NEUTRAL = "neutral"


# =============================================================================
# VALIDATION
# =============================================================================

REQUIRED_FIELDS = ["age", "eye_contact", "speech_level", "social_response", "sensory_reactions"]

IDENTITY_FIELDS = ["child_name", "father_name", "mother_name"]

EXAMPLE_PAYLOAD = {
    "age": "2",
    "eye_contact": "Moderate",
    "speech_level": "Passive",
    "social_response": "Active",
    "sensory_reactions": "Sensitive",
}


class MissingFieldsError(ValueError):
    """Raised when required intake fields are absent or blank."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"The following fields are required: {', '.join(missing)}")


def find_missing_fields(payload: Mapping[str, Any]) -> list[str]:
    """Return the required fields that are absent, null or blank."""
    missing = []
    for name in REQUIRED_FIELDS:
        value = payload.get(name)
        if value is None or str(value).strip() == "":
            missing.append(name)
    return missing


def validate_intake(payload: Mapping[str, Any]) -> None:
    """Raise MissingFieldsError if any required field is missing."""
    missing = find_missing_fields(payload)
    if missing:
        raise MissingFieldsError(missing)


# =============================================================================
# MODELS
# =============================================================================


class EmotionEstimate(BaseModel):
    """Heuristic emotion reading attached to an intake record."""
    dominant_emotion: Emotion
    confidence: float = Field(gt=0, le=100)
    all_emotions: dict[Emotion, float]

    @model_validator(mode="after")
    def _check_distribution(self) -> "EmotionEstimate":
        if self.dominant_emotion not in self.all_emotions:
            raise ValueError("dominant_emotion missing from all_emotions")
        if self.all_emotions[self.dominant_emotion] != self.confidence:
            raise ValueError("confidence must equal the dominant emotion's percentage")
        total = sum(self.all_emotions.values())
        if abs(total - 100) > 0.5:
            raise ValueError(f"emotion percentages sum to {total}, expected 100")
        return self

    def sorted_emotions(self) -> list[tuple[str, float]]:
        """Emotions ordered from highest to lowest percentage."""
        return sorted(
            ((e.value, pct) for e, pct in self.all_emotions.items()),
            key=lambda item: item[1],
            reverse=True,
        )


class IntakeRecord(BaseModel):
    """A submitted intake questionnaire."""
    age: int = Field(ge=1, le=18, description="Child age in years")
    eye_contact: EyeContact
    speech_level: SpeechLevel
    social_response: SocialResponse
    sensory_reactions: SensoryReactions
    child_name: str | None = None
    father_name: str | None = None
    mother_name: str | None = None
    emotion_data: EmotionEstimate | None = None

    model_config = {"frozen": True}

    def to_payload(self) -> dict[str, Any]:
        """Plain request payload, as the HTTP surface would receive it."""
        return self.model_dump(mode="json", exclude_none=True)


class GenerationResult(BaseModel):
    """Recommendation output. Built once per submission."""
    focus_areas: list[str] = Field(max_length=6)
    therapy_goals: list[str] = Field(max_length=6)
    activities: list[str] = Field(max_length=8)
    notes: str

    model_config = {"frozen": True}
