"""
Data models for carepath.
"""

from .intake import (
    EXAMPLE_PAYLOAD,
    IDENTITY_FIELDS,
    REQUIRED_FIELDS,
    Emotion,
    EmotionEstimate,
    EyeContact,
    GenerationResult,
    IntakeRecord,
    MissingFieldsError,
    SensoryReactions,
    SocialResponse,
    SpeechLevel,
    find_missing_fields,
    validate_intake,
)

__all__ = [
    "EXAMPLE_PAYLOAD",
    "IDENTITY_FIELDS",
    "REQUIRED_FIELDS",
    "Emotion",
    "EmotionEstimate",
    "EyeContact",
    "GenerationResult",
    "IntakeRecord",
    "MissingFieldsError",
    "SensoryReactions",
    "SocialResponse",
    "SpeechLevel",
    "find_missing_fields",
    "validate_intake",
]
