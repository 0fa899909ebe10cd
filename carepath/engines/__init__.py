"""
Recommendation generation engines.
"""

from .context import GenerationContext
from .dedup import add_unique_activity, add_unique_goal, normalize_text
from .emotion import emotion_level, estimate_emotions
from .engine import (
    ActivityRule,
    AgeBand,
    GoalRule,
    RecommendationEngine,
    normalize_intake,
    parse_age,
)
from .rng import SeededRandom, derive_seed
from .service import RecommendationService, parse_recommendation

__all__ = [
    "ActivityRule",
    "AgeBand",
    "GenerationContext",
    "GoalRule",
    "RecommendationEngine",
    "RecommendationService",
    "SeededRandom",
    "add_unique_activity",
    "add_unique_goal",
    "derive_seed",
    "emotion_level",
    "estimate_emotions",
    "normalize_intake",
    "normalize_text",
    "parse_age",
    "parse_recommendation",
]
