"""
Placeholder emotion estimate.

Produces a randomized distribution over the seven basic emotions. It does
not look at any image; it stands in for a face-analysis step so the rest
of the pipeline can be exercised.
"""

from __future__ import annotations

import random

from carepath.models import Emotion, EmotionEstimate

EMOTIONS = [e.value for e in Emotion]

DOMINANT_MIN = 35
DOMINANT_MAX = 74


def estimate_emotions(seed: int | None = None) -> EmotionEstimate:
    """
    Random emotion estimate. Percentages are whole numbers summing to 100,
    every emotion gets at least 1, the dominant one gets 35-74 and every
    other emotion stays strictly below it.
    """
    rng = random.Random(seed)

    dominant = rng.choice(EMOTIONS)
    dominant_pct = rng.randint(DOMINANT_MIN, DOMINANT_MAX)
    distribution = {dominant: dominant_pct}

    # Every other emotion stays below the dominant one.
    ceiling = dominant_pct - 1
    remaining = 100 - dominant_pct
    others = [e for e in EMOTIONS if e != dominant]
    for i, emotion in enumerate(others):
        still_to_fill = len(others) - i - 1
        if still_to_fill == 0:
            pct = remaining
        else:
            low = max(1, remaining - still_to_fill * ceiling)
            high = min(ceiling, remaining - still_to_fill, max(low, remaining // 2))
            pct = rng.randint(low, high)
        distribution[emotion] = pct
        remaining -= pct

    return EmotionEstimate(
        dominant_emotion=dominant,
        confidence=dominant_pct,
        all_emotions=distribution,
    )


def emotion_level(percentage: float) -> str:
    """Coarse label for an emotion percentage."""
    if percentage > 50:
        return "High"
    if percentage > 30:
        return "Moderate"
    if percentage > 15:
        return "Low"
    return "Minimal"
