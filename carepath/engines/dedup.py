"""
Duplicate detection for generated recommendations.

Goals go through three tiers (exact text, shared clinical key phrase, word
overlap) plus a membership set. Activities only need a case-insensitive
exact match, since they are long free text.
"""

from __future__ import annotations

import logging
import re

from carepath.engines.context import MAX_ACTIVITIES, MAX_GOALS, GenerationContext

logger = logging.getLogger(__name__)

KEY_PHRASES = [
    "social routines",
    "daily activities",
    "social skills",
    "sensory activities",
    "communication",
    "eye contact",
    "sensory processing",
    "emotional regulation",
    "turn taking",
    "joint attention",
    "social referencing",
    "encourage social",
]

SIMILARITY_THRESHOLD = 30.0
MIN_WORD_LENGTH = 3

_PUNCTUATION_RE = re.compile(r"[.,!?;:\-]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    text = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def significant_words(normalized: str) -> list[str]:
    return [w for w in normalized.split(" ") if len(w) >= MIN_WORD_LENGTH]


def word_similarity(candidate: str, existing: str) -> float:
    """
    Percentage of shared significant words between two normalized texts.

    Shared words are counted from the candidate's side and divided by the
    longer of the two word lists.
    """
    candidate_words = significant_words(candidate)
    existing_words = significant_words(existing)
    longest = max(len(candidate_words), len(existing_words))
    if longest == 0:
        return 0.0
    common = [w for w in candidate_words if w in existing_words]
    return len(common) / longest * 100


def shared_key_phrase(candidate: str, existing: str) -> str | None:
    """First key phrase present in both normalized texts."""
    for phrase in KEY_PHRASES:
        if phrase in candidate and phrase in existing:
            return phrase
    return None


def duplicate_reason(candidate: str, goals: list[str]) -> str | None:
    """
    Why ``candidate`` duplicates one of ``goals``, or None if it does not.
    """
    normalized = normalize_text(candidate)
    for existing in goals:
        normalized_existing = normalize_text(existing)
        if normalized == normalized_existing:
            return "exact"
        phrase = shared_key_phrase(normalized, normalized_existing)
        if phrase:
            return f"key phrase '{phrase}'"
        similarity = word_similarity(normalized, normalized_existing)
        if similarity > SIMILARITY_THRESHOLD:
            return f"word similarity {similarity:.1f}%"
    return None


def add_unique_goal(ctx: GenerationContext, goal: str) -> bool:
    """Append ``goal`` to the context if it is new and a slot is free."""
    reason = duplicate_reason(goal, ctx.goals)
    if reason:
        logger.debug("Duplicate goal blocked (%s): %s", reason, goal)
        return False

    normalized = normalize_text(goal)
    if normalized in ctx.seen_goals:
        logger.debug("Duplicate goal blocked (membership set): %s", goal)
        return False

    if len(ctx.goals) >= MAX_GOALS:
        logger.debug("Goal limit reached, skipping: %s", goal)
        return False

    ctx.goals.append(goal)
    ctx.seen_goals.add(normalized)
    logger.debug("Goal added (%d/%d): %s", len(ctx.goals), MAX_GOALS, goal)
    return True


def add_unique_activity(ctx: GenerationContext, activity: str) -> bool:
    """Append ``activity`` unless already present (case-insensitive) or full."""
    key = activity.lower()
    if key in ctx.seen_activities or len(ctx.activities) >= MAX_ACTIVITIES:
        return False
    ctx.activities.append(activity)
    ctx.seen_activities.add(key)
    return True
