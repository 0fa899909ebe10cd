"""
Rule-based recommendation engine.

Maps a categorical intake record onto focus areas, therapy goals and
activities. Rules are evaluated in a fixed order and compete for a shared
six-goal cap, so earlier rules win scarce slots. Content banks live in
``knowledge/recommendations/rulesets.yaml``; the conditions that gate them
live here as named predicates.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping

import yaml

from carepath.engines.context import MAX_FOCUS_AREAS, MAX_GOALS, GenerationContext
from carepath.engines.dedup import add_unique_activity, add_unique_goal
from carepath.engines.rng import SeededRandom, derive_seed
from carepath.models import IDENTITY_FIELDS, GenerationResult, IntakeRecord

logger = logging.getLogger(__name__)

DEFAULT_AGE = 3
GOALS_PER_RULE = 3
MIN_GOALS = 3
MIN_FOCUS_AREAS = 4

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


# =============================================================================
# NORMALIZER
# =============================================================================


def as_payload(record: IntakeRecord | Mapping[str, Any]) -> dict[str, Any]:
    """Plain dict view of an intake record."""
    if isinstance(record, IntakeRecord):
        return record.to_payload()
    if isinstance(record, Mapping):
        return dict(record)
    raise TypeError(f"Cannot build recommendations from {type(record).__name__}")


def parse_age(value: Any) -> int:
    """
    Leading integer of ``value``; DEFAULT_AGE when there is none or it is 0.
    """
    if isinstance(value, bool) or value is None:
        return DEFAULT_AGE
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return DEFAULT_AGE
        return int(value) or DEFAULT_AGE
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return DEFAULT_AGE
    return int(match.group(1)) or DEFAULT_AGE


def _iter_values(value: Any) -> Iterator[Any]:
    if isinstance(value, Mapping):
        for item in value.values():
            yield from _iter_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_values(item)
    elif value is not None:
        yield value


def normalize_intake(payload: Mapping[str, Any]) -> tuple[str, int]:
    """
    Searchable blob and age for a payload.

    The blob is the lowercased JSON list of every field value (nested values
    flattened, identity fields left out). Field names are not part of it.
    """
    values = []
    for key, value in payload.items():
        if key in IDENTITY_FIELDS:
            continue
        values.extend(_iter_values(value))
    blob = json.dumps(values, ensure_ascii=False, default=str).lower()
    return blob, parse_age(payload.get("age"))


# =============================================================================
# PREDICATES
# =============================================================================

Predicate = Callable[[GenerationContext], bool]


def _field_has(ctx: GenerationContext, name: str, *keywords: str) -> bool:
    value = ctx.field_value(name)
    return any(k in value for k in keywords)


def _blob_has(ctx: GenerationContext, *keywords: str) -> bool:
    return any(k in ctx.blob for k in keywords)


def reduced_eye_contact(ctx: GenerationContext) -> bool:
    return _field_has(ctx, "eye_contact", "limited", "poor", "no")


def limited_speech(ctx: GenerationContext) -> bool:
    return _field_has(ctx, "speech_level", "no", "limited", "few", "passive")


def sensory_sensitivity(ctx: GenerationContext) -> bool:
    return _field_has(ctx, "sensory_reactions", "sensitive", "very", "overreact")


def reduced_social_response(ctx: GenerationContext) -> bool:
    return _field_has(ctx, "social_response", "difficulty", "limited", "passive")


def mentions_social_engagement(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "social") and _blob_has(ctx, "active", "passive")


def mentions_distress(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "sad", "fear")


def mentions_frustration(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "angry", "disgust")


def mentions_happiness(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "happy")


def mentions_eye_contact_concern(ctx: GenerationContext) -> bool:
    # Literal phrase: the field name "eye_contact" does not match.
    return _blob_has(ctx, "eye contact") and _blob_has(ctx, "poor", "moderate")


def mentions_communication(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "speech", "communication")


def mentions_sensory(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "sensory", "sensitive")


def mentions_negative_emotion(ctx: GenerationContext) -> bool:
    return _blob_has(ctx, "sad", "fear", "angry")


# Evaluation order is priority order for the goal cap.
GOAL_RULE_ORDER: list[tuple[str, Predicate]] = [
    ("eye_contact", reduced_eye_contact),
    ("speech", limited_speech),
    ("sensory", sensory_sensitivity),
    ("social", reduced_social_response),
    ("social_keyword", mentions_social_engagement),
    ("emotion_distress", mentions_distress),
    ("emotion_frustration", mentions_frustration),
    ("emotion_positive", mentions_happiness),
]

ACTIVITY_RULE_ORDER: list[tuple[str, Predicate]] = [
    ("eye_contact", mentions_eye_contact_concern),
    ("communication", mentions_communication),
    ("social", mentions_social_engagement),
    ("sensory", mentions_sensory),
    ("emotion_regulation", mentions_negative_emotion),
    ("emotion_positive", mentions_happiness),
]


# =============================================================================
# RULES
# =============================================================================


@dataclass(frozen=True)
class AgeBand:
    """Goal bank for ages up to ``max_age`` (inclusive); None is open-ended."""
    max_age: int | None
    goals: tuple[str, ...]

    def covers(self, age: int) -> bool:
        return self.max_age is None or age <= self.max_age

    @property
    def label(self) -> str:
        return "any age" if self.max_age is None else f"age <= {self.max_age}"


@dataclass(frozen=True)
class GoalRule:
    """
    A condition plus the focus areas and goals it contributes.

    Banded rules shuffle the bank for the child's age band and offer up to
    three goals; keyword rules offer their fixed goals in order.
    """
    name: str
    applies: Predicate
    focus: tuple[str, ...]
    bands: tuple[AgeBand, ...] = ()
    goals: tuple[str, ...] = ()

    def select_band(self, age: int) -> AgeBand | None:
        for band in self.bands:
            if band.covers(age):
                return band
        return None

    def apply(self, ctx: GenerationContext) -> None:
        ctx.focus.extend(self.focus)
        if self.bands:
            band = self.select_band(ctx.age)
            if band is None:
                return
            shuffled = ctx.rng.shuffle(band.goals)
            candidates = shuffled[:min(GOALS_PER_RULE, ctx.goal_slots)]
            logger.debug("Rule %s using %s bank for age %d", self.name, band.label, ctx.age)
        else:
            candidates = list(self.goals)
        for goal in candidates:
            add_unique_goal(ctx, goal)
        logger.debug("Goals after %s: %d", self.name, len(ctx.goals))


@dataclass(frozen=True)
class ActivityRule:
    """A condition plus the activity descriptions it offers."""
    name: str
    applies: Predicate
    activities: tuple[str, ...]

    def apply(self, ctx: GenerationContext) -> None:
        for activity in self.activities:
            add_unique_activity(ctx, activity)


def build_goal_rules(knowledge: dict[str, Any]) -> list[GoalRule]:
    """Ordered goal rules from the knowledge file's ``goal_rules`` section."""
    content = knowledge.get("goal_rules", {})
    rules = []
    for name, predicate in GOAL_RULE_ORDER:
        data = content.get(name, {})
        bands = tuple(
            AgeBand(max_age=band.get("max_age"), goals=tuple(band.get("goals", [])))
            for band in data.get("bands", [])
        )
        rules.append(GoalRule(
            name=name,
            applies=predicate,
            focus=tuple(data.get("focus", [])),
            bands=bands,
            goals=tuple(data.get("goals", [])),
        ))
    return rules


def build_activity_rules(knowledge: dict[str, Any]) -> list[ActivityRule]:
    """Ordered activity rules from the knowledge file's ``activity_rules`` section."""
    content = knowledge.get("activity_rules", {})
    return [
        ActivityRule(name=name, applies=predicate, activities=tuple(content.get(name, [])))
        for name, predicate in ACTIVITY_RULE_ORDER
    ]


# =============================================================================
# ENGINE
# =============================================================================


class RecommendationEngine:
    """
    Deterministic rule engine with fallback top-ups.

    The same payload and seed always give the same result. When no seed is
    given one is derived from the payload and the current second.
    """

    # Class-level cache for the knowledge file
    _knowledge_cache: dict[Path, dict] = {}

    @classmethod
    def _load_knowledge(cls, knowledge_dir: Path) -> dict:
        """Load rule content from YAML, with caching."""
        path = knowledge_dir / "recommendations" / "rulesets.yaml"
        if path not in cls._knowledge_cache:
            with open(path, "r", encoding="utf-8") as f:
                cls._knowledge_cache[path] = yaml.safe_load(f) or {}
        return cls._knowledge_cache[path]

    def __init__(self, knowledge_dir: Path | None = None, top_up_goals: bool | None = None):
        self.knowledge_dir = knowledge_dir or Path(__file__).parent.parent.parent / "knowledge"
        knowledge = self._load_knowledge(self.knowledge_dir)

        self.goal_rules = build_goal_rules(knowledge)
        self.activity_rules = build_activity_rules(knowledge)

        fallback = knowledge.get("fallback", {})
        self.developmental_goals: list[str] = fallback.get("developmental_goals", [])
        self.top_up_goal_bank: list[str] = fallback.get("top_up_goals", [])
        self.fallback_activities: list[str] = fallback.get("activities", [])
        self.default_focus_areas: list[str] = fallback.get("focus_areas", [])
        self.empty_focus_areas: list[str] = fallback.get("empty_focus_areas", [])
        self.notes: str = knowledge.get("notes", "")

        if top_up_goals is None:
            top_up_goals = os.environ.get("CAREPATH_TOP_UP_GOALS", "false").lower() in {"1", "true", "yes", "on"}
        self.top_up_goals = top_up_goals

    def generate(
        self,
        record: IntakeRecord | Mapping[str, Any],
        seed: int | None = None,
        tick: int | None = None,
    ) -> GenerationResult:
        """Generate recommendations for one intake record."""
        payload = as_payload(record)
        if seed is None:
            seed = derive_seed(payload, tick)
        blob, age = normalize_intake(payload)
        ctx = GenerationContext(payload=payload, blob=blob, age=age, rng=SeededRandom(seed))
        logger.info("Generating recommendations: age=%d seed=%d", age, seed)
        logger.debug("Normalized input: %s", blob)

        for rule in self.goal_rules:
            if rule.applies(ctx):
                rule.apply(ctx)
        for rule in self.activity_rules:
            if rule.applies(ctx):
                rule.apply(ctx)

        focus = self._compose_fallback(ctx)
        logger.info(
            "Generated %d focus areas, %d goals, %d activities",
            len(focus), len(ctx.goals), len(ctx.activities),
        )
        return GenerationResult(
            focus_areas=focus,
            therapy_goals=list(ctx.goals),
            activities=list(ctx.activities),
            notes=self.notes,
        )

    def _compose_fallback(self, ctx: GenerationContext) -> list[str]:
        """Top up goals, activities and focus areas; return final focus areas."""
        if len(ctx.goals) < MIN_GOALS:
            logger.debug("Adding developmental goals (only %d rule goals)", len(ctx.goals))
            for goal in self.developmental_goals:
                add_unique_goal(ctx, goal)

        if self.top_up_goals:
            for goal in self.top_up_goal_bank:
                if len(ctx.goals) >= MAX_GOALS:
                    break
                add_unique_goal(ctx, goal)

        for activity in self.fallback_activities:
            if ctx.activities_full:
                break
            add_unique_activity(ctx, activity)

        focus = list(dict.fromkeys(ctx.focus))
        if len(focus) < MIN_FOCUS_AREAS:
            for area in self.default_focus_areas:
                if len(focus) >= MAX_FOCUS_AREAS:
                    break
                first_word = area.lower().split(" ")[0]
                if not any(first_word in existing.lower() for existing in focus):
                    focus.append(area)

        if not focus:
            focus = list(self.empty_focus_areas)
        return focus[:MAX_FOCUS_AREAS]

    def describe_rules(self) -> list[dict[str, Any]]:
        """Summary of the ordered rules, for display."""
        summary = []
        for rule in self.goal_rules:
            summary.append({
                "name": rule.name,
                "kind": "goal",
                "condition": rule.applies.__name__,
                "bands": [band.label for band in rule.bands],
                "focus": list(rule.focus),
            })
        for rule in self.activity_rules:
            summary.append({
                "name": rule.name,
                "kind": "activity",
                "condition": rule.applies.__name__,
                "bands": [],
                "focus": [],
            })
        return summary
