"""
Per-call generation state.

Every generation call builds a fresh GenerationContext; nothing here
outlives the call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from carepath.engines.rng import SeededRandom

MAX_FOCUS_AREAS = 6
MAX_GOALS = 6
MAX_ACTIVITIES = 8


@dataclass
class GenerationContext:
    """Working lists, membership sets and RNG for one generation call."""
    payload: dict[str, Any]
    blob: str
    age: int
    rng: SeededRandom
    focus: list[str] = field(default_factory=list)
    goals: list[str] = field(default_factory=list)
    activities: list[str] = field(default_factory=list)
    seen_goals: set[str] = field(default_factory=set)
    seen_activities: set[str] = field(default_factory=set)

    def field_value(self, name: str) -> str:
        """Lowercased string value of an intake field, or ''."""
        value = self.payload.get(name)
        if value is None:
            return ""
        return str(value).lower()

    @property
    def goal_slots(self) -> int:
        return max(0, MAX_GOALS - len(self.goals))

    @property
    def activities_full(self) -> bool:
        return len(self.activities) >= MAX_ACTIVITIES
