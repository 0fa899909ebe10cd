"""
Seeded pseudo-random source for the recommendation engine.

A small linear-congruential generator. Seeds are derived from the intake
payload plus a one-second wall-clock tick, so repeated submissions of the
same record within a second get the same recommendations while later
submissions vary.
"""

from __future__ import annotations

import json
import math
import time
from typing import Any, Mapping, Sequence, TypeVar

T = TypeVar("T")

MULTIPLIER = 9301
INCREMENT = 49297
MODULUS = 233280
SEED_SPACE = 1000


def payload_hash(payload: Mapping[str, Any]) -> int:
    """
    32-bit rolling string hash (h * 31 + c) over the compact JSON form.

    Characters are consumed as UTF-16 code units and the result is a
    signed 32-bit integer.
    """
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
    units = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(units), 2):
        code = units[i] | (units[i + 1] << 8)
        h = ((h << 5) - h + code) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return h


def current_tick() -> int:
    """Wall-clock time in whole seconds."""
    return math.floor(time.time())


def derive_seed(payload: Mapping[str, Any], tick: int | None = None) -> int:
    """Engine seed in [0, 1000) for a payload at a given tick."""
    if tick is None:
        tick = current_tick()
    return abs(payload_hash(payload) + tick) % SEED_SPACE


class SeededRandom:
    """Deterministic float stream and shuffle for one generation call."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed

    def next(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state * MULTIPLIER + INCREMENT) % MODULUS
        return self._state / MODULUS

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates permutation of a copy of ``items``."""
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = math.floor(self.next() * (i + 1))
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled
