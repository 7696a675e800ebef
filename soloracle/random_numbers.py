"""Seeded random source — every random choice in a run flows through here."""

from __future__ import annotations

import random


class RandomNumbers:
    def __init__(self, seed: int):
        self.seed = seed
        self._random = random.Random(seed)

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]."""
        return self._random.randint(low, high)
