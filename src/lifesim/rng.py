from __future__ import annotations

import math
import random
from typing import Optional

from pygame.math import Vector2


class SimulationRng:
    """Single source of randomness for the engine.

    ``seed=None`` draws from OS entropy so every run diverges. Subclasses only
    need to override :meth:`next_float`; every other draw is derived from it.
    """

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.next_float()

    def next_jitter(self, amplitude: float) -> float:
        return self.next_range(-amplitude, amplitude)

    def chance(self, probability: float) -> bool:
        return self.next_float() < probability

    def next_unit_circle(self) -> Vector2:
        angle = self.next_range(0.0, 2 * math.pi)
        vector = Vector2()
        vector.from_polar((1, math.degrees(angle)))
        return vector
