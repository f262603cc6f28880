from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    herbivores: int
    carnivores: int
    neutrals: int
    food: int
    births: int
    deaths_starved: int
    deaths_old_age: int
    deaths_eaten: int
    food_spawned: int
    food_seeded: int
    food_eaten: int
    tick_duration_ms: float = 0.0

    @property
    def population(self) -> int:
        return self.herbivores + self.carnivores + self.neutrals

    @property
    def deaths(self) -> int:
        return self.deaths_starved + self.deaths_old_age + self.deaths_eaten
