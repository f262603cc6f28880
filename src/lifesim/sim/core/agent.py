from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2


class AgentKind(str, Enum):
    HERBIVORE = "herbivore"
    CARNIVORE = "carnivore"
    NEUTRAL = "neutral"


@dataclass(slots=True)
class Agent:
    id: int
    kind: AgentKind
    position: Vector2
    velocity: Vector2
    energy: float
    age: float
    speed: float
    vision: float
    metabolism: float
    size: float
    reproduction_cooldown: int = 0
    ticks_since_fed: int = 0
    stuck_ticks: int = 0
    seed_cooldown: int = 0
    generation: int = 0

    def copy(self) -> "Agent":
        return Agent(
            id=self.id,
            kind=self.kind,
            position=Vector2(self.position),
            velocity=Vector2(self.velocity),
            energy=self.energy,
            age=self.age,
            speed=self.speed,
            vision=self.vision,
            metabolism=self.metabolism,
            size=self.size,
            reproduction_cooldown=self.reproduction_cooldown,
            ticks_since_fed=self.ticks_since_fed,
            stuck_ticks=self.stuck_ticks,
            seed_cooldown=self.seed_cooldown,
            generation=self.generation,
        )


@dataclass(frozen=True, slots=True)
class Food:
    id: int
    position: Vector2 = field(default_factory=Vector2)
