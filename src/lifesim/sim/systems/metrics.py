from __future__ import annotations

from typing import Dict

from ..core.agent import AgentKind
from ..core.world import World
from ..types.metrics import TickMetrics
from .lifecycle import Fate


def create_metrics(
    world: World,
    births: Dict[AgentKind, int],
    fates: Dict[Fate, int],
    food_spawned: int,
    food_seeded: int,
    food_eaten: int,
    duration_ms: float,
) -> TickMetrics:
    counts = world.population_counts()
    return TickMetrics(
        tick=world.tick,
        herbivores=counts[AgentKind.HERBIVORE],
        carnivores=counts[AgentKind.CARNIVORE],
        neutrals=counts[AgentKind.NEUTRAL],
        food=len(world.food),
        births=sum(births.values()),
        deaths_starved=fates.get(Fate.STARVED, 0),
        deaths_old_age=fates.get(Fate.OLD_AGE, 0),
        deaths_eaten=fates.get(Fate.EATEN, 0),
        food_spawned=food_spawned,
        food_seeded=food_seeded,
        food_eaten=food_eaten,
        tick_duration_ms=duration_ms,
    )
