from __future__ import annotations

from typing import Optional, Sequence, Set

from ...config import SimulationConfig, TunableParams
from ...rng import SimulationRng
from ..core.agent import Agent, Food
from ..core.world import World, spawn_food
from ..utils.math2d import within

SCARCITY_SEVERE_BELOW = 40
SCARCITY_SEVERE_BOOST = 3.0
SCARCITY_MILD_BELOW = 70
SCARCITY_MILD_BOOST = 1.8


def scarcity_boost(herbivore_count: int) -> float:
    if herbivore_count < SCARCITY_SEVERE_BELOW:
        return SCARCITY_SEVERE_BOOST
    if herbivore_count < SCARCITY_MILD_BELOW:
        return SCARCITY_MILD_BOOST
    return 1.0


def maybe_spawn_food(world: World, params: TunableParams, herbivore_count: int, rng: SimulationRng) -> Optional[Food]:
    probability = params.food_spawn_rate * scarcity_boost(herbivore_count)
    if rng.chance(probability):
        return spawn_food(world, rng)
    return None


def feed_herbivore(
    agent: Agent,
    food: Sequence[Food],
    claimed_food: Set[int],
    config: SimulationConfig,
) -> Optional[Food]:
    """Claim the first unclaimed food item inside the feed radius, if any."""
    for item in food:
        if item.id in claimed_food:
            continue
        if within(agent.position, item.position, config.feed_radius):
            claimed_food.add(item.id)
            agent.energy += config.food_energy
            agent.ticks_since_fed = 0
            return item
    return None


def hunt(
    agent: Agent,
    herbivores: Sequence[Agent],
    eaten: Set[int],
    perished: Set[int],
    params: TunableParams,
    config: SimulationConfig,
) -> Optional[Agent]:
    """Claim the first live herbivore inside the catch radius.

    Prey positions are read from the start-of-tick snapshot; ``eaten`` and
    ``perished`` exclude prey already claimed or already dead this tick.
    """
    for prey in herbivores:
        if prey.id in eaten or prey.id in perished:
            continue
        if within(agent.position, prey.position, params.carnivore_catch_radius):
            eaten.add(prey.id)
            agent.energy += config.prey_energy
            agent.ticks_since_fed = 0
            return prey
    return None
