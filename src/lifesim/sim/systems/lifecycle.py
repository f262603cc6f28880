from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pygame.math import Vector2

from ...config import SimulationConfig, TunableParams
from ...rng import SimulationRng
from ..core.agent import Agent, AgentKind
from ..core.world import World, kind_config, size_for_energy
from ..utils.math2d import clamp_length, clamp_value

SPAWN_OFFSET = 8.0
CHILD_VELOCITY_JITTER = 0.3
TRAIT_MUTATION = 0.1

# (ticks_since_fed threshold, extra drain), checked from the highest down.
STARVATION_STEPS = ((900, 2.0), (600, 1.0), (300, 0.5))
NO_PREY_STARVATION = 1.5


class Fate(str, Enum):
    ALIVE = "alive"
    STARVED = "starved"
    OLD_AGE = "old_age"
    EATEN = "eaten"


def reproduction_threshold(kind: AgentKind, params: TunableParams, config: SimulationConfig) -> float:
    if kind is AgentKind.HERBIVORE:
        return params.herbivore_reproduction_energy
    if kind is AgentKind.CARNIVORE:
        return params.carnivore_reproduction_energy
    return config.neutral_reproduction_energy


def population_cap(kind: AgentKind, params: TunableParams, config: SimulationConfig) -> int:
    if kind is AgentKind.HERBIVORE:
        return params.herbivore_cap
    if kind is AgentKind.CARNIVORE:
        return params.carnivore_cap
    return config.neutral_population_cap


def try_reproduce(
    agent: Agent,
    world: World,
    params: TunableParams,
    config: SimulationConfig,
    rng: SimulationRng,
    start_counts: Dict[AgentKind, int],
    births: Dict[AgentKind, int],
) -> Optional[Agent]:
    """Spawn one child if energy, cooldown and the kind's population cap allow it.

    ``start_counts`` holds the tick-start population per kind and ``births``
    the children already spawned this tick, so the cap holds mid-tick.
    """
    if agent.energy <= reproduction_threshold(agent.kind, params, config):
        return None
    if agent.reproduction_cooldown > 0:
        return None
    if start_counts[agent.kind] + births[agent.kind] >= population_cap(agent.kind, params, config):
        return None

    kind = kind_config(config, agent.kind)
    nudge = config.boundary_nudge
    position = Vector2(
        clamp_value(agent.position.x + rng.next_jitter(SPAWN_OFFSET), nudge, world.width - nudge),
        clamp_value(agent.position.y + rng.next_jitter(SPAWN_OFFSET), nudge, world.height - nudge),
    )
    velocity = Vector2(
        agent.velocity.x + rng.next_jitter(CHILD_VELOCITY_JITTER),
        agent.velocity.y + rng.next_jitter(CHILD_VELOCITY_JITTER),
    )
    child = Agent(
        id=world.allocate_id(),
        kind=agent.kind,
        position=position,
        velocity=clamp_length(velocity, kind.max_velocity),
        energy=kind.child_energy,
        age=0.0,
        speed=_mutate(agent.speed, kind.speed_range, rng),
        vision=_mutate(agent.vision, kind.vision_range, rng),
        metabolism=agent.metabolism,
        size=size_for_energy(config, agent.kind, kind.child_energy),
        reproduction_cooldown=kind.reproduction_cooldown,
        generation=agent.generation + 1,
    )
    agent.energy = kind.post_reproduction_energy
    agent.reproduction_cooldown = kind.reproduction_cooldown
    births[agent.kind] += 1
    return child


def _mutate(value: float, bounds: tuple[float, float], rng: SimulationRng) -> float:
    low, high = bounds
    return clamp_value(value * rng.next_range(1.0 - TRAIT_MUTATION, 1.0 + TRAIT_MUTATION), low, high)


def starvation_factor(agent: Agent, prey_available: bool) -> float:
    if agent.kind is not AgentKind.CARNIVORE:
        return 0.0
    factor = 0.0 if prey_available else NO_PREY_STARVATION
    for threshold, extra in STARVATION_STEPS:
        if agent.ticks_since_fed > threshold:
            factor += extra
            break
    return factor


def metabolize(
    agent: Agent,
    fed: bool,
    reproduced: bool,
    prey_available: bool,
    params: TunableParams,
    config: SimulationConfig,
) -> None:
    agent.size = size_for_energy(config, agent.kind, agent.energy)
    if not fed:
        agent.ticks_since_fed += 1
    scale = params.carnivore_metabolism_scale if agent.kind is AgentKind.CARNIVORE else 1.0
    drain = agent.metabolism * scale * (1.0 + starvation_factor(agent, prey_available)) * params.time_scale
    agent.energy -= drain
    agent.age += config.age_per_tick
    if agent.reproduction_cooldown > 0 and not reproduced:
        agent.reproduction_cooldown -= 1
    if agent.seed_cooldown > 0:
        agent.seed_cooldown -= 1


def fate(agent: Agent, config: SimulationConfig) -> Fate:
    """Classify an agent that was not eaten this tick; predation is tallied by the engine."""
    if agent.energy <= 0:
        return Fate.STARVED
    if agent.age >= config.max_age:
        return Fate.OLD_AGE
    return Fate.ALIVE
