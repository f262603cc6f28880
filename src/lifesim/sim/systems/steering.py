from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...config import SimulationConfig
from ...rng import SimulationRng
from ..core.agent import Agent, AgentKind, Food
from ..utils.math2d import nearest, safe_direction

FOOD_ATTRACTION = 0.25
# Fleeing is stronger than food attraction so escape wins over foraging.
FLEE_STRENGTH = 0.35
FLEE_VISION_FACTOR = 0.9
PURSUIT_KEEP = 0.85
PURSUIT_PULL = 0.7
MIN_PURSUIT_SPEED = 0.9
PURSUIT_PUSH = 0.3
HUNT_WANDER = 0.15
FOOD_REPEL_DISTANCE = 12.0
FOOD_REPEL_STRENGTH = 0.1
NEUTRAL_WANDER = 0.05
BASE_WANDER = 0.03
FOCUSED_WANDER_FACTOR = 0.3
SEARCH_WANDER_FACTOR = 3.0


@dataclass(frozen=True, slots=True)
class Perception:
    """Start-of-tick view shared by every agent's steering decision."""

    herbivores: Sequence[Agent]
    carnivores: Sequence[Agent]
    food: Sequence[Food]


@dataclass(slots=True)
class SteeringResult:
    focused: bool = False
    seed_food: bool = False


def steer(
    agent: Agent,
    perception: Perception,
    config: SimulationConfig,
    rng: SimulationRng,
) -> SteeringResult:
    if agent.kind is AgentKind.HERBIVORE:
        result = _steer_herbivore(agent, perception)
        wander_factor = FOCUSED_WANDER_FACTOR if result.focused else 1.0
    elif agent.kind is AgentKind.CARNIVORE:
        result = _steer_carnivore(agent, perception, rng)
        wander_factor = FOCUSED_WANDER_FACTOR if result.focused else SEARCH_WANDER_FACTOR
    else:
        result = _steer_neutral(agent, config, rng)
        wander_factor = 1.0

    amplitude = BASE_WANDER * wander_factor
    agent.velocity.x += rng.next_jitter(amplitude)
    agent.velocity.y += rng.next_jitter(amplitude)
    return result


def _steer_herbivore(agent: Agent, perception: Perception) -> SteeringResult:
    result = SteeringResult()
    target, _ = nearest(agent.position, perception.food)
    if target is not None:
        direction, distance = safe_direction(agent.position, target.position)
        if distance < agent.vision:
            agent.velocity += direction * FOOD_ATTRACTION
            result.focused = True

    hunter, _ = nearest(agent.position, perception.carnivores)
    if hunter is not None:
        direction, distance = safe_direction(agent.position, hunter.position)
        if distance < agent.vision * FLEE_VISION_FACTOR:
            agent.velocity -= direction * FLEE_STRENGTH
            result.focused = True
    return result


def _steer_carnivore(agent: Agent, perception: Perception, rng: SimulationRng) -> SteeringResult:
    result = SteeringResult()
    prey, _ = nearest(agent.position, perception.herbivores)
    if prey is not None:
        direction, distance = safe_direction(agent.position, prey.position)
        if distance < agent.vision:
            velocity = agent.velocity * PURSUIT_KEEP + direction * PURSUIT_PULL
            if velocity.length() < MIN_PURSUIT_SPEED:
                velocity += direction * PURSUIT_PUSH
            agent.velocity = velocity
            result.focused = True

    if not result.focused:
        agent.velocity.x += rng.next_jitter(HUNT_WANDER)
        agent.velocity.y += rng.next_jitter(HUNT_WANDER)

    # Carnivores never eat food; keep them off it so the two stay visually distinct.
    food, _ = nearest(agent.position, perception.food)
    if food is not None:
        direction, distance = safe_direction(agent.position, food.position)
        if distance < FOOD_REPEL_DISTANCE:
            agent.velocity -= direction * FOOD_REPEL_STRENGTH
    return result


def _steer_neutral(agent: Agent, config: SimulationConfig, rng: SimulationRng) -> SteeringResult:
    result = SteeringResult()
    agent.velocity.x += rng.next_jitter(NEUTRAL_WANDER)
    agent.velocity.y += rng.next_jitter(NEUTRAL_WANDER)
    if rng.chance(config.neutral_energy_bonus_chance):
        agent.energy += config.neutral_energy_bonus
    if agent.seed_cooldown <= 0 and rng.chance(config.neutral_seed_chance):
        agent.seed_cooldown = config.neutral_seed_cooldown
        result.seed_food = True
    return result

