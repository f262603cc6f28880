from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from pygame.math import Vector2

from ...config import KindConfig, SimulationConfig
from ...rng import SimulationRng
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotWorld
from ..utils.math2d import clamp_value
from .agent import Agent, AgentKind, Food

if TYPE_CHECKING:
    from ..systems.history import PopulationHistory


@dataclass(slots=True)
class World:
    width: float
    height: float
    agents: List[Agent] = field(default_factory=list)
    food: List[Food] = field(default_factory=list)
    next_id: int = 0
    tick: int = 0

    def allocate_id(self) -> int:
        allocated = self.next_id
        self.next_id += 1
        return allocated

    def count(self, kind: AgentKind) -> int:
        return sum(1 for agent in self.agents if agent.kind is kind)

    def population_counts(self) -> Dict[AgentKind, int]:
        counts = {kind: 0 for kind in AgentKind}
        for agent in self.agents:
            counts[agent.kind] += 1
        return counts

    def copy(self) -> "World":
        return World(
            width=self.width,
            height=self.height,
            agents=[agent.copy() for agent in self.agents],
            food=list(self.food),
            next_id=self.next_id,
            tick=self.tick,
        )

    def snapshot(
        self,
        history: Optional["PopulationHistory"] = None,
        metrics: Optional[TickMetrics] = None,
    ) -> Snapshot:
        return Snapshot(
            tick=self.tick,
            world=SnapshotWorld(width=self.width, height=self.height),
            agents=[_agent_snapshot(agent) for agent in self.agents],
            food=[{"id": item.id, "x": item.position.x, "y": item.position.y} for item in self.food],
            history=[] if history is None else history.as_payload(),
            metrics=metrics,
        )


def _agent_snapshot(agent: Agent) -> Dict[str, object]:
    return {
        "id": agent.id,
        "kind": agent.kind.value,
        "x": agent.position.x,
        "y": agent.position.y,
        "vx": agent.velocity.x,
        "vy": agent.velocity.y,
        "size": agent.size,
        "energy": agent.energy,
        "age": agent.age,
        "generation": agent.generation,
    }


def kind_config(config: SimulationConfig, kind: AgentKind) -> KindConfig:
    if kind is AgentKind.HERBIVORE:
        return config.herbivore
    if kind is AgentKind.CARNIVORE:
        return config.carnivore
    return config.neutral


def size_for_energy(config: SimulationConfig, kind: AgentKind, energy: float) -> float:
    max_size = kind_config(config, kind).max_size
    return clamp_value(config.min_size + energy * config.size_per_energy, config.min_size, max_size)


def _sample_kind(config: SimulationConfig, rng: SimulationRng) -> AgentKind:
    roll = rng.next_float()
    if roll < config.herbivore_ratio:
        return AgentKind.HERBIVORE
    if roll < config.herbivore_ratio + config.neutral_ratio:
        return AgentKind.NEUTRAL
    return AgentKind.CARNIVORE


def _random_position(world: World, rng: SimulationRng) -> Vector2:
    return Vector2(rng.next_range(0.0, world.width), rng.next_range(0.0, world.height))


def spawn_food(world: World, rng: SimulationRng, position: Optional[Vector2] = None) -> Food:
    item = Food(id=world.allocate_id(), position=position if position is not None else _random_position(world, rng))
    world.food.append(item)
    return item


def initialize(config: SimulationConfig, rng: Optional[SimulationRng] = None) -> World:
    """Build the starting world: a randomized founding population and scattered food."""
    config.validate()
    rng = rng if rng is not None else SimulationRng(config.seed)
    world = World(width=config.world_width, height=config.world_height)
    for _ in range(config.initial_agents):
        kind = _sample_kind(config, rng)
        variation = config.metabolism_variation
        agent = Agent(
            id=world.allocate_id(),
            kind=kind,
            position=_random_position(world, rng),
            velocity=Vector2(rng.next_jitter(1.0), rng.next_jitter(1.0)),
            energy=config.initial_energy,
            age=0.0,
            speed=rng.next_range(*config.initial_speed_range),
            vision=rng.next_range(*config.initial_vision_range),
            metabolism=kind_config(config, kind).base_metabolism * rng.next_range(1.0 - variation, 1.0 + variation),
            size=size_for_energy(config, kind, config.initial_energy),
        )
        world.agents.append(agent)
    for _ in range(config.initial_food):
        spawn_food(world, rng)
    return world
