from __future__ import annotations

import logging
from collections import Counter
from time import perf_counter
from typing import Dict, List, Optional, Set, Tuple

from pygame.math import Vector2

from ...config import SimulationConfig, TunableParams
from ...rng import SimulationRng
from ..systems import feeding, kinematics, lifecycle, steering
from ..systems import metrics as metrics_system
from ..types.metrics import TickMetrics
from .agent import Agent, AgentKind
from .world import World, spawn_food

logger = logging.getLogger(__name__)


class TickEngine:
    """Advances a :class:`World` by one tick without touching the caller's copy.

    Agents are processed in input order against a start-of-tick snapshot.
    Food and prey claims go into per-tick exclusion sets and the next world
    is materialized only after the full pass, so nothing is removed from a
    collection while it is being scanned.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[SimulationRng] = None):
        self._config = config
        self._rng = rng if rng is not None else SimulationRng(config.seed)
        self._metrics: TickMetrics | None = None

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def rng(self) -> SimulationRng:
        return self._rng

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def advance(self, world: World, params: TunableParams) -> World:
        next_world, _ = self.run_tick(world, params)
        return next_world

    def run_tick(self, world: World, params: TunableParams) -> Tuple[World, TickMetrics]:
        start = perf_counter()
        config = self._config
        rng = self._rng

        out = World(
            width=world.width,
            height=world.height,
            food=list(world.food),
            next_id=world.next_id,
            tick=world.tick + 1,
        )
        start_counts = world.population_counts()
        herbivores = tuple(agent for agent in world.agents if agent.kind is AgentKind.HERBIVORE)
        carnivores = tuple(agent for agent in world.agents if agent.kind is AgentKind.CARNIVORE)
        prey_available = bool(herbivores)

        spawned = feeding.maybe_spawn_food(out, params, start_counts[AgentKind.HERBIVORE], rng)
        perception = steering.Perception(herbivores=herbivores, carnivores=carnivores, food=tuple(out.food))

        claimed_food: Set[int] = set()
        eaten: Set[int] = set()
        perished: Set[int] = set()
        births: Dict[AgentKind, int] = {kind: 0 for kind in AgentKind}
        fates: Counter[lifecycle.Fate] = Counter()
        seeded = 0
        survivors: List[Agent] = []

        for original in world.agents:
            if original.id in eaten:
                continue
            agent = original.copy()

            result = steering.steer(agent, perception, config, rng)
            if result.seed_food:
                spawn_food(out, rng, Vector2(agent.position))
                seeded += 1

            kinematics.move(agent, params, config, rng, out.width, out.height)

            fed = False
            if agent.kind is AgentKind.HERBIVORE:
                fed = feeding.feed_herbivore(agent, out.food, claimed_food, config) is not None
            elif agent.kind is AgentKind.CARNIVORE:
                fed = feeding.hunt(agent, herbivores, eaten, perished, params, config) is not None

            child = lifecycle.try_reproduce(agent, out, params, config, rng, start_counts, births)
            lifecycle.metabolize(agent, fed, child is not None, prey_available, params, config)

            outcome = lifecycle.fate(agent, config)
            if outcome is lifecycle.Fate.ALIVE:
                survivors.append(agent)
            else:
                perished.add(agent.id)
                fates[outcome] += 1
            if child is not None:
                survivors.append(child)

        out.agents = [agent for agent in survivors if agent.id not in eaten]
        out.food = [item for item in out.food if item.id not in claimed_food]
        fates[lifecycle.Fate.EATEN] = len(eaten)

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            out,
            births,
            fates,
            food_spawned=0 if spawned is None else 1,
            food_seeded=seeded,
            food_eaten=len(claimed_food),
            duration_ms=elapsed_ms,
        )
        logger.debug(
            "tick %d: herbivores=%d carnivores=%d neutrals=%d food=%d births=%d deaths=%d (%.2f ms)",
            out.tick,
            metrics.herbivores,
            metrics.carnivores,
            metrics.neutrals,
            metrics.food,
            metrics.births,
            metrics.deaths,
            elapsed_ms,
        )
        self._metrics = metrics
        return out, metrics


def advance(
    world: World,
    params: TunableParams,
    config: Optional[SimulationConfig] = None,
    rng: Optional[SimulationRng] = None,
) -> World:
    return TickEngine(config if config is not None else SimulationConfig(), rng).advance(world, params)
