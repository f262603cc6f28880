from __future__ import annotations

import logging
from typing import Optional, Set

from ...config import SimulationConfig, TunableParams
from ...rng import SimulationRng
from ..systems.history import PopulationHistory
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot
from .agent import AgentKind
from .engine import TickEngine
from .world import World, initialize

logger = logging.getLogger(__name__)


class Simulation:
    """Holds the current world, parameters and history on behalf of a driver."""

    def __init__(self, config: SimulationConfig, rng: Optional[SimulationRng] = None):
        self._config = config.validate()
        self._rng = rng if rng is not None else SimulationRng(config.seed)
        self._engine = TickEngine(config, self._rng)
        self._params: TunableParams = config.params
        self._history = PopulationHistory(config.history_capacity)
        self._extinct: Set[AgentKind] = set()
        self._world = initialize(config, self._rng)
        self._history.record(self._world)

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def world(self) -> World:
        return self._world

    @property
    def params(self) -> TunableParams:
        return self._params

    @property
    def history(self) -> PopulationHistory:
        return self._history

    @property
    def metrics(self) -> TickMetrics | None:
        return self._engine.metrics

    @property
    def tick(self) -> int:
        return self._world.tick

    def step(self) -> TickMetrics:
        self._world, metrics = self._engine.run_tick(self._world, self._params)
        self._history.record(self._world)
        self._log_extinctions()
        return metrics

    def set_params(self, **changes: float) -> TunableParams:
        self._params = self._params.updated(**changes)
        logger.info("parameters updated: %s", ", ".join(f"{k}={v}" for k, v in sorted(changes.items())))
        return self._params

    def reset(self) -> None:
        self._rng.reset()
        self._world = initialize(self._config, self._rng)
        self._history.clear()
        self._history.record(self._world)
        self._extinct.clear()
        logger.info("simulation reset with %d agents and %d food", len(self._world.agents), len(self._world.food))

    def snapshot(self) -> Snapshot:
        return self._world.snapshot(self._history, self._engine.metrics)

    def _log_extinctions(self) -> None:
        counts = self._world.population_counts()
        for kind, count in counts.items():
            if count == 0 and kind not in self._extinct:
                self._extinct.add(kind)
                logger.info("%s population went extinct at tick %d", kind.value, self._world.tick)
            elif count > 0:
                self._extinct.discard(kind)
