from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, Dict, List, Optional, Tuple

from ..core.agent import AgentKind
from ..core.world import World

DEFAULT_CAPACITY = 300


@dataclass(frozen=True, slots=True)
class PopulationSample:
    tick: int
    herbivores: int
    carnivores: int
    neutrals: int


class PopulationHistory:
    """Bounded ring of per-tick population counts for charting."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("history capacity must be positive")
        self._samples: Deque[PopulationSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, world: World) -> PopulationSample:
        counts = world.population_counts()
        sample = PopulationSample(
            tick=world.tick,
            herbivores=counts[AgentKind.HERBIVORE],
            carnivores=counts[AgentKind.CARNIVORE],
            neutrals=counts[AgentKind.NEUTRAL],
        )
        self._samples.append(sample)
        return sample

    def samples(self) -> Tuple[PopulationSample, ...]:
        return tuple(self._samples)

    def latest(self) -> Optional[PopulationSample]:
        return self._samples[-1] if self._samples else None

    def series(self) -> Dict[str, List[int]]:
        return {
            "tick": [sample.tick for sample in self._samples],
            "herbivores": [sample.herbivores for sample in self._samples],
            "carnivores": [sample.carnivores for sample in self._samples],
            "neutrals": [sample.neutrals for sample in self._samples],
        }

    def as_payload(self) -> List[Dict[str, int]]:
        return [asdict(sample) for sample in self._samples]

    def clear(self) -> None:
        self._samples.clear()
