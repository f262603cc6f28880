from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    world: "SnapshotWorld"
    agents: List[Dict[str, Any]]
    food: List[Dict[str, float]]
    history: List[Dict[str, int]]
    metrics: Optional[TickMetrics] = None


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float
