from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class KindConfig:
    max_velocity: float = 2.5
    base_metabolism: float = 0.08
    post_reproduction_energy: float = 60.0
    child_energy: float = 60.0
    reproduction_cooldown: int = 240
    speed_range: tuple[float, float] = (0.5, 1.7)
    vision_range: tuple[float, float] = (40.0, 60.0)
    max_size: float = 10.0


def _default_herbivore() -> KindConfig:
    return KindConfig(
        max_velocity=2.5,
        base_metabolism=0.08,
        post_reproduction_energy=60.0,
        child_energy=60.0,
        reproduction_cooldown=240,
        speed_range=(0.5, 2.2),
        vision_range=(30.0, 80.0),
        max_size=10.0,
    )


def _default_carnivore() -> KindConfig:
    return KindConfig(
        max_velocity=2.8,
        base_metabolism=0.15,
        post_reproduction_energy=70.0,
        child_energy=70.0,
        reproduction_cooldown=360,
        speed_range=(0.5, 2.4),
        vision_range=(35.0, 90.0),
        max_size=12.0,
    )


def _default_neutral() -> KindConfig:
    return KindConfig(
        max_velocity=2.0,
        base_metabolism=0.06,
        post_reproduction_energy=60.0,
        child_energy=50.0,
        reproduction_cooldown=300,
        speed_range=(0.4, 1.8),
        vision_range=(30.0, 70.0),
        max_size=8.0,
    )


_PARAM_BOUNDS: dict[str, tuple[float, float]] = {
    "herbivore_speed": (0.5, 3.0),
    "carnivore_speed": (0.5, 3.0),
    "time_scale": (0.25, 2.0),
    "food_spawn_rate": (0.0, 1.0),
    "carnivore_metabolism_scale": (0.0, 5.0),
    "carnivore_catch_radius": (0.0, 50.0),
    "herbivore_reproduction_energy": (0.0, 1000.0),
    "carnivore_reproduction_energy": (0.0, 1000.0),
    "herbivore_cap": (0, 10_000),
    "carnivore_cap": (0, 10_000),
}


@dataclass(frozen=True)
class TunableParams:
    """Externally adjustable knobs, read by the engine every tick and never written by it."""

    herbivore_speed: float = 1.0
    carnivore_speed: float = 1.0
    time_scale: float = 0.7
    food_spawn_rate: float = 0.02
    carnivore_metabolism_scale: float = 1.0
    carnivore_catch_radius: float = 4.0
    herbivore_reproduction_energy: float = 140.0
    carnivore_reproduction_energy: float = 170.0
    herbivore_cap: int = 220
    carnivore_cap: int = 60

    def updated(self, **changes: float) -> "TunableParams":
        unknown = sorted(set(changes) - set(_PARAM_BOUNDS))
        if unknown:
            raise ValueError(f"Unknown parameter(s): {', '.join(unknown)}")
        clamped: dict[str, float | int] = {}
        for name, raw in changes.items():
            try:
                value = float(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Parameter {name} must be numeric, got {raw!r}") from exc
            low, high = _PARAM_BOUNDS[name]
            value = max(low, min(high, value))
            clamped[name] = int(value) if name.endswith("_cap") else value
        return replace(self, **clamped)

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class SimulationConfig:
    world_width: float = 800.0
    world_height: float = 500.0
    initial_agents: int = 100
    initial_food: int = 60
    herbivore_ratio: float = 0.55
    neutral_ratio: float = 0.35
    initial_energy: float = 100.0
    initial_speed_range: tuple[float, float] = (0.5, 1.7)
    initial_vision_range: tuple[float, float] = (40.0, 60.0)
    metabolism_variation: float = 0.15
    seed: Optional[int] = None
    history_capacity: int = 300

    # Consumption
    feed_radius: float = 7.0
    food_energy: float = 30.0
    prey_energy: float = 45.0

    # Ageing and size
    age_per_tick: float = 0.05
    max_age: float = 800.0
    min_size: float = 4.0
    size_per_energy: float = 0.025

    # Movement
    damping: float = 0.96
    min_speed: float = 0.15
    min_speed_kick: float = 0.25
    stall_speed: float = 0.05
    stuck_limit: int = 45
    stuck_impulse: float = 1.5
    boundary_nudge: float = 0.5
    neutral_speed_multiplier: float = 0.8

    # Neutral behaviour
    neutral_energy_bonus_chance: float = 0.002
    neutral_energy_bonus: float = 10.0
    neutral_seed_chance: float = 0.003
    neutral_seed_cooldown: int = 240
    # Herbivore and carnivore equivalents live on TunableParams.
    neutral_reproduction_energy: float = 150.0
    neutral_population_cap: int = 80

    herbivore: KindConfig = field(default_factory=_default_herbivore)
    carnivore: KindConfig = field(default_factory=_default_carnivore)
    neutral: KindConfig = field(default_factory=_default_neutral)
    params: TunableParams = field(default_factory=TunableParams)

    def validate(self) -> "SimulationConfig":
        if self.initial_agents < 0 or self.initial_food < 0:
            raise ValueError("initial_agents and initial_food must be non-negative")
        if self.world_width <= 2 * self.boundary_nudge or self.world_height <= 2 * self.boundary_nudge:
            raise ValueError("world is too small for the boundary nudge")
        if not 0.0 <= self.herbivore_ratio + self.neutral_ratio <= 1.0:
            raise ValueError("herbivore_ratio + neutral_ratio must lie in [0, 1]")
        if self.history_capacity <= 0:
            raise ValueError("history_capacity must be positive")
        for name in ("initial_speed_range", "initial_vision_range"):
            low, high = getattr(self, name)
            if high < low:
                raise ValueError(f"{name} is inverted: {low} > {high}")
        for kind_name in ("herbivore", "carnivore", "neutral"):
            kind = getattr(self, kind_name)
            if kind.max_velocity <= 0:
                raise ValueError(f"{kind_name}.max_velocity must be positive")
            for range_name in ("speed_range", "vision_range"):
                low, high = getattr(kind, range_name)
                if high < low:
                    raise ValueError(f"{kind_name}.{range_name} is inverted: {low} > {high}")
        return self

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def load_config(raw: dict) -> SimulationConfig:
    def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        return default

    def _kind(values: dict, default: KindConfig) -> KindConfig:
        pairs = {"speed_range", "vision_range"}
        plain = {k: v for k, v in values.items() if k not in pairs}
        kind = replace(default, **plain)
        return replace(
            kind,
            speed_range=_pair(values.get("speed_range"), default.speed_range),
            vision_range=_pair(values.get("vision_range"), default.vision_range),
        )

    defaults = SimulationConfig()
    # An empty YAML section ("herbivore:") loads as None.
    herbivore = _kind(raw.get("herbivore") or {}, defaults.herbivore)
    carnivore = _kind(raw.get("carnivore") or {}, defaults.carnivore)
    neutral = _kind(raw.get("neutral") or {}, defaults.neutral)
    params = TunableParams().updated(**(raw.get("params") or {}))
    sim_values = {
        k: v for k, v in raw.items() if k not in {"herbivore", "carnivore", "neutral", "params"}
    }
    for name in ("initial_speed_range", "initial_vision_range"):
        if name in sim_values:
            sim_values[name] = _pair(sim_values[name], getattr(defaults, name))
    config = SimulationConfig(
        herbivore=herbivore, carnivore=carnivore, neutral=neutral, params=params, **sim_values
    )
    return config.validate()
