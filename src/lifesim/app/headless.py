from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Dict, Optional

from ..config import SimulationConfig
from ..logging_config import configure_logging
from ..sim.core.agent import AgentKind
from ..sim.core.simulation import Simulation
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "herbivores",
    "carnivores",
    "neutrals",
    "food",
    "births",
    "deaths_starved",
    "deaths_old_age",
    "deaths_eaten",
    "food_eaten",
    "tick_ms",
]


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.herbivores,
        metrics.carnivores,
        metrics.neutrals,
        metrics.food,
        metrics.births,
        metrics.deaths_starved,
        metrics.deaths_old_age,
        metrics.deaths_eaten,
        metrics.food_eaten,
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int] = None,
    log_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
) -> Simulation:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    simulation = Simulation(config)
    logger.info("running %d headless ticks (seed=%s)", steps, config.seed)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    series: Dict[str, list[float]] = {name: [] for name in ("herbivores", "carnivores", "neutrals", "food", "tick_ms")}
    extinct_at: Dict[str, Optional[int]] = {kind.value: None for kind in AgentKind}
    peaks: Dict[str, Dict[str, float]] = {}

    try:
        for _ in range(steps):
            metrics = simulation.step()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
            if summary_path:
                series["herbivores"].append(float(metrics.herbivores))
                series["carnivores"].append(float(metrics.carnivores))
                series["neutrals"].append(float(metrics.neutrals))
                series["food"].append(float(metrics.food))
                series["tick_ms"].append(tick_ms)
                for name, values in series.items():
                    peak = peaks.get(name)
                    if peak is None or values[-1] > peak["value"]:
                        peaks[name] = {"value": values[-1], "tick": metrics.tick}
                for kind, count in (
                    (AgentKind.HERBIVORE, metrics.herbivores),
                    (AgentKind.CARNIVORE, metrics.carnivores),
                    (AgentKind.NEUTRAL, metrics.neutrals),
                ):
                    if count == 0 and extinct_at[kind.value] is None:
                        extinct_at[kind.value] = metrics.tick
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "deterministic_log": deterministic_log,
            "final_tick": simulation.tick,
            **{name: _summary_stats(values) for name, values in series.items()},
            "peaks": peaks,
            "extinct_at": extinct_at,
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info("finished at tick %d with %d agents", simulation.tick, len(simulation.world.agents))
    return simulation


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless ecosystem simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file for run summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (defaults to LIFESIM_LOG_LEVEL or INFO)")
    args = parser.parse_args()
    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    run_headless(
        args.steps,
        args.seed,
        args.log,
        config_path=args.config,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
    )


if __name__ == "__main__":
    main()
