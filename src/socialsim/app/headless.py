from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.engine import SocialEngine
from ..sim.types.metrics import StepMetrics

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "sim_time",
    "population",
    "edges",
    "components",
    "sensed_pairs",
    "links_formed",
    "links_broken",
    "mean_degree",
    "tick_ms",
]


def _format_row(engine: SocialEngine, metrics: StepMetrics, tick_ms: float) -> list[object]:
    stats = engine.get_stats()
    population = metrics.population
    mean_degree = 0.0 if population == 0 else 2.0 * metrics.edges / population
    return [
        metrics.tick,
        f"{metrics.sim_time:.4f}",
        population,
        metrics.edges,
        stats.component_count,
        metrics.sensed_pairs,
        metrics.links_formed,
        metrics.links_broken,
        f"{mean_degree:.4f}",
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


def _build_summary(
    engine: SocialEngine,
    history: list[StepMetrics],
    tick_ms: list[float],
    steps: int,
    seed: Optional[int],
) -> dict[str, object]:
    stats = engine.get_stats()
    max_degree = max((len(agent.connections) for agent in engine.agents), default=0)
    return {
        "steps": steps,
        "seed": seed,
        "sim_time": engine.sim_time,
        "final": {
            "population": stats.node_count,
            "edges": stats.edge_count,
            "components": stats.component_count,
            "max_degree": max_degree,
        },
        "totals": {
            "links_formed": sum(m.links_formed for m in history),
            "links_broken": sum(m.links_broken for m in history),
            "sensed_pairs": sum(m.sensed_pairs for m in history),
        },
        "edges": _summary_stats([float(m.edges) for m in history]),
        "tick_ms": _summary_stats(tick_ms),
    }


def run_headless(
    steps: int,
    seed: Optional[int] = None,
    log_path: Optional[Path] = None,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    agent_count: Optional[int] = None,
    dt: Optional[float] = None,
) -> SocialEngine:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if agent_count is not None:
        config.agent_count = agent_count
    frame_dt = config.frame_time if dt is None else dt
    engine = SocialEngine(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    history: list[StepMetrics] = []
    tick_ms: list[float] = []
    try:
        for _ in range(steps):
            metrics = engine.step(frame_dt)
            elapsed = 0.0 if deterministic_log else metrics.tick_duration_ms
            history.append(metrics)
            tick_ms.append(elapsed)
            if writer:
                writer.writerow(_format_row(engine, metrics, elapsed))
    finally:
        if csv_file:
            csv_file.close()

    stats = engine.get_stats()
    logger.info(
        "Finished %d steps: agents=%d edges=%d components=%d",
        steps,
        stats.node_count,
        stats.edge_count,
        stats.component_count,
    )
    if summary_path:
        summary = _build_summary(engine, history, tick_ms, steps, config.seed)
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return engine


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless social simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--agents", type=int, default=None, help="Population size (overrides config)")
    parser.add_argument("--dt", type=float, default=None, help="Frame delta in seconds (clamped to max_dt)")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument("--summary", type=Path, default=None, help="JSON file to write a run summary")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        config_path=args.config,
        agent_count=args.agents,
        dt=args.dt,
    )


if __name__ == "__main__":
    main()
