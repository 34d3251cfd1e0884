from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StepMetrics:
    tick: int
    sim_time: float
    dt: float
    population: int
    edges: int
    sensed_pairs: int
    links_formed: int
    links_broken: int
    tick_duration_ms: float = 0.0
