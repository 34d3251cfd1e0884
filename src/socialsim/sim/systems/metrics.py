from __future__ import annotations

from typing import List

from ..core.agent import Agent
from ..types.metrics import StepMetrics


def count_edges(agents: List[Agent]) -> int:
    return sum(len(agent.connections) for agent in agents) // 2


def create_metrics(
    tick: int,
    sim_time: float,
    dt: float,
    agents: List[Agent],
    sensed_pairs: int,
    links: tuple[int, int],
    duration_ms: float,
) -> StepMetrics:
    formed, broken = links
    return StepMetrics(
        tick=tick,
        sim_time=sim_time,
        dt=dt,
        population=len(agents),
        edges=count_edges(agents),
        sensed_pairs=sensed_pairs,
        links_formed=formed,
        links_broken=broken,
        tick_duration_ms=duration_ms,
    )
