from __future__ import annotations

import copy
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional

from .agent import Agent
from .config import SimulationConfig, SimulationParams
from .rng import DeterministicRng
from ..systems import affinity, connectivity, graph_queries, lifecycle, metrics as metrics_system, movement
from ..types.metrics import StepMetrics
from ..types.snapshot import ContactSets, GraphStats, MatchResult, Snapshot
from ..utils.math2d import clamp_value

logger = logging.getLogger(__name__)


class SocialEngine:
    """Owns one population and runs the per-frame pipeline.

    Each ``step`` runs movement, affinity and connectivity in that order.
    Queries read the connection lists committed by the last step and never
    mutate state.
    """

    def __init__(self, config: Optional[SimulationConfig] = None, rng: Optional[DeterministicRng] = None):
        self._config = copy.deepcopy(config) if config is not None else SimulationConfig()
        self._rng = rng if rng is not None else DeterministicRng(self._config.seed)
        self._agents: List[Agent] = []
        self._id_to_index: Dict[str, int] = {}
        self._width = self._config.width
        self._height = self._config.height
        self._generation = 0
        self._tick = 0
        self._sim_time = 0.0
        self._metrics: StepMetrics | None = None
        self.initialize(self._config.width, self._config.height, self._config.agent_count)

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def params(self) -> SimulationParams:
        return self._config.params

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def sim_time(self) -> float:
        return self._sim_time

    @property
    def metrics(self) -> StepMetrics | None:
        return self._metrics

    def initialize(self, width: float, height: float, agent_count: int) -> None:
        self._width = width
        self._height = height
        self.reset(agent_count)

    def resize(self, width: float, height: float) -> None:
        self._width = width
        self._height = height

    def reset(self, agent_count: Optional[int] = None) -> None:
        count = self._config.agent_count if agent_count is None else agent_count
        self._generation += 1
        self._agents = lifecycle.bootstrap_population(
            self._rng, self._config, count, self._generation, self._width, self._height
        )
        self._tick = 0
        self._sim_time = 0.0
        self._metrics = None
        self.rebuild_index()
        connectivity.rebuild_connections(self._agents, self._config.params)
        logger.info(
            "Built population generation=%d agents=%d arena=%.0fx%.0f",
            self._generation,
            len(self._agents),
            self._width,
            self._height,
        )

    def update_params(self, partial: Mapping[str, Any]) -> None:
        params = self._config.params
        known = SimulationParams.names()
        for name, value in partial.items():
            if name not in known:
                logger.warning("Ignoring unknown simulation parameter %r", name)
                continue
            setattr(params, name, value)

    def step(self, dt: float) -> StepMetrics:
        start = perf_counter()
        safe_dt = clamp_value(dt, 0.0, self._config.max_dt)
        params = self._config.params
        self.rebuild_index()

        movement.integrate_motion(
            self._agents, self._id_to_index, params, self._rng, safe_dt, self._width, self._height
        )
        sensed = affinity.update_affinities(self._agents, params, safe_dt)
        links = connectivity.rebuild_connections(self._agents, params)

        self._tick += 1
        self._sim_time += safe_dt
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._tick, self._sim_time, safe_dt, self._agents, sensed, links, elapsed_ms
        )
        self._metrics = metrics
        logger.debug(
            "tick=%d edges=%d formed=%d broken=%d sensed=%d",
            metrics.tick,
            metrics.edges,
            metrics.links_formed,
            metrics.links_broken,
            metrics.sensed_pairs,
        )
        return metrics

    def snapshot(self) -> Snapshot:
        return Snapshot(
            tick=self._tick,
            sim_time=self._sim_time,
            width=self._width,
            height=self._height,
            agents=[self.agent_payload(agent) for agent in self._agents],
        )

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        idx = self._id_to_index.get(agent_id)
        if idx is None:
            return None
        return self._agents[idx]

    def pick_agent(self, x: float, y: float, radius: Optional[float] = None) -> Optional[str]:
        pick_radius = self._config.pick_radius if radius is None else radius
        return graph_queries.pick_agent(self._agents, x, y, pick_radius)

    def find_path(self, start_id: str, end_id: str) -> List[str]:
        return graph_queries.find_path(self._agents, self._id_to_index, start_id, end_id)

    def get_contact_sets(self, agent_id: str, radius: float) -> ContactSets:
        return graph_queries.contact_sets(self._agents, self._id_to_index, agent_id, radius)

    def match_top_n(self, agent_id: str, n: int) -> List[MatchResult]:
        return graph_queries.match_top_n(self._agents, self._id_to_index, self._config.params, agent_id, n)

    def get_stats(self) -> GraphStats:
        return graph_queries.graph_stats(self._agents, self._id_to_index)

    def rebuild_index(self) -> None:
        self._id_to_index = {agent.id: i for i, agent in enumerate(self._agents)}

    @staticmethod
    def agent_payload(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "name": agent.name,
            "age": agent.age,
            "gender": agent.gender.value,
            "interests": list(agent.interests),
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "speed": agent.velocity.length(),
            "connections": list(agent.connections),
        }
