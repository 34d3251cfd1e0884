from __future__ import annotations

from typing import Dict, List, Tuple

from ..core.agent import Agent
from ..core.config import SimulationParams


def next_link_state(was_connected: bool, f_ij: float, f_ji: float, params: SimulationParams) -> bool:
    if not was_connected:
        return f_ij > params.connect_on and f_ji > params.connect_on
    return not (f_ij < params.connect_off or f_ji < params.connect_off)


def build_adjacency(agents: List[Agent], params: SimulationParams) -> Tuple[Dict[str, List[str]], int, int]:
    """Evaluate every unordered pair against the committed connections.

    Returns the next adjacency (neighbour lists in population order) and the
    number of links formed and broken.
    """
    previous = {agent.id: set(agent.connections) for agent in agents}
    adjacency: Dict[str, List[str]] = {agent.id: [] for agent in agents}
    formed = 0
    broken = 0
    count = len(agents)
    for i in range(count):
        a = agents[i]
        was_linked = previous[a.id]
        for j in range(i + 1, count):
            b = agents[j]
            was_connected = b.id in was_linked
            connected = next_link_state(
                was_connected,
                a.affinity.get(b.id, 0.0),
                b.affinity.get(a.id, 0.0),
                params,
            )
            if connected:
                adjacency[a.id].append(b.id)
                adjacency[b.id].append(a.id)
                if not was_connected:
                    formed += 1
            elif was_connected:
                broken += 1
    return adjacency, formed, broken


def commit_connections(agents: List[Agent], adjacency: Dict[str, List[str]]) -> None:
    for agent in agents:
        agent.connections = list(adjacency.get(agent.id, ()))


def rebuild_connections(agents: List[Agent], params: SimulationParams) -> Tuple[int, int]:
    adjacency, formed, broken = build_adjacency(agents, params)
    commit_connections(agents, adjacency)
    return formed, broken
