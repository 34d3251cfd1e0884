from __future__ import annotations

import math
from collections import deque
from typing import Dict, List, Optional, Set

from ..core.agent import Agent
from ..core.config import SimulationParams
from ..types.snapshot import ContactSets, GraphStats, MatchResult
from .affinity import match_score
from ..utils.math2d import distance
from .metrics import count_edges

CONTACT_MAX_HOPS = 3


def _lookup(agents: List[Agent], id_to_index: Dict[str, int], agent_id: str) -> Optional[Agent]:
    idx = id_to_index.get(agent_id)
    if idx is None:
        return None
    return agents[idx]


def pick_agent(agents: List[Agent], x: float, y: float, radius: float) -> Optional[str]:
    best_id: Optional[str] = None
    best_dist = math.inf
    for agent in agents:
        d = math.hypot(agent.position.x - x, agent.position.y - y)
        if d < best_dist:
            best_dist = d
            best_id = agent.id
    if best_dist <= radius:
        return best_id
    return None


def find_path(agents: List[Agent], id_to_index: Dict[str, int], start_id: str, end_id: str) -> List[str]:
    """Fewest-edge path from ``start_id`` to ``end_id``, both inclusive.

    Among equally short paths the first one reached in neighbour-list order
    wins; that choice depends on the order of the connection lists. An unknown
    id yields an empty path, even when ``start_id == end_id``.
    """
    if start_id not in id_to_index or end_id not in id_to_index:
        return []
    if start_id == end_id:
        return [start_id]

    previous: Dict[str, Optional[str]] = {start_id: None}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for neighbor_id in agents[id_to_index[current]].connections:
            if neighbor_id in previous or neighbor_id not in id_to_index:
                continue
            previous[neighbor_id] = current
            if neighbor_id == end_id:
                path = [end_id]
                step = previous[end_id]
                while step is not None:
                    path.append(step)
                    step = previous[step]
                path.reverse()
                return path
            queue.append(neighbor_id)
    return []


def contact_sets(
    agents: List[Agent], id_to_index: Dict[str, int], agent_id: str, radius: float
) -> ContactSets:
    origin = _lookup(agents, id_to_index, agent_id)
    result = ContactSets()
    if origin is None:
        return result

    visited: Set[str] = {agent_id}
    queue = deque([(agent_id, 0)])
    while queue:
        current_id, hops = queue.popleft()
        current = _lookup(agents, id_to_index, current_id)
        if current is None:
            continue
        if hops > 0:
            d = distance(current.position, origin.position)
            if d <= radius:
                if hops == 1:
                    result.direct_ids.append(current_id)
                else:
                    result.indirect_ids.append(current_id)
                result.step_map[current_id] = hops
        if hops >= CONTACT_MAX_HOPS:
            continue
        for neighbor_id in current.connections:
            if neighbor_id not in visited:
                visited.add(neighbor_id)
                queue.append((neighbor_id, hops + 1))
    return result


def match_top_n(
    agents: List[Agent],
    id_to_index: Dict[str, int],
    params: SimulationParams,
    agent_id: str,
    n: int,
) -> List[MatchResult]:
    # ranking scores carry no mutual-connection term
    origin = _lookup(agents, id_to_index, agent_id)
    if origin is None:
        return []
    results = [
        MatchResult(id=other.id, score=match_score(origin, other, params))
        for other in agents
        if other.id != agent_id
    ]
    results.sort(key=lambda item: item.score, reverse=True)
    return results[: max(0, n)]


def count_components(agents: List[Agent], id_to_index: Dict[str, int]) -> int:
    visited: Set[str] = set()
    components = 0
    for agent in agents:
        if agent.id in visited:
            continue
        components += 1
        visited.add(agent.id)
        queue = deque([agent])
        while queue:
            current = queue.popleft()
            for neighbor_id in current.connections:
                if neighbor_id in visited:
                    continue
                neighbor = _lookup(agents, id_to_index, neighbor_id)
                if neighbor is None:
                    continue
                visited.add(neighbor_id)
                queue.append(neighbor)
    return components


def graph_stats(agents: List[Agent], id_to_index: Dict[str, int]) -> GraphStats:
    return GraphStats(
        node_count=len(agents),
        edge_count=count_edges(agents),
        component_count=count_components(agents, id_to_index),
    )
