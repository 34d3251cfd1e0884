from __future__ import annotations

import math
from typing import Dict, List, Set

from ..core.agent import Agent
from ..core.config import SimulationParams
from ..utils.math2d import clamp_value, cosine01, distance

SAME_GENDER_PREFERENCE = 0.48
CROSS_GENDER_PREFERENCE = 0.52
MUTUAL_SATURATION = 3.0


def match_score(a: Agent, b: Agent, params: SimulationParams, mutual: int = 0) -> float:
    """Weighted compatibility of ``a`` towards ``b`` in [0, 1].

    Interests, age and gender terms are symmetric; only the externally
    supplied mutual-connection count can make the score directional.
    """
    interest_sim = cosine01(a.interests, b.interests)
    age_sim = math.exp(-abs(a.age - b.age) / params.age_scale) if params.age_scale > 0.0 else float(a.age == b.age)
    gender_pref = SAME_GENDER_PREFERENCE if a.gender == b.gender else CROSS_GENDER_PREFERENCE
    mutual_sim = mutual / (mutual + MUTUAL_SATURATION)
    score = (
        params.w_interest * interest_sim
        + params.w_age * age_sim
        + params.w_gender * gender_pref
        + params.w_mutual * mutual_sim
    )
    return clamp_value(score, 0.0, 1.0)


def crowding_penalty(distance: float, personal_space: float) -> float:
    if personal_space <= 0.0 or distance >= personal_space:
        return 0.0
    return clamp_value((personal_space - distance) / personal_space, 0.0, 2.0)


def neighbor_sets(agents: List[Agent]) -> Dict[str, Set[str]]:
    return {agent.id: set(agent.connections) for agent in agents}


def mutual_count(adjacency: Dict[str, Set[str]], a_id: str, b_id: str) -> int:
    a_set = adjacency.get(a_id)
    b_set = adjacency.get(b_id)
    if not a_set or not b_set:
        return 0
    return len(a_set & b_set)


def update_affinities(agents: List[Agent], params: SimulationParams, dt: float) -> int:
    """Advance every directed affinity whose pair is within sense radius.

    Mutual counts come from the connection lists committed by the previous
    frame. Returns the number of sensed ordered pairs.
    """
    adjacency = neighbor_sets(agents)
    decay = math.exp(-params.forget_rate * dt)
    sense_radius = params.sense_radius
    sensed = 0
    count = len(agents)
    for i in range(count):
        agent = agents[i]
        pos = agent.position
        for j in range(count):
            if i == j:
                continue
            other = agents[j]
            d = distance(pos, other.position)
            if d > sense_radius:
                continue
            sensed += 1
            score = match_score(agent, other, params, mutual_count(adjacency, agent.id, other.id))
            crowd = crowding_penalty(d, params.personal_space)
            signed_match = (score - 0.5) * 2.0
            old = agent.affinity.get(other.id, 0.0)
            updated = old * decay + dt * (params.match_rate * signed_match - params.crowd_rate * crowd)
            agent.affinity[other.id] = clamp_value(updated, -1.0, 1.0)
    return sensed
