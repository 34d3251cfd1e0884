from __future__ import annotations

import math
from typing import Dict, List

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.config import SimulationParams
from ..core.rng import DeterministicRng
from ..utils.math2d import clamp_length_xy_f, clamp_value, exp_damp_factor

_MIN_PAIR_DISTANCE = 1e-6


def separation(agents: List[Agent], params: SimulationParams, accel: List[Vector2]) -> None:
    """Soft linear repulsion for every unordered pair closer than ``sep_range``.

    Reads positions only, so every force of the frame comes from the
    positions the frame started with.
    """
    sep_range = params.sep_range
    if sep_range <= 0.0:
        return
    count = len(agents)
    for i in range(count):
        pos_i = agents[i].position
        for j in range(i + 1, count):
            pos_j = agents[j].position
            dx = pos_i.x - pos_j.x
            dy = pos_i.y - pos_j.y
            d = math.hypot(dx, dy)
            if d <= _MIN_PAIR_DISTANCE or d >= sep_range:
                continue
            force = params.sep_strength * (sep_range - d) / sep_range
            fx = dx / d * force
            fy = dy / d * force
            accel[i].x += fx
            accel[i].y += fy
            accel[j].x -= fx
            accel[j].y -= fy


def friend_attraction(
    agents: List[Agent],
    id_to_index: Dict[str, int],
    params: SimulationParams,
    accel: List[Vector2],
) -> None:
    sense_radius = params.sense_radius
    for i, agent in enumerate(agents):
        pos = agent.position
        for friend_id in agent.connections:
            j = id_to_index.get(friend_id)
            if j is None:
                continue
            other = agents[j].position
            dx = other.x - pos.x
            dy = other.y - pos.y
            d = math.hypot(dx, dy)
            if d < _MIN_PAIR_DISTANCE:
                continue
            reach = clamp_value(d / sense_radius, 0.0, 1.0) if sense_radius > 0.0 else 1.0
            strength = params.friend_attract * reach
            accel[i].x += dx / d * strength
            accel[i].y += dy / d * strength


def wander(
    agents: List[Agent],
    params: SimulationParams,
    rng: DeterministicRng,
    dt: float,
    accel: List[Vector2],
) -> None:
    for i, agent in enumerate(agents):
        agent.wander_ttl -= dt
        if agent.wander_ttl <= 0.0:
            agent.wander_dir = rng.next_unit_circle()
            agent.wander_ttl = rng.next_range(params.wander_ttl_min, params.wander_ttl_max)
        accel[i].x += agent.wander_dir.x * params.wander_accel
        accel[i].y += agent.wander_dir.y * params.wander_accel


def reflect(
    x: float, y: float, vx: float, vy: float, width: float, height: float, restitution: float
) -> tuple[float, float, float, float]:
    if x < 0.0:
        x = 0.0
        vx = -vx * restitution
    elif x > width:
        x = width
        vx = -vx * restitution
    if y < 0.0:
        y = 0.0
        vy = -vy * restitution
    elif y > height:
        y = height
        vy = -vy * restitution
    return x, y, vx, vy


def integrate_motion(
    agents: List[Agent],
    id_to_index: Dict[str, int],
    params: SimulationParams,
    rng: DeterministicRng,
    dt: float,
    width: float,
    height: float,
) -> None:
    accel = [Vector2() for _ in agents]
    separation(agents, params, accel)
    friend_attraction(agents, id_to_index, params, accel)
    wander(agents, params, rng, dt, accel)

    damp = exp_damp_factor(params.drag, dt)
    for agent, acc in zip(agents, accel):
        vel_x = (agent.velocity.x + acc.x * dt) * damp
        vel_y = (agent.velocity.y + acc.y * dt) * damp
        vel_x, vel_y = clamp_length_xy_f(vel_x, vel_y, params.max_speed)
        pos_x, pos_y, vel_x, vel_y = reflect(
            agent.position.x + vel_x * dt,
            agent.position.y + vel_y * dt,
            vel_x,
            vel_y,
            width,
            height,
            params.restitution,
        )
        agent.position.update(pos_x, pos_y)
        agent.velocity.update(vel_x, vel_y)
