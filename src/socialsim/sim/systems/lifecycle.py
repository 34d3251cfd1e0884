from __future__ import annotations

from typing import List

from pygame.math import Vector2

from ..core.agent import INTEREST_DIM, Agent, Gender
from ..core.config import SimulationConfig
from ..core.rng import DeterministicRng

MIN_AGE = 18
MAX_AGE = 65
MIN_INTERESTS = 2
MAX_INTERESTS = 4


def sample_interests(rng: DeterministicRng) -> List[int]:
    interests = [0] * INTEREST_DIM
    count = rng.next_int_between(MIN_INTERESTS, MAX_INTERESTS)
    for idx in rng.sample_indices(INTEREST_DIM, count):
        interests[idx] = 1
    return interests


def create_agent(
    rng: DeterministicRng,
    config: SimulationConfig,
    index: int,
    generation: int,
    width: float,
    height: float,
) -> Agent:
    params = config.params
    margin = config.spawn_margin
    speed = config.initial_speed
    suffix = rng.next_int(1_000_000_000)
    return Agent(
        id=f"A{generation}-{index}-{suffix}",
        name=f"User-{1000 + index}",
        age=rng.next_int_between(MIN_AGE, MAX_AGE),
        gender=Gender.MALE if rng.next_float() < 0.5 else Gender.FEMALE,
        interests=sample_interests(rng),
        position=Vector2(
            rng.next_range(margin, width - margin),
            rng.next_range(margin, height - margin),
        ),
        velocity=Vector2(rng.next_range(-speed, speed), rng.next_range(-speed, speed)),
        wander_dir=rng.next_unit_circle(),
        wander_ttl=rng.next_range(params.wander_ttl_min, params.wander_ttl_max),
    )


def bootstrap_population(
    rng: DeterministicRng,
    config: SimulationConfig,
    count: int,
    generation: int,
    width: float,
    height: float,
) -> List[Agent]:
    return [create_agent(rng, config, index, generation, width, height) for index in range(max(0, count))]
