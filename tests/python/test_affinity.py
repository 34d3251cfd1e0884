from __future__ import annotations

import math

from pygame.math import Vector2
from pytest import approx

from socialsim.sim.core.agent import Agent, Gender
from socialsim.sim.core.config import SimulationConfig, SimulationParams
from socialsim.sim.core.rng import DeterministicRng
from socialsim.sim.systems import affinity
from socialsim.sim.systems.lifecycle import bootstrap_population

_SHARED_INTERESTS = [1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1]


def _make_agent(
    agent_id: str,
    x: float,
    y: float,
    age: int = 30,
    gender: Gender = Gender.MALE,
    interests: list[int] | None = None,
) -> Agent:
    return Agent(
        id=agent_id,
        name=agent_id,
        age=age,
        gender=gender,
        position=Vector2(x, y),
        velocity=Vector2(),
        interests=list(interests or _SHARED_INTERESTS),
    )


def test_match_score_for_identical_profiles():
    a = _make_agent("a", 0.0, 0.0)
    b = _make_agent("b", 0.0, 0.0)
    params = SimulationParams()

    # interests 0.55 * 1 + age 0.2 * 1 + same gender 0.05 * 0.48
    assert affinity.match_score(a, b, params) == approx(0.774)


def test_match_score_prefers_opposite_gender_slightly():
    a = _make_agent("a", 0.0, 0.0)
    same = _make_agent("b", 0.0, 0.0)
    other = _make_agent("c", 0.0, 0.0, gender=Gender.FEMALE)
    params = SimulationParams()

    diff = affinity.match_score(a, other, params) - affinity.match_score(a, same, params)
    assert diff == approx(0.05 * 0.04)


def test_match_score_age_and_mutual_terms():
    a = _make_agent("a", 0.0, 0.0, age=30)
    b = _make_agent("b", 0.0, 0.0, age=42)
    params = SimulationParams()

    expected = 0.55 + 0.2 * math.exp(-1.0) + 0.05 * 0.48
    assert affinity.match_score(a, b, params) == approx(expected)
    assert affinity.match_score(a, b, params, mutual=3) == approx(expected + 0.2 * 0.5)


def test_match_score_is_clamped_to_unit_interval():
    a = _make_agent("a", 0.0, 0.0)
    b = _make_agent("b", 0.0, 0.0)
    assert affinity.match_score(a, b, SimulationParams(w_interest=5.0)) == 1.0
    assert affinity.match_score(a, b, SimulationParams(w_interest=-5.0, w_age=0.0, w_gender=0.0)) == 0.0


def test_match_score_stays_in_bounds_for_random_population():
    agents = bootstrap_population(DeterministicRng(17), SimulationConfig(), 40, 1, 800.0, 600.0)
    params = SimulationParams()
    for a in agents:
        for b in agents:
            if a is b:
                continue
            assert 0.0 <= affinity.match_score(a, b, params, mutual=7) <= 1.0


def test_crowding_penalty_ramps_inside_personal_space():
    assert affinity.crowding_penalty(25.0, 20.0) == 0.0
    assert affinity.crowding_penalty(20.0, 20.0) == 0.0
    assert affinity.crowding_penalty(10.0, 20.0) == approx(0.5)
    assert affinity.crowding_penalty(0.0, 20.0) == approx(1.0)
    assert affinity.crowding_penalty(5.0, 0.0) == 0.0


def test_update_grows_affinity_for_compatible_pair_in_both_directions():
    a = _make_agent("a", 100.0, 100.0)
    b = _make_agent("b", 150.0, 100.0)

    sensed = affinity.update_affinities([a, b], SimulationParams(), 0.05)

    assert sensed == 2
    signed = (0.774 - 0.5) * 2.0
    assert a.affinity["b"] == approx(0.05 * 2.0 * signed)
    assert b.affinity["a"] == approx(a.affinity["b"])


def test_update_applies_exponential_forgetting():
    a = _make_agent("a", 100.0, 100.0)
    b = _make_agent("b", 150.0, 100.0)
    a.affinity["b"] = 0.5
    params = SimulationParams(forget_rate=1.0, match_rate=0.0, crowd_rate=0.0)

    affinity.update_affinities([a, b], params, 0.05)

    assert a.affinity["b"] == approx(0.5 * math.exp(-0.05))
    assert b.affinity["a"] == 0.0


def test_crowding_pushes_affinity_down_at_close_range():
    a = _make_agent("a", 100.0, 100.0)
    b = _make_agent("b", 110.0, 100.0)
    params = SimulationParams(match_rate=0.0, crowd_rate=0.6, personal_space=20.0)

    affinity.update_affinities([a, b], params, 0.05)

    assert a.affinity["b"] == approx(-0.05 * 0.6 * 0.5)


def test_pairs_outside_sense_radius_are_untouched():
    a = _make_agent("a", 0.0, 0.0)
    b = _make_agent("b", 400.0, 0.0)
    a.affinity["b"] = 0.7

    sensed = affinity.update_affinities([a, b], SimulationParams(sense_radius=150.0), 0.05)

    assert sensed == 0
    assert a.affinity == {"b": 0.7}
    assert b.affinity == {}


def test_affinity_is_clamped():
    a = _make_agent("a", 100.0, 100.0)
    b = _make_agent("b", 150.0, 100.0)
    a.affinity["b"] = 0.99
    b.affinity["a"] = -0.99

    affinity.update_affinities([a, b], SimulationParams(match_rate=1000.0), 0.05)
    assert a.affinity["b"] == 1.0

    close_a = _make_agent("c", 100.0, 100.0)
    close_b = _make_agent("d", 101.0, 100.0)
    affinity.update_affinities([close_a, close_b], SimulationParams(match_rate=0.0, crowd_rate=1000.0), 0.05)
    assert close_a.affinity["d"] == -1.0


def test_mutual_term_uses_committed_connections():
    a = _make_agent("a", 100.0, 100.0)
    b = _make_agent("b", 150.0, 100.0)
    friends = [_make_agent(f"f{i}", 2000.0 + 500.0 * i, 2000.0) for i in range(3)]
    a.connections = [f.id for f in friends]
    b.connections = [f.id for f in friends]
    for friend in friends:
        friend.connections = ["a", "b"]
    params = SimulationParams()

    affinity.update_affinities([a, b, *friends], params, 0.05)

    score = affinity.match_score(a, b, params, mutual=3)
    assert a.affinity["b"] == approx(0.05 * 2.0 * (score - 0.5) * 2.0)
    assert affinity.mutual_count(affinity.neighbor_sets([a, b, *friends]), "a", "b") == 3
    assert affinity.mutual_count({}, "a", "b") == 0
