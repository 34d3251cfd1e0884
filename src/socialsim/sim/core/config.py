from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class SimulationParams:
    # sensing / affinity
    sense_radius: float = 150.0
    forget_rate: float = 0.05
    match_rate: float = 2.0
    crowd_rate: float = 0.6
    personal_space: float = 20.0
    # link hysteresis thresholds
    connect_on: float = 0.3
    connect_off: float = 0.1
    # match score weights
    w_interest: float = 0.55
    w_age: float = 0.2
    w_gender: float = 0.05
    w_mutual: float = 0.2
    age_scale: float = 12.0
    # motion
    sep_range: float = 25.0
    sep_strength: float = 500.0
    friend_attract: float = 30.0
    wander_accel: float = 35.0
    drag: float = 3.0
    max_speed: float = 120.0
    restitution: float = 0.85
    wander_ttl_min: float = 0.5
    wander_ttl_max: float = 1.2

    @classmethod
    def names(cls) -> frozenset[str]:
        return frozenset(item.name for item in fields(cls))


@dataclass
class SimulationConfig:
    width: float = 800.0
    height: float = 600.0
    agent_count: int = 80
    seed: Optional[int] = None
    max_dt: float = 0.05
    frame_time: float = 1.0 / 60.0
    spawn_margin: float = 40.0
    initial_speed: float = 30.0
    pick_radius: float = 10.0
    params: SimulationParams = field(default_factory=SimulationParams)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def load_config(raw: dict) -> SimulationConfig:
    params = SimulationParams(**raw.get("params", {}))
    sim_values = {k: v for k, v in raw.items() if k != "params"}
    return SimulationConfig(params=params, **sim_values)
