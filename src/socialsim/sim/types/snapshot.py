from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class Snapshot:
    tick: int
    sim_time: float
    width: float
    height: float
    agents: List[Dict[str, Any]]


@dataclass(slots=True)
class ContactSets:
    direct_ids: List[str] = field(default_factory=list)
    indirect_ids: List[str] = field(default_factory=list)
    # classified id -> hop count
    step_map: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class MatchResult:
    id: str
    score: float


@dataclass(slots=True)
class GraphStats:
    node_count: int
    edge_count: int
    component_count: int
