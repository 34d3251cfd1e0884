from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from pygame.math import Vector2

INTEREST_TAGS = (
    "Technology",
    "Art",
    "Sports",
    "Politics",
    "Finance",
    "Music",
    "Movies",
    "Gaming",
    "Fitness",
    "Travel",
    "Food",
    "Reading",
)
INTEREST_DIM = len(INTEREST_TAGS)


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


def _empty_interests() -> List[int]:
    return [0] * INTEREST_DIM


@dataclass(slots=True)
class Agent:
    id: str
    name: str
    age: int
    gender: Gender
    position: Vector2
    velocity: Vector2
    interests: List[int] = field(default_factory=_empty_interests)
    wander_dir: Vector2 = field(default_factory=lambda: Vector2(1.0, 0.0))
    wander_ttl: float = 0.0
    # directed: counterpart id -> accumulated affinity in [-1, 1]
    affinity: Dict[str, float] = field(default_factory=dict)
    # written only by the connectivity commit
    connections: List[str] = field(default_factory=list)

    def interest_tags(self) -> List[str]:
        return [tag for tag, flag in zip(INTEREST_TAGS, self.interests) if flag]
