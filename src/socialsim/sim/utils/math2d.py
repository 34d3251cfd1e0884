from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2


def clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return x, y
    inv = max_length / (math.sqrt(magnitude_sq) + 1e-9)
    return x * inv, y * inv


def distance(a: Vector2, b: Vector2) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def exp_damp_factor(drag: float, dt: float) -> float:
    """Velocity multiplier for exponential drag over ``dt`` seconds."""
    return math.exp(-drag * dt)


def cosine01(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two non-negative vectors, 0 when either is empty.

    For 0/1 interest vectors this is the overlap normalised by the geometric
    mean of the set sizes, so the result already lies in [0, 1].
    """
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for value_a, value_b in zip(a, b):
        dot += value_a * value_b
        norm_a += value_a * value_a
        norm_b += value_b * value_b
    if norm_a < 1e-9 or norm_b < 1e-9:
        return 0.0
    return clamp_value(dot / (math.sqrt(norm_a) * math.sqrt(norm_b)), 0.0, 1.0)


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
