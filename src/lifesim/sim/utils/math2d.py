from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple, TypeVar

from pygame.math import Vector2

T = TypeVar("T")

# Unit-vector denominators never drop below this; coincident points count as distance 1.
_MIN_DENOMINATOR = 1e-9


def safe_direction(origin: Vector2, target: Vector2) -> Tuple[Vector2, float]:
    offset_x = target.x - origin.x
    offset_y = target.y - origin.y
    distance = math.hypot(offset_x, offset_y)
    denominator = distance if distance > _MIN_DENOMINATOR else 1.0
    return Vector2(offset_x / denominator, offset_y / denominator), distance


def nearest(position: Vector2, candidates: Iterable[T]) -> Tuple[Optional[T], float]:
    """Closest candidate by Euclidean distance; candidates expose ``.position``."""
    best: Optional[T] = None
    best_dist_sq = math.inf
    pos_x = position.x
    pos_y = position.y
    for candidate in candidates:
        other = candidate.position  # type: ignore[attr-defined]
        offset_x = other.x - pos_x
        offset_y = other.y - pos_y
        dist_sq = offset_x * offset_x + offset_y * offset_y
        if dist_sq < best_dist_sq:
            best = candidate
            best_dist_sq = dist_sq
    if best is None:
        return None, math.inf
    return best, math.sqrt(best_dist_sq)


def within(position: Vector2, other: Vector2, radius: float) -> bool:
    offset_x = other.x - position.x
    offset_y = other.y - position.y
    return offset_x * offset_x + offset_y * offset_y < radius * radius


def clamp_length(vector: Vector2, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    return vector.normalize() * max_length


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
