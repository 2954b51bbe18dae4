"""Minimal immutable 2D vector used for positions, velocities and forces."""
from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vector2D:
    """A point or displacement in the simulation plane."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2D) -> Vector2D:
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> Vector2D:
        return Vector2D(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> Vector2D:
        return Vector2D(self.x / k, self.y / k)

    def __neg__(self) -> Vector2D:
        return Vector2D(-self.x, -self.y)

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def magnitude2(self) -> float:
        """Squared magnitude, avoids the sqrt for radius tests."""
        return self.x * self.x + self.y * self.y

    @classmethod
    def polar(cls, r: float, phi: float) -> Vector2D:
        return cls(r * math.cos(phi), r * math.sin(phi))
