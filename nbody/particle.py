"""Particle species, per-particle state and the pairwise force law."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .vector import Vector2D

logger = logging.getLogger(__name__)


# ============================================================================
# Force law helpers
# ============================================================================

def super_smooth_zero_to_one(x: float) -> float:
    """Quintic smootherstep: 0 below 0, 1 above 1, flat slope at both ends."""
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0
    return x * x * x * (x * (6.0 * x - 15.0) + 10.0)


def repulsion_magnitude(total_radius: float, d: float) -> float:
    """
    Hard-core exclusion profile for unit exclusion constants.

    (total_radius / d - 1)^2 inside the combined radius, zero outside.
    Both the value and the slope vanish at d == total_radius.
    """
    if d >= total_radius or d <= 0.0:
        return 0.0
    overlap = total_radius / d - 1.0
    return overlap * overlap


def dipole_window(total_radius: float, min_range: float, d: float) -> float:
    """
    Gate for the long-range term.

    Zero outside (total_radius, min_range), rising smoothly to 1 at the
    middle of the window and falling back to 0 at min_range.
    """
    width = min_range - total_radius
    if width <= 0.0 or d <= total_radius or d >= min_range:
        return 0.0
    t = (d - total_radius) / width
    return super_smooth_zero_to_one(1.0 - abs(2.0 * t - 1.0))


# ============================================================================
# Particle type and state
# ============================================================================

@dataclass(frozen=True)
class ParticleType:
    """Immutable species descriptor shared by many particles."""

    name: str
    mass: float
    radius: float
    exclusion_constant: float
    dipole_moment: float
    range: float
    color: Tuple[int, int, int] = (255, 255, 255)

    def __post_init__(self) -> None:
        if self.mass <= 0.0:
            raise ValueError(f"Particle type '{self.name}': mass must be > 0, got {self.mass}")
        if self.radius < 0.0:
            raise ValueError(f"Particle type '{self.name}': radius must be >= 0, got {self.radius}")
        if self.exclusion_constant < 0.0:
            raise ValueError(
                f"Particle type '{self.name}': exclusion constant must be >= 0, "
                f"got {self.exclusion_constant}"
            )
        if self.range <= 0.0:
            raise ValueError(f"Particle type '{self.name}': range must be > 0, got {self.range}")

    def force_magnitude(self, other: ParticleType, d: float) -> float:
        """Scalar force along the separation axis; positive pushes apart."""
        total_radius = self.radius + other.radius
        min_range = max(self.range, other.range)
        repulsion = (
            self.exclusion_constant * other.exclusion_constant
            * repulsion_magnitude(total_radius, d)
        )
        attraction = (
            self.dipole_moment * other.dipole_moment
            * dipole_window(total_radius, min_range, d)
        )
        return repulsion - attraction

    def compute_force(
        self,
        other: ParticleType,
        my_state: ParticleState,
        other_state: ParticleState,
    ) -> Vector2D:
        """Force exerted on the particle in ``my_state`` by the one in ``other_state``."""
        delta = my_state.pos - other_state.pos
        d = delta.magnitude()
        if d == 0.0:
            return Vector2D()
        return delta * (self.force_magnitude(other, d) / d)

    def derivative(self, state: ParticleState, force: Vector2D) -> ParticleState:
        return state.derivative(force, self.mass)


@dataclass
class ParticleState:
    """Position and velocity of one particle, plus the id of its type."""

    pos: Vector2D = field(default_factory=Vector2D)
    v: Vector2D = field(default_factory=Vector2D)
    type_id: int = 0

    def __add__(self, other: ParticleState) -> ParticleState:
        return ParticleState(self.pos + other.pos, self.v + other.v, self.type_id)

    def __mul__(self, k: float) -> ParticleState:
        return ParticleState(self.pos * k, self.v * k, self.type_id)

    __rmul__ = __mul__

    def derivative(self, force: Vector2D, mass: float) -> ParticleState:
        # d(pos)/dt = v, d(v)/dt = F / m
        return ParticleState(self.v, force / mass, self.type_id)


# ============================================================================
# Type catalog
# ============================================================================

class ParticleCatalog:
    """
    Registry of particle types addressed by stable integer ids.

    Types are never removed, so an id handed out by ``register`` stays valid
    for the lifetime of the catalog.
    """

    def __init__(self, types: Optional[List[ParticleType]] = None):
        self._types: List[ParticleType] = []
        self._by_name: Dict[str, int] = {}
        for ptype in types or []:
            self.register(ptype)

    def register(self, ptype: ParticleType) -> int:
        if ptype.name in self._by_name:
            raise ValueError(f"Particle type '{ptype.name}' is already registered")
        type_id = len(self._types)
        self._types.append(ptype)
        self._by_name[ptype.name] = type_id
        logger.debug("Registered particle type %r as id %d", ptype.name, type_id)
        return type_id

    def id_of(self, name: str) -> int:
        if name not in self._by_name:
            raise ValueError(f"Unknown particle type '{name}'. Available: {list(self._by_name)}")
        return self._by_name[name]

    def __getitem__(self, type_id: int) -> ParticleType:
        return self._types[type_id]

    def __contains__(self, type_id: object) -> bool:
        return isinstance(type_id, int) and 0 <= type_id < len(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[ParticleType]:
        return iter(self._types)
