"""Phase-space state of the whole population and the system derivative."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .integrators import get_integrator
from .particle import ParticleCatalog, ParticleState, ParticleType
from .vector import Vector2D

logger = logging.getLogger(__name__)


# ============================================================================
# Universe state (vector space over the population)
# ============================================================================

class UniverseState:
    """Ordered particle states; one point in the phase space of the system."""

    def __init__(self, state: Optional[List[ParticleState]] = None):
        self.state: List[ParticleState] = list(state) if state is not None else []

    def __add__(self, other: UniverseState) -> UniverseState:
        assert len(self.state) == len(other.state), (
            f"Cannot add universe states of length {len(self.state)} and {len(other.state)}"
        )
        return UniverseState([a + b for a, b in zip(self.state, other.state)])

    def __mul__(self, k: float) -> UniverseState:
        return UniverseState([s * k for s in self.state])

    __rmul__ = __mul__

    def __len__(self) -> int:
        return len(self.state)

    def __iter__(self) -> Iterator[ParticleState]:
        return iter(self.state)

    def __getitem__(self, index: int) -> ParticleState:
        return self.state[index]


# ============================================================================
# Differentiator (right-hand side of the ODE)
# ============================================================================

class UniverseDifferentiator:
    """
    Computes d/dt of a UniverseState.

    Holds the per-particle type ids (index-aligned with the integrated
    state), the type catalog, the world size, the soft-wall coefficient and
    the gravity magnitude.
    """

    def __init__(
        self,
        catalog: ParticleCatalog,
        size_x: float,
        size_y: float,
        force_factor: float,
        gravity: float,
    ):
        self.catalog = catalog
        self.size_x = size_x
        self.size_y = size_y
        self.force_factor = force_factor
        self.gravity = gravity
        self.type_ids: List[int] = []

    def bound_force(self, over_edge: float) -> float:
        """Quartic soft-wall force for a particle ``over_edge`` past a wall."""
        if over_edge <= 0.0:
            return 0.0
        return self.force_factor * over_edge ** 4

    def wall_force(self, pos: Vector2D) -> Vector2D:
        fx = self.bound_force(-pos.x) - self.bound_force(pos.x - self.size_x)
        fy = self.bound_force(-pos.y) - self.bound_force(pos.y - self.size_y)
        return Vector2D(fx, fy)

    def derivative(self, state: UniverseState) -> UniverseState:
        assert len(state) == len(self.type_ids), (
            f"State has {len(state)} particles but {len(self.type_ids)} type ids"
        )
        types = [self.catalog[type_id] for type_id in self.type_ids]
        states = state.state
        n = len(states)
        forces = [Vector2D()] * n

        for i in range(n):
            type_i = types[i]
            state_i = states[i]
            for j in range(i):
                f = type_i.compute_force(types[j], state_i, states[j])
                forces[i] = forces[i] + f
                forces[j] = forces[j] - f

            forces[i] = forces[i] + self.wall_force(state_i.pos)
            forces[i] = forces[i] + Vector2D(0.0, self.gravity * type_i.mass)

        return UniverseState([
            types[i].derivative(states[i], forces[i]) for i in range(n)
        ])


# ============================================================================
# Universe
# ============================================================================

@dataclass
class ParticleView:
    """Read-only snapshot of one particle for rendering."""
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    color: tuple
    type: str


class Universe:
    """
    Owns the population: integrated state, type ids and the catalog.

    All population changes go through ``add_particle`` and
    ``remove_particle`` so the state list and the type-id list never drift
    apart.
    """

    # Rendering radius relative to the interaction radius
    VISUAL_RADIUS_SCALE = 0.6

    def __init__(
        self,
        size_x: float,
        size_y: float,
        force_factor: float,
        gravity: float,
        catalog: Optional[ParticleCatalog] = None,
        integrator: str = "rk4",
    ):
        self.catalog = catalog if catalog is not None else ParticleCatalog()
        self.diff = UniverseDifferentiator(self.catalog, size_x, size_y, force_factor, gravity)
        self.state = UniverseState()
        self._integrator = get_integrator(integrator)
        logger.info(
            "Universe created: %gx%g, force_factor=%g, gravity=%g, integrator=%s",
            size_x, size_y, force_factor, gravity, integrator,
        )

    @property
    def size_x(self) -> float:
        return self.diff.size_x

    @property
    def size_y(self) -> float:
        return self.diff.size_y

    def add_type(self, ptype: ParticleType) -> int:
        return self.catalog.register(ptype)

    def add_particle(self, type_id: int, state: ParticleState) -> None:
        assert type_id in self.catalog, f"Unknown particle type id {type_id}"
        state.type_id = type_id
        self.diff.type_ids.append(type_id)
        self.state.state.append(state)

    def remove_particle(self, index: int) -> None:
        assert 0 <= index < len(self), f"Particle index {index} out of range [0, {len(self)})"
        del self.diff.type_ids[index]
        del self.state.state[index]

    def clear(self) -> None:
        self.diff.type_ids.clear()
        self.state.state.clear()

    def advance(self, dt: float) -> None:
        self.state = self._integrator(self.state, self.diff, dt)

    def clamp_into(self, pos: Vector2D) -> Vector2D:
        x = min(max(pos.x, 0.0), self.size_x)
        y = min(max(pos.y, 0.0), self.size_y)
        return Vector2D(x, y)

    def type_of(self, index: int) -> ParticleType:
        return self.catalog[self.diff.type_ids[index]]

    def particles(self) -> List[ParticleView]:
        views = []
        for type_id, s in zip(self.diff.type_ids, self.state):
            ptype = self.catalog[type_id]
            views.append(ParticleView(
                x=s.pos.x,
                y=s.pos.y,
                vx=s.v.x,
                vy=s.v.y,
                radius=self.VISUAL_RADIUS_SCALE * ptype.radius,
                color=ptype.color,
                type=ptype.name,
            ))
        return views

    def __len__(self) -> int:
        return len(self.state)

    def __iter__(self) -> Iterator[ParticleState]:
        return iter(self.state)

    def __getitem__(self, index: int) -> ParticleState:
        return self.state[index]
