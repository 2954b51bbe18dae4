"""Frame loop tying together the universe, the pointer and the modifier."""
from __future__ import annotations

import logging
import operator
from typing import Any, Dict, Optional, Union

import numpy as np

from .config import SimConfig
from .modifier import MouseAction, PointerHandler, UniverseModifier
from .particle import ParticleState
from .presets import Preset, get_preset
from .stats import compute_stats
from .universe import Universe
from .vector import Vector2D

logger = logging.getLogger(__name__)


class Simulation:
    """
    Interactive particle universe.

    Each ``step`` applies the pointer modifier and then advances the
    universe by one integration step.
    """

    def __init__(
        self,
        config: SimConfig,
        preset: Optional[Preset] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config
        self.preset = preset or get_preset(config.preset)
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.pointer = PointerHandler(
            pos=Vector2D(config.width / 2, config.height / 2),
            radius=config.clamp_radius(config.pointer_radius),
            radius_min=config.radius_min,
            radius_max=config.radius_max,
        )
        self.modifier = UniverseModifier(config.modifier, self.rng)

        self._build_universe()
        self.populate(config.n_particles)

        # Time
        self.t = 0.0
        self.steps = 0

        logger.info(
            "Simulation initialized with preset '%s' and %d particles",
            self.preset.name, len(self.universe),
        )

    def _build_universe(self) -> None:
        self.universe = Universe(
            self.config.width,
            self.config.height,
            self.config.force_factor,
            self.config.gravity,
            catalog=self.preset.build_catalog(),
            integrator=self.config.integrator,
        )
        self.spawn_type = self.universe.catalog.id_of(self.preset.spawn_type)

    def populate(self, n: int) -> None:
        """Add ``n`` resting particles at uniform random positions."""
        if n <= 0:
            return
        positions = self.rng.uniform([0.0, 0.0], [self.config.width, self.config.height], (n, 2))
        type_ids = self.rng.choice(len(self.universe.catalog), size=n, p=self.preset.probabilities())
        for (x, y), type_id in zip(positions, type_ids):
            self.universe.add_particle(int(type_id), ParticleState(Vector2D(float(x), float(y))))

    def step(self, dt: Optional[float] = None) -> None:
        """Advance simulation by one timestep."""
        if dt is None:
            dt = self.config.dt

        self.modifier.modify(self.universe, self.pointer, dt, self.spawn_type)
        self.universe.advance(dt)

        self.t += dt
        self.steps += 1

        if self.config.log_every and self.steps % self.config.log_every == 0:
            stats = compute_stats(self.universe, self.pointer.pos, self.pointer.radius)
            logger.debug(
                "Step %d, t=%.2f, particles=%d, pointer n=%d velocity=%.2f temp=%.2f",
                self.steps, self.t, len(self.universe), stats.n, stats.velocity, stats.temperature,
            )

    def set_pointer(
        self,
        x: float = -1,
        y: float = -1,
        sign: Optional[int] = None,
        radius: Optional[float] = None,
        action: Optional[Union[str, MouseAction]] = None,
    ) -> None:
        """Apply an input snapshot; omitted fields keep their current value."""
        self.pointer.move(x, y)
        if sign is not None:
            if sign not in (-1, 0, 1):
                raise ValueError(f"Pointer sign must be -1, 0 or 1, got {sign}")
            self.pointer.sign = sign
        if radius is not None:
            self.pointer.set_radius(radius)
        if action is not None:
            self.pointer.action = MouseAction.from_name(action) if isinstance(action, str) else action

    def set_spawn_type(self, type_ref: Union[str, int]) -> None:
        """Select the type spawned by create and spray, by name or catalog id."""
        if isinstance(type_ref, str):
            self.spawn_type = self.universe.catalog.id_of(type_ref)
            return
        try:
            type_id = operator.index(type_ref)
        except TypeError:
            raise ValueError(f"Particle type must be a name or an integer id, got {type_ref!r}") from None
        if type_id not in self.universe.catalog:
            raise ValueError(f"Unknown particle type id {type_ref}")
        self.spawn_type = type_id

    def get_state(self) -> Dict[str, Any]:
        """Get current state for API/visualization."""
        stats = compute_stats(self.universe, self.pointer.pos, self.pointer.radius)
        return {
            "width": self.config.width,
            "height": self.config.height,
            "t": self.t,
            "preset": self.preset.name,
            "particles": [
                {
                    "id": i,
                    "type": p.type,
                    "x": p.x,
                    "y": p.y,
                    "radius": p.radius,
                    "color": list(p.color),
                }
                for i, p in enumerate(self.universe.particles())
            ],
            "pointer": {
                "x": self.pointer.pos.x,
                "y": self.pointer.pos.y,
                "sign": self.pointer.sign,
                "radius": self.pointer.radius,
                "action": self.pointer.action.value,
                "spawn_type": self.universe.catalog[self.spawn_type].name,
            },
            "stats": {
                "n": stats.n,
                "velocity": stats.velocity,
                "temperature": stats.temperature,
            },
        }

    def reset(self) -> None:
        """Reset simulation to initial state."""
        if self.config.seed is not None:
            self.rng = np.random.default_rng(self.config.seed)
            self.modifier.rng = self.rng

        self.universe.clear()
        self.populate(self.config.n_particles)
        self.t = 0.0
        self.steps = 0
        logger.info("Simulation reset with %d particles", len(self.universe))
