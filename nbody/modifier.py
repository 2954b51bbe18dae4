"""Pointer state and the policy that turns it into physical perturbations."""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import numpy as np

from .config import ModifierConfig
from .particle import ParticleState
from .universe import Universe
from .vector import Vector2D

logger = logging.getLogger(__name__)


class MouseAction(str, enum.Enum):
    HEAT = "heat"
    PUSH = "push"
    CREATE = "create"
    SPRAY = "spray"

    @classmethod
    def from_name(cls, name: str) -> MouseAction:
        try:
            return cls(name)
        except ValueError:
            raise ValueError(
                f"Unknown action '{name}'. Available: {[a.value for a in cls]}"
            ) from None


@dataclass
class PointerHandler:
    """
    Per-frame pointer snapshot.

    ``sign`` is +1 while only the primary button is held, -1 for only the
    secondary button and 0 otherwise.
    """

    pos: Vector2D = field(default_factory=Vector2D)
    sign: int = 0
    radius: float = 50.0
    action: MouseAction = MouseAction.HEAT
    radius_min: float = 10.0
    radius_max: float = 200.0
    left_down: bool = False
    right_down: bool = False

    def move(self, x: float, y: float) -> None:
        # (-1, -1) means the position did not change
        if x != -1 or y != -1:
            self.pos = Vector2D(x, y)

    def set_buttons(self, left: bool, right: bool) -> None:
        self.left_down = left
        self.right_down = right
        self.sign = int(left) - int(right)

    def set_radius(self, radius: float) -> None:
        self.radius = min(max(radius, self.radius_min), self.radius_max)

    def scroll(self, delta: float) -> None:
        self.set_radius(self.radius * 1.2 ** delta)

    def contains(self, pos: Vector2D) -> bool:
        return (pos - self.pos).magnitude2() < self.radius * self.radius


Effect = Callable[[Universe, int, PointerHandler, float], bool]


class UniverseModifier:
    """
    Applies pointer effects to a Universe once per step.

    Existing particles inside the pointer radius are heated, pushed, pulled
    or removed according to the action mode, then new particles are spawned
    for the create and spray modes. All randomness comes from ``rng``.
    """

    def __init__(self, config: Optional[ModifierConfig] = None, rng: Optional[np.random.Generator] = None):
        self.config = config or ModifierConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        # Each effect returns True if it removed the particle
        self._effects: Dict[MouseAction, Effect] = {
            MouseAction.HEAT: self._heat,
            MouseAction.PUSH: self._push,
            MouseAction.CREATE: self._create_existing,
            MouseAction.SPRAY: self._spray_existing,
        }

    def modify(self, universe: Universe, handler: PointerHandler, dt: float, spawn_type: int) -> None:
        if not handler.sign:
            return
        self.modify_existing(universe, handler, dt)
        self.add_new(universe, handler, dt, spawn_type)

    # ------------------------------------------------------------------
    # Existing particles
    # ------------------------------------------------------------------

    def modify_existing(self, universe: Universe, handler: PointerHandler, dt: float) -> None:
        effect = self._effects[handler.action]
        i = 0
        while i < len(universe):
            if handler.contains(universe[i].pos) and effect(universe, i, handler, dt):
                continue  # removed; the next particle now sits at index i
            i += 1

    def _heat(self, universe: Universe, i: int, handler: PointerHandler, dt: float) -> bool:
        state = universe[i]
        state.v = state.v * (1.0 + handler.sign * self.config.heat_rate * dt)
        return False

    def _push(self, universe: Universe, i: int, handler: PointerHandler, dt: float) -> bool:
        state = universe[i]
        if handler.sign > 0:
            state.v = state.v + (state.pos - handler.pos) * (self.config.push_rate * dt / handler.radius)
        else:
            self._pull_and_damp(state, handler, dt)
        return False

    def _create_existing(self, universe: Universe, i: int, handler: PointerHandler, dt: float) -> bool:
        if handler.sign > 0:
            return False
        self._pull_and_damp(universe[i], handler, dt)
        return self._maybe_remove(universe, i, dt)

    def _spray_existing(self, universe: Universe, i: int, handler: PointerHandler, dt: float) -> bool:
        if handler.sign > 0:
            return False
        return self._maybe_remove(universe, i, dt)

    def _pull_and_damp(self, state: ParticleState, handler: PointerHandler, dt: float) -> None:
        state.v = state.v - (state.pos - handler.pos) * (self.config.pull_rate * dt / handler.radius)
        state.v = state.v * (1.0 - self.config.heat_rate * dt)

    def _maybe_remove(self, universe: Universe, i: int, dt: float) -> bool:
        """Bernoulli removal shared by the create and spray modes."""
        if self.rng.random() < self.config.remove_rate * dt:
            universe.remove_particle(i)
            return True
        return False

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def add_new(self, universe: Universe, handler: PointerHandler, dt: float, spawn_type: int) -> None:
        if handler.sign <= 0:
            return
        if handler.action == MouseAction.CREATE:
            self._spawn_ring(universe, handler, spawn_type)
        elif handler.action == MouseAction.SPRAY:
            self._spawn_spray(universe, handler, spawn_type)

    def spawn_count(self, radius: float) -> int:
        return int(math.floor(self.config.spawn_density * radius)) + 1

    def sample_ring_offset(self, radius: float) -> Vector2D:
        """
        Random offset inside the creation ring.

        The radial density grows linearly from 0 at the center to its
        maximum at creation_radius_factor * radius, so r = R * sqrt(u).
        """
        outer = self.config.creation_radius_factor * radius
        phi = self.rng.uniform(0.0, 2.0 * math.pi)
        r = outer * math.sqrt(self.rng.random())
        return Vector2D.polar(r, phi)

    def _spawn_ring(self, universe: Universe, handler: PointerHandler, spawn_type: int) -> None:
        count = self.spawn_count(handler.radius)
        for _ in range(count):
            pos = universe.clamp_into(handler.pos + self.sample_ring_offset(handler.radius))
            universe.add_particle(spawn_type, ParticleState(pos))
        logger.debug("Spawned %d particles around (%.1f, %.1f)", count, handler.pos.x, handler.pos.y)

    def _spawn_spray(self, universe: Universe, handler: PointerHandler, spawn_type: int) -> None:
        phi = self.rng.uniform(0.0, 2.0 * math.pi)
        speed = self.config.spray_speed_factor * handler.radius
        universe.add_particle(spawn_type, ParticleState(handler.pos, Vector2D.polar(speed, phi)))
