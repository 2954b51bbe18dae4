"""Configuration for the particle universe and the interactive modifier."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ModifierConfig:
    """Rates used by the pointer-driven modifier (per second of sim time)."""

    heat_rate: float = 0.1
    push_rate: float = 0.5
    pull_rate: float = 0.2
    remove_rate: float = 0.5
    creation_radius_factor: float = 0.8  # Spawn ring radius relative to pointer radius
    spray_speed_factor: float = 0.08  # Spray speed relative to pointer radius
    spawn_density: float = 0.04  # New particles per unit of pointer radius


@dataclass
class SimConfig:
    """Configuration for the particle universe."""

    # World
    width: float = 1280.0
    height: float = 720.0
    force_factor: float = 1.0  # Soft-wall coefficient
    gravity: float = 0.0

    # Particles
    preset: str = "liquid"
    n_particles: int = 150

    # Dynamics
    dt: float = 0.02
    integrator: str = "rk4"

    # Pointer
    radius_min: float = 10.0
    radius_max: float = 200.0
    pointer_radius: float = 50.0

    # Simulation
    frame_interval: float = 0.03  # Time between WebSocket frames
    log_every: int = 100  # Steps between throttled debug logs
    seed: Optional[int] = None

    modifier: ModifierConfig = field(default_factory=ModifierConfig)

    def clamp_radius(self, radius: float) -> float:
        return min(max(radius, self.radius_min), self.radius_max)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SimConfig:
        data = dict(data)
        modifier = data.pop("modifier", None) or {}
        return cls(modifier=ModifierConfig(**modifier), **data)

    def save(self, filepath: str) -> None:
        """Save configuration to a JSON file."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info("Configuration saved to %s", filepath)

    @classmethod
    def load(cls, filepath: str) -> SimConfig:
        """Load configuration from a JSON file."""
        with open(filepath, "r") as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", filepath)
        return cls.from_dict(data)


DEFAULT_CONFIG = SimConfig()
