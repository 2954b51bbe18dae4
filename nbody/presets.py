"""Preset particle-type catalogs (gas, liquid, mixtures)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .particle import ParticleCatalog, ParticleType


@dataclass
class Preset:
    """A named set of particle types and their initial population mix."""
    name: str
    description: str
    types: List[ParticleType]
    weights: Optional[List[float]] = None  # Relative abundance, uniform if None
    spawn_type: Optional[str] = None  # Type used by create/spray, first type if None

    def __post_init__(self) -> None:
        if not self.types:
            raise ValueError(f"Preset '{self.name}' has no particle types")
        if self.weights is None:
            self.weights = [1.0] * len(self.types)
        if len(self.weights) != len(self.types):
            raise ValueError(
                f"Preset '{self.name}': {len(self.weights)} weights for {len(self.types)} types"
            )
        if self.spawn_type is None:
            self.spawn_type = self.types[0].name

    def build_catalog(self) -> ParticleCatalog:
        return ParticleCatalog(self.types)

    def probabilities(self) -> List[float]:
        total = float(sum(self.weights))
        return [w / total for w in self.weights]


# ============================================================================
# Preset Definitions
# ============================================================================

# Hard spheres only, no long-range interaction
GAS = Preset(
    name="gas",
    description="Single species of hard spheres without attraction",
    types=[
        ParticleType("argon", mass=1.0, radius=5.0, exclusion_constant=10.0,
                     dipole_moment=0.0, range=10.0, color=(120, 180, 255)),
    ],
)

# Attraction just outside the hard core makes droplets
LIQUID = Preset(
    name="liquid",
    description="Single attracting species that condenses into droplets",
    types=[
        ParticleType("water", mass=1.0, radius=5.0, exclusion_constant=10.0,
                     dipole_moment=3.0, range=25.0, color=(40, 120, 255)),
    ],
)

# Opposite dipole signs: like species attract, unlike species repel
BINARY = Preset(
    name="binary",
    description="Two species with opposite dipoles that separate into domains",
    types=[
        ParticleType("anion", mass=1.0, radius=4.0, exclusion_constant=10.0,
                     dipole_moment=2.5, range=30.0, color=(255, 80, 80)),
        ParticleType("cation", mass=2.0, radius=6.0, exclusion_constant=10.0,
                     dipole_moment=-2.5, range=30.0, color=(80, 255, 120)),
    ],
)

# Strong short-range attraction, heavy particles, trace of light gas
CRYSTAL = Preset(
    name="crystal",
    description="Strongly bound heavy particles with a light gas component",
    types=[
        ParticleType("metal", mass=4.0, radius=6.0, exclusion_constant=20.0,
                     dipole_moment=6.0, range=20.0, color=(255, 204, 0)),
        ParticleType("helium", mass=0.5, radius=3.0, exclusion_constant=5.0,
                     dipole_moment=0.0, range=6.0, color=(200, 200, 200)),
    ],
    weights=[4.0, 1.0],
)


# ============================================================================
# Preset Registry
# ============================================================================

PRESETS: Dict[str, Preset] = {
    "gas": GAS,
    "liquid": LIQUID,
    "binary": BINARY,
    "crystal": CRYSTAL,
}


def list_presets() -> List[Preset]:
    """Return list of all available presets."""
    return list(PRESETS.values())


def get_preset(name: str) -> Preset:
    """Get preset by name."""
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]
