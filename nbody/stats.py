"""Aggregate statistics over the particles under the pointer."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .universe import Universe
from .vector import Vector2D


@dataclass
class Stats:
    n: int
    velocity: float
    temperature: float


def compute_stats(universe: Universe, center: Vector2D, radius: float) -> Stats:
    """
    Count, mean velocity and temperature of particles within ``radius``.

    The mean velocity is momentum-weighted. Temperature is the kinetic
    energy relative to that mean, per particle (k = 1, two degrees of
    freedom). An empty selection reports zero velocity and temperature.
    """
    if len(universe) == 0:
        return Stats(0, 0.0, 0.0)

    pos = np.array([[s.pos.x, s.pos.y] for s in universe])
    vel = np.array([[s.v.x, s.v.y] for s in universe])
    mass = np.array([universe.type_of(i).mass for i in range(len(universe))])

    offset = pos - np.array([center.x, center.y])
    mask = (offset * offset).sum(axis=1) < radius * radius
    n = int(mask.sum())
    if n == 0:
        return Stats(0, 0.0, 0.0)

    m = mass[mask]
    v = vel[mask]
    mean_v = (v * m[:, None]).sum(axis=0) / m.sum()
    rel = v - mean_v
    energy = 0.5 * float(((rel * rel).sum(axis=1) * m).sum())
    return Stats(n, float(np.hypot(mean_v[0], mean_v[1])), energy / n)
