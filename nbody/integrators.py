"""Fixed-step explicit integrators over UniverseState."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

if TYPE_CHECKING:
    from .universe import UniverseDifferentiator, UniverseState

Integrator = Callable[["UniverseState", "UniverseDifferentiator", float], "UniverseState"]


def advance_runge_kutta4(
    state: UniverseState,
    differentiator: UniverseDifferentiator,
    dt: float,
) -> UniverseState:
    """
    One classical Runge-Kutta step.

    k1 = f(s)
    k2 = f(s + k1*dt/2)
    k3 = f(s + k2*dt/2)
    k4 = f(s + k3*dt)
    s' = s + (k1 + 2*k2 + 2*k3 + k4)*dt/6
    """
    f = differentiator.derivative
    k1 = f(state)
    k2 = f(state + k1 * (dt / 2))
    k3 = f(state + k2 * (dt / 2))
    k4 = f(state + k3 * dt)
    return state + (k1 + k2 * 2 + k3 * 2 + k4) * (dt / 6)


def advance_euler(
    state: UniverseState,
    differentiator: UniverseDifferentiator,
    dt: float,
) -> UniverseState:
    """Forward Euler, first order. Useful as a baseline against RK4."""
    return state + differentiator.derivative(state) * dt


INTEGRATORS: Dict[str, Integrator] = {
    "rk4": advance_runge_kutta4,
    "euler": advance_euler,
}


def get_integrator(name: str) -> Integrator:
    if name not in INTEGRATORS:
        raise ValueError(f"Unknown integrator '{name}'. Available: {list(INTEGRATORS.keys())}")
    return INTEGRATORS[name]
