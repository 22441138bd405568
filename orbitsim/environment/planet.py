"""Central body models for the planar flight simulation.

Provides the planet description (size, mass, atmosphere) and the gravity
and atmospheric density functions used by the vessel physics. Core
functions are numba-compiled for use in the per-frame step.

Example:
    >>> from orbitsim.environment import KERBIN
    >>>
    >>> g = KERBIN.surface_gravity  # ~9.81 m/s^2
    >>> rho = KERBIN.density(5000.0)  # kg/m^3
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

# =============================================================================
# Constants
# =============================================================================

G: float = 6.674e-11  # Gravitational constant [m^3/(kg*s^2)]


# =============================================================================
# Planet
# =============================================================================


@beartype
@dataclass(frozen=True)
class Planet:
    """Central body description.

    Attributes:
        name: Body name
        radius: Surface radius [m]
        mass: Body mass [kg]
        atmosphere_height: Top of the atmosphere above the surface [m]
        sea_level_density: Air density at the surface [kg/m^3]
        scale_height: Exponential atmosphere scale height [m]
        drag_coefficient: Lumped vessel drag area coefficient [m^2]
    """
    name: str
    radius: float
    mass: float
    atmosphere_height: float = 70000.0
    sea_level_density: float = 1.2
    scale_height: float = 5000.0
    drag_coefficient: float = 0.008

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"Planet radius must be positive, got {self.radius}")
        if self.mass <= 0:
            raise ValueError(f"Planet mass must be positive, got {self.mass}")

    @property
    def mu(self) -> float:
        """Gravitational parameter [m^3/s^2]."""
        return G * self.mass

    @property
    def surface_gravity(self) -> float:
        """Gravity magnitude at the surface [m/s^2]."""
        return self.mu / (self.radius * self.radius)

    @beartype
    def gravity(self, position: NDArray[np.float64]) -> NDArray[np.float64]:
        """Gravitational acceleration at a planar position.

        Args:
            position: Position [x, y] relative to the body center [m]

        Returns:
            Acceleration [ax, ay] [m/s^2]
        """
        ax, ay = _gravity_2d(float(position[0]), float(position[1]), self.mu)
        return np.array([ax, ay])

    @beartype
    def density(self, altitude: float) -> float:
        """Air density at altitude, zero outside the atmosphere [kg/m^3]."""
        return _density(
            altitude, self.atmosphere_height, self.sea_level_density, self.scale_height,
        )


KERBIN = Planet(name="Kerbin", radius=600000.0, mass=5.2915e22)


# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _gravity_2d(x: float, y: float, mu: float) -> tuple[float, float]:
    """Point-mass gravity, g = -mu/r^2 * r_hat."""
    r_sq = x*x + y*y
    r = np.sqrt(r_sq)

    if r < 1.0:  # Avoid singularity at the center
        return (0.0, 0.0)

    g_over_r = mu / (r_sq * r)
    return (-g_over_r * x, -g_over_r * y)


@njit(cache=True, fastmath=True)
def _density(
    altitude: float,
    atmosphere_height: float,
    sea_level_density: float,
    scale_height: float,
) -> float:
    """Exponential atmosphere density."""
    if altitude <= 0.0 or altitude >= atmosphere_height:
        return 0.0
    return sea_level_density * np.exp(-altitude / scale_height)
