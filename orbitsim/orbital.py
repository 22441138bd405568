"""Planar orbital mechanics with numba optimization.

Computes the orbit summary the autopilot reads as telemetry (apoapsis,
periapsis, time to apoapsis) from a 2D state vector.

Example:
    >>> import numpy as np
    >>> from orbitsim.environment import KERBIN
    >>> from orbitsim.orbital import compute_orbit_summary
    >>>
    >>> r = KERBIN.radius + 100e3
    >>> v = np.sqrt(KERBIN.mu / r)
    >>> orbit = compute_orbit_summary(np.array([r, 0.0]), np.array([0.0, v]), KERBIN)
    >>> print(f"Apoapsis: {orbit.apoapsis/1000:.1f} km")
"""

from typing import NamedTuple

import numpy as np
from numba import njit
from numpy.typing import NDArray

from orbitsim.environment.planet import KERBIN, Planet

# Semi-major axis used when the orbit is (numerically) parabolic [m]
PARABOLIC_SMA: float = 9999999999.0

# =============================================================================
# Data Classes
# =============================================================================


class OrbitSummary(NamedTuple):
    """Orbit summary for a planar state.

    Attributes:
        altitude: Altitude above the surface [m]
        speed: Inertial speed [m/s]
        apoapsis: Apoapsis altitude above the surface [m]
        periapsis: Periapsis altitude above the surface [m]
        time_to_apoapsis: Estimated time to apoapsis, 0 when descending [s]
        semi_major_axis: Semi-major axis [m]
        eccentricity: Orbital eccentricity [-]
        specific_energy: Specific orbital energy [J/kg]
    """
    altitude: float
    speed: float
    apoapsis: float
    periapsis: float
    time_to_apoapsis: float
    semi_major_axis: float
    eccentricity: float
    specific_energy: float


# =============================================================================
# Core Numba Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _orbit_summary_core(
    rx: float, ry: float,
    vx: float, vy: float,
    mu: float,
    r_body: float,
) -> tuple[float, float, float, float, float, float, float, float]:
    """Numba-optimized orbit summary.

    Returns tuple of:
        (altitude, speed, apoapsis, periapsis, eta_apoapsis, sma, ecc, energy)
    """
    r = np.sqrt(rx*rx + ry*ry)
    v = np.sqrt(vx*vx + vy*vy)

    # Specific orbital energy
    energy = v*v / 2.0 - mu / r

    if abs(energy) < 0.001:
        sma = PARABOLIC_SMA
    else:
        sma = -mu / (2.0 * energy)

    # Specific angular momentum (scalar in 2D)
    h = abs(rx*vy - ry*vx)

    ecc = np.sqrt(max(0.0, 1.0 + 2.0 * energy * h * h / (mu * mu)))

    apoapsis = sma * (1.0 + ecc) - r_body
    periapsis = sma * (1.0 - ecc) - r_body

    # Climbing: time for local gravity to cancel the radial speed
    radial_speed = (vx*rx + vy*ry) / r if r > 0.0 else 0.0
    eta = 0.0
    if radial_speed > 0.0:
        eta = radial_speed / (mu / (r * r))

    return (r - r_body, v, apoapsis, periapsis, eta, sma, ecc, energy)


# =============================================================================
# Python API Functions
# =============================================================================


def compute_orbit_summary(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    planet: Planet = KERBIN,
) -> OrbitSummary:
    """Compute the orbit summary from a planar state vector.

    Args:
        position: Position [x, y] relative to the body center [m]
        velocity: Velocity [vx, vy] [m/s]
        planet: Central body

    Returns:
        OrbitSummary named tuple
    """
    result = _orbit_summary_core(
        float(position[0]), float(position[1]),
        float(velocity[0]), float(velocity[1]),
        planet.mu, planet.radius,
    )
    return OrbitSummary(*result)


def circular_velocity(altitude: float, planet: Planet = KERBIN) -> float:
    """Circular orbit speed at altitude [m/s]."""
    return float(np.sqrt(planet.mu / (planet.radius + altitude)))
