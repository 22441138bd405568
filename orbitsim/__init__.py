"""Orbitsim - Planar flight simulation for autopilot scripting.

This package provides the "plant" that autopilot scripts fly: a planar
vessel with engine, fuel and stages, orbiting a configurable planet.

Example:
    >>> from orbitsim import Vessel, VesselConfig
    >>>
    >>> vessel = Vessel(config=VesselConfig(thrust=500.0, fuel=600.0))
    >>> vessel.throttle = 1.0
    >>> vessel.step(0.02)
    >>> print(f"AP: {vessel.get_telemetry().apoapsis/1000:.1f} km")
"""

__version__ = "0.1.0"

from orbitsim.environment import KERBIN, Planet
from orbitsim.orbital import OrbitSummary, circular_velocity, compute_orbit_summary
from orbitsim.simulation import (
    FlightHistory,
    Telemetry,
    TrailSample,
    Vessel,
    VesselConfig,
)

__all__ = [
    "__version__",
    # Environment
    "KERBIN",
    "Planet",
    # Orbital
    "OrbitSummary",
    "circular_velocity",
    "compute_orbit_summary",
    # Simulation
    "FlightHistory",
    "Telemetry",
    "TrailSample",
    "Vessel",
    "VesselConfig",
]
