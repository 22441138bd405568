"""Simulation module for planar vessel flight.

Provides the step-driven vessel physics that autopilot scripts fly, and
trail recording for the flown trajectory.

Example:
    >>> from orbitsim.simulation import Vessel, VesselConfig
    >>>
    >>> vessel = Vessel(config=VesselConfig(stages=3))
    >>>
    >>> # Host loop
    >>> while vessel.altitude < 70000:
    ...     vessel.throttle = 1.0
    ...     vessel.step(0.02)
"""

from orbitsim.simulation.history import (
    FlightHistory,
    TrailSample,
)
from orbitsim.simulation.vessel import (
    Telemetry,
    Vessel,
    VesselConfig,
)

__all__ = [
    "FlightHistory",
    "Telemetry",
    "TrailSample",
    "Vessel",
    "VesselConfig",
]
