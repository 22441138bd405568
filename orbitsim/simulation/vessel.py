"""Step-driven planar vessel physics.

The vessel is the "plant" an autopilot flies: it exposes telemetry,
accepts actuator writes (throttle, steering) and staging changes, and
propagates its state when the host calls :meth:`Vessel.step`.

Model:
    - Planar (2D) point mass starting on the surface at the north pole
    - Steering slews the pitch angle toward the target at a fixed rate
    - Point-mass gravity, exponential-atmosphere drag
    - Fuel is burned in abstract units, each weighing FUEL_UNIT_MASS
    - Semi-implicit Euler integration

Example:
    >>> from orbitsim.simulation import Vessel, VesselConfig
    >>>
    >>> vessel = Vessel(config=VesselConfig(thrust=600.0, stages=3))
    >>> vessel.throttle = 1.0
    >>> for _ in range(500):  # 10 seconds at 50 Hz
    ...     vessel.step(0.02)
    >>> telemetry = vessel.get_telemetry()
    >>> print(f"Altitude: {telemetry.altitude:.0f} m")
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from orbitsim.environment.planet import KERBIN, Planet
from orbitsim.orbital import OrbitSummary, compute_orbit_summary

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

FUEL_UNIT_MASS: float = 5.0  # Mass per fuel unit [kg]
FUEL_BURN_RATE: float = 2.0  # Fuel units per second at full throttle
TURN_RATE: float = 50.0  # Steering slew rate [deg/s]
CRASH_SPEED: float = 10.0  # Touchdown speed that destroys the vessel [m/s]
FALLBACK_MASS: float = 1000.0  # Used if the computed mass is non-positive [kg]


# =============================================================================
# Configuration
# =============================================================================


@beartype
@dataclass
class VesselConfig:
    """Vessel configuration.

    Attributes:
        thrust: Maximum engine thrust [kN]
        dry_mass: Dry mass [t]
        fuel: Fuel capacity per stage [units]
        stages: Stages available to STAGE
    """
    thrust: float = 500.0
    dry_mass: float = 25.0
    fuel: float = 600.0
    stages: int = 2

    def __post_init__(self) -> None:
        if self.thrust < 0:
            raise ValueError(f"thrust must be non-negative, got {self.thrust}")
        if self.dry_mass <= 0:
            raise ValueError(f"dry_mass must be positive, got {self.dry_mass}")
        if self.fuel < 0:
            raise ValueError(f"fuel must be non-negative, got {self.fuel}")
        if self.stages < 0:
            raise ValueError(f"stages must be non-negative, got {self.stages}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "VesselConfig":
        """Build a config from loosely-typed host input.

        Missing or non-numeric entries fall back to the defaults.

        Example:
            >>> VesselConfig.from_mapping({"thrust": "650", "fuel": "abc"})
            VesselConfig(thrust=650.0, dry_mass=25.0, fuel=600.0, stages=2)
        """
        defaults = cls()
        kwargs = {}
        for f in fields(cls):
            default = getattr(defaults, f.name)
            raw = values.get(f.name, default)
            try:
                number = float(raw)
            except (TypeError, ValueError):
                number = math.nan
            if math.isnan(number):
                number = default
            kwargs[f.name] = int(number) if f.type in (int, "int") else float(number)
        return cls(**kwargs)


# =============================================================================
# Telemetry
# =============================================================================


class Telemetry(NamedTuple):
    """Telemetry snapshot read by the autopilot.

    Attributes:
        altitude: Altitude above the surface [m]
        apoapsis: Apoapsis altitude [m]
        periapsis: Periapsis altitude [m]
        velocity: Inertial speed [m/s]
        time_to_apoapsis: Estimated time to apoapsis [s]
    """
    altitude: float
    apoapsis: float
    periapsis: float
    velocity: float
    time_to_apoapsis: float


# =============================================================================
# Vessel
# =============================================================================


@beartype
@dataclass
class Vessel:
    """Planar vessel with engine, fuel tank and stages.

    Actuator fields (written by the autopilot):
        throttle: Throttle setting [0, 1]
        steering_target: Target pitch angle [deg] (90 = straight up)

    Staging fields (written by the autopilot's STAGE):
        fuel, fuel_capacity, remaining_stages, dry_mass

    Attributes:
        config: Vessel configuration
        planet: Central body
    """
    config: VesselConfig = field(default_factory=VesselConfig)
    planet: Planet = KERBIN

    # State, set by reset()
    position: NDArray[np.float64] = field(init=False, repr=False)
    velocity: NDArray[np.float64] = field(init=False, repr=False)
    angle: float = field(init=False)
    throttle: float = field(init=False)
    steering_target: float = field(init=False)
    fuel: float = field(init=False)
    fuel_capacity: float = field(init=False)
    remaining_stages: int = field(init=False)
    dry_mass: float = field(init=False)
    max_thrust: float = field(init=False)
    time: float = field(init=False)
    crashed: bool = field(init=False)
    landed: bool = field(init=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self, config: VesselConfig | None = None) -> None:
        """Restore the initial on-pad state.

        Args:
            config: New configuration (keeps the current one if None)
        """
        if config is not None:
            self.config = config

        self.dry_mass = self.config.dry_mass * 1000.0
        self.fuel_capacity = self.config.fuel
        self.max_thrust = self.config.thrust * 1000.0
        self.remaining_stages = self.config.stages

        self.position = np.array([0.0, self.planet.radius])
        self.velocity = np.zeros(2)
        self.angle = 90.0
        self.fuel = self.fuel_capacity
        self.throttle = 0.0
        self.steering_target = 90.0
        self.time = 0.0
        self.crashed = False
        self.landed = True

    # -------------------------------------------------------------------------
    # Telemetry
    # -------------------------------------------------------------------------

    def orbit(self) -> OrbitSummary:
        """Full orbit summary for the current state."""
        return compute_orbit_summary(self.position, self.velocity, self.planet)

    def get_telemetry(self) -> Telemetry:
        """Telemetry snapshot for the autopilot."""
        o = self.orbit()
        return Telemetry(
            altitude=o.altitude,
            apoapsis=o.apoapsis,
            periapsis=o.periapsis,
            velocity=o.speed,
            time_to_apoapsis=o.time_to_apoapsis,
        )

    @property
    def altitude(self) -> float:
        """Current altitude [m]."""
        return float(np.linalg.norm(self.position)) - self.planet.radius

    @property
    def mass(self) -> float:
        """Current total mass [kg]."""
        m = self.dry_mass + self.fuel * FUEL_UNIT_MASS
        return m if m > 0 else FALLBACK_MASS

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def step(self, dt: float) -> None:
        """Propagate physics by one time step.

        Args:
            dt: Time step [s]
        """
        if self.crashed:
            return

        dist = float(np.linalg.norm(self.position))
        alt = dist - self.planet.radius

        self._steer(dt)

        # Gravity
        acc = self.planet.gravity(self.position)
        mass = self.mass

        # Thrust
        if self.fuel > 0 and self.throttle > 0:
            consumption = self.throttle * FUEL_BURN_RATE * dt
            if self.fuel >= consumption:
                self.fuel -= consumption
                rad = np.radians(self.angle)
                thrust = self.throttle * self.max_thrust
                acc = acc + np.array([np.cos(rad), np.sin(rad)]) * thrust / mass
            else:
                self.fuel = 0.0

        # Drag
        rho = self.planet.density(alt)
        speed = float(np.linalg.norm(self.velocity))
        if rho > 0 and speed > 0:
            drag = 0.5 * rho * speed * speed * self.planet.drag_coefficient
            acc = acc - self.velocity / speed * drag / mass

        # Integration (a landed vessel stays put until the engine lights)
        if not self.landed or self.throttle > 0:
            self.landed = False
            self.velocity = self.velocity + acc * dt
            self.position = self.position + self.velocity * dt

        # Surface contact
        dist = float(np.linalg.norm(self.position))
        if dist < self.planet.radius:
            touchdown_speed = float(np.linalg.norm(self.velocity))
            if touchdown_speed > CRASH_SPEED:
                self.crashed = True
                logger.debug("Vessel destroyed at %.1f m/s (t=%.2f s)", touchdown_speed, self.time)
            self.position = self.position / dist * self.planet.radius
            self.velocity = np.zeros(2)
            self.landed = True

        self.time += dt

    def _steer(self, dt: float) -> None:
        err = self.steering_target - self.angle
        err = (err + 180.0) % 360.0 - 180.0
        turn = TURN_RATE * dt
        if abs(err) < turn:
            self.angle = float(self.steering_target)
        else:
            self.angle += math.copysign(turn, err)
