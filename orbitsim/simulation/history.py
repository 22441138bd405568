"""Flight trail recording.

Samples the vessel state every few frames into a bounded trail, for
plotting the ground track or exporting a flight log.

Example:
    >>> from orbitsim.simulation import FlightHistory, Vessel
    >>>
    >>> history = FlightHistory(interval=10, max_samples=500)
    >>> for _ in range(1000):
    ...     vessel.step(0.02)
    ...     history.record(vessel)
    >>> df = history.to_dataframe()
"""

from collections import deque
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from orbitsim.simulation.vessel import Vessel


class TrailSample(NamedTuple):
    """One recorded vessel state."""
    time: float
    x: float
    y: float
    altitude: float
    speed: float
    fuel: float
    throttle: float
    angle: float


@beartype
@dataclass
class FlightHistory:
    """Bounded trail of sampled vessel states.

    Attributes:
        interval: Record one sample every ``interval`` calls to :meth:`record`
        max_samples: Trail length; oldest samples are dropped first
    """
    interval: int = 10
    max_samples: int = 500

    _samples: deque = field(init=False, repr=False)
    _calls: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError(f"interval must be at least 1, got {self.interval}")
        if self.max_samples < 1:
            raise ValueError(f"max_samples must be at least 1, got {self.max_samples}")
        self._samples = deque(maxlen=self.max_samples)

    def record(self, vessel: Vessel) -> bool:
        """Offer the current vessel state; returns True if it was sampled."""
        sampled = self._calls % self.interval == 0
        self._calls += 1
        if sampled:
            self._samples.append(TrailSample(
                time=vessel.time,
                x=float(vessel.position[0]),
                y=float(vessel.position[1]),
                altitude=vessel.altitude,
                speed=float(np.linalg.norm(vessel.velocity)),
                fuel=vessel.fuel,
                throttle=vessel.throttle,
                angle=vessel.angle,
            ))
        return sampled

    def clear(self) -> None:
        self._samples.clear()
        self._calls = 0

    @property
    def samples(self) -> list[TrailSample]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def positions(self) -> NDArray[np.float64]:
        """Trail positions [m], shape (N, 2)."""
        if not self._samples:
            return np.zeros((0, 2))
        return np.array([(s.x, s.y) for s in self._samples])

    @property
    def altitude(self) -> NDArray[np.float64]:
        """Altitude history [m]."""
        return np.array([s.altitude for s in self._samples])

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame(
            [s._asdict() for s in self._samples],
            schema={name: pl.Float64 for name in TrailSample._fields},
        )
