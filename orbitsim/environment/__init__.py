"""Environment models for the planar flight simulation.

Example:
    >>> from orbitsim.environment import KERBIN, Planet
    >>>
    >>> g = KERBIN.gravity(position)  # [ax, ay] m/s^2
    >>> moon = Planet(name="Mun", radius=200000.0, mass=9.76e20, atmosphere_height=0.0)
"""

from orbitsim.environment.planet import (
    KERBIN,
    Planet,
)

__all__ = [
    "KERBIN",
    "Planet",
]
