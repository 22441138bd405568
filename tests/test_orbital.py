"""Unit tests for planet models and orbit summaries.

Tests gravity, atmosphere and the orbital elements the autopilot reads
as telemetry.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from orbitsim.environment import KERBIN, Planet
from orbitsim.orbital import circular_velocity, compute_orbit_summary

# =============================================================================
# Planet Tests
# =============================================================================


class TestPlanet:
    """Test the central body model."""

    def test_kerbin_surface_gravity(self):
        assert_allclose(KERBIN.surface_gravity, 9.81, rtol=1e-2)

    def test_gravity_points_to_center(self):
        g = KERBIN.gravity(np.array([0.0, KERBIN.radius]))

        assert_allclose(g[0], 0.0, atol=1e-12)
        assert_allclose(g[1], -KERBIN.surface_gravity, rtol=1e-6)

    def test_gravity_inverse_square(self):
        g1 = np.linalg.norm(KERBIN.gravity(np.array([KERBIN.radius, 0.0])))
        g2 = np.linalg.norm(KERBIN.gravity(np.array([2.0 * KERBIN.radius, 0.0])))

        assert_allclose(g1 / g2, 4.0, rtol=1e-6)

    def test_gravity_at_center_is_zero(self):
        assert_allclose(KERBIN.gravity(np.array([0.0, 0.0])), [0.0, 0.0])

    def test_density_profile(self):
        """Density decays with a 5 km scale height and stops at 70 km."""
        assert_allclose(KERBIN.density(5000.0), 1.2 * np.exp(-1.0), rtol=1e-6)
        assert KERBIN.density(10000.0) < KERBIN.density(5000.0)
        assert KERBIN.density(70000.0) == 0.0
        assert KERBIN.density(100000.0) == 0.0
        assert KERBIN.density(-10.0) == 0.0

    @pytest.mark.parametrize("radius, mass", [(0.0, 1.0), (1.0, -1.0)])
    def test_invalid(self, radius, mass):
        with pytest.raises(ValueError):
            Planet(name="Bad", radius=radius, mass=mass)

    def test_custom_planet(self):
        mun = Planet(name="Mun", radius=200000.0, mass=9.76e20, atmosphere_height=0.0)

        assert mun.density(100.0) == 0.0
        assert mun.mu < KERBIN.mu


# =============================================================================
# Orbit Summary Tests
# =============================================================================


class TestOrbitSummary:
    """Test orbital element computation."""

    def test_circular_orbit(self):
        altitude = 100e3
        r = KERBIN.radius + altitude
        v = circular_velocity(altitude)

        orbit = compute_orbit_summary(np.array([r, 0.0]), np.array([0.0, v]))

        assert_allclose(orbit.altitude, altitude)
        assert_allclose(orbit.speed, v)
        assert_allclose(orbit.eccentricity, 0.0, atol=1e-3)
        assert_allclose(orbit.semi_major_axis, r, rtol=1e-6)
        assert_allclose(orbit.apoapsis, altitude, atol=500.0)
        assert_allclose(orbit.periapsis, altitude, atol=500.0)
        assert_allclose(orbit.specific_energy, -KERBIN.mu / (2.0 * r), rtol=1e-6)

    def test_elliptical_orbit(self):
        """Periapsis burn above circular speed raises apoapsis only."""
        altitude = 80e3
        r = KERBIN.radius + altitude
        v = 1.05 * circular_velocity(altitude)

        orbit = compute_orbit_summary(np.array([0.0, r]), np.array([-v, 0.0]))

        assert orbit.eccentricity > 0.05
        assert_allclose(orbit.periapsis, altitude, atol=500.0)
        assert orbit.apoapsis > orbit.periapsis + 50e3

    def test_time_to_apoapsis_climbing(self):
        """Time to apoapsis is radial speed over local gravity while climbing."""
        r = KERBIN.radius + 10e3
        orbit = compute_orbit_summary(np.array([0.0, r]), np.array([100.0, 200.0]))

        assert_allclose(orbit.time_to_apoapsis, 200.0 / (KERBIN.mu / r**2), rtol=1e-6)

    def test_time_to_apoapsis_descending(self):
        r = KERBIN.radius + 10e3
        orbit = compute_orbit_summary(np.array([0.0, r]), np.array([100.0, -200.0]))

        assert orbit.time_to_apoapsis == 0.0

    def test_suborbital_at_rest(self):
        """A vessel at rest on the surface has its periapsis inside the planet."""
        orbit = compute_orbit_summary(np.array([0.0, KERBIN.radius]), np.array([0.0, 0.0]))

        assert_allclose(orbit.eccentricity, 1.0)
        assert_allclose(orbit.apoapsis, 0.0, atol=1e-3)
        assert orbit.periapsis < -KERBIN.radius / 2

    def test_escape_trajectory(self):
        r = KERBIN.radius + 100e3
        v_escape = np.sqrt(2.0 * KERBIN.mu / r)
        orbit = compute_orbit_summary(np.array([r, 0.0]), np.array([0.0, 1.2 * v_escape]))

        assert orbit.specific_energy > 0.0
        assert orbit.eccentricity > 1.0
        assert orbit.semi_major_axis < 0.0
