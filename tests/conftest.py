"""Shared fixtures for autopilot tests."""

from dataclasses import dataclass

import pytest

from autopilot.runtime.vm import VirtualMachine
from autopilot.terminal import Terminal
from orbitsim.simulation import Telemetry


@dataclass
class StubVessel:
    """Physics collaborator with directly settable telemetry."""
    altitude: float = 0.0
    apoapsis: float = 0.0
    periapsis: float = 0.0
    velocity: float = 0.0
    time_to_apoapsis: float = 0.0
    throttle: float = 0.0
    steering_target: float = 90.0
    fuel: float = 600.0
    fuel_capacity: float = 600.0
    remaining_stages: int = 2
    dry_mass: float = 25000.0

    def get_telemetry(self) -> Telemetry:
        return Telemetry(
            altitude=self.altitude,
            apoapsis=self.apoapsis,
            periapsis=self.periapsis,
            velocity=self.velocity,
            time_to_apoapsis=self.time_to_apoapsis,
        )


@pytest.fixture
def vessel() -> StubVessel:
    return StubVessel()


@pytest.fixture
def terminal() -> Terminal:
    return Terminal()


@pytest.fixture
def vm(vessel, terminal) -> VirtualMachine:
    return VirtualMachine(vessel, terminal)
