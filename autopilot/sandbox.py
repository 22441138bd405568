"""Host loop tying the autopilot to the vessel simulation.

Each frame runs in a fixed order: the script reads telemetry and writes
actuators (``vm.tick``), then physics advances (``vessel.step``), then the
trail is sampled. Nothing else may touch the vessel between those calls.

Example:
    >>> from autopilot.sandbox import FlightSandbox
    >>>
    >>> sandbox = FlightSandbox()
    >>> sandbox.launch('''
    ...     LOCK THROTTLE TO 1.
    ...     WAIT UNTIL APOAPSIS > 80000.
    ...     LOCK THROTTLE TO 0.
    ... ''')
    >>> sandbox.run_for(120.0)
    >>> print("\\n".join(sandbox.hud()))
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from autopilot.runtime.vm import VirtualMachine, VMConfig
from autopilot.terminal import LogLevel, Terminal
from orbitsim.simulation import FlightHistory, Vessel, VesselConfig

logger = logging.getLogger(__name__)


@dataclass
class SandboxConfig:
    """Host loop configuration.

    Attributes:
        dt: Frame time step [s] (0.02 = 50 Hz)
        trail_interval: Frames between trail samples
        trail_length: Maximum trail samples kept
    """
    dt: float = 0.02
    trail_interval: int = 10
    trail_length: int = 500

    def __post_init__(self) -> None:
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")


class FlightSandbox:
    """A vessel, a terminal and an autopilot VM driven frame by frame.

    Attributes:
        vessel: Simulated vessel
        terminal: Script output
        vm: Autopilot virtual machine
        history: Sampled flight trail
        config: Loop configuration
    """

    def __init__(
        self,
        vessel_config: VesselConfig | None = None,
        config: SandboxConfig | None = None,
        vm_config: VMConfig | None = None,
    ) -> None:
        self.config = config or SandboxConfig()
        self.vessel = Vessel(config=vessel_config or VesselConfig())
        self.terminal = Terminal()
        self.vm = VirtualMachine(self.vessel, self.terminal, vm_config)
        self.history = FlightHistory(
            interval=self.config.trail_interval,
            max_samples=self.config.trail_length,
        )
        self.reset()

    def reset(self, vessel_config: VesselConfig | Mapping[str, object] | None = None) -> None:
        """Stop the script and put a fresh vessel on the pad.

        Args:
            vessel_config: New vessel configuration, or raw host values for
                :meth:`VesselConfig.from_mapping`
        """
        if vessel_config is not None and not isinstance(vessel_config, VesselConfig):
            vessel_config = VesselConfig.from_mapping(vessel_config)

        self.vessel.reset(vessel_config)
        self.vm.running = False
        self.history.clear()
        self.terminal.clear()
        self.terminal.emit("Simulation Reset.", LogLevel.SYS)

    def launch(self, code: str) -> bool:
        """Reset the vessel and start a script.

        Returns:
            True if the script compiled
        """
        self.reset()
        return self.vm.run(code)

    def stop(self) -> None:
        self.vm.abort()

    def frame(self, dt: float | None = None) -> None:
        """Run one frame: script, then physics, then trail sampling.

        A fault during the frame halts the script and is reported to the
        terminal; the simulation itself keeps running.
        """
        dt = self.config.dt if dt is None else dt
        try:
            self.vm.tick(dt)
            self.vessel.step(dt)
        except Exception as err:
            logger.exception("Frame failed at t=%.2f s; halting script", self.vessel.time)
            self.vm.running = False
            self.terminal.emit(f"Runtime Error: {err}", LogLevel.ERR)
        self.history.record(self.vessel)

    def run_for(self, seconds: float, dt: float | None = None) -> int:
        """Run frames until ``seconds`` of simulated time have passed.

        Returns:
            Number of frames run
        """
        dt = self.config.dt if dt is None else dt
        frames = int(round(seconds / dt))
        for _ in range(frames):
            self.frame(dt)
        return frames

    def run_until_complete(self, max_seconds: float = 3600.0, dt: float | None = None) -> bool:
        """Run frames until the script ends or ``max_seconds`` elapse.

        Returns:
            True if the script finished within the limit
        """
        dt = self.config.dt if dt is None else dt
        elapsed = 0.0
        while self.vm.running and elapsed < max_seconds:
            self.frame(dt)
            elapsed += dt
        return not self.vm.running

    def warning(self) -> str | None:
        """Caution message for the HUD, if any."""
        if self.vessel.crashed:
            return "VESSEL DESTROYED"
        if self.vessel.altitude < 0 and not self.vessel.landed:
            return "TERRAIN PULL UP"
        return None

    def hud(self) -> list[str]:
        """Formatted telemetry lines."""
        t = self.vessel.get_telemetry()
        return [
            f"ALT: {t.altitude / 1000:.1f} km",
            f"AP:  {t.apoapsis / 1000:.1f} km",
            f"PE:  {t.periapsis / 1000:.1f} km",
            f"VEL: {t.velocity:.0f} m/s",
            f"FUEL: {self.vessel.fuel:.0f}",
            f"THR: {self.vessel.throttle * 100:.0f}%",
        ]
