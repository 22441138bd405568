"""Integration tests for the sandbox host loop.

Runs real scripts against the real vessel physics, plus the terminal and
flight history the sandbox owns.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from autopilot import FlightSandbox, LogLevel, LogSink, SandboxConfig, Terminal
from orbitsim.simulation import FlightHistory, Vessel, VesselConfig

# =============================================================================
# Host Loop Tests
# =============================================================================


class TestFlightSandbox:
    """Test launch, frame order and completion."""

    def test_initial_state(self):
        sandbox = FlightSandbox()

        assert not sandbox.vm.running
        assert sandbox.terminal.texts() == ["Simulation Reset."]
        assert sandbox.vessel.landed

    def test_launch_and_climb(self):
        sandbox = FlightSandbox()
        assert sandbox.launch("LOCK THROTTLE TO 1. WAIT 100.")

        frames = sandbox.run_for(10.0)

        assert frames == 500
        assert sandbox.vm.running
        assert sandbox.vessel.altitude > 100.0
        assert sandbox.vessel.throttle == 1.0

    def test_run_until_complete(self):
        sandbox = FlightSandbox()
        sandbox.launch("""
            LOCK THROTTLE TO 1.
            WAIT UNTIL ALTITUDE > 500.
            LOCK THROTTLE TO 0.
            PRINT "MECO".
        """)

        assert sandbox.run_until_complete(max_seconds=120.0)
        assert sandbox.vessel.altitude > 500.0
        assert sandbox.vessel.throttle == 0.0
        assert sandbox.terminal.texts()[-2:] == ["MECO", "Program Ended."]

    def test_run_until_complete_times_out(self):
        sandbox = FlightSandbox()
        sandbox.launch("WAIT UNTIL 0.")

        assert not sandbox.run_until_complete(max_seconds=1.0)
        assert sandbox.vm.running

    def test_script_reacts_within_one_frame(self):
        """The VM sees the telemetry produced by the previous physics step."""
        sandbox = FlightSandbox()
        sandbox.launch("LOCK THROTTLE TO 1. WAIT UNTIL VELOCITY > 0. LOCK THROTTLE TO 0.")

        sandbox.frame()  # throttle up, first poll, physics
        assert sandbox.vessel.throttle == 1.0
        sandbox.frame()  # poll succeeds, throttle cut
        assert sandbox.vessel.throttle == 0.0

    def test_staging_through_script(self):
        sandbox = FlightSandbox(vessel_config=VesselConfig(stages=2))
        sandbox.launch("STAGE. STAGE. STAGE.")
        sandbox.frame()

        assert sandbox.vessel.remaining_stages == 0
        assert sandbox.terminal.texts().count("STAGED") == 2
        assert_allclose(sandbox.vessel.dry_mass, 25000.0 * 0.6 * 0.6)

    def test_bad_script(self):
        sandbox = FlightSandbox()

        assert not sandbox.launch("UNTIL ALTITUDE > 10 { STAGE.")
        assert not sandbox.vm.running
        assert sandbox.terminal.lines[-1].level is LogLevel.ERR
        assert sandbox.terminal.texts()[-1].startswith("Compile Error:")

    def test_stop(self):
        sandbox = FlightSandbox()
        sandbox.launch("LOCK THROTTLE TO 1. WAIT 100.")
        sandbox.run_for(1.0)
        sandbox.stop()

        assert not sandbox.vm.running
        assert sandbox.terminal.texts()[-1] == "Aborted by user."
        # The last actuator command persists after an abort
        assert sandbox.vessel.throttle == 1.0

    def test_launch_resets_vessel(self):
        sandbox = FlightSandbox()
        sandbox.launch("LOCK THROTTLE TO 1. WAIT 100.")
        sandbox.run_for(5.0)
        assert sandbox.vessel.altitude > 0

        sandbox.launch("WAIT 1.")
        assert sandbox.vessel.altitude == 0.0
        assert sandbox.vessel.throttle == 0.0
        assert len(sandbox.history) == 0

    def test_reset_with_mapping(self):
        sandbox = FlightSandbox()
        sandbox.reset({"thrust": "800", "stages": "4", "fuel": "oops"})

        assert sandbox.vessel.max_thrust == 800000.0
        assert sandbox.vessel.remaining_stages == 4
        assert sandbox.vessel.fuel == 600.0
        assert sandbox.terminal.texts() == ["Simulation Reset."]

    def test_runtime_fault_halts_script_not_simulation(self, monkeypatch):
        """A fault inside a frame stops the script; later frames still run."""
        sandbox = FlightSandbox()
        sandbox.launch("LOCK THROTTLE TO 1. STAGE. WAIT 100.")

        def fail():
            raise RuntimeError("separation fault")

        monkeypatch.setattr(sandbox.vm, "_stage", fail)

        assert sandbox.run_for(1.0) == 50
        assert not sandbox.vm.running
        assert sandbox.terminal.lines[-1].level is LogLevel.ERR
        assert sandbox.terminal.texts()[-1] == "Runtime Error: separation fault"
        # Physics skipped only the faulting frame
        assert_allclose(sandbox.vessel.time, 0.98)
        assert sandbox.vessel.altitude > 0.0
        assert len(sandbox.history) == 5

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            SandboxConfig(dt=0.0)


# =============================================================================
# HUD Tests
# =============================================================================


class TestHud:
    """Test the telemetry readout and warnings."""

    def test_hud_lines(self):
        sandbox = FlightSandbox()
        hud = sandbox.hud()

        assert len(hud) == 6
        assert hud[0] == "ALT: 0.0 km"
        assert hud[4] == "FUEL: 600"
        assert hud[5] == "THR: 0%"

    def test_no_warning_on_pad(self):
        assert FlightSandbox().warning() is None

    def test_crash_warning(self):
        sandbox = FlightSandbox()
        sandbox.vessel.position = np.array([0.0, sandbox.vessel.planet.radius + 1.0])
        sandbox.vessel.velocity = np.array([0.0, -100.0])
        sandbox.vessel.landed = False
        sandbox.frame()

        assert sandbox.vessel.crashed
        assert sandbox.warning() == "VESSEL DESTROYED"


# =============================================================================
# Flight History Tests
# =============================================================================


class TestFlightHistory:
    """Test trail sampling."""

    def test_sampling_interval(self):
        sandbox = FlightSandbox(config=SandboxConfig(trail_interval=10))
        sandbox.launch("LOCK THROTTLE TO 1. WAIT 100.")
        sandbox.run_for(1.0)  # 50 frames

        assert len(sandbox.history) == 5

    def test_bounded_length(self):
        vessel = Vessel()
        history = FlightHistory(interval=1, max_samples=3)
        for _ in range(10):
            vessel.step(0.02)
            history.record(vessel)

        assert len(history) == 3
        assert_allclose(history.samples[0].time, 0.16)

    def test_record_reports_sampling(self):
        vessel = Vessel()
        history = FlightHistory(interval=3)

        assert [history.record(vessel) for _ in range(6)] == [True, False, False, True, False, False]

    def test_arrays(self):
        vessel = Vessel()
        history = FlightHistory(interval=1)
        assert history.positions.shape == (0, 2)

        history.record(vessel)
        history.record(vessel)
        assert history.positions.shape == (2, 2)
        assert_allclose(history.altitude, [0.0, 0.0])

    def test_to_dataframe(self):
        sandbox = FlightSandbox()
        sandbox.launch("LOCK THROTTLE TO 1. WAIT 100.")
        sandbox.run_for(2.0)

        df = sandbox.history.to_dataframe()

        assert len(df) == len(sandbox.history)
        assert "altitude" in df.columns
        assert "throttle" in df.columns
        assert df["altitude"].max() > 0.0

    @pytest.mark.parametrize("kwargs", [{"interval": 0}, {"max_samples": 0}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FlightHistory(**kwargs)


# =============================================================================
# Terminal Tests
# =============================================================================


class TestTerminal:
    """Test the in-memory log sink."""

    def test_is_log_sink(self):
        assert isinstance(Terminal(), LogSink)

    def test_number_formatting(self):
        term = Terminal()
        term.emit(3.14159)
        term.emit("TEXT")

        assert term.render() == "> 3.14\n> TEXT"

    def test_none_is_skipped(self):
        term = Terminal()
        term.emit(None)

        assert term.lines == []

    def test_levels_and_position(self):
        term = Terminal()
        term.emit("HOLD", LogLevel.WARN, (1.0, 2.0))

        line = term.lines[0]
        assert line.level is LogLevel.WARN
        assert line.position == (1.0, 2.0)

    def test_scrollback_trimmed(self):
        term = Terminal(max_lines=3)
        for i in range(5):
            term.emit(f"LINE {i}")

        assert term.texts() == ["LINE 2", "LINE 3", "LINE 4"]

    def test_clear(self):
        term = Terminal()
        term.emit("X")
        term.clear()

        assert term.render() == ""
