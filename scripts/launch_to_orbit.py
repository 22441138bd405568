#!/usr/bin/env python
"""Example: Fly a two-stage ascent to orbit with an autopilot script.

This script demonstrates the split between:
- Simulation infrastructure (orbitsim/) - the "plant" / truth model
- Flight software (autopilot/) - the script compiler and VM

The host loop follows the sandbox frame order:
1. Tick the VM (script reads telemetry, writes throttle/steering)
2. Step the vessel (physics responds)
3. Sample the flight trail

Usage:
    python scripts/launch_to_orbit.py
"""

from tqdm import tqdm

from autopilot import FlightSandbox
from orbitsim import VesselConfig

ASCENT_SCRIPT = """
// Two-stage ascent to a low orbit
CLEARSCREEN.
PRINT "LIFTOFF".
LOCK STEERING TO HEADING(90, 90).
LOCK THROTTLE TO 1.

WAIT UNTIL ALTITUDE > 8000.
PRINT "GRAVITY TURN".
LOCK STEERING TO HEADING(90, 50).

UNTIL APOAPSIS > 80000 {
    IF FUEL < 0.02 {
        STAGE.
    }
}
LOCK THROTTLE TO 0.
PRINT "COAST, AP " + ROUND(APOAPSIS / 1000) + " KM".

LOCK STEERING TO HEADING(90, 0).
WAIT UNTIL ETA:APOAPSIS < 15.

SET BURNS TO 0.
UNTIL PERIAPSIS > 70000 {
    LOCK THROTTLE TO 1.
    SET BURNS TO BURNS + 1.
    IF FUEL < 0.02 {
        STAGE.
    } ELSE {
        PRINT ROUND(PERIAPSIS / 1000) AT (0, 1).
    }
}
LOCK THROTTLE TO 0.
PRINT "ORBIT ACHIEVED AFTER " + BURNS + " BURN TICKS".
"""


def run_launch():
    """Run the scripted ascent."""
    print("=" * 60)
    print("SCRIPTED LAUNCH TO ORBIT")
    print("=" * 60)

    # =========================================================================
    # Mission Setup
    # =========================================================================
    config = VesselConfig(thrust=500.0, dry_mass=25.0, fuel=600.0, stages=2)
    T_MAX = 900.0  # [s]

    print("\nVehicle:")
    print(f"  Thrust: {config.thrust:.0f} kN")
    print(f"  Dry mass: {config.dry_mass:.0f} t")
    print(f"  Fuel per stage: {config.fuel:.0f} units")
    print(f"  Stages: {config.stages}")

    sandbox = FlightSandbox(vessel_config=config)
    if not sandbox.launch(ASCENT_SCRIPT):
        print("\n".join(sandbox.terminal.texts()))
        return 1

    print(f"\nCompiled {len(sandbox.vm.program)} instructions")

    # =========================================================================
    # Simulation Loop
    # =========================================================================
    dt = sandbox.config.dt
    frames = int(T_MAX / dt)
    last_report = -10.0

    with tqdm(total=frames, desc="Flying", unit="frame") as progress:
        for _ in range(frames):
            sandbox.frame(dt)
            progress.update(1)

            if sandbox.vessel.time - last_report >= 30.0:
                t = sandbox.vessel.get_telemetry()
                tqdm.write(
                    f"T+{sandbox.vessel.time:5.0f}s | "
                    f"Alt: {t.altitude/1000:6.1f} km | "
                    f"Speed: {t.velocity:6.0f} m/s | "
                    f"Apo: {t.apoapsis/1000:6.1f} km | "
                    f"Fuel: {sandbox.vessel.fuel:5.0f}"
                )
                last_report = sandbox.vessel.time

            if not sandbox.vm.running or sandbox.vessel.crashed:
                break

    # =========================================================================
    # Results
    # =========================================================================
    print("-" * 60)
    print("\nTERMINAL:")
    for line in sandbox.terminal.texts():
        print(f"  {line}")

    print("\nFINAL STATE:")
    for line in sandbox.hud():
        print(f"  {line}")

    warning = sandbox.warning()
    if warning:
        print(f"\n✗ {warning}")
    elif sandbox.vessel.get_telemetry().periapsis > 70e3:
        print("\n✓ ORBIT ACHIEVED!")
    else:
        print("\n✗ Suborbital")

    print(f"\nTrail samples recorded: {len(sandbox.history)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(run_launch())
