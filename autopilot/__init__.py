"""Autopilot package - scripted flight software for the vessel simulation.

This package contains the autopilot scripting language: a compiler from
script text to bytecode and a tick-driven virtual machine that flies a
vessel from the simulation in orbitsim/.

Architecture:
    The simulation (orbitsim/) provides the "plant". The autopilot reads
    its telemetry and writes its actuators once per frame.

    Host loop:
        vm.tick(dt)        # Script reads telemetry, writes throttle/steering
        vessel.step(dt)    # Physics responds

Subpackages:
    script: Lexer, instruction set and compiler
    runtime: Expression evaluator, variable store and virtual machine

Example:
    >>> from autopilot import FlightSandbox
    >>>
    >>> sandbox = FlightSandbox()
    >>> sandbox.launch("LOCK THROTTLE TO 1. WAIT 10. STAGE.")
    >>> sandbox.run_until_complete()
"""

from autopilot.runtime import VirtualMachine, VMConfig
from autopilot.sandbox import FlightSandbox, SandboxConfig
from autopilot.script import ScriptCompileError, compile_script
from autopilot.terminal import LogLevel, LogSink, Terminal

__all__ = [
    "FlightSandbox",
    "LogLevel",
    "LogSink",
    "SandboxConfig",
    "ScriptCompileError",
    "Terminal",
    "VirtualMachine",
    "VMConfig",
    "compile_script",
]
