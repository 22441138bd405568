"""Tick-driven virtual machine for compiled autopilot scripts.

The host calls :meth:`VirtualMachine.tick` once per simulation frame. Each
call executes a bounded batch of instructions and returns; execution
resumes where it left off on the next call. A batch ends at:

- ``YIELD`` (loop iterations and ``WAIT UNTIL`` polls)
- ``WAIT t`` (no instructions run until ``t`` seconds of ``dt`` have elapsed)
- the step budget (default 20 instructions)
- program end

This is flight software: it reads telemetry from and writes actuator
commands to the vessel, and never advances physics itself.

Example:
    >>> from autopilot.runtime import VirtualMachine
    >>> from autopilot.terminal import Terminal
    >>> from orbitsim.simulation import Vessel
    >>>
    >>> vessel = Vessel()
    >>> vm = VirtualMachine(vessel, Terminal())
    >>> vm.run("LOCK THROTTLE TO 1. WAIT UNTIL ALTITUDE > 1000.")
    >>>
    >>> while vm.running:
    ...     vm.tick(0.02)
    ...     vessel.step(0.02)
"""

import logging
from dataclasses import dataclass

from autopilot.runtime.expression import ExpressionEvaluator
from autopilot.runtime.variables import VariableStore
from autopilot.script.compiler import Compiler, ScriptCompileError
from autopilot.script.instructions import (
    Clear,
    Jump,
    JumpIfFalse,
    JumpIfTrue,
    Lock,
    Print,
    Program,
    SetVar,
    Stage,
    Wait,
    Yield,
)
from autopilot.terminal import LogLevel, LogSink

logger = logging.getLogger(__name__)

# Fraction of dry mass kept when a stage separates
STAGE_DRY_MASS_RETENTION: float = 0.6


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class VMConfig:
    """Virtual machine configuration.

    Attributes:
        step_budget: Maximum instructions executed per tick
    """
    step_budget: int = 20

    def __post_init__(self) -> None:
        if self.step_budget < 1:
            raise ValueError(f"step_budget must be at least 1, got {self.step_budget}")


# =============================================================================
# Virtual Machine
# =============================================================================


class VirtualMachine:
    """Cooperative scheduler and interpreter for one script.

    Attributes:
        vessel: Physics collaborator (telemetry, actuators, staging)
        log: Output sink
        config: VM configuration
        program: Currently loaded program
        pc: Program counter
        running: Whether the program is executing
        wait_timer: Remaining WAIT time [s]
        variables: Script variables
        instructions_executed: Total instructions executed since ``run``
    """

    def __init__(self, vessel, log: LogSink, config: VMConfig | None = None) -> None:
        self.vessel = vessel
        self.log = log
        self.config = config or VMConfig()
        self.compiler = Compiler()

        self.program = Program()
        self.pc = 0
        self.running = False
        self.wait_timer = 0.0
        self.variables = VariableStore()
        self.instructions_executed = 0
        self._evaluator = ExpressionEvaluator(vessel, self.variables)

    def run(self, code: str) -> bool:
        """Compile and load a script, replacing any running program.

        Compile errors are reported to the log sink and leave the VM
        stopped; they are never raised to the host.

        Returns:
            True if the script compiled and is now running
        """
        self.running = False
        self.variables.clear()
        try:
            program = self.compiler.compile(code)
        except ScriptCompileError as err:
            logger.info("Script rejected: %s", err)
            self.program = Program()
            self.pc = 0
            self.log.emit(f"Compile Error: {err}", LogLevel.ERR)
            return False

        self.program = program
        self.pc = 0
        self.wait_timer = 0.0
        self.instructions_executed = 0
        self.running = True
        self.log.emit("Program Loaded.", LogLevel.SYS)
        return True

    def abort(self) -> None:
        """Stop the running program without unwinding anything."""
        if self.running:
            self.running = False
            self.log.emit("Aborted by user.", LogLevel.ERR)

    def tick(self, dt: float) -> int:
        """Advance the script by one host frame.

        Args:
            dt: Elapsed simulation time since the previous tick [s]

        Returns:
            Number of instructions executed in this batch
        """
        if not self.running:
            return 0
        if self.wait_timer > 0:
            self.wait_timer -= dt
            return 0

        steps = 0
        while steps < self.config.step_budget and self.pc < len(self.program):
            instr = self.program[self.pc]
            steps += 1

            if isinstance(instr, Yield):
                self.pc += 1
                break
            if isinstance(instr, Wait):
                self.wait_timer = instr.seconds
                self.pc += 1
                break

            self._execute(instr)

        self.instructions_executed += steps

        if self.pc >= len(self.program) and self.running:
            self.running = False
            self.log.emit("Program Ended.", LogLevel.SYS)

        return steps

    def _execute(self, instr) -> None:
        ev = self._evaluator

        if isinstance(instr, Print):
            position = None
            if instr.at is not None:
                position = (ev.evaluate_number(instr.at[0]), ev.evaluate_number(instr.at[1]))
            self.log.emit(ev.evaluate(instr.expr), LogLevel.INFO, position)
            self.pc += 1
        elif isinstance(instr, Lock):
            self._lock(instr.target, ev.evaluate_number(instr.expr))
            self.pc += 1
        elif isinstance(instr, SetVar):
            self.variables.set(instr.target, ev.evaluate_number(instr.expr))
            self.pc += 1
        elif isinstance(instr, Stage):
            self._stage()
            self.pc += 1
        elif isinstance(instr, Clear):
            self.log.clear()
            self.pc += 1
        elif isinstance(instr, Jump):
            self.pc = instr.dest
        elif isinstance(instr, JumpIfTrue):
            self.pc = instr.dest if ev.is_true(instr.expr) else self.pc + 1
        elif isinstance(instr, JumpIfFalse):
            self.pc = self.pc + 1 if ev.is_true(instr.expr) else instr.dest
        else:
            raise TypeError(f"Unknown instruction: {instr!r}")

    def _lock(self, target: str, value: float) -> None:
        if target == "THROTTLE":
            self.vessel.throttle = min(max(value, 0.0), 1.0)
        elif target == "STEERING":
            self.vessel.steering_target = value
        else:
            logger.debug("LOCK of unknown channel %r ignored", target)

    def _stage(self) -> None:
        vessel = self.vessel
        if vessel.remaining_stages > 0:
            vessel.remaining_stages -= 1
            vessel.fuel = vessel.fuel_capacity
            vessel.dry_mass *= STAGE_DRY_MASS_RETENTION
            logger.debug("Staged; %d stage(s) remaining", vessel.remaining_stages)
            self.log.emit("STAGED", LogLevel.WARN)
