"""Bytecode instruction set for compiled autopilot scripts.

Each op code has its own immutable instruction type carrying only the
operands that op needs. Jump destinations are absolute indices into the
same program; ``len(program)`` denotes "program end".

Example:
    >>> from autopilot.script.instructions import Jump, Program, Yield
    >>>
    >>> program = Program((Yield(), Jump(dest=0)))
    >>> program[1].dest
    0
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Union

# =============================================================================
# Op Codes
# =============================================================================


class OpCode(Enum):
    """Virtual machine op codes."""

    PRINT = auto()
    LOCK = auto()
    SET_VAR = auto()
    WAIT = auto()
    YIELD = auto()
    STAGE = auto()
    CLEAR = auto()
    JMP = auto()
    JMP_TRUE = auto()
    JMP_FALSE = auto()


# Placeholder destination for a jump that has not been backpatched yet
UNRESOLVED: int = -1

Expression = tuple[str, ...]


# =============================================================================
# Instructions
# =============================================================================


@dataclass(frozen=True, slots=True)
class Print:
    """Evaluate ``expr`` and emit it to the log sink.

    Attributes:
        expr: Expression tokens
        at: Optional (x, y) position hint, each an expression
    """
    op: ClassVar[OpCode] = OpCode.PRINT
    expr: Expression
    at: tuple[Expression, Expression] | None = None


@dataclass(frozen=True, slots=True)
class Lock:
    """Bind an actuator channel to the value of ``expr``."""
    op: ClassVar[OpCode] = OpCode.LOCK
    target: str
    expr: Expression


@dataclass(frozen=True, slots=True)
class SetVar:
    """Store the value of ``expr`` under ``target``."""
    op: ClassVar[OpCode] = OpCode.SET_VAR
    target: str
    expr: Expression


@dataclass(frozen=True, slots=True)
class Wait:
    """Suspend execution for ``seconds`` of simulated time."""
    op: ClassVar[OpCode] = OpCode.WAIT
    seconds: float


@dataclass(frozen=True, slots=True)
class Yield:
    """End the current execution batch."""
    op: ClassVar[OpCode] = OpCode.YIELD


@dataclass(frozen=True, slots=True)
class Stage:
    op: ClassVar[OpCode] = OpCode.STAGE


@dataclass(frozen=True, slots=True)
class Clear:
    op: ClassVar[OpCode] = OpCode.CLEAR


@dataclass(frozen=True, slots=True)
class Jump:
    """Unconditional jump."""
    op: ClassVar[OpCode] = OpCode.JMP
    dest: int = UNRESOLVED


@dataclass(frozen=True, slots=True)
class JumpIfTrue:
    """Jump to ``dest`` when ``expr`` is non-zero."""
    op: ClassVar[OpCode] = OpCode.JMP_TRUE
    expr: Expression
    dest: int = UNRESOLVED


@dataclass(frozen=True, slots=True)
class JumpIfFalse:
    """Jump to ``dest`` when ``expr`` is zero."""
    op: ClassVar[OpCode] = OpCode.JMP_FALSE
    expr: Expression
    dest: int = UNRESOLVED


Instruction = Union[
    Print, Lock, SetVar, Wait, Yield, Stage, Clear, Jump, JumpIfTrue, JumpIfFalse,
]

JUMP_TYPES = (Jump, JumpIfTrue, JumpIfFalse)


# =============================================================================
# Program
# =============================================================================


@dataclass(frozen=True)
class Program:
    """Immutable, 0-indexed instruction sequence.

    Raises:
        ValueError: If any jump destination lies outside ``[0, len]``
    """
    instructions: tuple[Instruction, ...] = ()

    def __post_init__(self) -> None:
        end = len(self.instructions)
        for index, instr in enumerate(self.instructions):
            if isinstance(instr, JUMP_TYPES) and not 0 <= instr.dest <= end:
                raise ValueError(
                    f"Instruction {index} ({instr.op.name}) has invalid "
                    f"destination {instr.dest}; expected 0..{end}"
                )

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def __iter__(self):
        return iter(self.instructions)

    def disassemble(self) -> str:
        """Human-readable listing, one instruction per line."""
        lines = []
        for index, instr in enumerate(self.instructions):
            operands = []
            if hasattr(instr, "target"):
                operands.append(instr.target)
            if hasattr(instr, "expr"):
                operands.append(" ".join(instr.expr))
            if isinstance(instr, Wait):
                operands.append(f"{instr.seconds:g}")
            if isinstance(instr, JUMP_TYPES):
                operands.append(f"-> {instr.dest}")
            lines.append(f"{index:4d}  {instr.op.name:<9} {' '.join(operands)}".rstrip())
        return "\n".join(lines)
