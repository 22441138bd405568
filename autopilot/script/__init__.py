"""Autopilot script front end: lexer, instruction set and compiler.

Example:
    >>> from autopilot.script import compile_script
    >>>
    >>> program = compile_script('''
    ...     UNTIL APOAPSIS > 80000 {
    ...         LOCK THROTTLE TO 1.
    ...     }
    ... ''')
    >>> print(program.disassemble())
"""

from autopilot.script.compiler import (
    BlockKind,
    Compiler,
    ScriptCompileError,
    compile_script,
)
from autopilot.script.instructions import (
    Clear,
    Instruction,
    Jump,
    JumpIfFalse,
    JumpIfTrue,
    Lock,
    OpCode,
    Print,
    Program,
    SetVar,
    Stage,
    Wait,
    Yield,
)
from autopilot.script.lexer import KEYWORDS, Token, TokenKind, tokenize

__all__ = [
    # Lexer
    "KEYWORDS",
    "Token",
    "TokenKind",
    "tokenize",
    # Instructions
    "Clear",
    "Instruction",
    "Jump",
    "JumpIfFalse",
    "JumpIfTrue",
    "Lock",
    "OpCode",
    "Print",
    "Program",
    "SetVar",
    "Stage",
    "Wait",
    "Yield",
    # Compiler
    "BlockKind",
    "Compiler",
    "ScriptCompileError",
    "compile_script",
]
