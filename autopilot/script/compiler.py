"""Single-pass compiler from autopilot script text to bytecode.

Statements are recognized by their leading keyword. Open ``IF``/``ELSE``/
``UNTIL`` blocks are tracked on a backpatch stack: each entry holds the
index of the jump emitted at the block head, and the closing ``}`` writes
the now-known destination into that slot.

Block layouts (``s`` = index of the first emitted instruction):

    IF c { A }            s: JMP_FALSE c -> after A
                          A...
    IF c { A } ELSE { B } s: JMP_FALSE c -> start of B
                          A...
                          JMP -> after B
                          B...
    UNTIL c { A }         s: JMP_TRUE c -> after trailer
                          A...
                          YIELD
                          JMP -> s
    WAIT UNTIL c          s: JMP_TRUE c -> s+3
                          s+1: YIELD
                          s+2: JMP -> s

Example:
    >>> from autopilot.script.compiler import compile_script
    >>>
    >>> program = compile_script("SET X TO 5 . PRINT X .")
    >>> len(program)
    2
"""

import dataclasses
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto

from autopilot.script.instructions import (
    Clear,
    Expression,
    Instruction,
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
from autopilot.script.lexer import Token, tokenize

logger = logging.getLogger(__name__)

# Keywords that begin a statement and therefore end a running expression
STATEMENT_KEYWORDS: frozenset[str] = frozenset({
    "PRINT",
    "WAIT",
    "LOCK",
    "STAGE",
    "CLEARSCREEN",
    "IF",
    "ELSE",
    "UNTIL",
    "DECLARE",
    "SET",
})

# Literal WAIT durations: digits with an optional fractional part
_DURATION_RE = re.compile(r"\d+(\.\d+)?")

# =============================================================================
# Errors
# =============================================================================


class ScriptCompileError(ValueError):
    """Raised for malformed script text.

    Attributes:
        message: Description of the problem
        line: 1-based line of the offending token (0 if unknown)
        column: 1-based column of the offending token (0 if unknown)
    """

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        self.message = message
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line else ""
        super().__init__(f"{message}{location}")


# =============================================================================
# Block Stack
# =============================================================================


class BlockKind(Enum):
    """Kind of an open block."""

    IF = auto()
    ELSE = auto()
    UNTIL = auto()


@dataclass
class BlockEntry:
    """An open, unclosed block.

    Attributes:
        kind: Block kind
        patch_index: Index of the jump whose destination the closing brace sets
        loop_start: Condition-check index for UNTIL loops
        token: Token that opened the block (for error reporting)
    """
    kind: BlockKind
    patch_index: int
    loop_start: int | None = None
    token: Token | None = None


# =============================================================================
# Compiler
# =============================================================================


class Compiler:
    """Compiles a token list into a :class:`Program`.

    A compiler instance is single-use per call to :meth:`compile`; all
    state is reset at the start of each call.
    """

    def __init__(self) -> None:
        self._tokens: list[Token] = []
        self._pos = 0
        self._code: list[Instruction] = []
        self._blocks: list[BlockEntry] = []
        # IF entry whose closing brace was the previous token, if any
        self._else_candidate: BlockEntry | None = None

    def compile(self, source: str) -> Program:
        """Compile script text.

        Args:
            source: Script text

        Returns:
            Compiled program with every jump resolved

        Raises:
            ScriptCompileError: On malformed statements or unbalanced blocks
        """
        self._tokens = tokenize(source)
        self._pos = 0
        self._code = []
        self._blocks = []
        self._else_candidate = None

        while self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            candidate = self._else_candidate
            self._else_candidate = None

            if token.text == "}":
                self._pos += 1
                self._close_block(token)
            elif token.text == "ELSE":
                self._pos += 1
                self._compile_else(token, candidate)
            elif token.is_keyword and token.text in STATEMENT_KEYWORDS:
                self._pos += 1
                self._compile_statement(token)
            else:
                # Stray terminators and atoms outside a statement
                logger.debug("Skipping token %r at %d:%d", token.text, token.line, token.column)
                self._pos += 1

        if self._blocks:
            block = self._blocks[-1]
            raise ScriptCompileError(
                f"Unclosed {block.kind.name} block", *self._location(block.token),
            )

        program = Program(tuple(self._code))
        logger.debug("Compiled %d tokens into %d instructions", len(self._tokens), len(program))
        return program

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _compile_statement(self, keyword: Token) -> None:
        text = keyword.text

        if text == "PRINT":
            expr = self._gather(keyword)
            at = None
            if self._peek_text() == "AT":
                at = self._position_hint()
            self._emit(Print(expr=expr, at=at))
            self._end_statement()
        elif text == "LOCK":
            target = self._expect_identifier(keyword)
            self._expect("TO", keyword)
            self._emit(Lock(target=target, expr=self._gather(keyword)))
            self._end_statement()
        elif text == "SET":
            target = self._expect_identifier(keyword)
            self._expect("TO", keyword)
            self._emit(SetVar(target=target, expr=self._gather(keyword)))
            self._end_statement()
        elif text == "DECLARE":
            self._expect("PARAMETER", keyword)
            name = self._expect_identifier(keyword)
            self._emit(SetVar(target=name, expr=("0",)))
            self._end_statement()
        elif text == "WAIT":
            self._compile_wait(keyword)
        elif text == "STAGE":
            self._emit(Stage())
            self._end_statement()
        elif text == "CLEARSCREEN":
            self._emit(Clear())
            self._end_statement()
        elif text == "IF":
            expr = self._gather(keyword)
            index = self._emit(JumpIfFalse(expr=expr))
            self._open_block(BlockEntry(BlockKind.IF, index, token=keyword))
        elif text == "UNTIL":
            expr = self._gather(keyword)
            index = self._emit(JumpIfTrue(expr=expr))
            self._open_block(BlockEntry(BlockKind.UNTIL, index, loop_start=index, token=keyword))

    def _compile_wait(self, keyword: Token) -> None:
        if self._peek_text() == "UNTIL":
            self._pos += 1
            start = len(self._code)
            expr = self._gather(keyword)
            self._emit(JumpIfTrue(expr=expr, dest=start + 3))
            self._emit(Yield())
            self._emit(Jump(dest=start))
        else:
            token = self._next(keyword, "a duration or UNTIL after WAIT")
            if not _DURATION_RE.fullmatch(token.text):
                raise ScriptCompileError(
                    f"Expected a duration after WAIT, got {token.text!r}", token.line, token.column,
                )
            self._emit(Wait(seconds=float(token.text)))
        self._end_statement()

    def _compile_else(self, keyword: Token, candidate: BlockEntry | None) -> None:
        if candidate is None:
            raise ScriptCompileError("ELSE without a preceding IF block", keyword.line, keyword.column)

        # Jump over the ELSE body when the IF body ran, then send the
        # failed IF condition to the start of the ELSE body.
        jump_index = self._emit(Jump())
        self._patch(candidate.patch_index, len(self._code))
        self._open_block(BlockEntry(BlockKind.ELSE, jump_index, token=keyword))

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _open_block(self, entry: BlockEntry) -> None:
        if self._peek_text() != "{":
            raise ScriptCompileError(
                f"Expected '{{' to open {entry.kind.name} block", *self._location(self._peek() or entry.token),
            )
        self._pos += 1
        self._blocks.append(entry)

    def _close_block(self, brace: Token) -> None:
        if not self._blocks:
            raise ScriptCompileError("Unexpected '}' with no open block", brace.line, brace.column)

        entry = self._blocks.pop()
        if entry.kind is BlockKind.UNTIL:
            self._emit(Yield())
            self._emit(Jump(dest=entry.loop_start))
            self._patch(entry.patch_index, len(self._code))
        elif entry.kind is BlockKind.IF:
            self._patch(entry.patch_index, len(self._code))
            self._else_candidate = entry
        else:
            self._patch(entry.patch_index, len(self._code))

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _peek_text(self) -> str | None:
        token = self._peek()
        return token.text if token else None

    def _next(self, context: Token, expected: str) -> Token:
        token = self._peek()
        if token is None:
            raise ScriptCompileError(f"Expected {expected}, found end of script", context.line, context.column)
        self._pos += 1
        return token

    def _expect(self, text: str, context: Token) -> Token:
        token = self._next(context, text)
        if token.text != text:
            raise ScriptCompileError(
                f"Expected {text} after {context.text}, got {token.text!r}", token.line, token.column,
            )
        return token

    def _expect_identifier(self, context: Token) -> str:
        token = self._next(context, f"an identifier after {context.text}")
        if token.is_keyword or not (token.text[0].isalpha() or token.text[0] == "_"):
            raise ScriptCompileError(
                f"Expected an identifier after {context.text}, got {token.text!r}", token.line, token.column,
            )
        return token.text

    def _gather(self, context: Token) -> Expression:
        """Collect expression tokens up to the next statement boundary."""
        start = self._pos
        while self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            if token.text in (".", "{", "}"):
                break
            if token.is_keyword and (token.text in STATEMENT_KEYWORDS or token.text == "AT"):
                break
            self._pos += 1

        expr = tuple(t.text for t in self._tokens[start:self._pos])
        if not expr:
            raise ScriptCompileError(f"Expected an expression after {context.text}", context.line, context.column)
        return expr

    def _position_hint(self) -> tuple[Expression, Expression]:
        at = self._tokens[self._pos]
        self._pos += 1
        self._expect("(", at)

        coords = []
        for closing in (",", ")"):
            start = self._pos
            depth = 0
            while self._pos < len(self._tokens):
                text = self._tokens[self._pos].text
                if depth == 0 and text == closing:
                    break
                if text in (".", "{", "}"):
                    break
                if text == "(":
                    depth += 1
                elif text == ")":
                    depth -= 1
                self._pos += 1
            expr = tuple(t.text for t in self._tokens[start:self._pos])
            if not expr:
                raise ScriptCompileError("Expected AT (x, y) coordinates", at.line, at.column)
            self._expect(closing, at)
            coords.append(expr)

        return coords[0], coords[1]

    def _end_statement(self) -> None:
        if self._peek_text() == ".":
            self._pos += 1

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def _emit(self, instr: Instruction) -> int:
        self._code.append(instr)
        return len(self._code) - 1

    def _patch(self, index: int, dest: int) -> None:
        self._code[index] = dataclasses.replace(self._code[index], dest=dest)

    @staticmethod
    def _location(token: Token | None) -> tuple[int, int]:
        if token is None:
            return (0, 0)
        return (token.line, token.column)


def compile_script(source: str) -> Program:
    """Compile script text with a fresh :class:`Compiler`."""
    return Compiler().compile(source)
