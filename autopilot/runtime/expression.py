"""Expression parsing and evaluation for autopilot scripts.

Expressions arrive as the token sequences captured at compile time. They
are parsed by a small precedence-climbing parser into a tree and evaluated
against an environment: telemetry symbols are looked up first, then script
variables. Nothing is ever spliced into source text or handed to ``eval``.

Precedence, lowest to highest:

    ||
    &&
    == != =
    < > <= >=
    + -
    * /
    unary - + !

Any failure (syntax error, unknown symbol, division by zero, arithmetic on
text) evaluates to 0 so a bad PRINT or condition cannot halt a flight.

Example:
    >>> from autopilot.runtime.expression import ExpressionEvaluator
    >>> from autopilot.runtime.variables import VariableStore
    >>>
    >>> store = VariableStore()
    >>> store.set("X", 5.0)
    >>> evaluator = ExpressionEvaluator(vessel=None, variables=store)
    >>> evaluator.evaluate_number(("X", "*", "2"))
    10.0
"""

import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Union

from autopilot.runtime.variables import VariableStore

logger = logging.getLogger(__name__)

Value = Union[float, str]

_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")


class ExpressionError(Exception):
    """Raised internally when an expression cannot be parsed or evaluated."""


# =============================================================================
# Expression Tree
# =============================================================================


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Symbol:
    name: str


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: tuple["Node", ...]


@dataclass(frozen=True, slots=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True, slots=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Number, Text, Symbol, Call, Unary, Binary]


# =============================================================================
# Parser
# =============================================================================

# Binary operator precedence levels, lowest first
_LEVELS: tuple[frozenset[str], ...] = (
    frozenset({"||"}),
    frozenset({"&&"}),
    frozenset({"==", "!=", "="}),
    frozenset({"<", ">", "<=", ">="}),
    frozenset({"+", "-"}),
    frozenset({"*", "/"}),
)

_UNARY_OPS = frozenset({"-", "+", "!"})

# Deepest allowed nesting of parentheses, calls and unary operators
MAX_NESTING: int = 64


class _Parser:
    def __init__(self, tokens: tuple[str, ...]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("empty expression")
        node = self._binary(0)
        if self.pos != len(self.tokens):
            raise ExpressionError(f"unexpected token {self.tokens[self.pos]!r}")
        return node

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ExpressionError(f"expression nested deeper than {MAX_NESTING} levels")

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionError("unexpected end of expression")
        self.pos += 1
        return token

    def _binary(self, level: int) -> Node:
        if level == len(_LEVELS):
            return self._unary()
        node = self._binary(level + 1)
        while self._peek() in _LEVELS[level]:
            op = self._take()
            node = Binary(op, node, self._binary(level + 1))
        return node

    def _unary(self) -> Node:
        if self._peek() in _UNARY_OPS:
            op = self._take()
            self._enter()
            operand = self._unary()
            self.depth -= 1
            return Unary(op, operand)
        return self._primary()

    def _primary(self) -> Node:
        token = self._take()

        if token == "(":
            self._enter()
            node = self._binary(0)
            self.depth -= 1
            if self._take() != ")":
                raise ExpressionError("expected ')'")
            return node
        if _NUMBER_RE.match(token):
            return Number(float(token))
        if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
            return Text(token[1:-1])
        if token[0].isalpha() or token[0] == "_":
            if self._peek() == "(":
                self.pos += 1
                self._enter()
                args = self._arguments()
                self.depth -= 1
                return Call(token, args)
            return Symbol(token)
        raise ExpressionError(f"unexpected token {token!r}")

    def _arguments(self) -> tuple[Node, ...]:
        args: list[Node] = []
        if self._peek() == ")":
            self.pos += 1
            return ()
        while True:
            args.append(self._binary(0))
            token = self._take()
            if token == ")":
                return tuple(args)
            if token != ",":
                raise ExpressionError("expected ',' or ')' in argument list")


@lru_cache(maxsize=1024)
def parse_expression(tokens: tuple[str, ...]) -> Node:
    """Parse an expression token sequence into a tree.

    Raises:
        ExpressionError: On malformed input
    """
    return _Parser(tokens).parse()


# =============================================================================
# Built-in Functions
# =============================================================================


def _round_half_up(x: float) -> float:
    if not math.isfinite(x):
        raise ExpressionError(f"cannot round {x}")
    return float(math.floor(x + 0.5))


def _heading(_direction: float, pitch: float) -> float:
    # Planar model: only the pitch component steers the vessel
    return pitch


FUNCTIONS: dict[str, tuple[int, Callable[..., float]]] = {
    "ROUND": (1, _round_half_up),
    "HEADING": (2, _heading),
}


# =============================================================================
# Evaluator
# =============================================================================


def _telemetry_symbols(vessel) -> dict[str, float]:
    telemetry = vessel.get_telemetry()
    fuel_fraction = vessel.fuel / vessel.fuel_capacity if vessel.fuel_capacity else 0.0
    return {
        "ALTITUDE": float(telemetry.altitude),
        "APOAPSIS": float(telemetry.apoapsis),
        "PERIAPSIS": float(telemetry.periapsis),
        "ETA:APOAPSIS": float(telemetry.time_to_apoapsis),
        "VELOCITY": float(telemetry.velocity),
        "FUEL": float(fuel_fraction),
        "THROTTLE": float(vessel.throttle),
    }


def _number(value: Value) -> float:
    if isinstance(value, str):
        raise ExpressionError(f"expected a number, got text {value!r}")
    return value


def _format(value: Value) -> str:
    if isinstance(value, str):
        return value
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return f"{value:g}"


class ExpressionEvaluator:
    """Evaluates expression tokens against live telemetry and variables.

    Attributes:
        vessel: Physics collaborator providing telemetry, or None
        variables: Script variable store
    """

    def __init__(self, vessel, variables: VariableStore) -> None:
        self.vessel = vessel
        self.variables = variables
        self._telemetry: dict[str, float] | None = None

    def evaluate(self, tokens: tuple[str, ...]) -> Value:
        """Evaluate to a number or text; failures yield 0."""
        self._telemetry = None
        try:
            return self._eval(parse_expression(tuple(tokens)))
        except (ExpressionError, ArithmeticError, RecursionError) as err:
            logger.debug("Expression %r evaluated to 0: %s", " ".join(tokens), err)
            return 0.0

    def evaluate_number(self, tokens: tuple[str, ...]) -> float:
        """Evaluate in a numeric context; text results yield 0."""
        value = self.evaluate(tokens)
        if isinstance(value, str):
            logger.debug("Expression %r produced text in a numeric context", " ".join(tokens))
            return 0.0
        return value

    def is_true(self, tokens: tuple[str, ...]) -> bool:
        """Truthiness: zero is false, anything else is true."""
        return self.evaluate_number(tokens) != 0.0

    def lookup(self, name: str) -> float:
        """Resolve a symbol: telemetry first, then script variables."""
        if self.vessel is not None:
            if self._telemetry is None:
                self._telemetry = _telemetry_symbols(self.vessel)
            if name in self._telemetry:
                return self._telemetry[name]
        if name in self.variables:
            return self.variables.get(name)
        raise ExpressionError(f"unknown symbol {name!r}")

    def _eval(self, node: Node) -> Value:
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Text):
            return node.value
        if isinstance(node, Symbol):
            return self.lookup(node.name)
        if isinstance(node, Call):
            return self._call(node)
        if isinstance(node, Unary):
            operand = _number(self._eval(node.operand))
            if node.op == "-":
                return -operand
            if node.op == "+":
                return operand
            return 1.0 if operand == 0 else 0.0
        return self._binary(node)

    def _call(self, node: Call) -> float:
        if node.name not in FUNCTIONS:
            raise ExpressionError(f"unknown function {node.name!r}")
        arity, func = FUNCTIONS[node.name]
        if len(node.args) != arity:
            raise ExpressionError(f"{node.name} takes {arity} argument(s), got {len(node.args)}")
        return func(*(_number(self._eval(arg)) for arg in node.args))

    def _binary(self, node: Binary) -> Value:
        op = node.op

        # Short-circuit logic
        if op == "&&":
            return 1.0 if _number(self._eval(node.left)) != 0 and _number(self._eval(node.right)) != 0 else 0.0
        if op == "||":
            return 1.0 if _number(self._eval(node.left)) != 0 or _number(self._eval(node.right)) != 0 else 0.0

        left = self._eval(node.left)
        right = self._eval(node.right)

        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return _format(left) + _format(right)
        if op in ("==", "=", "!=") and isinstance(left, str) and isinstance(right, str):
            equal = left == right
            return 1.0 if equal == (op != "!=") else 0.0

        a, b = _number(left), _number(right)
        if op == "+":
            return a + b
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            if b == 0:
                raise ExpressionError("division by zero")
            return a / b
        if op in ("==", "="):
            return 1.0 if a == b else 0.0
        if op == "!=":
            return 1.0 if a != b else 0.0
        if op == "<":
            return 1.0 if a < b else 0.0
        if op == ">":
            return 1.0 if a > b else 0.0
        if op == "<=":
            return 1.0 if a <= b else 0.0
        if op == ">=":
            return 1.0 if a >= b else 0.0
        raise ExpressionError(f"unknown operator {op!r}")
