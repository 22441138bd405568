"""Lexer for autopilot scripts.

Turns raw script text into a flat list of classified tokens. Classification
is purely lexical: a word spelled like a keyword is always a keyword, so
script variables must avoid the keyword set.

Example:
    >>> from autopilot.script.lexer import tokenize
    >>>
    >>> tokens = tokenize("LOCK THROTTLE TO 1.0 . // full power")
    >>> [t.text for t in tokens]
    ['LOCK', 'THROTTLE', 'TO', '1.0', '.']
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto

logger = logging.getLogger(__name__)

# =============================================================================
# Token Types
# =============================================================================


class TokenKind(Enum):
    """Lexical class of a token."""

    KEYWORD = auto()
    ATOM = auto()


KEYWORDS: frozenset[str] = frozenset({
    "PRINT",
    "WAIT",
    "LOCK",
    "TO",
    "STAGE",
    "CLEARSCREEN",
    "IF",
    "ELSE",
    "UNTIL",
    "AT",
    "DECLARE",
    "PARAMETER",
    "SET",
})


@dataclass(frozen=True, slots=True)
class Token:
    """A single classified token.

    Attributes:
        kind: KEYWORD or ATOM
        text: Source spelling
        line: 1-based source line
        column: 1-based source column
    """
    kind: TokenKind
    text: str
    line: int = 0
    column: int = 0

    @property
    def is_keyword(self) -> bool:
        return self.kind is TokenKind.KEYWORD

    def __str__(self) -> str:
        return self.text


# =============================================================================
# Token Patterns
# =============================================================================

# Order matters: comments before the '/' operator, decimal numbers before
# bare words so "2.5" is not split at the terminator.
_TOKEN_RE = re.compile(
    r"""
    (?P<comment>//[^\n]*)
  | (?P<string>"[^"]*")
  | (?P<number>\d+\.\d+)
  | (?P<word>[A-Za-z0-9_:]+)
  | (?P<op>==|!=|<=|>=|&&|\|\||[-+*/<>!=])
  | (?P<mark>[{}(),.])
  | (?P<space>\s+)
  | (?P<other>.)
    """,
    re.VERBOSE,
)


def tokenize(source: str) -> list[Token]:
    """Tokenize script text.

    Comments run from ``//`` to end of line. Characters that match no
    token pattern are dropped.

    Args:
        source: Raw script text

    Returns:
        Tokens in source order
    """
    tokens: list[Token] = []
    line = 1
    line_start = 0

    for match in _TOKEN_RE.finditer(source):
        group = match.lastgroup
        text = match.group()
        column = match.start() - line_start + 1

        if group == "space":
            newlines = text.count("\n")
            if newlines:
                line += newlines
                line_start = match.start() + text.rindex("\n") + 1
            continue
        if group == "comment":
            continue
        if group == "other":
            logger.debug("Dropping unrecognized character %r at %d:%d", text, line, column)
            continue

        kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.ATOM
        tokens.append(Token(kind, text, line, column))

        # Quoted strings may span lines
        if group == "string" and "\n" in text:
            line += text.count("\n")
            line_start = match.start() + text.rindex("\n") + 1

    return tokens
