"""Lexical analysis of formulas."""

import re
from dataclasses import dataclass
from enum import StrEnum, auto

from econgraph._errors import FormulaError

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<identifier>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<number>\d+(?:\.\d+)?)
      | (?P<operator>[-+*/])
      | (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<comma>,)
    )
    """,
    re.VERBOSE,
)


class TokenKind(StrEnum):
    IDENTIFIER = auto()
    NUMBER = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    position: int


def tokenize(formula: str) -> list[Token]:
    """Split a formula into tokens.

    Whitespace between tokens is skipped.

    Raises:
        FormulaError: If the formula contains a character that starts no token.

    Example:
        >>> [t.text for t in tokenize("max(a, 2.5) * -b")]
        ['max', '(', 'a', ',', '2.5', ')', '*', '-', 'b']

    """
    tokens: list[Token] = []
    pos = 0
    end = len(formula.rstrip())
    while pos < end:
        match = _TOKEN_RE.match(formula, pos)
        if match is None or match.lastgroup is None:
            bad = pos + (len(formula[pos:]) - len(formula[pos:].lstrip()))
            msg = f"Unexpected character {formula[bad]!r} at position {bad}"
            raise FormulaError(msg)
        kind = TokenKind(match.lastgroup)
        tokens.append(Token(kind=kind, text=match.group(kind), position=match.start(kind)))
        pos = match.end()
    return tokens
