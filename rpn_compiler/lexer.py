"""
Lexer for the RPN expression language.

Every token is exactly one character long, so the lexer is a single
classification pass over the source: a run of digits such as ``123`` is
three separate literals, not the number one hundred twenty-three.

    0-9        LITERAL     (value: int)
    a-z        VARIABLE    (value: str, the letter)
    + * =      OPERATOR    (value: str, the symbol)
    ;          SEPARATOR
    whitespace skipped (space, tab, CR, LF, VT, FF)

Anything else raises LexError with the character's position.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import List, Union

from .errors import LexError

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    LITERAL = "LITERAL"
    VARIABLE = "VARIABLE"
    OPERATOR = "OPERATOR"
    SEPARATOR = "SEPARATOR"


OPERATORS = frozenset("+*=")
SEPARATOR = ";"
WHITESPACE = frozenset(" \t\r\n\v\f")


# ──────────────────────────────────────────────
# Token data class
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Union[int, str]
    offset: int
    line: int = 1
    col: int = 1

    @property
    def text(self) -> str:
        """The source character this token was read from."""
        return str(self.value)

    def is_operator(self, symbol: str) -> bool:
        return self.type is TokenType.OPERATOR and self.value == symbol

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class Lexer:
    """Tokenizes RPN source text into a list of Tokens."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _classify(self, ch: str) -> TokenType:
        # str.isdigit() also accepts non-ASCII digits; the language does not
        if "0" <= ch <= "9":
            return TokenType.LITERAL
        if "a" <= ch <= "z":
            return TokenType.VARIABLE
        if ch in OPERATORS:
            return TokenType.OPERATOR
        if ch == SEPARATOR:
            return TokenType.SEPARATOR
        raise LexError(ch, self.pos, self.line, self.col)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return a list of tokens."""
        self.tokens = []

        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in WHITESPACE:
                self._advance()
                continue

            ttype = self._classify(ch)
            value: Union[int, str] = int(ch) if ttype is TokenType.LITERAL else ch
            self.tokens.append(Token(ttype, value, self.pos, self.line, self.col))
            self._advance()

        logger.debug("lexed %d tokens from %d characters", len(self.tokens), len(self.source))
        return self.tokens


def tokenize(source: str) -> List[Token]:
    """Convenience wrapper: ``Lexer(source).tokenize()``."""
    return Lexer(source).tokenize()
