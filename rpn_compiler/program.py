"""
Program structure for the RPN compiler.

A program is a flat list of statements separated by ``;``. There is no
tree: each statement is just the slice of tokens between separators, and
its operators are applied in order by the stack simulator.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterator, List

from .errors import EmptyStatementError
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)


@dataclass
class Statement:
    """One ``;``-delimited statement."""
    tokens: List[Token]
    index: int = 0

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def last(self) -> Token:
        return self.tokens[-1]

    def __str__(self) -> str:
        return "".join(tok.text for tok in self.tokens)


@dataclass
class Program:
    """Ordered statements of one compilation unit."""
    statements: List[Statement] = field(default_factory=list)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)

    @property
    def final(self) -> Statement:
        """The statement whose value becomes the program's output."""
        return self.statements[-1]

    def is_final(self, stmt: Statement) -> bool:
        return stmt.index == len(self.statements) - 1


def split_statements(tokens: List[Token]) -> Program:
    """Split a token list on separators into a Program.

    Raises EmptyStatementError for an empty program and for any statement
    with no tokens (leading, trailing or doubled ``;``).
    """
    if not tokens:
        raise EmptyStatementError("Empty program")

    statements: List[Statement] = []
    current: List[Token] = []
    for tok in tokens:
        if tok.type is TokenType.SEPARATOR:
            if not current:
                where = "at start of program" if not statements else "before ';'"
                raise EmptyStatementError.at(f"Empty statement {where}", tok)
            statements.append(Statement(current, len(statements)))
            current = []
            continue
        current.append(tok)

    if not current:
        raise EmptyStatementError.at("Empty statement after trailing ';'", tokens[-1])
    statements.append(Statement(current, len(statements)))

    logger.debug("split program into %d statement(s)", len(statements))
    return Program(statements)
