"""
Compile-time model of the runtime operand stack.

The simulated stack holds one Operand per pending term. An operand is
either a VALUE (a literal, or the result of an operator) or a REFERENCE
to one of the 26 variable slots. References are not dereferenced until
an operator consumes them, so a read always sees the variable's value at
the moment of use.

Runtime stack layout follows directly from the tags: every VALUE operand
occupies one machine stack slot, REFERENCE operands occupy none. The code
generator relies on this to know which operands to ``pop`` and which to
load from the variable table.
"""

from __future__ import annotations
import enum
import logging
import string
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .errors import (
    InvalidAssignmentTargetError,
    MalformedStatementError,
    StackUnderflowError,
)
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)

VARIABLE_NAMES = string.ascii_lowercase
VARIABLE_COUNT = len(VARIABLE_NAMES)

# Operator symbol -> number of operands it pops
ARITY = {"+": 2, "*": 2, "=": 2}


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

class OperandKind(enum.Enum):
    VALUE = "value"
    REFERENCE = "reference"


@dataclass(frozen=True)
class Operand:
    kind: OperandKind
    slot: Optional[int] = None

    @classmethod
    def value(cls) -> Operand:
        return cls(OperandKind.VALUE)

    @classmethod
    def reference(cls, slot: int) -> Operand:
        return cls(OperandKind.REFERENCE, slot)

    @property
    def is_reference(self) -> bool:
        return self.kind is OperandKind.REFERENCE

    def __repr__(self):
        if self.is_reference:
            return f"Reference({VARIABLE_NAMES[self.slot]})"
        return "Value"


# ──────────────────────────────────────────────
# Variable table
# ──────────────────────────────────────────────

@dataclass
class VariableTable:
    """The 26 global variable slots of one program, all starting at 0.

    One table is created per compilation (or evaluation) and handed to
    every statement in turn; it is never reset between statements.
    """
    values: List[int] = field(default_factory=lambda: [0] * VARIABLE_COUNT)
    used: Set[int] = field(default_factory=set)

    @staticmethod
    def slot(name: str) -> int:
        if len(name) != 1 or name not in VARIABLE_NAMES:
            raise KeyError(f"not a variable name: {name!r}")
        return VARIABLE_NAMES.index(name)

    @staticmethod
    def name(slot: int) -> str:
        return VARIABLE_NAMES[slot]

    def mark_used(self, slot: int):
        self.used.add(slot)

    def load(self, slot: int) -> int:
        return self.values[slot]

    def store(self, slot: int, value: int):
        self.values[slot] = value

    def __len__(self) -> int:
        return VARIABLE_COUNT


# ──────────────────────────────────────────────
# Simulated stack
# ──────────────────────────────────────────────

class SimulatedStack:
    """Tracks operand tags for one statement and enforces operator rules."""

    def __init__(self, table: Optional[VariableTable] = None):
        self.table = table if table is not None else VariableTable()
        self._items: List[Operand] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> Tuple[Operand, ...]:
        return tuple(self._items)

    def push(self, operand: Operand):
        self._items.append(operand)

    def _pop(self, token: Token) -> Operand:
        if not self._items:
            raise StackUnderflowError.at(
                f"Operator {token.text!r} needs {ARITY[token.value]} operands", token)
        return self._items.pop()

    def apply(self, token: Token) -> Tuple[Operand, ...]:
        """Apply one token's stack effect.

        Returns the operands the token consumed, in pop order (top of
        stack first), so the caller can emit the matching loads.
        """
        if token.type is TokenType.LITERAL:
            self.push(Operand.value())
            return ()

        if token.type is TokenType.VARIABLE:
            slot = self.table.slot(token.value)
            self.table.mark_used(slot)
            self.push(Operand.reference(slot))
            return ()

        if token.type is not TokenType.OPERATOR:
            raise ValueError(f"unexpected token in statement: {token!r}")

        assign = token.is_operator("=")
        if assign and len(self._items) == 1 and not self._items[0].is_reference:
            # The only operand is a value, so it would be the target
            raise InvalidAssignmentTargetError.at(
                "Left operand of '=' must be a variable", token)
        rhs = self._pop(token)
        lhs = self._pop(token)
        if assign and not lhs.is_reference:
            raise InvalidAssignmentTargetError.at(
                "Left operand of '=' must be a variable", token)
        self.push(Operand.value())
        return rhs, lhs

    def finish(self, last: Token) -> Operand:
        """Check the end-of-statement invariant and return the result operand."""
        if len(self._items) != 1:
            depth = len(self._items)
            if depth == 0:
                msg = "Statement leaves no value on the stack"
            else:
                msg = f"Statement leaves {depth} operands on the stack (expected 1)"
            raise MalformedStatementError(msg, depth, last.offset, last.line, last.col)
        return self._items[0]


def simulate(statement, table: Optional[VariableTable] = None) -> Operand:
    """Run one statement through a fresh simulated stack.

    Raises the first stack error encountered; returns the single operand
    left on the stack otherwise.
    """
    stack = SimulatedStack(table)
    for tok in statement:
        stack.apply(tok)
    result = stack.finish(statement.last)
    logger.debug("statement %d checks out: result %r", statement.index, result)
    return result
