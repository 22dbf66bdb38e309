"""
Reference evaluator for the RPN language.

Runs a Program directly in Python with the semantics the generated code
has: references are dereferenced when consumed, assignment yields the
stored value, variables persist across statements, and arithmetic wraps
to a signed 64-bit integer like the machine registers do.

Used by ``rpncc --eval`` and by the tests as an oracle for the compiled
programs.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Union

from .lexer import Token, TokenType
from .program import Program, Statement
from .stack import Operand, SimulatedStack, VariableTable, simulate

logger = logging.getLogger(__name__)

INT64_MASK = (1 << 64) - 1
INT64_SIGN = 1 << 63


def wrap_int64(value: int) -> int:
    value &= INT64_MASK
    return value - (1 << 64) if value & INT64_SIGN else value


class Interpreter:
    """Evaluates statements against one VariableTable."""

    def __init__(self, table: Optional[VariableTable] = None):
        self.table = table if table is not None else VariableTable()

    def _deref(self, entry: Union[int, Operand]) -> int:
        if isinstance(entry, Operand):
            return self.table.load(entry.slot)
        return entry

    def run_statement(self, stmt: Statement) -> int:
        # Tags come from the simulated stack; values live alongside them
        stack = SimulatedStack(self.table)
        values: List[Union[int, Operand]] = []
        for tok in stmt:
            popped = stack.apply(tok)
            if tok.type is TokenType.LITERAL:
                values.append(tok.value)
            elif tok.type is TokenType.VARIABLE:
                values.append(stack.items[-1])
            else:
                values.append(self._apply_operator(tok, popped, values))
        stack.finish(stmt.last)
        return self._deref(values[-1])

    def _apply_operator(self, tok: Token, popped, values) -> int:
        rhs = self._deref(values.pop())
        lhs_entry = values.pop()
        if tok.is_operator("="):
            target = popped[1]
            self.table.store(target.slot, rhs)
            return rhs
        lhs = self._deref(lhs_entry)
        if tok.is_operator("+"):
            return wrap_int64(lhs + rhs)
        return wrap_int64(lhs * rhs)

    def run(self, program: Program) -> int:
        """Evaluate every statement in order and return the last one's value."""
        for stmt in program:
            simulate(stmt, VariableTable())
        result = 0
        for stmt in program:
            result = self.run_statement(stmt)
            logger.debug("statement %d -> %d", stmt.index + 1, result)
        return result
