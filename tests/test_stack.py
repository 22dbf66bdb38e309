"""
Simulated operand stack and variable table tests.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rpn_compiler.errors import (
    InvalidAssignmentTargetError,
    MalformedStatementError,
    StackUnderflowError,
)
from rpn_compiler.lexer import tokenize
from rpn_compiler.program import split_statements
from rpn_compiler.stack import (
    Operand,
    OperandKind,
    SimulatedStack,
    VariableTable,
    simulate,
)


def _statement(source: str):
    return split_statements(tokenize(source)).final


class TestVariableTable:
    def test_slots(self):
        assert VariableTable.slot("a") == 0
        assert VariableTable.slot("z") == 25
        assert VariableTable.name(1) == "b"

    @pytest.mark.parametrize("name", ["A", "ab", "1", ""])
    def test_bad_names(self, name):
        with pytest.raises(KeyError):
            VariableTable.slot(name)

    def test_defaults_to_zero(self):
        table = VariableTable()
        assert len(table) == 26
        assert all(table.load(s) == 0 for s in range(26))

    def test_store_persists(self):
        table = VariableTable()
        table.store(3, 42)
        assert table.load(3) == 42

    def test_tables_are_independent(self):
        first, second = VariableTable(), VariableTable()
        first.store(0, 1)
        assert second.load(0) == 0


class TestSimulatedStack:
    def test_literal_pushes_value(self):
        stack = SimulatedStack()
        assert stack.apply(tokenize("5")[0]) == ()
        assert stack.items == (Operand.value(),)

    def test_variable_pushes_reference(self):
        stack = SimulatedStack()
        stack.apply(tokenize("c")[0])
        assert stack.items == (Operand(OperandKind.REFERENCE, 2),)
        assert stack.table.used == {2}

    def test_operator_returns_popped_in_pop_order(self):
        stack = SimulatedStack()
        for tok in tokenize("a1"):
            stack.apply(tok)
        popped = stack.apply(tokenize("+")[0])
        assert popped == (Operand.value(), Operand.reference(0))
        assert stack.items == (Operand.value(),)

    def test_assignment_needs_reference(self):
        stack = SimulatedStack()
        for tok in tokenize("12"):
            stack.apply(tok)
        with pytest.raises(InvalidAssignmentTargetError):
            stack.apply(tokenize("=")[0])

    def test_assignment_leaves_value(self):
        stack = SimulatedStack()
        for tok in tokenize("ba2="):
            stack.apply(tok)
        assert stack.items == (Operand.reference(1), Operand.value())

    def test_assignment_to_lone_value(self):
        stack = SimulatedStack()
        for tok in tokenize("12+"):
            stack.apply(tok)
        with pytest.raises(InvalidAssignmentTargetError):
            stack.apply(tokenize("=")[0])

    def test_assignment_to_lone_reference_underflows(self):
        stack = SimulatedStack()
        stack.apply(tokenize("a")[0])
        with pytest.raises(StackUnderflowError):
            stack.apply(tokenize("=")[0])

    def test_underflow(self):
        stack = SimulatedStack()
        stack.apply(tokenize("1")[0])
        with pytest.raises(StackUnderflowError):
            stack.apply(tokenize("*")[0])


class TestSimulate:
    def test_result_operand(self):
        assert simulate(_statement("12+")) == Operand.value()
        assert simulate(_statement("q")) == Operand.reference(16)

    def test_chained_assignment_is_valid(self):
        assert simulate(_statement("ba2==")) == Operand.value()

    def test_leftover_operands(self):
        with pytest.raises(MalformedStatementError) as exc:
            simulate(_statement("123+"))
        assert exc.value.depth == 2

    def test_shared_table_collects_used_slots(self):
        table = VariableTable()
        for stmt in split_statements(tokenize("a2=;z1+")):
            simulate(stmt, table)
        assert table.used == {0, 25}
