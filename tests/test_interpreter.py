"""
Reference evaluator tests: the language's semantics without any toolchain.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rpn_compiler import evaluate_source
from rpn_compiler.errors import CompileError, MalformedStatementError
from rpn_compiler.interpreter import Interpreter, wrap_int64
from rpn_compiler.lexer import tokenize
from rpn_compiler.program import split_statements
from rpn_compiler.stack import VariableTable

# The reference cases every build must reproduce
CASES = [
    ("7", 7),
    ("72+", 9),
    ("12+3+", 6),
    ("123*+", 7),
    ("12+3*", 9),
    ("12345++++", 15),
    ("12*34*+", 14),
    ("1;2", 2),
    ("a", 0),
    ("a2=;a1+", 3),
    ("ba2==;b1+", 3),
]


class TestReferenceCases:
    @pytest.mark.parametrize("source,expected", CASES)
    def test_case(self, source, expected):
        assert evaluate_source(source) == expected

    @pytest.mark.parametrize("digit", range(10))
    def test_single_digit(self, digit):
        assert evaluate_source(str(digit)) == digit


class TestSemantics:
    def test_assignment_yields_value(self):
        assert evaluate_source("a7=") == 7

    def test_chained_assignment_sets_both(self):
        table = VariableTable()
        Interpreter(table).run(split_statements(tokenize("ba2==")))
        assert table.load(0) == 2
        assert table.load(1) == 2

    def test_reference_read_at_use(self):
        """The first a is pushed while a is 1 but read after a becomes 5."""
        assert evaluate_source("a1=;aa5=+") == 10

    def test_variables_persist_across_statements(self):
        assert evaluate_source("a3=;b4=;ab*") == 12

    def test_all_whitespace_ignored(self):
        assert evaluate_source(" 1\v2\f+\t;\r\n a") == 0
        assert evaluate_source("1\v2\f+") == 3

    def test_earlier_results_are_discarded(self):
        assert evaluate_source("99*;1") == 1

    def test_assign_variable_to_variable(self):
        assert evaluate_source("a4=;ba=;b") == 4

    def test_errors_abort_before_side_effects(self):
        table = VariableTable()
        with pytest.raises(MalformedStatementError):
            Interpreter(table).run(split_statements(tokenize("a5=;12")))
        assert table.load(0) == 0

    @pytest.mark.parametrize("source", ["", "1-", "12", "12+3=", "+"])
    def test_compile_errors(self, source):
        with pytest.raises(CompileError):
            evaluate_source(source)


class TestWrap:
    def test_wrap_int64(self):
        assert wrap_int64(5) == 5
        assert wrap_int64(2 ** 63) == -(2 ** 63)
        assert wrap_int64(2 ** 64 + 3) == 3

    def test_repeated_square_wraps(self):
        # 9 ** 32 overflows 64 bits
        source = "a9=;" + "aaa*=;" * 5 + "a"
        assert evaluate_source(source) == wrap_int64(9 ** 32)
