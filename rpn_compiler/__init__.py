"""
rpncc - RPN Expression Compiler for x86-64
==========================================
Compiles a tiny postfix expression language to NASM assembly.

Language: single-digit literals (0-9), single-letter variables (a-z),
``+`` and ``*`` on values, ``=`` to assign (``a2=`` stores 2 in a), and
``;`` between statements. The program prints the last statement's value.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌────────────┐    ┌───────────┐    ┌───────────┐
    │  Source  │───>│  Lexer   │───>│ Statements │───>│  CodeGen  │───>│ Toolchain │
    │  (text)  │    │ (tokens) │    │ (split ;)  │    │ (asm text)│    │ (nasm+cc) │
    └──────────┘    └──────────┘    └────────────┘    └───────────┘    └───────────┘
                                          │                 │
                                          └──> stack.py <───┘
                                        (operand tags, checks)

    - lexer.py:       one character per token
    - program.py:     splits the token list into statements
    - stack.py:       compile-time operand stack, variable table, error checks
    - codegen.py:     emits x86-64 code in lockstep with the simulated stack
    - interpreter.py: evaluates a program in Python (reference semantics)
    - runtime.py:     entry/print symbols and the C runtime
    - toolchain.py:   assemble, link, run
"""

__version__ = "0.1.0"

from .errors import (
    CompileError,
    LexError,
    EmptyStatementError,
    MalformedStatementError,
    InvalidAssignmentTargetError,
    StackUnderflowError,
    ToolchainError,
)
from .lexer import Lexer, Token, TokenType, tokenize
from .program import Program, Statement, split_statements
from .stack import Operand, OperandKind, SimulatedStack, VariableTable, simulate
from .codegen import CodeGenerator, TARGET_PROFILES, default_target
from .interpreter import Interpreter
from .toolchain import Toolchain


def parse_source(source: str) -> Program:
    """Lex and split source text into a Program."""
    return split_statements(tokenize(source))


def compile_source(source: str, *, target: str = None) -> str:
    """Compile RPN source code to x86-64 NASM assembly.

    Full pipeline: Lexer -> statements -> stack check -> CodeGenerator.

    Args:
        source: Program text.
        target: Object format profile ('elf64' or 'macho64'); defaults to
            the host's format.

    Returns:
        Assembly text. Raises a CompileError subclass on any error.
    """
    program = parse_source(source)
    gen = CodeGenerator(target=target)
    return gen.generate(program)


def evaluate_source(source: str) -> int:
    """Evaluate RPN source in Python and return the printed value."""
    return Interpreter().run(parse_source(source))
