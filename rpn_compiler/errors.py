"""
Exception hierarchy for the RPN compiler.

Every compile-time failure derives from CompileError and carries the
source location it was detected at. All of them are fatal: the first one
raised aborts the whole compilation and no assembly is produced.
"""

from __future__ import annotations
from typing import Optional


class CompileError(Exception):
    """Base class for all compile-time errors."""

    stage = "Compile"

    def __init__(self, message: str, offset: int = 0, line: int = 1, col: int = 1):
        self.message = message
        self.offset = offset
        self.line = line
        self.col = col
        super().__init__(f"{self.stage} error at L{line}:{col}: {message}")

    @classmethod
    def at(cls, message: str, token) -> CompileError:
        """Build the error from a token's position."""
        return cls(message, token.offset, token.line, token.col)


class LexError(CompileError):
    """Unexpected character in the source text."""

    stage = "Lexer"

    def __init__(self, char: str, offset: int, line: int, col: int):
        self.char = char
        super().__init__(f"Unexpected character: {char!r}", offset, line, col)


class EmptyStatementError(CompileError):
    """A statement with no tokens (empty program, or `;` with nothing around it)."""

    stage = "Statement"


class StackUnderflowError(CompileError):
    """An operator was applied with fewer operands than it consumes."""

    stage = "Stack"


class InvalidAssignmentTargetError(CompileError):
    """The left operand of `=` is a computed value, not a variable."""

    stage = "Assignment"


class MalformedStatementError(CompileError):
    """A statement ended with zero or more than one operand on the stack."""

    stage = "Statement"

    def __init__(self, message: str, depth: int, offset: int = 0,
                 line: int = 1, col: int = 1):
        self.depth = depth
        super().__init__(message, offset, line, col)


class ToolchainError(Exception):
    """Raised when assembling, linking or running the program fails."""

    def __init__(self, stage: str, detail: str, returncode: Optional[int] = None):
        self.stage = stage
        self.detail = detail
        self.returncode = returncode
        super().__init__(f"{stage} failed: {detail}")
