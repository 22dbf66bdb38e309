"""
x86-64 Code Generator for the RPN compiler.

Translates a checked Program into NASM assembly.

Register usage convention:
  - RAX: left operand / result of an operator
  - RCX: right operand of an operator
  - RDI: argument to the runtime print routine
  - RSP: runtime operand stack, one qword per VALUE operand
  - RBP: frame pointer, keeps the call to the runtime 16-byte aligned

Memory layout:
  - .bss ``variables``: 26 qwords, slot n holds the letter chr(ord('a') + n),
    zero-initialized by the loader

Code shape (per token):
  - literal d      push d
  - variable v     nothing; the reference stays on the simulated stack
  - + / *          load rhs into RCX, lhs into RAX, add/imul, push RAX
  - =              load rhs into RAX, store to the lhs slot, push RAX
  - end of final   load the result into RDI, call the print routine
  - end of other   drop the result (add rsp, 8) if it is on the stack

A VALUE operand is loaded with ``pop``; a REFERENCE operand is loaded from
its variable slot at the point of use, so earlier assignments in the same
statement are visible.
"""

from __future__ import annotations
import logging
import sys
from typing import Dict, List, Optional

from .lexer import Token, TokenType
from .program import Program, Statement
from .runtime import ENTRY_SYMBOL, PRINT_SYMBOL, mangle
from .stack import Operand, SimulatedStack, VariableTable, simulate

logger = logging.getLogger(__name__)

VARIABLES_LABEL = "variables"
WORD_SIZE = 8


# ──────────────────────────────────────────────
# Target profiles for specific object formats
# ──────────────────────────────────────────────

TARGET_PROFILES = {
    "elf64": {
        "nasm_format": "elf64",
        "symbol_prefix": "",
        "call_suffix": " wrt ..plt",
        "extra_sections": ["section .note.GNU-stack noalloc noexec nowrite progbits"],
        "cc_flags": [],
        "description": "x86-64 ELF (Linux, BSD)",
    },
    "macho64": {
        "nasm_format": "macho64",
        "symbol_prefix": "_",
        "call_suffix": "",
        "extra_sections": [],
        "cc_flags": ["-arch", "x86_64"],
        "description": "x86-64 Mach-O (macOS)",
    },
}


def default_target() -> str:
    """Pick the target profile matching the host's object format."""
    return "macho64" if sys.platform == "darwin" else "elf64"


def get_profile(target: Optional[str]) -> Dict:
    """Look up a profile; unknown names fall back to the host default."""
    if target is None:
        target = default_target()
    profile = TARGET_PROFILES.get(target)
    if profile is None:
        fallback = default_target()
        logger.warning("unknown target %r, using %s", target, fallback)
        profile = TARGET_PROFILES[fallback]
    return profile


class CodeGenerator:
    """Generates x86-64 NASM assembly from a Program."""

    def __init__(self, target: Optional[str] = None):
        self.target = target or default_target()
        self.profile = get_profile(self.target)
        self._reset()

    def _reset(self):
        # Output sections
        self._header_lines: List[str] = []
        self._bss_lines: List[str] = []
        self._code_lines: List[str] = []

        # State
        self._table = VariableTable()

    # ── Output helpers ────────────────────────

    def _emit(self, line: str, comment: str = ""):
        """Emit an assembly instruction to the code section."""
        if comment:
            line = f"{line:<40} ; {comment}"
        self._code_lines.append(f"        {line}")

    def _emit_label(self, label: str):
        self._code_lines.append(f"{label}:")

    def _emit_comment(self, text: str):
        self._code_lines.append(f"        ; {text}")

    def _emit_blank(self):
        self._code_lines.append("")

    # ── Format helpers ────────────────────────

    def _sym(self, name: str) -> str:
        return mangle(name, self.profile["symbol_prefix"])

    @staticmethod
    def _var_addr(slot: int) -> str:
        return f"qword [rel {VARIABLES_LABEL} + {slot * WORD_SIZE}]"

    # ── Main generation entry point ───────────

    def generate(self, program: Program) -> str:
        """Generate complete assembly output from a Program.

        Every statement is checked before any code is emitted, so a
        program with an error anywhere produces no output at all.
        """
        self._reset()

        for stmt in program:
            simulate(stmt, self._table)

        self._generate_header()
        self._generate_bss()

        self._emit_label(self._sym(ENTRY_SYMBOL))
        self._emit("push    rbp")
        self._emit("mov     rbp, rsp")
        for stmt in program:
            self._gen_statement(stmt, final=program.is_final(stmt))
        self._emit_blank()
        self._emit_comment(f"{PRINT_SYMBOL} does not return")
        self._emit("mov     rsp, rbp")
        self._emit("pop     rbp")
        self._emit("ret")

        logger.info("generated code for %d statement(s), target %s",
                    len(program), self.target)
        return self._assemble_output()

    def _generate_header(self):
        self._header_lines = [
            "; ════════════════════════════════════════════",
            "; rpncc output",
            f"; Target: {self.profile['description']}",
            "; ════════════════════════════════════════════",
            "",
            "        bits    64",
            "        default rel",
            "",
            f"        global  {self._sym(ENTRY_SYMBOL)}",
            f"        extern  {self._sym(PRINT_SYMBOL)}",
            "",
        ]

    def _generate_bss(self):
        used = ", ".join(self._table.name(s) for s in sorted(self._table.used)) or "none"
        self._bss_lines = [
            "        section .bss",
            "        alignb  8",
            f"{VARIABLES_LABEL}:",
            f"        resq    {len(self._table):<32} ; a..z (used: {used})",
        ]

    def _assemble_output(self) -> str:
        sections = []
        sections.extend(self._header_lines)

        sections.append("; ── Variables ──")
        sections.extend(self._bss_lines)
        sections.append("")

        sections.append("; ── Code ──")
        sections.append("        section .text")
        sections.extend(self._code_lines)

        for extra in self.profile["extra_sections"]:
            sections.append("")
            sections.append(f"        {extra}")

        sections.append("")
        sections.append("; ── End ──")
        return "\n".join(sections) + "\n"

    # ── Statement generation ──────────────────

    def _gen_statement(self, stmt: Statement, final: bool):
        self._emit_blank()
        self._emit_comment(f"statement {stmt.index + 1}: {stmt}")

        stack = SimulatedStack(self._table)
        for tok in stmt:
            popped = stack.apply(tok)
            self._gen_token(tok, popped)

        result = stack.finish(stmt.last)
        if final:
            self._load(result, "rdi")
            self._emit(f"call    {self._sym(PRINT_SYMBOL)}{self.profile['call_suffix']}")
        elif not result.is_reference:
            self._emit("add     rsp, 8", "discard result")

    def _gen_token(self, tok: Token, popped):
        if tok.type is TokenType.LITERAL:
            self._emit(f"push    {tok.value}")
        elif tok.type is TokenType.VARIABLE:
            # Loaded when an operator consumes it
            pass
        elif tok.is_operator("="):
            rhs, lhs = popped
            self._load(rhs, "rax")
            self._emit(f"mov     {self._var_addr(lhs.slot)}, rax",
                       f"{self._table.name(lhs.slot)} = rax")
            self._emit("push    rax")
        else:
            rhs, lhs = popped
            self._load(rhs, "rcx")
            self._load(lhs, "rax")
            if tok.is_operator("+"):
                self._emit("add     rax, rcx")
            else:
                self._emit("imul    rax, rcx")
            self._emit("push    rax")

    def _load(self, operand: Operand, reg: str):
        """Load an operand's current runtime value into a register."""
        if operand.is_reference:
            self._emit(f"mov     {reg}, {self._var_addr(operand.slot)}",
                       self._table.name(operand.slot))
        else:
            self._emit(f"pop     {reg}")
