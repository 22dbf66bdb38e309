"""
Assemble, link and run compiled RPN programs.

Drives the external tools the compiler output depends on:

    output.s  ──nasm──>  output.o  ─┐
                                    ├──cc──>  program  ──run──>  stdout
    runtime.c ──────────────────────┘

Each stage runs as a subprocess with a timeout. A failing stage raises
ToolchainError naming the stage and carrying the tool's stderr.
"""

from __future__ import annotations
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from .codegen import get_profile
from .errors import ToolchainError
from .runtime import RUNTIME_C_SOURCE

logger = logging.getLogger(__name__)

TOOL_TIMEOUT = 60
RUN_TIMEOUT = 10


class Toolchain:
    """Wraps nasm and a C compiler driver for one target profile."""

    def __init__(self, nasm: str = "nasm", cc: str = "cc", target: Optional[str] = None):
        self.nasm = nasm
        self.cc = cc
        self.target = target
        self.profile = get_profile(target)

    def available(self) -> bool:
        """True if both external tools can be found on PATH."""
        return shutil.which(self.nasm) is not None and shutil.which(self.cc) is not None

    def _call(self, stage: str, cmd: List[str], cwd: Path, timeout: int) -> str:
        logger.debug("%s: %s", stage, " ".join(cmd))
        try:
            result = subprocess.run(cmd, cwd=str(cwd), capture_output=True,
                                    text=True, timeout=timeout)
        except FileNotFoundError:
            raise ToolchainError(stage, f"command not found: {cmd[0]}")
        except subprocess.TimeoutExpired:
            raise ToolchainError(stage, f"timed out after {timeout}s")
        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise ToolchainError(stage, detail, result.returncode)
        return result.stdout

    def build(self, asm_text: str, workdir: Path) -> Path:
        """Assemble and link ``asm_text`` in ``workdir``; return the executable."""
        workdir = Path(workdir)
        workdir.mkdir(parents=True, exist_ok=True)
        asm_path = workdir / "output.s"
        obj_path = workdir / "output.o"
        runtime_path = workdir / "runtime.c"
        exe_path = workdir / "program"

        asm_path.write_text(asm_text, encoding="utf-8")
        runtime_path.write_text(RUNTIME_C_SOURCE, encoding="utf-8")

        self._call("assembler",
                   [self.nasm, f"-f{self.profile['nasm_format']}",
                    asm_path.name, "-o", obj_path.name],
                   workdir, TOOL_TIMEOUT)
        self._call("linker",
                   [self.cc, *self.profile["cc_flags"],
                    runtime_path.name, obj_path.name, "-o", exe_path.name],
                   workdir, TOOL_TIMEOUT)
        logger.info("built %s", exe_path)
        return exe_path

    def run(self, executable: Path) -> str:
        """Run a built program and return its standard output."""
        executable = Path(executable).resolve()
        return self._call("program", [str(executable)], executable.parent, RUN_TIMEOUT)

    def build_and_run(self, asm_text: str, workdir: Optional[Path] = None) -> str:
        """Build in ``workdir`` (or a temporary directory) and run the result."""
        if workdir is not None:
            return self.run(self.build(asm_text, Path(workdir)))
        with tempfile.TemporaryDirectory(prefix="rpncc-") as tmp:
            return self.run(self.build(asm_text, Path(tmp)))
