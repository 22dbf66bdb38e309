"""
End-to-end tests: compile, assemble with nasm, link with the C runtime, run.

Requires nasm and a C compiler on PATH and an x86-64 host (or macOS, where
the x86-64 binary runs under Rosetta). Skipped otherwise.
"""
import sys
import os
import platform
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import rpncc
from rpn_compiler import compile_source, evaluate_source
from rpn_compiler.toolchain import Toolchain

from test_interpreter import CASES

_toolchain = Toolchain()

pytestmark = pytest.mark.skipif(
    not _toolchain.available()
    or (platform.machine().lower() not in ("x86_64", "amd64") and sys.platform != "darwin"),
    reason="needs nasm, cc and an x86-64 host",
)


def _run(source: str, tmp_path) -> str:
    return _toolchain.build_and_run(compile_source(source), tmp_path)


class TestReferenceCases:
    @pytest.mark.parametrize("source,expected", CASES)
    def test_case(self, source, expected, tmp_path):
        assert _run(source, tmp_path) == f"{expected}\n"

    @pytest.mark.parametrize("source", [
        "a1=;aa5=+", "a3=;b4=;ab*", "99*;1", "a4=;ba=;b", "zy8==;y9*",
    ])
    def test_matches_reference_evaluator(self, source, tmp_path):
        assert _run(source, tmp_path) == f"{evaluate_source(source)}\n"

    def test_rerun_is_identical(self, tmp_path):
        first = _run("ba2==;b1+", tmp_path / "first")
        second = _run("ba2==;b1+", tmp_path / "second")
        assert first == second == "3\n"


class TestBuildArtifacts:
    def test_build_dir_contents(self, tmp_path):
        exe = _toolchain.build(compile_source("7"), tmp_path)
        assert exe.exists()
        assert (tmp_path / "output.s").exists()
        assert (tmp_path / "output.o").exists()
        assert (tmp_path / "runtime.c").exists()

    def test_cli_run(self, tmp_path, capsys):
        assert rpncc.main(["12+3*", "--run", "--build-dir", str(tmp_path)]) == 0
        assert capsys.readouterr().out == "9\n"
