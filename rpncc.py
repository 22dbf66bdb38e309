#!/usr/bin/env python3
"""
rpncc - RPN Expression Compiler CLI

Usage:
    python rpncc.py <program> [-o output.s] [--target elf64|macho64] [-v]
    python rpncc.py -i <file> [-o output.s] [--target elf64|macho64] [-v]
                    [--tokens] [--eval] [--run] [--build-dir DIR]
                    [--nasm CMD] [--cc CMD]

By default the assembly goes to stdout. On a compile error nothing is
written to stdout, a diagnostic goes to stderr and the exit status is 1.

Examples:
    python rpncc.py "12+3*"                      # asm to stdout
    python rpncc.py "a2=;a1+" -o prog.s
    python rpncc.py "ba2==;b1+" --run            # prints 3
    python rpncc.py -i prog.rpn --eval           # reference result, no toolchain
    python rpncc.py "12345++++" --tokens
"""

import argparse
import logging
import sys
import os

# Fix stdout encoding on Windows (box-drawing chars in assembly comments)
if sys.stdout.encoding and sys.stdout.encoding.lower() not in ('utf-8', 'utf8'):
    try:
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')
    except AttributeError:
        pass

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rpn_compiler import __version__, compile_source, evaluate_source
from rpn_compiler.codegen import TARGET_PROFILES, default_target
from rpn_compiler.errors import CompileError, ToolchainError
from rpn_compiler.lexer import tokenize
from rpn_compiler.toolchain import Toolchain

logger = logging.getLogger("rpncc")


def setup_logging(verbosity: int):
    """Configure stderr logging from the -v count."""
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="[rpncc] %(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpncc",
        description="RPN expression compiler for x86-64 (NASM output)",
        epilog="Targets: " + ", ".join(TARGET_PROFILES.keys()),
    )
    parser.add_argument("program", nargs="?", help="Program text, e.g. \"a2=;a1+\"")
    parser.add_argument("-i", "--input", help="Read the program from a file instead")
    parser.add_argument("-o", "--output", help="Output assembly file (default: stdout)")
    parser.add_argument("--target", default=default_target(),
                        choices=list(TARGET_PROFILES.keys()),
                        help=f"Object format (default: {default_target()})")
    parser.add_argument("--tokens", action="store_true",
                        help="Dump token stream and exit (debug)")
    parser.add_argument("--eval", action="store_true",
                        help="Print the value computed by the reference evaluator")
    parser.add_argument("--run", action="store_true",
                        help="Assemble, link against the runtime, run and print the output")
    parser.add_argument("--build-dir", default=None,
                        help="Keep build artifacts for --run in this directory")
    parser.add_argument("--nasm", default="nasm", help="Assembler command (default: nasm)")
    parser.add_argument("--cc", default="cc", help="C compiler/linker command (default: cc)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Log pipeline details to stderr (-v, -vv)")
    parser.add_argument("--version", action="version",
                        version=f"rpncc {__version__}")
    return parser


def read_source(args, parser) -> str:
    if (args.program is None) == (args.input is None):
        parser.error("give exactly one of PROGRAM or -i/--input")
    if args.program is not None:
        return args.program
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    except IOError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    source = read_source(args, parser)
    logger.info("target: %s", TARGET_PROFILES[args.target]["description"])

    try:
        if args.tokens:
            for tok in tokenize(source):
                print(tok)
            return 0

        if args.eval:
            print(evaluate_source(source))
            return 0

        asm_text = compile_source(source, target=args.target)

        if args.run:
            toolchain = Toolchain(nasm=args.nasm, cc=args.cc, target=args.target)
            sys.stdout.write(toolchain.build_and_run(asm_text, args.build_dir))
            return 0

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(asm_text)
            logger.info("output: %s", args.output)
        else:
            sys.stdout.write(asm_text)
        logger.info("generated %d lines of assembly", asm_text.count("\n"))

    except CompileError as e:
        print(e, file=sys.stderr)
        return 1
    except ToolchainError as e:
        print(f"Toolchain error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal compiler error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
