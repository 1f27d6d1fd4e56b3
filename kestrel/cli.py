"""
Kestrel command line

Runs a source file, or starts a REPL when no file is given.

Usage:
    kestrel                       # REPL
    kestrel program.ks            # run a file, print its last value
    kestrel program.ks --disassemble
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO

from .api.context import Context
from .compiler.errors import KestrelError

PROMPT = ">> "


def repl(context: Context, stdin: TextIO, stdout: TextIO, disassemble: bool = False) -> int:
    """Read, evaluate and print one line at a time until end of input."""
    while True:
        stdout.write(PROMPT)
        stdout.flush()

        line = stdin.readline()
        if not line:
            stdout.write("\n")
            return 0

        if not line.strip():
            continue

        try:
            script = context.compile(line)
            if disassemble:
                stdout.write(script.disassemble() + "\n")
            result = context.execute(script)

        except KestrelError as e:
            stdout.write(f"error: {e}\n")
            continue

        if result is not None and script.ends_with_expression:
            stdout.write(result.inspect() + "\n")


def run_file(context: Context, path: str, disassemble: bool = False) -> int:
    try:
        script = context.compile_file(path)
        if disassemble:
            print(script.disassemble())
        result = context.execute(script)

    except OSError as e:
        print(f"error: cannot read {path}: {e.strerror}", file=sys.stderr)
        return 1

    except KestrelError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if result is not None:
        print(result.inspect())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="kestrel",
        description="Run Kestrel programs, or start a REPL when no file is given",
    )
    parser.add_argument('file', nargs='?', help='Kestrel source file to run')
    parser.add_argument('--scanner', choices=['table', 'handcoded'], default='table',
                        help='Scanner used to tokenize the source (default: table)')
    parser.add_argument('--disassemble', '-d', action='store_true',
                        help='Print the bytecode before running it')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    context = Context(scanner=args.scanner, debug=args.debug)

    if args.file is None:
        return repl(context, sys.stdin, sys.stdout, args.disassemble)

    return run_file(context, args.file, args.disassemble)


if __name__ == "__main__":
    sys.exit(main())
