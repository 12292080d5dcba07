import argparse
import logging
import sys

from . import compiler, preprocessor
from .errors import CompilationError


def _write_output(path, text):
    if path == "-":
        sys.stdout.write(text + "\n")
        return
    with open(path, "w", encoding="utf-8") as f:
        f.write(text + "\n")
    print(f"Wrote assembly to {path}", file=sys.stderr)


def main(argv=None):
    ap = argparse.ArgumentParser(prog="dspc", description="AICA DSP effect compiler")
    ap.add_argument("input", help="Input .dsp source file")
    ap.add_argument("-o", "--output", help="Output assembly file ('-' for stdout)", default="out.asm")
    ap.add_argument("-E", "--preprocess", action="store_true", help="Only run the preprocessor")
    ap.add_argument("--macros", action="store_true", help="List #define macros after compiling")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            src = f.read()
    except FileNotFoundError:
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    except IOError as e:
        print(f"Error: Failed to read input file: {e}", file=sys.stderr)
        sys.exit(1)

    if args.preprocess:
        pre = preprocessor.preprocess(src)
        for diag in pre.errors:
            print(f"Warning: {diag}", file=sys.stderr)
        _write_output(args.output, pre.output)
        return

    try:
        result = compiler.compile_source(src)
    except CompilationError as e:
        print(f"Error in {args.input}:", file=sys.stderr)
        for diag in e.diagnostics:
            print(f"  {diag}", file=sys.stderr)
        sys.exit(1)

    if args.macros:
        for name, macro in result.macros.items():
            print(f"{name} = {macro.value} (line {macro.line})", file=sys.stderr)

    _write_output(args.output, result.assembly)


if __name__ == "__main__":
    main()
