"""
Blox CLI Entrypoint.

This module provides the command-line interface for parsing Blox source code.

Features:
    - Read source from `.blox` files or inline strings.
    - Parse a whole program, or a single expression with `--expression`.
    - Optionally reject definitions and lambdas with repeated parameter names.
    - Print the tree in the compact dump form or as JSON.
    - Output to console or file.

Example usage:
    blox hello.blox
    blox -s "let x = 1 + 2 * 3"
    blox -e -s "a[0] + b.c" --json
    blox lib.blox -c -o lib.tree

Functions:
    run_blox(source: str, is_string: bool = False, expression: bool = False,
             as_json: bool = False, out: str | None = None, check: bool = False) -> str:
        Runs the pipeline (read → parse → check → render → output).

    main() -> None:
        Parses CLI arguments, runs the pipeline and reports failures.
"""

import argparse
import json
import logging
import sys

from blox.blox_ast import Node
from blox.blox_errors import ParameterError, ParseError
from blox.blox_parser import parse, parse_expression
from blox.blox_visitor import check_parameters, dump

logger = logging.getLogger(__name__)


def run_blox(
    source: str,
    is_string: bool = False,
    expression: bool = False,
    as_json: bool = False,
    out: str | None = None,
    check: bool = False,
) -> str:
    """
    Run the Blox front-end: read, parse, optionally validate, then render the tree.

    Args:
        source (str): The Blox source code or path to a `.blox` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        expression (bool): If True, parses a single expression instead of a program.
        as_json (bool): If True, renders the tree as JSON instead of the dump form.
        out (str | None): Optional path to write the rendering to. If None, prints to stdout.
        check (bool): If True, rejects repeated parameter names.

    Returns:
        str: The rendered tree.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.blox'.
        ParseError: If the source does not lex or parse.
        ParameterError: If `check` is set and a parameter list repeats a name.
    """
    if not is_string and not source.endswith(".blox"):
        raise ValueError("Only .blox files are supported.")
    filename = "<string>"
    # 1. Read source
    if not is_string:
        filename = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Parsing
    tree: Node
    if expression:
        tree = parse_expression(source, filename)
    else:
        tree = parse(source, filename)

    # 3. Optional validation
    if check:
        check_parameters(tree)

    # 4. Rendering
    if as_json:
        rendered = json.dumps(tree.to_dict(), indent=2)
    else:
        rendered = dump(tree)

    # 5. Output result
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(rendered + "\n")
        logger.info("wrote %s", out)
    else:
        print(rendered)
    return rendered


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the Blox CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-e`, `--expression`: Parse a single expression.
        - `-j`, `--json`: Print the tree as JSON.
        - `-o`, `--out`: Write the output to a file.
        - `-c`, `--check`: Reject repeated parameter names.
        - `-v`, `--verbose`: Enable debug logging.

    Exits with status 1 on a parse or validation error and 2 on an unsupported
    or unreadable input file.
    """
    parser = argparse.ArgumentParser(prog="blox")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-e",
        "--expression",
        action="store_true",
        help="Parse a single expression instead of a program",
    )
    parser.add_argument(
        "-j", "--json", dest="as_json", action="store_true", help="Print the tree as JSON"
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-c", "--check", action="store_true", help="Reject repeated parameter names"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run_blox(
            source=args.source,
            is_string=args.string,
            expression=args.expression,
            as_json=args.as_json,
            out=args.out,
            check=args.check,
        )
    except (ValueError, OSError) as e:
        print(f"blox: {e}", file=sys.stderr)
        sys.exit(2)
    except (ParseError, ParameterError) as e:
        print(f"blox: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
