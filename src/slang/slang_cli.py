"""
SLang CLI Entrypoint.

Command-line front end for checking SLang shader sources.

Features:
    - Read source from a file (UTF-8) or an inline string.
    - Scan and parse it, reporting the first error as a single diagnostic.
    - Optionally dump the token stream or the expression trees (as JSON).
    - Output to console or file.

Example usage:
    slang shader.sl
    slang shader.sl --tokens
    slang -s "let x : vec2 = vec2(1, 2);" --ast
    slang shader.sl --ast -o shader.ast.json --verbose

Functions:
    run_slang(source: str, is_string: bool = False, tokens: bool = False, ast: bool = False,
              out: str | None = None) -> str:
        Runs the front end and returns the text that `main` prints.

    main(argv: list[str] | None = None) -> int:
        Parses CLI arguments, runs the front end and returns the exit status.
"""

import argparse
import json
import logging
import sys

from slang.slang_errors import SlangError
from slang.slang_lexer import Token, scan
from slang.slang_parser import Parser

logger = logging.getLogger(__name__)


def format_tokens(tokens: list[Token]) -> str:
    return "\n".join(f"{tok.kind} {tok.lexeme}".rstrip() for tok in tokens)


def run_slang(
    source: str,
    is_string: bool = False,
    tokens: bool = False,
    ast: bool = False,
    out: str | None = None,
) -> str:
    """
    Run the SLang front end: scan, then parse unless only tokens are requested.

    Args:
        source (str): SLang source code, or a path to a source file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        tokens (bool): If True, stop after scanning and return the token listing.
        ast (bool): If True, return the parsed expression trees as JSON.
        out (str | None): Optional path to write the result to.

    Returns:
        str: The token listing, the JSON trees, or "OK".

    Raises:
        ScanError: If the source contains a malformed token.
        UnexpectedToken: If the token stream does not match the grammar.
        OSError: If the source file cannot be read or the output cannot be written.
    """
    if not is_string:
        logger.debug("reading %s", source)
        with open(source, encoding="utf-8") as f:
            source = f.read()

    token_list = scan(source)

    if tokens:
        result = format_tokens(token_list)
    else:
        expressions = Parser(token_list).parse()
        if ast:
            result = json.dumps([expr.to_dict() for expr in expressions], indent=2)
        else:
            result = "OK"

    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(result + "\n")
        logger.info("wrote %s", out)
    return result


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the SLang CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `--tokens`: Print one `KIND LEXEME` line per token and skip parsing.
        - `--ast`: Print the parsed expression trees as JSON.
        - `-o`, `--output`: Write the result to a file.
        - `-v`, `--verbose`: Enable debug logging.

    Returns:
        int: 0 on success, 1 on any failure reported on stderr.
    """
    parser = argparse.ArgumentParser(
        prog="slang", description="Scan and parse SLang shader sources"
    )
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--tokens", action="store_true", help="Print the token stream")
    mode.add_argument(
        "--ast", action="store_true", help="Print expression trees as JSON"
    )
    parser.add_argument("-o", "--output", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = run_slang(
            source=args.source,
            is_string=args.string,
            tokens=args.tokens,
            ast=args.ast,
            out=args.output,
        )
    except (SlangError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except RecursionError:
        print("error: nesting too deep to parse", file=sys.stderr)
        return 1

    if not args.output:
        print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
