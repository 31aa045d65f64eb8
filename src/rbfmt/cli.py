"""Command-line interface for rbfmt."""

from __future__ import annotations

import argparse
import json
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rbfmt.errors import FormatError, LexError, ParseError
from rbfmt.options import FormatOptions

CONFIG_NAME = "rbfmt.toml"


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    paths: list[Path]
    output_file: Path | None
    format: FormatOptions
    write: bool
    check: bool
    require_pragma: bool
    insert_pragma: bool
    from_sexp: bool
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="rbfmt",
        description="Format Ruby commands and command-calls",
    )
    p.add_argument(
        "paths",
        nargs="*",
        default=["-"],
        metavar="PATH",
        help="Files or directories to format ('-' or nothing reads stdin)",
    )
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument("-w", "--write", action="store_true", help="Rewrite files in place")
    p.add_argument(
        "--check",
        action="store_true",
        help="Report files that are not formatted; exit 1 if any",
    )
    p.add_argument(
        "--print-width",
        type=parse_positive_int,
        default=None,
        metavar="N",
        help="Line width to fit output into (default: 80)",
    )
    p.add_argument(
        "--tab-width",
        type=parse_positive_int,
        default=None,
        metavar="N",
        help="Columns per indentation level (default: 2)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    p.add_argument(
        "--require-pragma",
        action="store_true",
        default=None,
        help="Only format files that contain a '# @format' pragma",
    )
    p.add_argument(
        "--insert-pragma",
        action="store_true",
        default=None,
        help="Add a '# @format' pragma to formatted files that lack one",
    )
    p.add_argument(
        "--from-sexp",
        action="store_true",
        help="Input is a JSON-encoded Ripper S-expression instead of Ruby source",
    )
    p.add_argument("--debug", action="store_true", help="Dump AST to stderr")
    return p


def parse_positive_int(s: str) -> int:
    """Parse a strictly positive integer option value."""
    try:
        value = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {s}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {s}")
    return value


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def config_int(table: dict[str, Any], key: str, default: int) -> int:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise argparse.ArgumentTypeError(f"config: {key} must be a positive integer")
    return value


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    paths = [Path(p) for p in args.paths]
    first = paths[0] if paths and str(paths[0]) != "-" else Path(".")
    input_dir = first if first.is_dir() else first.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    try:
        config = load_config(config_path, input_dir)
    except tomllib.TOMLDecodeError as exc:
        raise argparse.ArgumentTypeError(f"invalid config file: {exc}") from None

    table = config.get("format")
    if not isinstance(table, dict):
        table = {}

    defaults = FormatOptions()
    print_width = config_int(table, "print_width", defaults.print_width)
    tab_width = config_int(table, "tab_width", defaults.tab_width)
    if args.print_width is not None:
        print_width = args.print_width
    if args.tab_width is not None:
        tab_width = args.tab_width

    require_pragma = bool(table.get("require_pragma", False))
    if args.require_pragma is not None:
        require_pragma = args.require_pragma
    insert_pragma = bool(table.get("insert_pragma", False))
    if args.insert_pragma is not None:
        insert_pragma = args.insert_pragma

    output_file = Path(args.output) if args.output else None
    if output_file is not None and len(paths) > 1:
        raise argparse.ArgumentTypeError("--output needs exactly one input")
    if args.write and any(str(p) == "-" for p in paths):
        raise argparse.ArgumentTypeError("--write cannot rewrite stdin")

    return CliOptions(
        paths=paths,
        output_file=output_file,
        format=FormatOptions(print_width=print_width, tab_width=tab_width),
        write=args.write,
        check=args.check,
        require_pragma=require_pragma,
        insert_pragma=insert_pragma,
        from_sexp=args.from_sexp,
        debug=args.debug,
    )


def expand_paths(paths: list[Path]) -> list[Path]:
    """Replace each directory with the Ruby files beneath it."""
    from rbfmt.languages import find_ruby_files

    result: list[Path] = []
    for path in paths:
        if path.is_dir():
            result.extend(find_ruby_files(path))
        else:
            result.append(path)
    return result


def read_source(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def format_source(source: str, filename: str, options: CliOptions) -> str | None:
    """Parse, print, and render one input. Returns None if the pragma is required but absent."""
    from rbfmt.ast import Program
    from rbfmt.debug import dump_ast
    from rbfmt.layout import render
    from rbfmt.parser import parse
    from rbfmt.pragma import has_pragma, insert_pragma
    from rbfmt.printer import print_ast
    from rbfmt.sexp import load

    if options.from_sexp:
        loaded = load(json.loads(source))
        program = loaded if isinstance(loaded, Program) else Program((loaded,), loaded.span)
    else:
        if options.require_pragma and not has_pragma(source):
            return None
        program = parse(source, filename)

    if options.debug:
        dump_ast(program)

    try:
        doc = print_ast(program)
    except FormatError as exc:
        exc.source = "" if options.from_sexp else source
        raise

    result = render(doc, options.format)
    if options.insert_pragma and not has_pragma(result):
        result = insert_pragma(result)
    return result


def _emit(result: str, options: CliOptions) -> None:
    if options.output_file:
        options.output_file.write_text(result, encoding="utf-8")
    else:
        sys.stdout.write(result)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    exit_code = 0
    for path in expand_paths(options.paths):
        filename = "<stdin>" if str(path) == "-" else str(path)
        try:
            source = read_source(path)
        except (OSError, UnicodeDecodeError) as exc:
            print(f"error: cannot read {filename}: {exc}", file=sys.stderr)
            return 2

        try:
            result = format_source(source, filename, options)
        except (LexError, ParseError, FormatError) as exc:
            print(exc.format(filename), file=sys.stderr)
            exit_code = 1
            continue
        except json.JSONDecodeError as exc:
            print(f"error: invalid JSON in {filename}: {exc}", file=sys.stderr)
            exit_code = 1
            continue

        if result is None:
            continue

        if options.check:
            if result != source:
                print(f"{filename}: not formatted", file=sys.stderr)
                exit_code = 1
        elif options.write:
            if result != source:
                path.write_text(result, encoding="utf-8")
                print(f"Formatted {filename}", file=sys.stderr)
        else:
            _emit(result, options)

    return exit_code
