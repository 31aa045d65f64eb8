"""Width-aware formatter for Ruby's parenthesis-free call syntax."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rbfmt.options import FormatOptions

__version__ = "0.1.0"


def format(
    source: str,
    filename: str = "input.rb",
    options: FormatOptions | None = None,
) -> str:
    """Parse, print, and render Ruby source to formatted text."""
    from rbfmt.errors import FormatError
    from rbfmt.layout import render
    from rbfmt.parser import parse
    from rbfmt.printer import print_ast

    program = parse(source, filename)
    try:
        doc = print_ast(program)
    except FormatError as exc:
        exc.source = source
        raise
    return render(doc, options)
