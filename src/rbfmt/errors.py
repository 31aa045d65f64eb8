"""Error types with formatted source context."""

from __future__ import annotations

from rbfmt.tokens import Position, Span


def _snippet(
    message: str,
    source: str,
    start: Position,
    underline_len: int | None,
    filename: str,
) -> str:
    """Render ``message`` with a gutter, the offending source line and carets.

    ``underline_len`` of None underlines up to two characters, clipped to the line.
    """
    lines = source.splitlines(keepends=True)
    line_idx = start.line - 1
    col = start.column

    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    if underline_len is None:
        underline_len = max(1, min(2, len(source_line) - col + 1))

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(start.line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{start.line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


def _span_underline(span: Span, source: str) -> int:
    # Underline the full span when on one line, otherwise to end of line
    if span.end.line == span.start.line:
        return max(1, span.end.column - span.start.column)
    lines = source.splitlines()
    idx = span.start.line - 1
    line_len = len(lines[idx]) if 0 <= idx < len(lines) else 0
    return max(1, line_len - span.start.column + 1)


class LexError(Exception):
    """Raised on the first lexing error, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.rb") -> str:
        return _snippet(self.message, self.source, self.position, None, filename)


class ParseError(Exception):
    """Raised on the first parse error, with span and source context."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.rb") -> str:
        underline = _span_underline(self.span, self.source)
        return _snippet(self.message, self.source, self.span.start, underline, filename)


class FormatError(Exception):
    """Raised when a node cannot be printed.

    ``kind`` names the offending node kind. ``span`` is None for nodes that
    carry no position (e.g. loaded from a Ripper S-expression without
    scanner tokens); the message then reports the kind alone.
    """

    def __init__(
        self,
        message: str,
        kind: str,
        span: Span | None = None,
        source: str = "",
    ) -> None:
        self.message = message
        self.kind = kind
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.rb") -> str:
        message = f"{self.message} (node: {self.kind})"
        if self.span is None:
            return f"error: {message}\n  --> {filename}"
        underline = _span_underline(self.span, self.source)
        return _snippet(message, self.source, self.span.start, underline, filename)


class MalformedNodeError(FormatError):
    """A node does not have the shape its kind requires."""


class UnsupportedConstructError(FormatError):
    """A node kind reached the printer that has no printer registered."""
