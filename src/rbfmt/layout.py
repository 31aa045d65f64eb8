"""Width-aware renderer: turns a document tree into text."""

from __future__ import annotations

from enum import Enum, auto

from rbfmt.doc import (
    Align,
    Concat,
    Doc,
    Group,
    HardLine,
    IfBreak,
    Indent,
    Line,
    SoftLine,
    Text,
    children,
)
from rbfmt.options import FormatOptions


class _Mode(Enum):
    BREAK = auto()
    FLAT = auto()


# (indentation, mode, doc)
_Frame = tuple[int, _Mode, Doc]


def render(doc: Doc, options: FormatOptions | None = None) -> str:
    """Render ``doc`` to a string, breaking groups that exceed the print width."""
    if options is None:
        options = FormatOptions()

    broken = _propagate_breaks(doc)
    out: list[str] = []
    col = 0
    stack: list[_Frame] = [(0, _Mode.BREAK, doc)]

    while stack:
        ind, mode, d = stack.pop()

        if isinstance(d, Text):
            out.append(d.value)
            col += len(d.value)
        elif isinstance(d, Concat):
            # Push in reverse so the first part is processed first
            for part in reversed(d.parts):
                stack.append((ind, mode, part))
        elif isinstance(d, Indent):
            stack.append((ind + options.tab_width, mode, d.contents))
        elif isinstance(d, Align):
            stack.append((ind + d.width, mode, d.contents))
        elif isinstance(d, Group):
            if id(d) in broken:
                stack.append((ind, _Mode.BREAK, d.contents))
            elif mode == _Mode.FLAT:
                stack.append((ind, _Mode.FLAT, d.contents))
            else:
                flat = (ind, _Mode.FLAT, d.contents)
                fits = _fits(flat, stack, options.print_width - col, broken)
                stack.append(flat if fits else (ind, _Mode.BREAK, d.contents))
        elif isinstance(d, IfBreak):
            chosen = d.break_contents if mode == _Mode.BREAK else d.flat_contents
            stack.append((ind, mode, chosen))
        elif isinstance(d, (Line, SoftLine)) and mode == _Mode.FLAT:
            if isinstance(d, Line):
                out.append(" ")
                col += 1
        else:
            # Line or SoftLine in break mode, or HardLine
            _trim(out)
            out.append("\n" + " " * ind)
            col = ind

    _trim(out)
    return "".join(out)


def _fits(first: _Frame, rest: list[_Frame], width: int, broken: set[int]) -> bool:
    """Check whether ``first`` and the rest of its line fit in ``width`` columns.

    Frames still on the render stack are consulted in their own mode, so the
    check stops at the first line break that will happen anyway.
    """
    stack: list[_Frame] = [first]
    rest_idx = len(rest)

    while width >= 0:
        if not stack:
            if rest_idx == 0:
                return True
            rest_idx -= 1
            stack.append(rest[rest_idx])
            continue

        ind, mode, d = stack.pop()

        if isinstance(d, Text):
            width -= len(d.value)
        elif isinstance(d, Concat):
            for part in reversed(d.parts):
                stack.append((ind, mode, part))
        elif isinstance(d, (Indent, Align)):
            stack.append((ind, mode, d.contents))
        elif isinstance(d, Group):
            group_mode = _Mode.BREAK if id(d) in broken else mode
            stack.append((ind, group_mode, d.contents))
        elif isinstance(d, IfBreak):
            chosen = d.break_contents if mode == _Mode.BREAK else d.flat_contents
            stack.append((ind, mode, chosen))
        elif isinstance(d, HardLine) or mode == _Mode.BREAK:
            return True
        elif isinstance(d, Line):
            width -= 1

    return False


def _propagate_breaks(doc: Doc) -> set[int]:
    """Return the ids of groups that contain a hard line and must break."""
    has_hard: dict[int, bool] = {}
    broken: set[int] = set()
    stack: list[tuple[Doc, bool]] = [(doc, False)]

    while stack:
        d, visited = stack.pop()
        key = id(d)
        if not visited:
            if key in has_hard:
                continue
            stack.append((d, True))
            for child in children(d):
                if id(child) not in has_hard:
                    stack.append((child, False))
            continue

        hard = isinstance(d, HardLine) or any(has_hard.get(id(c), False) for c in children(d))
        has_hard[key] = hard
        if hard and isinstance(d, Group):
            broken.add(key)

    return broken


def _trim(out: list[str]) -> None:
    """Strip trailing spaces from the output before a newline."""
    while out:
        trimmed = out[-1].rstrip(" ")
        if trimmed:
            out[-1] = trimmed
            return
        out.pop()
