"""Document tree: layout intent handed to the renderer in ``rbfmt.layout``."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Concat:
    parts: tuple[Doc, ...]


@dataclass(frozen=True, slots=True)
class Group:
    """Render contents flat if they fit the remaining width, else break every line."""

    contents: Doc


@dataclass(frozen=True, slots=True)
class Indent:
    """Indent line breaks in contents by the renderer's tab width."""

    contents: Doc


@dataclass(frozen=True, slots=True)
class Align:
    """Indent line breaks in contents by a fixed number of columns."""

    width: int
    contents: Doc


@dataclass(frozen=True, slots=True)
class IfBreak:
    """Choose contents by whether the enclosing group broke."""

    break_contents: Doc
    flat_contents: Doc


@dataclass(frozen=True, slots=True)
class Line:
    """A space when flat, a newline when broken."""


@dataclass(frozen=True, slots=True)
class SoftLine:
    """Nothing when flat, a newline when broken."""


@dataclass(frozen=True, slots=True)
class HardLine:
    """Always a newline; forces every enclosing group to break."""


Doc = Text | Concat | Group | Indent | Align | IfBreak | Line | SoftLine | HardLine

line = Line()
softline = SoftLine()
hardline = HardLine()


def text(value: str) -> Text:
    return Text(value)


def _as_doc(part: Doc | str) -> Doc:
    return Text(part) if isinstance(part, str) else part


def concat(*parts: Doc | str) -> Concat:
    """Concatenate parts, splicing nested Concats and dropping empty strings."""
    flat: list[Doc] = []
    for part in parts:
        if isinstance(part, Concat):
            flat.extend(part.parts)
        elif part != "":
            flat.append(_as_doc(part))
    return Concat(tuple(flat))


def join(sep: Doc | str, docs: Iterable[Doc | str]) -> Concat:
    out: list[Doc | str] = []
    for i, doc in enumerate(docs):
        if i:
            out.append(sep)
        out.append(doc)
    return concat(*out)


def group(contents: Doc | str) -> Group:
    return Group(_as_doc(contents))


def indent(contents: Doc | str) -> Indent:
    return Indent(_as_doc(contents))


def align(width: int, contents: Doc | str) -> Align:
    return Align(width, _as_doc(contents))


def if_break(break_contents: Doc | str, flat_contents: Doc | str = "") -> IfBreak:
    return IfBreak(_as_doc(break_contents), _as_doc(flat_contents))


def children(doc: Doc) -> tuple[Doc, ...]:
    """Direct children of a document node, both branches of an IfBreak included."""
    if isinstance(doc, Concat):
        return doc.parts
    if isinstance(doc, (Group, Indent, Align)):
        return (doc.contents,)
    if isinstance(doc, IfBreak):
        return (doc.break_contents, doc.flat_contents)
    return ()


def measure(doc: Doc | None) -> int:
    """Width of ``doc`` if every group in it rendered flat.

    Used to compute alignment columns; it never decides whether anything
    breaks. Walks an explicit stack, so nesting depth is unbounded.
    """
    width = 0
    stack: list[Doc | None] = [doc]
    while stack:
        d = stack.pop()
        if d is None:
            continue
        if isinstance(d, Text):
            width += len(d.value)
        elif isinstance(d, Concat):
            stack.extend(d.parts)
        elif isinstance(d, (Group, Indent, Align)):
            stack.append(d.contents)
        elif isinstance(d, IfBreak):
            stack.append(d.flat_contents)
        elif isinstance(d, Line):
            width += 1
    return width
