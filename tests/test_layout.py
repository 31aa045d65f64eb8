"""Renderer tests: group fitting, indentation, alignment, and break propagation."""

from __future__ import annotations

from rbfmt.doc import (
    align,
    concat,
    group,
    hardline,
    if_break,
    indent,
    join,
    line,
    softline,
    text,
)
from rbfmt.layout import render
from rbfmt.options import FormatOptions


def _render(doc, width: int = 80, tab_width: int = 2) -> str:
    return render(doc, FormatOptions(print_width=width, tab_width=tab_width))


def _bracketed(*items: str):
    body = join(concat(",", line), items)
    return group(concat("[", indent(concat(softline, body)), softline, "]"))


class TestGroups:
    def test_text(self) -> None:
        assert _render(text("hello")) == "hello"

    def test_group_fits(self) -> None:
        assert _render(group(concat("a", line, "b"))) == "a b"

    def test_group_breaks(self) -> None:
        assert _render(group(concat("aaa", line, "bbb")), width=5) == "aaa\nbbb"

    def test_exact_width_fits(self) -> None:
        assert _render(group(concat("aaa", line, "bbb")), width=7) == "aaa bbb"

    def test_softline(self) -> None:
        assert _render(_bracketed("x")) == "[x]"
        assert _render(_bracketed("x"), width=2) == "[\n  x\n]"

    def test_broken_group_breaks_every_line(self) -> None:
        assert _render(_bracketed("a", "b", "c"), width=5) == "[\n  a,\n  b,\n  c\n]"

    def test_inner_group_fits_after_outer_breaks(self) -> None:
        doc = group(concat("outer(", indent(concat(softline, _bracketed("a", "b"))), softline, ")"))
        assert _render(doc, width=10) == "outer(\n  [a, b]\n)"

    def test_default_options(self) -> None:
        assert render(group(concat("a", line, "b"))) == "a b"


class TestFits:
    def test_rest_of_line_counts(self) -> None:
        doc = concat(group(concat("a", line, "b")), "cccc")
        assert _render(doc, width=5) == "a\nbcccc"

    def test_rest_stops_at_hardline(self) -> None:
        doc = concat(group(concat("a", line, "b")), hardline, "cccccccc")
        assert _render(doc, width=5) == "a b\ncccccccc"


class TestIndentation:
    def test_indent_uses_tab_width(self) -> None:
        assert _render(_bracketed("x"), width=2, tab_width=4) == "[\n    x\n]"

    def test_align(self) -> None:
        doc = concat("foo ", align(4, concat("a,", hardline, "b")))
        assert _render(doc) == "foo a,\n    b"

    def test_align_is_relative_to_indent(self) -> None:
        doc = indent(concat(hardline, "x ", align(2, concat("a,", hardline, "b"))))
        assert _render(doc) == "\n  x a,\n    b"

    def test_trailing_spaces_trimmed(self) -> None:
        assert _render(concat("a ", hardline, "b ")) == "a\nb"

    def test_blank_line_has_no_indent(self) -> None:
        doc = indent(concat("a", hardline, hardline, "b"))
        assert _render(doc) == "a\n\n  b"


class TestBreakPropagation:
    def test_hardline_breaks_enclosing_group(self) -> None:
        doc = group(concat("a", line, "b", hardline, "c"))
        assert _render(doc) == "a\nb\nc"

    def test_hardline_breaks_every_ancestor(self) -> None:
        doc = group(concat("x", line, group(concat("y", hardline, "z"))))
        assert _render(doc) == "x\ny\nz"

    def test_if_break(self) -> None:
        assert _render(group(if_break("broken", "flat"))) == "flat"
        assert _render(group(concat(if_break("broken", "flat"), hardline))) == "broken\n"

    def test_if_break_follows_enclosing_group(self) -> None:
        doc = group(concat("aaaa", line, if_break("B", "F")))
        assert _render(doc, width=3) == "aaaa\nB"

    def test_deep_nesting(self) -> None:
        doc = text("x")
        for _ in range(3000):
            doc = group(concat("(", doc, ")"))
        assert _render(doc, width=10000) == "(" * 3000 + "x" + ")" * 3000
