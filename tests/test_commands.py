"""Command and command-call printer tests: alignment and its exceptions."""

from __future__ import annotations

import pytest

from rbfmt.ast import Args, Command, CommandCall, Literal, VarRef
from rbfmt.commands import (
    has_def_argument,
    has_ternary_argument,
    print_command,
    print_command_call,
    skip_alignment,
)
from rbfmt.doc import measure
from rbfmt.errors import FormatError, MalformedNodeError
from rbfmt.layout import render
from rbfmt.options import FormatOptions
from rbfmt.parser import parse
from rbfmt.printer import print_ast
from rbfmt.tokens import Position, Span

S = Span(Position(1, 1, 0), Position(1, 1, 0))


def _ref(name: str) -> VarRef:
    return VarRef(name, S)


def _command(name: str, *items) -> Command:
    return Command(name, Args(tuple(items), S), S)


def _render(node, width: int = 80) -> str:
    return render(print_ast(node), FormatOptions(print_width=width))


def _parse_args(source: str) -> tuple:
    (node,) = parse("f " + source).statements
    return node.args.items


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


class TestHeuristics:
    def test_def_first_argument(self, parse_one) -> None:
        assert has_def_argument(parse_one("private def foo\nend"))

    def test_singleton_def_argument(self, parse_one) -> None:
        assert has_def_argument(parse_one("private_class_method def self.foo\nend"))

    def test_no_def_argument(self, parse_one) -> None:
        assert not has_def_argument(parse_one("foo bar, baz"))

    def test_def_only_checked_first(self) -> None:
        assert not has_def_argument(_command("foo", _ref("a")))

    def test_ternary_anywhere(self, parse_one) -> None:
        assert has_ternary_argument(parse_one("foo 1, a ? b : c"))
        assert has_ternary_argument(parse_one("foo a ? b : c, 1"))

    def test_no_ternary(self, parse_one) -> None:
        assert not has_ternary_argument(parse_one("foo 1, 2"))

    def test_nested_ternary_not_counted(self, parse_one) -> None:
        assert not has_ternary_argument(parse_one("foo bar(a ? b : c)"))

    def test_skip_alignment_for_to(self, parse_one) -> None:
        assert skip_alignment(parse_one("expect(foo).to eq 1"))
        assert skip_alignment(parse_one("expect(foo).not_to eq 1"))

    def test_align_other_calls(self, parse_one) -> None:
        assert not skip_alignment(parse_one("foo.bar baz"))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestPrintCommand:
    def test_flat(self) -> None:
        node = _command("method_name", _ref("bar"), _ref("baz"))
        assert _render(node) == "method_name bar, baz"

    def test_aligned_under_first_argument(self) -> None:
        node = _command("method_name", _ref("bar"), _ref("baz"))
        assert _render(node, width=15) == "method_name bar,\n            baz"

    def test_every_argument_breaks(self) -> None:
        node = _command("foo", _ref("aaa"), _ref("bbb"), _ref("ccc"))
        assert _render(node, width=10) == "foo aaa,\n    bbb,\n    ccc"

    def test_ternary_wraps_in_parens(self) -> None:
        node = _command("assert_equal", *_parse_args("cond ? 1 : 2, other"))
        assert _render(node, width=20) == "assert_equal(\n  cond ? 1 : 2,\n  other\n)"

    def test_ternary_flat_keeps_bare_form(self) -> None:
        node = _command("assert_equal", *_parse_args("cond ? 1 : 2, other"))
        assert _render(node) == "assert_equal cond ? 1 : 2, other"

    def test_flat_branch_measures_without_alignment(self) -> None:
        doc = print_command(_command("foo", _ref("bar")), print_ast)
        assert measure(doc) == len("foo bar")

    def test_empty_arguments_rejected(self) -> None:
        with pytest.raises(MalformedNodeError) as exc_info:
            print_command(Command("foo", Args((), S), S), print_ast)
        assert exc_info.value.kind == "command"

    def test_missing_name_rejected(self) -> None:
        with pytest.raises(MalformedNodeError, match="no method name"):
            print_command(_command("", _ref("a")), print_ast)

    def test_malformed_is_format_error(self) -> None:
        with pytest.raises(FormatError):
            print_command(Command("foo", None, S), print_ast)


# ---------------------------------------------------------------------------
# Command calls
# ---------------------------------------------------------------------------


class TestPrintCommandCall:
    def test_no_arguments_prints_prefix(self) -> None:
        node = CommandCall(_ref("foo"), ".", "bar", None, S)
        assert _render(node) == "foo.bar"

    def test_flat(self) -> None:
        node = CommandCall(_ref("foo"), "&.", "bar", Args((Literal("1", S),), S), S)
        assert _render(node) == "foo&.bar 1"

    def test_aligned_under_first_argument(self) -> None:
        node = CommandCall(_ref("foo"), ".", "bar", Args((_ref("baz"), _ref("qux")), S), S)
        assert _render(node, width=12) == "foo.bar baz,\n        qux"

    def test_assertion_chain_not_aligned(self) -> None:
        node = CommandCall(_ref("expect"), ".", "to", Args((_ref("aaaa"), _ref("bbbb")), S), S)
        assert _render(node, width=15) == "expect.to aaaa,\nbbbb"

    def test_ternary_argument_still_aligned(self) -> None:
        node = CommandCall(_ref("foo"), ".", "bar", Args(_parse_args("a ? 1 : 2, other"), S), S)
        assert _render(node, width=15) == "foo.bar a ? 1 : 2,\n        other"

    def test_empty_arguments_rejected(self) -> None:
        node = CommandCall(_ref("foo"), ".", "bar", Args((), S), S)
        with pytest.raises(MalformedNodeError):
            print_command_call(node, print_ast)
