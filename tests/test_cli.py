"""Tests for the CLI module: arg parsing, exit codes, file modes, end-to-end."""

from __future__ import annotations

import argparse
import io
import json
from pathlib import Path

import pytest

from rbfmt.cli import build_parser, format_source, main, parse_positive_int, resolve_options

UNFORMATTED = "method_name   bar,baz\n"
FORMATTED = "method_name bar, baz\n"


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestParseHelpers:
    def test_positive_int(self) -> None:
        assert parse_positive_int("40") == 40

    def test_zero_rejected(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_positive_int("0")

    def test_non_integer_rejected(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_positive_int("wide")


class TestArgParsing:
    def test_defaults(self) -> None:
        ns = build_parser().parse_args([])
        assert ns.paths == ["-"]
        assert ns.output is None
        assert ns.print_width is None
        assert ns.require_pragma is None
        assert ns.write is False

    def test_widths(self) -> None:
        ns = build_parser().parse_args(["a.rb", "--print-width", "100", "--tab-width", "4"])
        assert ns.print_width == 100
        assert ns.tab_width == 4

    def test_multiple_paths(self) -> None:
        ns = build_parser().parse_args(["a.rb", "lib"])
        assert ns.paths == ["a.rb", "lib"]

    def test_output_needs_single_input(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args([str(tmp_path / "a.rb"), str(tmp_path / "b.rb"), "-o", "x.rb"])
        with pytest.raises(argparse.ArgumentTypeError, match="exactly one input"):
            resolve_options(ns)


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_success(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "ok.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src)]) == 0
        assert capsys.readouterr().out == FORMATTED

    def test_parse_error_returns_1(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "bad.rb"
        src.write_text("x = 1\n")
        assert main([str(src)]) == 1
        err = capsys.readouterr().err
        assert "error: assignment is not supported" in err
        assert f"--> {src}:1:3" in err

    def test_lex_error_returns_1(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "bad.rb"
        src.write_text("foo { 1 }\n")
        assert main([str(src)]) == 1
        assert "unsupported character" in capsys.readouterr().err

    def test_missing_file_returns_2(self, tmp_path: Path, capsys) -> None:
        assert main([str(tmp_path / "missing.rb")]) == 2
        assert "cannot read" in capsys.readouterr().err

    def test_write_stdin_returns_2(self, capsys) -> None:
        assert main(["--write"]) == 2
        assert "stdin" in capsys.readouterr().err

    def test_errors_do_not_stop_other_files(self, tmp_path: Path, capsys) -> None:
        bad = tmp_path / "a.rb"
        bad.write_text("x = 1\n")
        good = tmp_path / "b.rb"
        good.write_text(UNFORMATTED)
        assert main([str(bad), str(good)]) == 1
        assert capsys.readouterr().out == FORMATTED


# ---------------------------------------------------------------------------
# Output modes
# ---------------------------------------------------------------------------


class TestOutputModes:
    def test_print_width(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--print-width", "15"]) == 0
        assert capsys.readouterr().out == "method_name bar,\n            baz\n"

    def test_output_file(self, tmp_path: Path) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        out = tmp_path / "out.rb"
        assert main([str(src), "-o", str(out)]) == 0
        assert out.read_text() == FORMATTED

    def test_stdin(self, tmp_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("sys.stdin", io.StringIO(UNFORMATTED))
        assert main([]) == 0
        assert capsys.readouterr().out == FORMATTED

    def test_check_unformatted(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--check"]) == 1
        captured = capsys.readouterr()
        assert f"{src}: not formatted" in captured.err
        assert captured.out == ""

    def test_check_formatted(self, tmp_path: Path) -> None:
        src = tmp_path / "a.rb"
        src.write_text(FORMATTED)
        assert main([str(src), "--check"]) == 0

    def test_write(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--write"]) == 0
        assert src.read_text() == FORMATTED
        assert f"Formatted {src}" in capsys.readouterr().err

    def test_write_leaves_formatted_file_alone(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(FORMATTED)
        assert main([str(src), "--write"]) == 0
        assert capsys.readouterr().err == ""

    def test_directory(self, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "a.rb").write_text(UNFORMATTED)
        (tmp_path / "lib" / "notes.txt").write_text("x = 1\n")
        assert main([str(tmp_path / "lib"), "--write"]) == 0
        assert (tmp_path / "lib" / "a.rb").read_text() == FORMATTED
        assert (tmp_path / "lib" / "notes.txt").read_text() == "x = 1\n"


# ---------------------------------------------------------------------------
# Pragmas
# ---------------------------------------------------------------------------


class TestPragmaFlags:
    def test_require_pragma_skips(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--require-pragma"]) == 0
        assert capsys.readouterr().out == ""

    def test_require_pragma_formats(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text("# @format\n" + UNFORMATTED)
        assert main([str(src), "--require-pragma"]) == 0
        assert capsys.readouterr().out == "# @format\n" + FORMATTED

    def test_insert_pragma(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--insert-pragma"]) == 0
        assert capsys.readouterr().out == "# @format\n\n" + FORMATTED

    def test_insert_pragma_once(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text("# @format\n\n" + FORMATTED)
        assert main([str(src), "--insert-pragma", "--check"]) == 0


# ---------------------------------------------------------------------------
# S-expression input and debugging
# ---------------------------------------------------------------------------


SEXP = [
    "program",
    [
        [
            "command",
            ["@ident", "method_name", [1, 0]],
            [
                "args_add_block",
                [["vcall", ["@ident", "bar", [1, 12]]], ["vcall", ["@ident", "baz", [1, 17]]]],
                False,
            ],
        ]
    ],
]


class TestFromSexp:
    def test_formats_tree(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "tree.json"
        src.write_text(json.dumps(SEXP))
        assert main([str(src), "--from-sexp", "--print-width", "15"]) == 0
        assert capsys.readouterr().out == "method_name bar,\n            baz\n"

    def test_invalid_json(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "tree.json"
        src.write_text("[")
        assert main([str(src), "--from-sexp"]) == 1
        assert "invalid JSON" in capsys.readouterr().err

    def test_unsupported_node(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "tree.json"
        src.write_text(json.dumps(["program", [["while", ["vcall", ["@ident", "a", [1, 6]]], []]]]))
        assert main([str(src), "--from-sexp"]) == 1
        assert "(node: while)" in capsys.readouterr().err


class TestDebug:
    def test_dumps_ast(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "a.rb"
        src.write_text(UNFORMATTED)
        assert main([str(src), "--debug"]) == 0
        captured = capsys.readouterr()
        assert "Command method_name" in captured.err
        assert captured.out == FORMATTED


class TestFormatSource:
    def test_returns_none_without_required_pragma(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args([str(tmp_path / "a.rb"), "--require-pragma"])
        options = resolve_options(ns)
        assert format_source(UNFORMATTED, "a.rb", options) is None

    def test_formats(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args([str(tmp_path / "a.rb")])
        options = resolve_options(ns)
        assert format_source(UNFORMATTED, "a.rb", options) == FORMATTED
