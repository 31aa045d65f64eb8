"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from rbfmt import format
from rbfmt.ast import Program
from rbfmt.lexer import tokenize
from rbfmt.options import FormatOptions
from rbfmt.parser import parse
from rbfmt.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Program."""

    def _parse(source: str, filename: str = "test.rb") -> Program:
        return parse(source, filename)

    return _parse


@pytest.fixture
def parse_one(parse_source):
    """Return a helper that parses source holding a single statement."""

    def _parse_one(source: str):
        program = parse_source(source)
        assert len(program.statements) == 1, f"Expected 1 statement, got {program.statements}"
        return program.statements[0]

    return _parse_one


@pytest.fixture
def fmt():
    """Return a helper that formats source at a given print width."""

    def _fmt(source: str, width: int = 80, tab_width: int = 2) -> str:
        return format(source, "test.rb", FormatOptions(print_width=width, tab_width=tab_width))

    return _fmt
