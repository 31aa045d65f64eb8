"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Names
    IDENTIFIER = auto()  # foo, empty?, save!
    CONSTANT = auto()  # Foo
    VARIABLE = auto()  # @foo, @@foo, $foo
    LABEL = auto()  # key: (value is the bare name)
    KEYWORD = auto()  # def, end, nil, self, ...

    # Literals (value is the raw source text)
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    SYMBOL = auto()  # :name

    # Punctuation
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COMMA = auto()  # ,
    DOT = auto()  # .
    AMPDOT = auto()  # &.
    QUESTION = auto()  # ? (ternary)
    COLON = auto()  # : (ternary)
    SEMICOLON = auto()  # ;
    OPERATOR = auto()  # || && == != <=> < > <= >= + - * / % ! =

    COMMENT = auto()  # # to end of line
    NEWLINE = auto()  # \n or \r\n

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with its value, original source text and spacing.

    ``spaced`` is True when horizontal whitespace separates the token from
    the one before it; the parser needs it to tell ``foo -1`` from ``foo - 1``.
    """

    type: TokenType
    value: str
    raw: str
    span: Span
    spaced: bool = False


KEYWORDS = frozenset(
    {
        "alias",
        "and",
        "begin",
        "break",
        "case",
        "class",
        "def",
        "defined?",
        "do",
        "else",
        "elsif",
        "end",
        "ensure",
        "false",
        "for",
        "if",
        "in",
        "module",
        "next",
        "nil",
        "not",
        "or",
        "redo",
        "rescue",
        "retry",
        "return",
        "self",
        "super",
        "then",
        "true",
        "undef",
        "unless",
        "until",
        "when",
        "while",
        "yield",
    }
)

# Keywords that evaluate to a value and parse as plain references
VALUE_KEYWORDS = frozenset({"nil", "true", "false", "self"})

# Longest first so that "<=>" wins over "<=" and "<"
OPERATORS = ("<=>", "||", "&&", "==", "!=", "<=", ">=", "<", ">", "+", "-", "*", "/", "%", "!", "=")


def is_ident_start(ch: str) -> bool:
    """Return True if ch can start an identifier or constant."""
    return ch.isalpha() or ch == "_"


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an identifier or constant."""
    return ch.isalnum() or ch == "_"
