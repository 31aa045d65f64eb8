"""Ruby subset lexer: converts source text into a flat token stream."""

from __future__ import annotations

from rbfmt.errors import LexError
from rbfmt.tokens import (
    KEYWORDS,
    OPERATORS,
    Position,
    Span,
    Token,
    TokenType,
    is_ident_char,
    is_ident_start,
)

_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}


class Lexer:
    """Tokenize Ruby source text into a stream of Token objects."""

    def __init__(self, source: str, filename: str = "input.rb") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1
        self._tokens: list[Token] = []
        self._spaced = False

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            self._lex_one()

        self._emit(TokenType.EOF, "", "")
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _emit(self, tt: TokenType, value: str, raw: str, start: Position | None = None) -> Token:
        end = self._current_pos()
        if start is None:
            start = end
        tok = Token(tt, value, raw, Span(start, end), self._spaced)
        self._tokens.append(tok)
        self._spaced = False
        return tok

    def _error(self, message: str, pos: Position | None = None) -> LexError:
        if pos is None:
            pos = self._current_pos()
        return LexError(message, pos, self._source)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_one(self) -> None:
        ch = self._peek()

        if ch == "\0":
            raise self._error("NUL character in source")

        if ch in " \t":
            while self._peek() in (" ", "\t"):
                self._advance()
            self._spaced = True
            return

        if ch == "\\" and self._peek(1) == "\n":
            # Line continuation
            self._advance()
            self._advance()
            self._spaced = True
            return

        if ch == "\n" or (ch == "\r" and self._peek(1) == "\n"):
            start = self._current_pos()
            raw = "\r\n" if ch == "\r" else "\n"
            for _ in raw:
                self._advance()
            self._emit(TokenType.NEWLINE, "\n", raw, start)
            return

        if ch == "#":
            self._lex_comment()
            return

        if ch.isdigit():
            self._lex_number()
            return

        if ch in "'\"":
            self._lex_string(ch)
            return

        if ch == ":":
            self._lex_colon()
            return

        if ch in "@$":
            self._lex_variable()
            return

        if is_ident_start(ch):
            self._lex_identifier()
            return

        if ch in _PUNCTUATION:
            start = self._current_pos()
            self._advance()
            self._emit(_PUNCTUATION[ch], ch, ch, start)
            return

        if ch == "&" and self._peek(1) == ".":
            start = self._current_pos()
            self._advance()
            self._advance()
            self._emit(TokenType.AMPDOT, "&.", "&.", start)
            return

        if ch == ".":
            start = self._current_pos()
            if self._peek(1) == ".":
                raise self._error("ranges are not supported")
            self._advance()
            self._emit(TokenType.DOT, ".", ".", start)
            return

        if ch == "?":
            start = self._current_pos()
            self._advance()
            self._emit(TokenType.QUESTION, "?", "?", start)
            return

        if ch == "=" and self._peek(1) == ">":
            raise self._error("hash rockets are not supported")

        for op in OPERATORS:
            if self._source.startswith(op, self._pos):
                start = self._current_pos()
                for _ in op:
                    self._advance()
                self._emit(TokenType.OPERATOR, op, op, start)
                return

        raise self._error(f"unsupported character '{ch}'")

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def _lex_comment(self) -> None:
        start = self._current_pos()
        chars = []
        while self._pos < len(self._source) and self._peek() != "\n":
            chars.append(self._advance())
        raw = "".join(chars)
        self._emit(TokenType.COMMENT, raw.rstrip(), raw, start)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def _read_name(self) -> str:
        chars = []
        while self._pos < len(self._source) and is_ident_char(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _lex_identifier(self) -> None:
        start = self._current_pos()
        name = self._read_name()

        if name[0].isupper():
            self._emit(TokenType.CONSTANT, name, name, start)
            return

        # Predicate and bang methods: empty?, save! (but not a != b)
        if self._peek() in ("?", "!") and self._peek(1) != "=":
            name += self._advance()

        # Label: key: value (not key::Const)
        if self._peek() == ":" and self._peek(1) != ":" and not name.endswith("!"):
            self._advance()
            self._emit(TokenType.LABEL, name, name + ":", start)
            return

        if name in KEYWORDS:
            self._emit(TokenType.KEYWORD, name, name, start)
            return

        self._emit(TokenType.IDENTIFIER, name, name, start)

    def _lex_variable(self) -> None:
        start = self._current_pos()
        prefix = self._advance()
        if prefix == "@" and self._peek() == "@":
            prefix += self._advance()
        if not is_ident_start(self._peek()):
            raise self._error(f"expected variable name after '{prefix}'", start)
        name = prefix + self._read_name()
        self._emit(TokenType.VARIABLE, name, name, start)

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _lex_number(self) -> None:
        start = self._current_pos()
        chars = []
        while self._peek().isdigit() or self._peek() == "_":
            chars.append(self._advance())
        tt = TokenType.INTEGER
        if self._peek() == "." and self._peek(1).isdigit():
            tt = TokenType.FLOAT
            chars.append(self._advance())
            while self._peek().isdigit() or self._peek() == "_":
                chars.append(self._advance())
        text = "".join(chars)
        if text.endswith("_"):
            raise self._error("trailing '_' in number", start)
        self._emit(tt, text, text, start)

    def _lex_string(self, quote: str) -> None:
        start = self._current_pos()
        chars = [self._advance()]
        while True:
            if self._pos >= len(self._source):
                raise self._error("unterminated string", start)
            ch = self._advance()
            chars.append(ch)
            if ch == "\\":
                if self._pos >= len(self._source):
                    raise self._error("unterminated string", start)
                chars.append(self._advance())
                continue
            if quote == '"' and ch == "#" and self._peek() == "{":
                raise self._error("string interpolation is not supported", start)
            if ch == quote:
                break
        text = "".join(chars)
        self._emit(TokenType.STRING, text, text, start)

    def _lex_colon(self) -> None:
        start = self._current_pos()
        if self._peek(1) == ":":
            raise self._error("scope resolution '::' is not supported")
        self._advance()

        if is_ident_start(self._peek()):
            name = self._read_name()
            if self._peek() in ("?", "!", "="):
                name += self._advance()
            self._emit(TokenType.SYMBOL, ":" + name, ":" + name, start)
            return

        self._emit(TokenType.COLON, ":", ":", start)


def tokenize(source: str, filename: str = "input.rb") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, filename).tokenize()
